from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
import logging
from ella_rises.api.deps import run_listing
from ella_rises.api.v1.endpoints.auth import get_current_user, get_request_context
from ella_rises.database.database import get_db
from ella_rises.models import Milestone, Participant
from ella_rises.schemas.listing import ListResponse
from ella_rises.schemas.milestone import MilestoneCreate, MilestoneResponse, MilestoneUpdate
from ella_rises.services.list_query_engine import RequestContext
from ella_rises.services.listings import MILESTONES

logger = logging.getLogger(__name__)
router = APIRouter()


def get_owned_milestone(db: Session, milestone_id: int, current_user: Participant) -> Milestone:
    milestone = db.query(Milestone).filter(Milestone.id == milestone_id).first()
    if not milestone:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Milestone not found"
        )
    if not (current_user.is_admin or milestone.participant_id == current_user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    return milestone


@router.get("/", response_model=ListResponse)
async def list_milestones(
    request: Request,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context)
):
    return run_listing(request, db, context, MILESTONES)


@router.post("/", response_model=MilestoneResponse, status_code=status.HTTP_201_CREATED)
async def create_milestone(
    milestone: MilestoneCreate,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(get_current_user)
):
    """Record a milestone for the caller, or for anyone when the caller is an admin."""
    participant_id = milestone.participant_id or current_user.id
    if participant_id != current_user.id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    if not db.query(Participant).filter(Participant.id == participant_id).first():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Participant not found"
        )

    db_milestone = Milestone(
        participant_id=participant_id,
        title=milestone.title.strip(),
        category=milestone.category,
        achieved_on=milestone.achieved_on,
    )
    db.add(db_milestone)
    db.commit()
    db.refresh(db_milestone)

    logger.info(f"Milestone created: {db_milestone.id} for participant {participant_id} by: {current_user.email}")
    return db_milestone


@router.put("/{milestone_id}", response_model=MilestoneResponse)
async def update_milestone(
    milestone_id: int,
    milestone_update: MilestoneUpdate,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(get_current_user)
):
    milestone = get_owned_milestone(db, milestone_id, current_user)
    update_data = milestone_update.model_dump(exclude_unset=True)
    if update_data.get("title") is None:
        update_data.pop("title", None)
    for field, value in update_data.items():
        setattr(milestone, field, value)

    db.commit()
    db.refresh(milestone)

    logger.info(f"Milestone updated: {milestone.id} by: {current_user.email}")
    return milestone


@router.delete("/{milestone_id}")
async def delete_milestone(
    milestone_id: int,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(get_current_user)
):
    milestone = get_owned_milestone(db, milestone_id, current_user)
    db.delete(milestone)
    db.commit()

    logger.info(f"Milestone deleted: {milestone_id} by: {current_user.email}")
    return {"message": "Milestone deleted successfully"}
