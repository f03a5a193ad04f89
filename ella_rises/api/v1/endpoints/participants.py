from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
import logging
from ella_rises.api.deps import is_owner_or_admin, run_listing
from ella_rises.api.v1.endpoints.auth import (
    check_password_length,
    get_current_user,
    get_request_context,
    require_admin,
)
from ella_rises.core.security import hash_password
from ella_rises.database.database import get_db
from ella_rises.models import Donation, Milestone, Participant, Registration
from ella_rises.schemas.listing import ListResponse
from ella_rises.schemas.participant import (
    ParticipantCreate,
    ParticipantResponse,
    ParticipantUpdate,
    RoleUpdate,
)
from ella_rises.services.list_query_engine import RequestContext
from ella_rises.services.listings import PARTICIPANTS

logger = logging.getLogger(__name__)
router = APIRouter()


def get_participant_or_404(db: Session, participant_id: int) -> Participant:
    participant = db.query(Participant).filter(Participant.id == participant_id).first()
    if not participant:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Participant not found"
        )
    return participant


@router.get("/", response_model=ListResponse)
async def list_participants(
    request: Request,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context)
):
    """Search, filter, sort and page participants. Non-admins only see themselves."""
    return run_listing(request, db, context, PARTICIPANTS)


@router.get("/{participant_id}", response_model=ParticipantResponse)
async def get_participant(
    participant_id: int,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context)
):
    if not is_owner_or_admin(context, participant_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    return get_participant_or_404(db, participant_id)


@router.post("/", response_model=ParticipantResponse, status_code=status.HTTP_201_CREATED)
async def create_participant(
    participant: ParticipantCreate,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(require_admin)
):
    """Create a participant account (Admin only)."""
    check_password_length(participant.password)
    existing = db.query(Participant).filter(Participant.email == participant.email).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with that email already exists"
        )

    db_participant = Participant(**participant.model_dump(exclude={"password"}))
    db_participant.hashed_password = hash_password(participant.password)
    db.add(db_participant)
    db.commit()
    db.refresh(db_participant)

    logger.info(f"Participant created: {db_participant.email} by admin: {current_user.email}")
    return db_participant


@router.put("/{participant_id}", response_model=ParticipantResponse)
async def update_participant(
    participant_id: int,
    participant_update: ParticipantUpdate,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(get_current_user)
):
    """Update a participant. Participants may edit themselves; only admins change roles."""
    if not (current_user.is_admin or current_user.id == participant_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    participant = get_participant_or_404(db, participant_id)

    update_data = participant_update.model_dump(exclude_unset=True)
    if "role" in update_data and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can change roles"
        )
    if update_data.get("email") and update_data["email"] != participant.email:
        taken = db.query(Participant).filter(Participant.email == update_data["email"]).first()
        if taken:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="An account with that email already exists"
            )
    password = update_data.pop("password", None)
    if password:
        check_password_length(password)
        participant.hashed_password = hash_password(password)

    for field, value in update_data.items():
        if value is None and field in ("email", "first_name", "last_name", "role"):
            continue
        setattr(participant, field, value)

    db.commit()
    db.refresh(participant)

    logger.info(f"Participant updated: {participant.email} by: {current_user.email}")
    return participant


@router.put("/{participant_id}/role", response_model=ParticipantResponse)
async def update_participant_role(
    participant_id: int,
    role_update: RoleUpdate,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(require_admin)
):
    """Change a participant's role (Admin only)."""
    participant = get_participant_or_404(db, participant_id)
    participant.role = role_update.role
    db.commit()
    db.refresh(participant)

    logger.info(f"Role for {participant.email} set to {role_update.role.value} by admin: {current_user.email}")
    return participant


@router.delete("/{participant_id}")
async def delete_participant(
    participant_id: int,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(require_admin)
):
    """Delete a participant (Admin only). Blocked while dependent records exist."""
    if participant_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account"
        )
    participant = get_participant_or_404(db, participant_id)

    dependents = {
        "registrations": db.query(Registration).filter(Registration.participant_id == participant_id).count(),
        "milestones": db.query(Milestone).filter(Milestone.participant_id == participant_id).count(),
        "donations": db.query(Donation).filter(Donation.participant_id == participant_id).count(),
    }
    blocking = [f"{count} {name}" for name, count in dependents.items() if count]
    if blocking:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Participant still has {', '.join(blocking)}"
        )

    email = participant.email
    db.delete(participant)
    db.commit()

    logger.info(f"Participant deleted: {email} by admin: {current_user.email}")
    return {"message": "Participant deleted successfully"}
