from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from typing import List
import logging
from ella_rises.api.deps import run_listing
from ella_rises.api.v1.endpoints.auth import get_current_user, get_request_context, require_admin
from ella_rises.core.clock import ensure_utc
from ella_rises.database.database import get_db
from ella_rises.models import EventOccurrence, EventTemplate, Participant, Registration
from ella_rises.schemas.event import (
    EventTemplateCreate,
    EventTemplateResponse,
    EventTemplateUpdate,
    OccurrenceCreate,
    OccurrenceResponse,
    OccurrenceUpdate,
)
from ella_rises.schemas.listing import ListResponse
from ella_rises.services.list_query_engine import RequestContext
from ella_rises.services.listings import EVENTS

logger = logging.getLogger(__name__)
router = APIRouter()

OCCURRENCE_TIME_FIELDS = ("starts_at", "ends_at", "registration_deadline")


def get_template_or_404(db: Session, event_id: int) -> EventTemplate:
    template = db.query(EventTemplate).filter(EventTemplate.id == event_id).first()
    if not template:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found"
        )
    return template


def get_occurrence_or_404(db: Session, occurrence_id: int) -> EventOccurrence:
    occurrence = db.query(EventOccurrence).filter(EventOccurrence.id == occurrence_id).first()
    if not occurrence:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event occurrence not found"
        )
    return occurrence


def check_duplicate_occurrence(db: Session, event_id: int, starts_at, exclude_id: int = None):
    query = db.query(EventOccurrence).filter(
        EventOccurrence.event_id == event_id,
        EventOccurrence.starts_at == starts_at,
    )
    if exclude_id is not None:
        query = query.filter(EventOccurrence.id != exclude_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This event already has an occurrence at that start time"
        )


@router.get("/", response_model=ListResponse)
async def list_occurrences(
    request: Request,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context)
):
    """Scheduled occurrences. Non-admins only see occurrences that have not ended."""
    return run_listing(request, db, context, EVENTS)


# Templates

@router.get("/templates", response_model=List[EventTemplateResponse])
async def list_templates(
    db: Session = Depends(get_db),
    current_user: Participant = Depends(get_current_user)
):
    return db.query(EventTemplate).order_by(EventTemplate.name.asc()).all()


@router.post("/templates", response_model=EventTemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    template: EventTemplateCreate,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(require_admin)
):
    """Create an event template (Admin only)."""
    if db.query(EventTemplate).filter(EventTemplate.name == template.name).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An event with that name already exists"
        )
    db_template = EventTemplate(**template.model_dump())
    db.add(db_template)
    db.commit()
    db.refresh(db_template)

    logger.info(f"Event template created: {db_template.name} by admin: {current_user.email}")
    return db_template


@router.put("/templates/{event_id}", response_model=EventTemplateResponse)
async def update_template(
    event_id: int,
    template_update: EventTemplateUpdate,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(require_admin)
):
    template = get_template_or_404(db, event_id)
    update_data = template_update.model_dump(exclude_unset=True)
    if update_data.get("name") and update_data["name"] != template.name:
        if db.query(EventTemplate).filter(EventTemplate.name == update_data["name"]).first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="An event with that name already exists"
            )
    for field, value in update_data.items():
        if field == "name" and value is None:
            continue
        setattr(template, field, value)

    db.commit()
    db.refresh(template)

    logger.info(f"Event template updated: {template.name} by admin: {current_user.email}")
    return template


@router.delete("/templates/{event_id}")
async def delete_template(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(require_admin)
):
    template = get_template_or_404(db, event_id)
    if db.query(EventOccurrence).filter(EventOccurrence.event_id == event_id).count():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Event still has scheduled occurrences"
        )
    name = template.name
    db.delete(template)
    db.commit()

    logger.info(f"Event template deleted: {name} by admin: {current_user.email}")
    return {"message": "Event deleted successfully"}


# Occurrences

@router.get("/occurrences/{occurrence_id}", response_model=OccurrenceResponse)
async def get_occurrence(
    occurrence_id: int,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(get_current_user)
):
    return get_occurrence_or_404(db, occurrence_id)


@router.post("/occurrences", response_model=OccurrenceResponse, status_code=status.HTTP_201_CREATED)
async def create_occurrence(
    occurrence: OccurrenceCreate,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(require_admin)
):
    """Schedule an occurrence of an existing event template (Admin only)."""
    get_template_or_404(db, occurrence.event_id)
    data = occurrence.model_dump()
    for field in OCCURRENCE_TIME_FIELDS:
        data[field] = ensure_utc(data[field])
    check_duplicate_occurrence(db, occurrence.event_id, data["starts_at"])

    db_occurrence = EventOccurrence(**data)
    db.add(db_occurrence)
    db.commit()
    db.refresh(db_occurrence)

    logger.info(f"Occurrence {db_occurrence.id} scheduled for event {occurrence.event_id} by admin: {current_user.email}")
    return db_occurrence


@router.put("/occurrences/{occurrence_id}", response_model=OccurrenceResponse)
async def update_occurrence(
    occurrence_id: int,
    occurrence_update: OccurrenceUpdate,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(require_admin)
):
    occurrence = get_occurrence_or_404(db, occurrence_id)
    update_data = occurrence_update.model_dump(exclude_unset=True)
    for field in OCCURRENCE_TIME_FIELDS:
        if field in update_data:
            update_data[field] = ensure_utc(update_data[field])
    if update_data.get("starts_at") is None:
        update_data.pop("starts_at", None)
    else:
        check_duplicate_occurrence(db, occurrence.event_id, update_data["starts_at"], exclude_id=occurrence.id)

    starts_at = ensure_utc(update_data.get("starts_at", occurrence.starts_at))
    ends_at = ensure_utc(update_data.get("ends_at", occurrence.ends_at))
    if ends_at is not None and ends_at < starts_at:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="ends_at must not be before starts_at"
        )
    for field, value in update_data.items():
        setattr(occurrence, field, value)

    db.commit()
    db.refresh(occurrence)

    logger.info(f"Occurrence updated: {occurrence.id} by admin: {current_user.email}")
    return occurrence


@router.delete("/occurrences/{occurrence_id}")
async def delete_occurrence(
    occurrence_id: int,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(require_admin)
):
    occurrence = get_occurrence_or_404(db, occurrence_id)
    if db.query(Registration).filter(Registration.occurrence_id == occurrence_id).count():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Occurrence still has registrations"
        )
    db.delete(occurrence)
    db.commit()

    logger.info(f"Occurrence deleted: {occurrence_id} by admin: {current_user.email}")
    return {"message": "Occurrence deleted successfully"}
