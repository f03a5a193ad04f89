from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
import logging
from ella_rises.api.v1.endpoints.auth import get_current_user, require_admin
from ella_rises.core.clock import ensure_utc, utcnow
from ella_rises.database.database import get_db
from ella_rises.models import EventOccurrence, Participant, Registration
from ella_rises.models.registration import RegistrationStatus
from ella_rises.schemas.registration import RegistrationCreate, RegistrationResponse

logger = logging.getLogger(__name__)
router = APIRouter()

ACTIVE_STATUSES = (RegistrationStatus.REGISTERED.value, RegistrationStatus.ATTENDED.value)


def get_registration_or_404(db: Session, registration_id: int) -> Registration:
    registration = db.query(Registration).filter(Registration.id == registration_id).first()
    if not registration:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Registration not found"
        )
    return registration


def check_capacity(db: Session, occurrence: EventOccurrence):
    capacity = occurrence.effective_capacity
    if capacity is None:
        return
    taken = db.query(Registration).filter(
        Registration.occurrence_id == occurrence.id,
        Registration.status.in_(ACTIVE_STATUSES),
    ).count()
    if taken >= capacity:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This event is full"
        )


@router.get("/mine", response_model=List[RegistrationResponse])
async def my_registrations(
    db: Session = Depends(get_db),
    current_user: Participant = Depends(get_current_user)
):
    return (
        db.query(Registration)
        .filter(Registration.participant_id == current_user.id)
        .order_by(Registration.id.desc())
        .all()
    )


@router.post("/", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
async def register_for_occurrence(
    registration: RegistrationCreate,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(get_current_user)
):
    """Register the caller (or, for admins, any participant) for an occurrence."""
    participant_id = registration.participant_id or current_user.id
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
    occurrence = db.query(EventOccurrence).filter(EventOccurrence.id == registration.occurrence_id).first()
    if not occurrence:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event occurrence not found"
        )

    now = utcnow()
    deadline = ensure_utc(occurrence.registration_deadline)
    if deadline is not None and now > deadline:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="The registration deadline has passed"
        )

    existing = db.query(Registration).filter(
        Registration.participant_id == participant_id,
        Registration.occurrence_id == occurrence.id,
    ).first()
    if existing and existing.status != RegistrationStatus.CANCELLED.value:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Already registered for this event"
        )
    check_capacity(db, occurrence)

    if existing:
        # (participant, occurrence) is unique, so a cancelled row is reactivated
        existing.status = RegistrationStatus.REGISTERED.value
        existing.attended = False
        existing.checked_in_at = None
        db_registration = existing
    else:
        db_registration = Registration(
            participant_id=participant_id,
            occurrence_id=occurrence.id,
            status=RegistrationStatus.REGISTERED.value,
            attended=False,
            created_at=now,
        )
        db.add(db_registration)
    db.commit()
    db.refresh(db_registration)

    logger.info(f"Participant {participant_id} registered for occurrence {occurrence.id} by: {current_user.email}")
    return db_registration


@router.post("/{registration_id}/check-in", response_model=RegistrationResponse)
async def check_in(
    registration_id: int,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(require_admin)
):
    """Mark a registration as attended (Admin only)."""
    registration = get_registration_or_404(db, registration_id)
    if registration.status == RegistrationStatus.CANCELLED.value:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot check in a cancelled registration"
        )
    if not registration.attended:
        registration.attended = True
        registration.status = RegistrationStatus.ATTENDED.value
        registration.checked_in_at = utcnow()
        db.commit()
        db.refresh(registration)
        logger.info(f"Registration {registration.id} checked in by admin: {current_user.email}")
    return registration


@router.post("/{registration_id}/cancel", response_model=RegistrationResponse)
async def cancel_registration(
    registration_id: int,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(get_current_user)
):
    registration = get_registration_or_404(db, registration_id)
    if not (current_user.is_admin or registration.participant_id == current_user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    if registration.attended:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot cancel a registration that was already attended"
        )
    registration.status = RegistrationStatus.CANCELLED.value
    db.commit()
    db.refresh(registration)

    logger.info(f"Registration {registration.id} cancelled by: {current_user.email}")
    return registration
