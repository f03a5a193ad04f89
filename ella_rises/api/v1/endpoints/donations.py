from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
import logging
from ella_rises.api.deps import run_listing
from ella_rises.api.v1.endpoints.auth import get_current_user, get_request_context, require_admin
from ella_rises.database.database import get_db
from ella_rises.models import Donation, Participant
from ella_rises.models.participant import ParticipantRole
from ella_rises.schemas.donation import (
    DonationCreate,
    DonationResponse,
    DonationUpdate,
    PublicDonationCreate,
)
from ella_rises.schemas.listing import ListResponse
from ella_rises.services.list_query_engine import RequestContext
from ella_rises.services.listings import DONATIONS

logger = logging.getLogger(__name__)
router = APIRouter()


def get_donation_or_404(db: Session, donation_id: int) -> Donation:
    donation = db.query(Donation).filter(Donation.id == donation_id).first()
    if not donation:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Donation not found"
        )
    return donation


@router.get("/", response_model=ListResponse)
async def list_donations(
    request: Request,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context)
):
    """Donations with total and average over the filtered set."""
    return run_listing(request, db, context, DONATIONS)


@router.post("/", response_model=DonationResponse, status_code=status.HTTP_201_CREATED)
async def create_donation(
    donation: DonationCreate,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(get_current_user)
):
    """Record a donation. Admins may record one for any participant."""
    participant_id = donation.participant_id or current_user.id
    if participant_id != current_user.id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    participant = db.query(Participant).filter(Participant.id == participant_id).first()
    if not participant:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Participant not found"
        )

    db_donation = Donation(participant_id=participant.id, amount=donation.amount, donated_on=donation.donated_on)
    db.add(db_donation)
    db.commit()
    db.refresh(db_donation)

    logger.info(f"Donation {db_donation.id} of {db_donation.amount} recorded for {participant.email} by: {current_user.email}")
    return db_donation


@router.post("/public", response_model=DonationResponse, status_code=status.HTTP_201_CREATED)
async def create_public_donation(
    donation: PublicDonationCreate,
    db: Session = Depends(get_db)
):
    """
    Donation form for visitors. Donors without an account get a visitor record
    (no password) that can later be upgraded by registering with the same email.
    """
    participant = db.query(Participant).filter(Participant.email == donation.email).first()
    if participant is None:
        participant = Participant(
            email=donation.email,
            first_name=donation.first_name,
            last_name=donation.last_name,
            role=ParticipantRole.DONOR,
            hashed_password=None,
        )
        db.add(participant)
        db.flush()
        logger.info(f"Visitor record created for donor: {participant.email}")

    db_donation = Donation(participant_id=participant.id, amount=donation.amount, donated_on=donation.donated_on)
    db.add(db_donation)
    db.commit()
    db.refresh(db_donation)

    logger.info(f"Public donation {db_donation.id} of {db_donation.amount} from {participant.email}")
    return db_donation


@router.put("/{donation_id}", response_model=DonationResponse)
async def update_donation(
    donation_id: int,
    donation_update: DonationUpdate,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(require_admin)
):
    """Update a donation (Admin only)."""
    donation = get_donation_or_404(db, donation_id)
    update_data = donation_update.model_dump(exclude_unset=True)
    if "amount" in update_data and update_data["amount"] is None:
        del update_data["amount"]
    for field, value in update_data.items():
        setattr(donation, field, value)

    db.commit()
    db.refresh(donation)

    logger.info(f"Donation updated: {donation.id} by admin: {current_user.email}")
    return donation


@router.delete("/{donation_id}")
async def delete_donation(
    donation_id: int,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(require_admin)
):
    """Delete a donation (Admin only)."""
    donation = get_donation_or_404(db, donation_id)
    db.delete(donation)
    db.commit()

    logger.info(f"Donation deleted: {donation_id} by admin: {current_user.email}")
    return {"message": "Donation deleted successfully"}
