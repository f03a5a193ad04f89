from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from typing import Optional
import logging
from ella_rises.core.config import settings
from ella_rises.core.security import create_access_token, hash_password, verify_password, verify_token
from ella_rises.database.database import get_db
from ella_rises.models.participant import Participant, ParticipantRole
from ella_rises.schemas.auth import LoginRequest, Token
from ella_rises.schemas.participant import ParticipantRegister, ParticipantResponse
from ella_rises.services.list_query_engine import RequestContext

logger = logging.getLogger(__name__)
router = APIRouter()

bearer_scheme = HTTPBearer(auto_error=False)


def _participant_from_credentials(credentials: Optional[HTTPAuthorizationCredentials], db: Session) -> Optional[Participant]:
    if credentials is None:
        return None
    payload = verify_token(credentials.credentials)
    participant_id = payload.get("sub")
    if participant_id is None:
        return None
    try:
        participant_id = int(participant_id)
    except (TypeError, ValueError):
        return None
    participant = db.query(Participant).filter(Participant.id == participant_id).first()
    if participant is None or participant.is_visitor:
        return None
    return participant


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Participant:
    """Resolve the bearer token to a registered participant or fail with 401."""
    participant = _participant_from_credentials(credentials, db)
    if participant is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Please log in to access this page",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return participant


def get_request_context(current_user: Participant = Depends(get_current_user)) -> RequestContext:
    return RequestContext(
        is_authenticated=True,
        is_admin=current_user.is_admin,
        participant_id=current_user.id,
    )


def require_admin(current_user: Participant = Depends(get_current_user)) -> Participant:
    """Dependency to ensure the caller is an admin."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have admin access"
        )
    return current_user


def check_password_length(password: str):
    if len(password) < settings.PASSWORD_MIN_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters"
        )


@router.post("/login", response_model=Token)
async def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email and password for a bearer token."""
    email = credentials.email.strip().lower()
    participant = db.query(Participant).filter(Participant.email == email).first()
    if not participant or not verify_password(credentials.password, participant.hashed_password):
        logger.info(f"Failed login attempt for {email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid login"
        )

    token = create_access_token({"sub": str(participant.id), "role": participant.role.value})
    logger.info(f"Participant logged in: {participant.email}")
    return Token(access_token=token, participant_id=participant.id, role=participant.role.value)


@router.post("/register", response_model=ParticipantResponse, status_code=status.HTTP_201_CREATED)
async def register(registration: ParticipantRegister, db: Session = Depends(get_db)):
    """
    Create an account. A visitor record with the same email (left behind by a
    donation) is upgraded in place and keeps its role.
    """
    check_password_length(registration.password)
    existing = db.query(Participant).filter(Participant.email == registration.email).first()
    if existing and not existing.is_visitor:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with that email already exists. Please log in."
        )

    fields = registration.model_dump(exclude={"password"})
    if existing:
        participant = existing
        for field, value in fields.items():
            setattr(participant, field, value)
        if participant.role is None:
            participant.role = ParticipantRole.PARTICIPANT
        action = "upgraded"
    else:
        participant = Participant(**fields, role=ParticipantRole.PARTICIPANT)
        db.add(participant)
        action = "created"
    participant.hashed_password = hash_password(registration.password)

    db.commit()
    db.refresh(participant)

    logger.info(f"Account {action}: {participant.email}")
    return participant


@router.get("/me", response_model=ParticipantResponse)
async def read_me(current_user: Participant = Depends(get_current_user)):
    return current_user
