from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import date, datetime
from ella_rises.models.participant import ParticipantRole


def _normalize_email(value: str) -> str:
    value = (value or "").strip().lower()
    if "@" not in value or value.startswith("@") or value.endswith("@"):
        raise ValueError("invalid email address")
    return value


class ParticipantBase(BaseModel):
    email: str = Field(..., max_length=255)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    date_of_birth: Optional[date] = None
    phone: Optional[str] = Field(None, max_length=50)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    zip_code: Optional[str] = Field(None, max_length=20)
    school_or_employer: Optional[str] = Field(None, max_length=255)
    field_of_interest: Optional[str] = Field(None, max_length=255)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)


class ParticipantRegister(ParticipantBase):
    """Self-service registration; may upgrade an existing visitor record."""
    password: str = Field(..., min_length=1)


class ParticipantCreate(ParticipantBase):
    """Admin-created account. Date of birth is required here."""
    password: str = Field(..., min_length=1)
    date_of_birth: date
    role: ParticipantRole = ParticipantRole.PARTICIPANT


class ParticipantUpdate(BaseModel):
    email: Optional[str] = Field(None, max_length=255)
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    date_of_birth: Optional[date] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    school_or_employer: Optional[str] = None
    field_of_interest: Optional[str] = None
    password: Optional[str] = Field(None, min_length=1)
    role: Optional[ParticipantRole] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v) if v is not None else v


class RoleUpdate(BaseModel):
    role: ParticipantRole


class ParticipantResponse(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    date_of_birth: Optional[date] = None
    role: ParticipantRole
    phone: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    school_or_employer: Optional[str] = None
    field_of_interest: Optional[str] = None
    is_visitor: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
