from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import date
from decimal import Decimal
from ella_rises.schemas.participant import _normalize_email

class DonationCreate(BaseModel):
    participant_id: Optional[int] = None  # defaults to the caller
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    donated_on: Optional[date] = None

class PublicDonationCreate(BaseModel):
    """Donation from someone who may not have an account yet."""
    email: str
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    donated_on: Optional[date] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)

class DonationUpdate(BaseModel):
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    donated_on: Optional[date] = None

class DonationResponse(BaseModel):
    id: int
    participant_id: int
    amount: Decimal
    donated_on: Optional[date] = None

    class Config:
        from_attributes = True
