from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import datetime

class EventTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    event_type: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    recurrence_pattern: Optional[str] = Field(None, max_length=100)
    default_capacity: Optional[int] = Field(None, ge=0)

class EventTemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    event_type: Optional[str] = None
    description: Optional[str] = None
    recurrence_pattern: Optional[str] = None
    default_capacity: Optional[int] = Field(None, ge=0)

class EventTemplateResponse(EventTemplateCreate):
    id: int

    class Config:
        from_attributes = True

class OccurrenceCreate(BaseModel):
    event_id: int
    starts_at: datetime
    ends_at: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=255)
    capacity: Optional[int] = Field(None, ge=0)
    registration_deadline: Optional[datetime] = None

    @model_validator(mode="after")
    def check_times(self):
        if self.ends_at is not None and self.ends_at < self.starts_at:
            raise ValueError("ends_at must not be before starts_at")
        return self

class OccurrenceUpdate(BaseModel):
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=255)
    capacity: Optional[int] = Field(None, ge=0)
    registration_deadline: Optional[datetime] = None

class OccurrenceResponse(BaseModel):
    id: int
    event_id: int
    starts_at: datetime
    ends_at: Optional[datetime] = None
    location: Optional[str] = None
    capacity: Optional[int] = None
    registration_deadline: Optional[datetime] = None

    class Config:
        from_attributes = True
