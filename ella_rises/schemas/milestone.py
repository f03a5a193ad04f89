from pydantic import BaseModel, Field
from typing import Optional
from datetime import date

class MilestoneCreate(BaseModel):
    participant_id: Optional[int] = None  # defaults to the caller
    title: str = Field(..., min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    achieved_on: Optional[date] = None

class MilestoneUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    achieved_on: Optional[date] = None

class MilestoneResponse(BaseModel):
    id: int
    participant_id: int
    title: str
    category: Optional[str] = None
    achieved_on: Optional[date] = None

    class Config:
        from_attributes = True
