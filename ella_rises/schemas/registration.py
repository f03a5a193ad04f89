from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class RegistrationCreate(BaseModel):
    occurrence_id: int
    participant_id: Optional[int] = None  # admins may register someone else

class RegistrationResponse(BaseModel):
    id: int
    participant_id: int
    occurrence_id: int
    status: str
    attended: bool
    checked_in_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
