from pydantic import BaseModel, Field
from typing import Annotated, Optional
from datetime import datetime
from decimal import Decimal

Score = Annotated[int, Field(ge=0, le=5)]

class SurveyCreate(BaseModel):
    registration_id: int
    satisfaction_score: Score
    usefulness_score: Score
    instructor_score: Score
    recommendation_score: Score
    comments: Optional[str] = None

class SurveyUpdate(BaseModel):
    """Scores are replaced as a set so the derived fields stay consistent."""
    satisfaction_score: Score
    usefulness_score: Score
    instructor_score: Score
    recommendation_score: Score
    comments: Optional[str] = None

class SurveyResponse(BaseModel):
    id: int
    registration_id: int
    satisfaction_score: int
    usefulness_score: int
    instructor_score: int
    recommendation_score: int
    overall_score: Decimal
    nps_bucket: str
    comments: Optional[str] = None
    submitted_at: Optional[datetime] = None

    class Config:
        from_attributes = True
