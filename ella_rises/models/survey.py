from sqlalchemy import Column, Integer, String, Text, DateTime, Numeric, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ella_rises.database.database import Base
import enum

class NPSBucket(str, enum.Enum):
    PROMOTER = "Promoter"
    PASSIVE = "Passive"
    DETRACTOR = "Detractor"

class Survey(Base):
    __tablename__ = "surveys"

    id = Column(Integer, primary_key=True, index=True)
    registration_id = Column(Integer, ForeignKey("registrations.id", ondelete="CASCADE", onupdate="CASCADE"),
                             unique=True, nullable=False)
    satisfaction_score = Column(Integer, nullable=False)
    usefulness_score = Column(Integer, nullable=False)
    instructor_score = Column(Integer, nullable=False)
    recommendation_score = Column(Integer, nullable=False)
    # Derived from the four scores above; see services.survey_scoring
    overall_score = Column(Numeric(4, 2), nullable=False)
    nps_bucket = Column(String(50), nullable=False)
    comments = Column(Text, nullable=True)
    submitted_at = Column(DateTime(timezone=True), server_default=func.now())

    registration = relationship("Registration", back_populates="survey")
