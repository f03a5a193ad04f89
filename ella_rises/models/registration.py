from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ella_rises.database.database import Base
import enum

class RegistrationStatus(str, enum.Enum):
    REGISTERED = "registered"
    CANCELLED = "cancelled"
    ATTENDED = "attended"

class Registration(Base):
    __tablename__ = "registrations"
    __table_args__ = (
        UniqueConstraint("participant_id", "occurrence_id", name="uq_registrations_participant_occurrence"),
    )

    id = Column(Integer, primary_key=True, index=True)
    participant_id = Column(Integer, ForeignKey("participants.id", ondelete="RESTRICT", onupdate="CASCADE"),
                            nullable=False, index=True)
    occurrence_id = Column(Integer, ForeignKey("event_occurrences.id", ondelete="RESTRICT", onupdate="CASCADE"),
                           nullable=False, index=True)
    status = Column(String(50), nullable=False, default=RegistrationStatus.REGISTERED.value)
    attended = Column(Boolean, nullable=False, default=False)
    checked_in_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    participant = relationship("Participant", back_populates="registrations")
    occurrence = relationship("EventOccurrence", back_populates="registrations")
    survey = relationship("Survey", back_populates="registration", uselist=False,
                          cascade="all, delete-orphan", passive_deletes=True)
