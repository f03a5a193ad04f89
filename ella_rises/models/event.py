from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from ella_rises.database.database import Base

class EventTemplate(Base):
    __tablename__ = "event_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    event_type = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    recurrence_pattern = Column(String(100), nullable=True)
    default_capacity = Column(Integer, nullable=True)

    occurrences = relationship("EventOccurrence", back_populates="template", lazy="dynamic")

class EventOccurrence(Base):
    __tablename__ = "event_occurrences"
    __table_args__ = (
        UniqueConstraint("event_id", "starts_at", name="uq_event_occurrences_event_start"),
    )

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("event_templates.id", ondelete="RESTRICT", onupdate="CASCADE"),
                      nullable=False, index=True)
    starts_at = Column(DateTime(timezone=True), nullable=False)
    ends_at = Column(DateTime(timezone=True), nullable=True)
    location = Column(String(255), nullable=True)
    capacity = Column(Integer, nullable=True)
    registration_deadline = Column(DateTime(timezone=True), nullable=True)

    template = relationship("EventTemplate", back_populates="occurrences")
    registrations = relationship("Registration", back_populates="occurrence", lazy="dynamic")

    @property
    def effective_capacity(self):
        """Occurrence capacity, falling back to the template default. None means unlimited."""
        if self.capacity is not None:
            return self.capacity
        return self.template.default_capacity if self.template else None
