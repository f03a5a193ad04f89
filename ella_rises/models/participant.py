from sqlalchemy import Column, Integer, String, Date, DateTime, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ella_rises.database.database import Base
import enum

class ParticipantRole(str, enum.Enum):
    ADMIN = "admin"
    PARTICIPANT = "participant"
    DONOR = "donor"

class Participant(Base):
    __tablename__ = "participants"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    date_of_birth = Column(Date, nullable=True)
    role = Column(Enum(ParticipantRole, values_callable=lambda e: [m.value for m in e]),
                  nullable=False, default=ParticipantRole.PARTICIPANT)
    # NULL means a visitor record (created by a donation) that has not registered yet
    hashed_password = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    zip_code = Column(String(20), nullable=True)
    school_or_employer = Column(String(255), nullable=True)
    field_of_interest = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    registrations = relationship("Registration", back_populates="participant", lazy="dynamic")
    milestones = relationship("Milestone", back_populates="participant", lazy="dynamic")
    donations = relationship("Donation", back_populates="participant", lazy="dynamic")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_admin(self) -> bool:
        return self.role == ParticipantRole.ADMIN

    @property
    def is_visitor(self) -> bool:
        return self.hashed_password is None
