from sqlalchemy import Column, Integer, Date, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from ella_rises.database.database import Base

class Donation(Base):
    __tablename__ = "donations"

    id = Column(Integer, primary_key=True, index=True)
    participant_id = Column(Integer, ForeignKey("participants.id", ondelete="RESTRICT", onupdate="CASCADE"),
                            nullable=False, index=True)
    donated_on = Column(Date, nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)

    participant = relationship("Participant", back_populates="donations")
