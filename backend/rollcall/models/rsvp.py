"""EventRsvp ORM model — one attendance record per (event, participant)."""
import enum
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, UniqueConstraint, Enum as SAEnum
from sqlalchemy.sql import func
from rollcall.database import Base


class RsvpStatus(str, enum.Enum):
    confirmed = "CONFIRMED"
    waitlisted = "WAITLISTED"
    cancelled = "CANCELLED"
    checked_in = "CHECKED_IN"
    no_show = "NO_SHOW"


class EventRsvp(Base):
    __tablename__ = "event_rsvps"
    __table_args__ = (
        UniqueConstraint("event_id", "queue_position", name="uq_event_rsvps_event_queue_position"),
    )

    event_id = Column(String(36), ForeignKey("events.event_id"), primary_key=True)
    participant_id = Column(String(36), primary_key=True)
    status = Column(SAEnum(RsvpStatus), nullable=False)
    queue_position = Column(Integer, nullable=True)  # set only while WAITLISTED
    checked_in_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
