"""AttendanceAuditEntry ORM model — append-only ledger of RSVP transitions."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, JSON, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from rollcall.database import Base


class AttendanceAction(str, enum.Enum):
    rsvp_confirmed = "RSVP_CONFIRMED"
    rsvp_waitlisted = "RSVP_WAITLISTED"
    rsvp_cancelled = "RSVP_CANCELLED"
    checked_in = "CHECKED_IN"
    marked_no_show = "MARKED_NO_SHOW"


class AttendanceAuditEntry(Base):
    __tablename__ = "attendance_audit_entries"

    entry_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.event_id"), nullable=False, index=True)
    participant_id = Column(String(36), nullable=False)
    actor_id = Column(String(36), nullable=False)
    action = Column(SAEnum(AttendanceAction), nullable=False)
    reason = Column(String(64), nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
