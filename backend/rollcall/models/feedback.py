"""EventFeedback ORM model — one post-event rating per (event, participant)."""
from sqlalchemy import Column, String, DateTime, Integer, Text, ForeignKey, CheckConstraint
from sqlalchemy.sql import func
from rollcall.database import Base


class EventFeedback(Base):
    __tablename__ = "event_feedback"
    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_event_feedback_rating_range"),
    )

    event_id = Column(String(36), ForeignKey("events.event_id"), primary_key=True)
    participant_id = Column(String(36), primary_key=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
