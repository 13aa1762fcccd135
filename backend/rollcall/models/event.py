"""Event ORM model — read and locked by the attendance core, edited elsewhere."""
import uuid
from sqlalchemy import Column, String, DateTime, Integer, Boolean, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from rollcall.database import Base


class Event(Base):
    __tablename__ = "events"

    event_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    organizer_id = Column(String(36), nullable=False, index=True)
    capacity = Column(Integer, nullable=True)  # NULL = unlimited
    waitlist_enabled = Column(Boolean, nullable=False, default=True)
    start_time_utc = Column(DateTime(timezone=True), nullable=True)
    # Compare-and-set token, bumped by every RSVP-set mutation
    rsvp_version = Column(Integer, nullable=False, default=0)
    # High-water mark of issued waitlist positions
    waitlist_counter = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    co_organizers = relationship(
        "EventCoOrganizer", back_populates="event", cascade="all, delete-orphan", lazy="selectin"
    )

    def organizer_ids(self) -> set[str]:
        return {self.organizer_id} | {co.user_id for co in self.co_organizers}


class EventCoOrganizer(Base):
    __tablename__ = "event_co_organizers"

    event_id = Column(String(36), ForeignKey("events.event_id"), primary_key=True)
    user_id = Column(String(36), primary_key=True)
    added_at = Column(DateTime(timezone=True), server_default=func.now())

    event = relationship("Event", back_populates="co_organizers")
