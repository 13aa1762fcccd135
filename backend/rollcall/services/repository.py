"""RSVP repository — the only code that talks to the ORM session.

Also serves as the Event reader and the audit appender, and owns the
per-event transaction runner that every mutating operation goes through.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional, TypeVar

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from rollcall.config import settings
from rollcall.models.attendance_audit import AttendanceAction, AttendanceAuditEntry
from rollcall.models.event import Event
from rollcall.models.feedback import EventFeedback
from rollcall.models.rsvp import EventRsvp, RsvpStatus
from rollcall.services.errors import Failure, Outcome, RsvpError, RsvpErrorCode, Success

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Substrings of driver messages that mean "someone else holds the rows, try again"
_RETRYABLE_MARKERS = ("database is locked", "could not serialize", "deadlock detected")

# Unique keys two concurrent writers can both claim; only these mean a lost race
_RACE_CONSTRAINTS = (
    "event_rsvps_pkey",
    "event_feedback_pkey",
    "uq_event_rsvps_event_queue_position",
    # sqlite reports the columns instead of the constraint name
    "unique constraint failed: event_rsvps.",
    "unique constraint failed: event_feedback.",
)


def _is_retryable(exc: Exception) -> bool:
    message = str(getattr(exc, "orig", exc)).lower()
    if isinstance(exc, IntegrityError):
        return any(marker in message for marker in _RACE_CONSTRAINTS)
    return any(marker in message for marker in _RETRYABLE_MARKERS)


class RsvpRepository:
    """Persistence for RSVPs, feedback and audit entries, bound to one session."""

    def __init__(self, db: Session, max_attempts: Optional[int] = None) -> None:
        self.db = db
        self.max_attempts = max_attempts or settings.RSVP_TX_MAX_ATTEMPTS

    # -- events -------------------------------------------------------------

    def get_event(self, event_id: str, for_update: bool = False) -> Optional[Event]:
        query = self.db.query(Event).filter(Event.event_id == event_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def list_upcoming_events_with_waitlist(self, start: datetime, end: datetime) -> list[str]:
        """Ids of waitlist-enabled events starting in [start, end] that have anyone queued."""
        rows = (
            self.db.query(Event.event_id)
            .join(EventRsvp, EventRsvp.event_id == Event.event_id)
            .filter(
                Event.waitlist_enabled.is_(True),
                Event.start_time_utc >= start,
                Event.start_time_utc <= end,
                EventRsvp.status == RsvpStatus.waitlisted,
            )
            .distinct()
            .order_by(Event.event_id)
            .all()
        )
        return [row.event_id for row in rows]

    # -- rsvps --------------------------------------------------------------

    def get_rsvp(self, event_id: str, participant_id: str) -> Optional[EventRsvp]:
        return (
            self.db.query(EventRsvp)
            .filter(EventRsvp.event_id == event_id, EventRsvp.participant_id == participant_id)
            .first()
        )

    def upsert_rsvp(self, event_id: str, participant_id: str, **fields: Any) -> EventRsvp:
        rsvp = self.get_rsvp(event_id, participant_id)
        if rsvp is None:
            rsvp = EventRsvp(
                event_id=event_id, participant_id=participant_id, created_at=datetime.now(timezone.utc)
            )
            self.db.add(rsvp)
        for field, value in fields.items():
            setattr(rsvp, field, value)
        rsvp.updated_at = datetime.now(timezone.utc)
        self.db.flush()
        return rsvp

    def list_rsvps(self, event_id: str) -> list[EventRsvp]:
        return (
            self.db.query(EventRsvp)
            .filter(EventRsvp.event_id == event_id)
            .order_by(EventRsvp.created_at, EventRsvp.participant_id)
            .all()
        )

    def list_waitlisted(self, event_id: str) -> list[EventRsvp]:
        return (
            self.db.query(EventRsvp)
            .filter(EventRsvp.event_id == event_id, EventRsvp.status == RsvpStatus.waitlisted)
            .order_by(EventRsvp.queue_position)
            .all()
        )

    def count_by_status(self, event_id: str) -> dict[RsvpStatus, int]:
        rows = (
            self.db.query(EventRsvp.status, func.count())
            .filter(EventRsvp.event_id == event_id)
            .group_by(EventRsvp.status)
            .all()
        )
        counts = {status: 0 for status in RsvpStatus}
        for status, count in rows:
            counts[status] = count
        return counts

    def next_queue_position(self, event: Event) -> int:
        """Issue the next waitlist position; never reuses one, even after promotion."""
        highest_live = (
            self.db.query(func.max(EventRsvp.queue_position))
            .filter(EventRsvp.event_id == event.event_id)
            .scalar()
        ) or 0
        event.waitlist_counter = max(event.waitlist_counter or 0, highest_live) + 1
        return event.waitlist_counter

    # -- audit --------------------------------------------------------------

    def append_audit(
        self,
        event_id: str,
        participant_id: str,
        actor_id: str,
        action: AttendanceAction,
        reason: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> AttendanceAuditEntry:
        entry = AttendanceAuditEntry(
            event_id=event_id,
            participant_id=participant_id,
            actor_id=actor_id,
            action=action,
            reason=reason,
            details=details,
            created_at=datetime.now(timezone.utc),
        )
        self.db.add(entry)
        return entry

    def list_audit(self, event_id: str) -> list[AttendanceAuditEntry]:
        return (
            self.db.query(AttendanceAuditEntry)
            .filter(AttendanceAuditEntry.event_id == event_id)
            .order_by(AttendanceAuditEntry.created_at)
            .all()
        )

    # -- feedback -----------------------------------------------------------

    def upsert_feedback(
        self, event_id: str, participant_id: str, rating: int, comment: Optional[str]
    ) -> EventFeedback:
        feedback = (
            self.db.query(EventFeedback)
            .filter(EventFeedback.event_id == event_id, EventFeedback.participant_id == participant_id)
            .first()
        )
        if feedback is None:
            feedback = EventFeedback(
                event_id=event_id, participant_id=participant_id, created_at=datetime.now(timezone.utc)
            )
            self.db.add(feedback)
        feedback.rating = rating
        feedback.comment = comment
        feedback.updated_at = datetime.now(timezone.utc)
        self.db.flush()
        return feedback

    def list_feedback(self, event_id: str) -> list[EventFeedback]:
        return (
            self.db.query(EventFeedback)
            .filter(EventFeedback.event_id == event_id)
            .order_by(EventFeedback.created_at.desc(), EventFeedback.participant_id)
            .all()
        )

    # -- transactions -------------------------------------------------------

    def run_locked(self, event_id: str, work: Callable[[Event], T]) -> Outcome[T]:
        """Run ``work`` against the locked event row in one transaction.

        The event row is taken with SELECT ... FOR UPDATE, and the commit is
        guarded by a compare-and-set on ``rsvp_version`` so backends without
        row locks still serialize writers. A lost race rolls back and reruns
        ``work`` from scratch.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                event = self.get_event(event_id, for_update=True)
                if event is None:
                    raise RsvpError(RsvpErrorCode.event_not_found, "Event not found")
                seen_version = event.rsvp_version
                value = work(event)
                self.db.flush()
                bumped = (
                    self.db.query(Event)
                    .filter(Event.event_id == event_id, Event.rsvp_version == seen_version)
                    .update({Event.rsvp_version: seen_version + 1}, synchronize_session=False)
                )
                if bumped != 1:
                    self.db.rollback()
                    logger.warning(
                        "RSVP version moved under event %s (attempt %d/%d), retrying",
                        event_id, attempt, self.max_attempts,
                    )
                    continue
                self.db.commit()
                return Success(value)
            except RsvpError as err:
                self.db.rollback()
                return Failure.from_error(err)
            except (IntegrityError, OperationalError) as exc:
                self.db.rollback()
                if not _is_retryable(exc):
                    raise
                logger.warning(
                    "Write conflict on event %s (attempt %d/%d): %s",
                    event_id, attempt, self.max_attempts, exc.__class__.__name__,
                )
            except Exception:
                self.db.rollback()
                raise

        return Failure(
            RsvpErrorCode.concurrent_update,
            "Attendance changed concurrently, please retry",
        )
