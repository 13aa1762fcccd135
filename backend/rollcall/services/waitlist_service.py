"""Waitlist admission controller — capacity-bounded FIFO promotion.

Promotion always consumes the lowest queue position first and stops at the
first entry that does not fit, so the remaining queue is never reordered.
Running it again without freeing a seat promotes nobody.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from rollcall.config import settings
from rollcall.models.attendance_audit import AttendanceAction
from rollcall.models.event import Event
from rollcall.models.rsvp import RsvpStatus
from rollcall.services.authorization import ensure_organizer
from rollcall.services.errors import Outcome
from rollcall.services.repository import RsvpRepository
from rollcall.services.summary_service import AttendanceSummary, summarize_event

logger = logging.getLogger(__name__)

# Actor recorded on promotions that no person triggered (scheduled sweeps)
SYSTEM_ACTOR = "system"


def promote_waitlisted(repo: RsvpRepository, event: Event, actor_id: str) -> list[str]:
    """Promote queued participants into free seats; caller owns the transaction."""
    remaining: Optional[int] = None
    if event.capacity is not None:
        confirmed = repo.count_by_status(event.event_id)[RsvpStatus.confirmed]
        remaining = event.capacity - confirmed

    promoted: list[str] = []
    for rsvp in repo.list_waitlisted(event.event_id):
        if remaining is not None and remaining <= 0:
            break
        repo.upsert_rsvp(
            event.event_id, rsvp.participant_id,
            status=RsvpStatus.confirmed, queue_position=None,
        )
        repo.append_audit(
            event.event_id, rsvp.participant_id, actor_id,
            AttendanceAction.rsvp_confirmed, reason="waitlist-promoted",
        )
        promoted.append(rsvp.participant_id)
        if remaining is not None:
            remaining -= 1

    if promoted:
        logger.info("Promoted %d waitlisted participant(s) on event %s", len(promoted), event.event_id)
    return promoted


def sweep_waitlist_for_event(
    repo: RsvpRepository, event_id: str, actor_id: str = SYSTEM_ACTOR
) -> Outcome[list[str]]:
    """Run one promotion pass for an event in its own transaction."""
    return repo.run_locked(event_id, lambda event: promote_waitlisted(repo, event, actor_id))


def organizer_sweep_waitlist(
    repo: RsvpRepository, event_id: str, actor_id: str
) -> Outcome[AttendanceSummary]:
    """Organizer-triggered sweep; gated, returns the refreshed summary."""
    def _work(event: Event) -> AttendanceSummary:
        ensure_organizer(event, actor_id)
        promote_waitlisted(repo, event, actor_id)
        return summarize_event(repo, event)

    return repo.run_locked(event_id, _work)


def sweep_waitlists_for_upcoming_events(
    repo: RsvpRepository,
    hours_ahead: Optional[int] = None,
    now: Optional[datetime] = None,
) -> list[dict[str, Any]]:
    """Sweep every waitlist-enabled event starting within the next ``hours_ahead`` hours."""
    hours_ahead = hours_ahead if hours_ahead is not None else settings.WAITLIST_SWEEP_HOURS_AHEAD
    now = now or datetime.now(timezone.utc)
    window_end = now + timedelta(hours=hours_ahead)

    results = []
    for event_id in repo.list_upcoming_events_with_waitlist(now, window_end):
        outcome = sweep_waitlist_for_event(repo, event_id)
        if not outcome.ok:
            logger.warning("Scheduled sweep skipped event %s: %s", event_id, outcome.code.value)
            continue
        if outcome.value:
            results.append({"eventId": event_id, "promoted": len(outcome.value)})

    logger.info("Scheduled waitlist sweep over %d hour(s) promoted on %d event(s)", hours_ahead, len(results))
    return results
