"""Attendance state machine — every RSVP status change goes through here.

Responsibilities:
- Organizer controls: confirm, waitlist, cancel, check-in, no-show
- Participant self-service: RSVP and leave
- One audit entry per committed transition
- Waitlist promotion after a confirmed seat is released

Each operation runs in a single per-event transaction (see
RsvpRepository.run_locked) and returns an Outcome, never raises a domain error.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from rollcall.models.attendance_audit import AttendanceAction
from rollcall.models.event import Event
from rollcall.models.rsvp import EventRsvp, RsvpStatus
from rollcall.services.authorization import ensure_organizer
from rollcall.services.errors import Outcome, RsvpError, RsvpErrorCode
from rollcall.services.repository import RsvpRepository
from rollcall.services.summary_service import AttendanceSummary, summarize_event
from rollcall.services.waitlist_service import SYSTEM_ACTOR, promote_waitlisted

logger = logging.getLogger(__name__)


_STATUS_ACTIONS = {
    RsvpStatus.confirmed: AttendanceAction.rsvp_confirmed,
    RsvpStatus.waitlisted: AttendanceAction.rsvp_waitlisted,
    RsvpStatus.cancelled: AttendanceAction.rsvp_cancelled,
    RsvpStatus.checked_in: AttendanceAction.checked_in,
    RsvpStatus.no_show: AttendanceAction.marked_no_show,
}


def audit_action_for(status: RsvpStatus) -> AttendanceAction:
    """Audit tag written when an RSVP enters ``status``."""
    return _STATUS_ACTIONS[status]


@dataclass(frozen=True)
class SelfServiceResult:
    status: RsvpStatus
    waitlisted: bool
    queue_position: Optional[int] = None
    promoted_participant_ids: list[str] = field(default_factory=list)


def _not_attending() -> RsvpError:
    return RsvpError(RsvpErrorCode.not_attending, "User is not currently attending")


def _transition(
    repo: RsvpRepository,
    event: Event,
    participant_id: str,
    actor_id: str,
    status: RsvpStatus,
    reason: str,
    **fields,
) -> EventRsvp:
    """Write the new status and its audit entry together."""
    rsvp = repo.upsert_rsvp(event.event_id, participant_id, status=status, **fields)
    details = {"actorId": actor_id} if actor_id != participant_id else None
    repo.append_audit(event.event_id, participant_id, actor_id, audit_action_for(status), reason, details)
    logger.info("RSVP %s/%s -> %s by %s (%s)", event.event_id, participant_id, status.value, actor_id, reason)
    return rsvp


# ---------------------------------------------------------------------------
# Organizer controls
# ---------------------------------------------------------------------------

def confirm(repo: RsvpRepository, event_id: str, target_participant_id: str, actor_id: str) -> Outcome[AttendanceSummary]:
    """Organizer confirmation — a capacity override, no seat check."""
    def _work(event: Event) -> AttendanceSummary:
        ensure_organizer(event, actor_id)
        existing = repo.get_rsvp(event_id, target_participant_id)
        if existing and existing.status == RsvpStatus.confirmed:
            raise RsvpError(RsvpErrorCode.already_confirmed, "User already confirmed for this event")

        _transition(
            repo, event, target_participant_id, actor_id, RsvpStatus.confirmed,
            "organizer-confirmed", queue_position=None,
        )
        summary = summarize_event(repo, event)
        if summary.capacity is not None and summary.confirmed > summary.capacity:
            logger.warning(
                "Organizer %s confirmed %s over capacity on event %s (%d/%d)",
                actor_id, target_participant_id, event_id, summary.confirmed, summary.capacity,
            )
        return summary

    return repo.run_locked(event_id, _work)


def waitlist(repo: RsvpRepository, event_id: str, target_participant_id: str, actor_id: str) -> Outcome[AttendanceSummary]:
    """Move a participant to the back of the waitlist, even if already queued."""
    def _work(event: Event) -> AttendanceSummary:
        ensure_organizer(event, actor_id)
        if not event.waitlist_enabled:
            raise RsvpError(RsvpErrorCode.waitlist_disabled, "Waitlist disabled")

        _transition(
            repo, event, target_participant_id, actor_id, RsvpStatus.waitlisted,
            "organizer-waitlisted", queue_position=repo.next_queue_position(event),
        )
        return summarize_event(repo, event)

    return repo.run_locked(event_id, _work)


def cancel(repo: RsvpRepository, event_id: str, target_participant_id: str, actor_id: str) -> Outcome[AttendanceSummary]:
    """Cancel an RSVP; a released confirmed seat is offered to the waitlist at once."""
    def _work(event: Event) -> AttendanceSummary:
        ensure_organizer(event, actor_id)
        existing = repo.get_rsvp(event_id, target_participant_id)
        if existing is None or existing.status == RsvpStatus.cancelled:
            raise _not_attending()

        was_confirmed = existing.status == RsvpStatus.confirmed
        _transition(
            repo, event, target_participant_id, actor_id, RsvpStatus.cancelled,
            "organizer-cancelled", queue_position=None,
        )
        if was_confirmed:
            promote_waitlisted(repo, event, actor_id)
        return summarize_event(repo, event)

    return repo.run_locked(event_id, _work)


def check_in(repo: RsvpRepository, event_id: str, target_participant_id: str, actor_id: str) -> Outcome[AttendanceSummary]:
    def _work(event: Event) -> AttendanceSummary:
        ensure_organizer(event, actor_id)
        existing = repo.get_rsvp(event_id, target_participant_id)
        if existing and existing.status == RsvpStatus.checked_in:
            raise RsvpError(RsvpErrorCode.already_checked_in, "User already checked in")
        if existing is None or existing.status != RsvpStatus.confirmed:
            raise _not_attending()

        _transition(
            repo, event, target_participant_id, actor_id, RsvpStatus.checked_in,
            "checked-in", checked_in_at=datetime.now(timezone.utc),
        )
        return summarize_event(repo, event)

    return repo.run_locked(event_id, _work)


def mark_no_show(repo: RsvpRepository, event_id: str, target_participant_id: str, actor_id: str) -> Outcome[AttendanceSummary]:
    def _work(event: Event) -> AttendanceSummary:
        ensure_organizer(event, actor_id)
        existing = repo.get_rsvp(event_id, target_participant_id)
        if existing is None or existing.status != RsvpStatus.confirmed:
            raise _not_attending()

        _transition(repo, event, target_participant_id, actor_id, RsvpStatus.no_show, "no-show")
        return summarize_event(repo, event)

    return repo.run_locked(event_id, _work)


# ---------------------------------------------------------------------------
# Participant self-service
# ---------------------------------------------------------------------------

def commit_rsvp(repo: RsvpRepository, event_id: str, participant_id: str) -> Outcome[SelfServiceResult]:
    """A participant asks for a seat: confirmed if one is free, else queued."""
    def _work(event: Event) -> SelfServiceResult:
        if participant_id == event.organizer_id:
            existing = repo.get_rsvp(event_id, participant_id)
            if existing is None or existing.status != RsvpStatus.confirmed:
                _transition(
                    repo, event, participant_id, participant_id, RsvpStatus.confirmed,
                    "organizer-self", queue_position=None,
                )
            return SelfServiceResult(status=RsvpStatus.confirmed, waitlisted=False)

        existing = repo.get_rsvp(event_id, participant_id)
        if existing is not None:
            if existing.status == RsvpStatus.confirmed:
                raise RsvpError(RsvpErrorCode.already_confirmed, "User already confirmed for this event")
            if existing.status == RsvpStatus.checked_in:
                raise RsvpError(RsvpErrorCode.already_checked_in, "User already checked in")
            if existing.status == RsvpStatus.no_show:
                raise _not_attending()
            if existing.status == RsvpStatus.waitlisted:
                return SelfServiceResult(
                    status=RsvpStatus.waitlisted, waitlisted=True, queue_position=existing.queue_position,
                )

        # Seats freed since the last pass go to the queue before any newcomer
        promoted = promote_waitlisted(repo, event, SYSTEM_ACTOR)

        summary = summarize_event(repo, event)
        if summary.capacity is None or summary.confirmed < summary.capacity:
            _transition(
                repo, event, participant_id, participant_id, RsvpStatus.confirmed,
                "self-rsvp", queue_position=None,
            )
            return SelfServiceResult(
                status=RsvpStatus.confirmed, waitlisted=False, promoted_participant_ids=promoted,
            )

        if not event.waitlist_enabled:
            raise RsvpError(RsvpErrorCode.waitlist_disabled, "Event capacity reached and waitlist disabled")

        rsvp = _transition(
            repo, event, participant_id, participant_id, RsvpStatus.waitlisted,
            "self-rsvp", queue_position=repo.next_queue_position(event),
        )
        return SelfServiceResult(
            status=RsvpStatus.waitlisted, waitlisted=True,
            queue_position=rsvp.queue_position, promoted_participant_ids=promoted,
        )

    return repo.run_locked(event_id, _work)


def leave_event(repo: RsvpRepository, event_id: str, participant_id: str) -> Outcome[SelfServiceResult]:
    """A participant withdraws; the primary organizer cannot leave their own event."""
    def _work(event: Event) -> SelfServiceResult:
        if participant_id == event.organizer_id:
            raise RsvpError(RsvpErrorCode.organizer_cannot_leave, "Organizers cannot leave their own events")

        existing = repo.get_rsvp(event_id, participant_id)
        if existing is None or existing.status not in (RsvpStatus.confirmed, RsvpStatus.waitlisted):
            raise _not_attending()

        was_confirmed = existing.status == RsvpStatus.confirmed
        _transition(
            repo, event, participant_id, participant_id, RsvpStatus.cancelled,
            "self-cancelled", queue_position=None,
        )
        promoted = promote_waitlisted(repo, event, participant_id) if was_confirmed else []
        return SelfServiceResult(
            status=RsvpStatus.cancelled, waitlisted=False, promoted_participant_ids=promoted,
        )

    return repo.run_locked(event_id, _work)
