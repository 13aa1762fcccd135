"""Attendance summary for organizer dashboards — pure reads."""
from dataclasses import dataclass
from typing import Optional

from rollcall.models.event import Event
from rollcall.models.rsvp import RsvpStatus
from rollcall.services.errors import Failure, Outcome, RsvpErrorCode, Success
from rollcall.services.repository import RsvpRepository


@dataclass(frozen=True)
class AttendanceSummary:
    confirmed: int
    waitlisted: int
    cancelled: int
    checked_in: int
    no_show: int
    capacity: Optional[int]
    remaining_capacity: Optional[int]
    is_full: bool


def summarize_event(repo: RsvpRepository, event: Event) -> AttendanceSummary:
    """Summary for an already-loaded event (usable inside a transaction)."""
    counts = repo.count_by_status(event.event_id)
    confirmed = counts[RsvpStatus.confirmed]
    remaining = None
    if event.capacity is not None:
        remaining = max(event.capacity - confirmed, 0)
    return AttendanceSummary(
        confirmed=confirmed,
        waitlisted=counts[RsvpStatus.waitlisted],
        cancelled=counts[RsvpStatus.cancelled],
        checked_in=counts[RsvpStatus.checked_in],
        no_show=counts[RsvpStatus.no_show],
        capacity=event.capacity,
        remaining_capacity=remaining,
        is_full=remaining == 0,
    )


def build_attendance_summary(repo: RsvpRepository, event_id: str) -> Outcome[AttendanceSummary]:
    event = repo.get_event(event_id)
    if event is None:
        return Failure(RsvpErrorCode.event_not_found, "Event not found")
    return Success(summarize_event(repo, event))
