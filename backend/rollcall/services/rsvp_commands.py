"""Command façade — turns one inbound RSVP command into one service call.

Parsing produces a closed set of command models (see schemas.rsvp), so an
action can never arrive without the fields it needs. Every call returns an
Outcome; only the HTTP layer converts a Failure into a status code.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import ValidationError

from rollcall.models.feedback import EventFeedback
from rollcall.models.rsvp import EventRsvp
from rollcall.schemas.rsvp import (
    CancelCommand,
    CheckInCommand,
    ConfirmCommand,
    FeedbackCommand,
    NoShowCommand,
    RsvpCommand,
    SweepWaitlistCommand,
    WaitlistCommand,
    rsvp_command_adapter,
)
from rollcall.services import attendance_service, feedback_service, waitlist_service
from rollcall.services.authorization import check_organizer
from rollcall.services.errors import Outcome, RsvpErrorCode, Success
from rollcall.services.repository import RsvpRepository
from rollcall.services.summary_service import AttendanceSummary, build_attendance_summary

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    RsvpErrorCode.event_not_found: 404,
    RsvpErrorCode.not_organizer: 403,
    RsvpErrorCode.already_confirmed: 409,
    RsvpErrorCode.already_checked_in: 409,
    RsvpErrorCode.not_attending: 409,
    RsvpErrorCode.not_waitlisted: 409,
    RsvpErrorCode.waitlist_disabled: 409,
    RsvpErrorCode.invalid_feedback_rating: 409,
}

_TARGETED_HANDLERS = {
    ConfirmCommand: attendance_service.confirm,
    WaitlistCommand: attendance_service.waitlist,
    CancelCommand: attendance_service.cancel,
    CheckInCommand: attendance_service.check_in,
    NoShowCommand: attendance_service.mark_no_show,
}


def http_status_for(code: RsvpErrorCode) -> int:
    return STATUS_BY_CODE.get(code, 400)


@dataclass(frozen=True)
class CommandRejected:
    """A request body that does not describe any valid command."""

    field: str
    message: str


@dataclass(frozen=True)
class ControlPanel:
    rsvps: list[EventRsvp]
    summary: AttendanceSummary
    feedback: list[EventFeedback]
    average_rating: Optional[float]


def parse_command(body: Any) -> Union[RsvpCommand, CommandRejected]:
    if not isinstance(body, dict):
        return CommandRejected("body", "Request body must be a JSON object")
    if not body.get("action"):
        return CommandRejected("action", "Action required")
    try:
        return rsvp_command_adapter.validate_python(body)
    except ValidationError as exc:
        error = exc.errors()[0]
        if error["type"].startswith("union_tag"):
            return CommandRejected("action", f"Unknown action: {body.get('action')}")
        # loc is (action tag, field, ...) for discriminated unions
        loc = [part for part in error["loc"] if isinstance(part, str)]
        field = loc[1] if len(loc) > 1 else "body"
        if field == "targetUserId" and error["type"] == "missing":
            return CommandRejected(field, "targetUserId required")
        return CommandRejected(field, f"{field}: {error['msg']}")


def execute_command(
    repo: RsvpRepository, event_id: str, caller_id: str, command: RsvpCommand
) -> Outcome[Optional[AttendanceSummary]]:
    """Dispatch one parsed command.

    Attendance commands return the summary computed inside their transaction;
    feedback does not touch attendance and returns None.
    """
    logger.debug("Dispatching %s on event %s for %s", type(command).__name__, event_id, caller_id)
    handler = _TARGETED_HANDLERS.get(type(command))
    if handler is not None:
        return handler(repo, event_id, command.target_user_id, caller_id)

    if isinstance(command, SweepWaitlistCommand):
        return waitlist_service.organizer_sweep_waitlist(repo, event_id, caller_id)

    if isinstance(command, FeedbackCommand):
        subject_id = command.target_user_id or caller_id
        outcome = feedback_service.upsert_feedback(
            repo, event_id, subject_id, command.rating, command.comment, caller_id,
        )
        if not outcome.ok:
            return outcome
        return Success(None)

    raise TypeError(f"Unhandled RSVP command {type(command).__name__}")


def load_control_panel(
    repo: RsvpRepository,
    event_id: str,
    caller_id: str,
    restrict_to_caller: bool = False,
    summary: Optional[AttendanceSummary] = None,
) -> Outcome[ControlPanel]:
    """Everything the organizer dashboard shows for one event.

    With ``restrict_to_caller`` the gate is skipped and only the caller's own
    RSVP and feedback are included (participants submitting their own feedback).
    A ``summary`` already computed by the command that just ran is reused.
    """
    if not restrict_to_caller:
        gate = check_organizer(repo, event_id, caller_id)
        if not gate.ok:
            return gate

    if summary is None:
        built = build_attendance_summary(repo, event_id)
        if not built.ok:
            return built
        summary = built.value

    rsvps = repo.list_rsvps(event_id)
    feedback = feedback_service.list_feedback(repo, event_id)
    if restrict_to_caller:
        rsvps = [r for r in rsvps if r.participant_id == caller_id]
        feedback = [f for f in feedback if f.participant_id == caller_id]

    return Success(ControlPanel(
        rsvps=rsvps,
        summary=summary,
        feedback=feedback,
        average_rating=feedback_service.average_rating(feedback),
    ))


def is_organizer(repo: RsvpRepository, event_id: str, caller_id: str) -> bool:
    return check_organizer(repo, event_id, caller_id).ok
