"""Authorization gate — organizer and co-organizer checks for attendance controls."""
import logging

from rollcall.models.event import Event
from rollcall.services.errors import Failure, Outcome, RsvpError, RsvpErrorCode, Success
from rollcall.services.repository import RsvpRepository

logger = logging.getLogger(__name__)


def ensure_organizer(event: Event, caller_id: str) -> None:
    """Raise NOT_ORGANIZER unless caller is the organizer or a co-organizer."""
    if caller_id not in event.organizer_ids():
        logger.info("Rejected organizer action on event %s by %s", event.event_id, caller_id)
        raise RsvpError(RsvpErrorCode.not_organizer, "User lacks organizer privileges")


def assert_organizer(repo: RsvpRepository, event_id: str, caller_id: str) -> Event:
    """Load the event and gate on organizer privileges (raises inside a transaction)."""
    event = repo.get_event(event_id)
    if event is None:
        raise RsvpError(RsvpErrorCode.event_not_found, "Event not found")
    ensure_organizer(event, caller_id)
    return event


def check_organizer(repo: RsvpRepository, event_id: str, caller_id: str) -> Outcome[Event]:
    """Outcome-returning form of the gate, for read paths."""
    try:
        return Success(assert_organizer(repo, event_id, caller_id))
    except RsvpError as err:
        return Failure.from_error(err)
