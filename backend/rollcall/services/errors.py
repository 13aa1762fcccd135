"""Domain error codes and the tagged outcome returned by every RSVP operation."""
import enum
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class RsvpErrorCode(str, enum.Enum):
    event_not_found = "EVENT_NOT_FOUND"
    not_organizer = "NOT_ORGANIZER"
    already_confirmed = "ALREADY_CONFIRMED"
    already_checked_in = "ALREADY_CHECKED_IN"
    not_attending = "NOT_ATTENDING"
    not_waitlisted = "NOT_WAITLISTED"
    waitlist_disabled = "WAITLIST_DISABLED"
    invalid_feedback_rating = "INVALID_FEEDBACK_RATING"
    organizer_cannot_leave = "ORGANIZER_CANNOT_LEAVE"
    concurrent_update = "CONCURRENT_UPDATE"


class RsvpError(Exception):
    """Aborts the current per-event transaction.

    Never escapes the service layer: the transaction runner rolls back and
    turns it into a Failure.
    """

    def __init__(self, code: RsvpErrorCode, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    ok = True


@dataclass(frozen=True)
class Failure:
    code: RsvpErrorCode
    message: str

    ok = False

    @classmethod
    def from_error(cls, err: RsvpError) -> "Failure":
        return cls(code=err.code, message=err.message)


Outcome = Union[Success[T], Failure]
