"""Post-event feedback — rating/comment upserts and the average rating."""
import logging
from typing import Optional, Union

from rollcall.models.event import Event
from rollcall.models.feedback import EventFeedback
from rollcall.services.authorization import ensure_organizer
from rollcall.services.errors import Outcome, RsvpError, RsvpErrorCode
from rollcall.services.repository import RsvpRepository

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def _validated_rating(rating: Union[int, float]) -> int:
    # range first: int() of inf or a huge float would raise
    if isinstance(rating, bool) or not MIN_RATING <= rating <= MAX_RATING or rating != int(rating):
        raise RsvpError(
            RsvpErrorCode.invalid_feedback_rating,
            f"Rating must be a whole number between {MIN_RATING} and {MAX_RATING}",
        )
    return int(rating)


def upsert_feedback(
    repo: RsvpRepository,
    event_id: str,
    subject_participant_id: str,
    rating: Union[int, float],
    comment: Optional[str],
    actor_id: str,
) -> Outcome[EventFeedback]:
    """Record or revise feedback; only organizers may write it for someone else."""
    def _work(event: Event) -> EventFeedback:
        if subject_participant_id != actor_id:
            ensure_organizer(event, actor_id)
        value = _validated_rating(rating)
        feedback = repo.upsert_feedback(event_id, subject_participant_id, value, comment)
        logger.info("Feedback %d/5 on event %s for %s by %s", value, event_id, subject_participant_id, actor_id)
        return feedback

    return repo.run_locked(event_id, _work)


def list_feedback(repo: RsvpRepository, event_id: str) -> list[EventFeedback]:
    return repo.list_feedback(event_id)


def average_rating(feedback: list[EventFeedback]) -> Optional[float]:
    """Arithmetic mean of the ratings, or None when nobody has rated yet."""
    if not feedback:
        return None
    return sum(item.rating for item in feedback) / len(feedback)
