"""Tests for post-event feedback: rating bounds, upserts, averages, authorization."""
import pytest

from rollcall.services import feedback_service
from rollcall.services.errors import RsvpErrorCode
from tests.conftest import ORGANIZER, create_test_event


class TestRatingBounds:

    @pytest.mark.parametrize("rating", [1, 3, 5, 4.0])
    def test_accepted(self, db, repo, rating):
        event_id = create_test_event(db)
        outcome = feedback_service.upsert_feedback(repo, event_id, "alice", rating, None, "alice")
        assert outcome.ok
        assert outcome.value.rating == int(rating)

    @pytest.mark.parametrize(
        "rating", [0, 6, -1, 4.5, True, 10 ** 400, float("inf"), float("-inf"), float("nan")]
    )
    def test_rejected(self, db, repo, rating):
        event_id = create_test_event(db)
        outcome = feedback_service.upsert_feedback(repo, event_id, "alice", rating, None, "alice")
        assert outcome.code == RsvpErrorCode.invalid_feedback_rating
        assert feedback_service.list_feedback(repo, event_id) == []


class TestUpsert:

    def test_resubmission_replaces_previous(self, db, repo):
        event_id = create_test_event(db)
        feedback_service.upsert_feedback(repo, event_id, "alice", 2, "meh", "alice")
        feedback_service.upsert_feedback(repo, event_id, "alice", 5, "great after all", "alice")

        feedback = feedback_service.list_feedback(repo, event_id)
        assert len(feedback) == 1
        assert feedback[0].rating == 5
        assert feedback[0].comment == "great after all"

    def test_organizer_may_record_for_participant(self, db, repo):
        event_id = create_test_event(db)
        outcome = feedback_service.upsert_feedback(repo, event_id, "alice", 4, None, ORGANIZER)
        assert outcome.ok
        assert outcome.value.participant_id == "alice"

    def test_participant_cannot_record_for_someone_else(self, db, repo):
        event_id = create_test_event(db)
        outcome = feedback_service.upsert_feedback(repo, event_id, "bob", 4, None, "alice")
        assert outcome.code == RsvpErrorCode.not_organizer

    def test_unknown_event(self, repo):
        outcome = feedback_service.upsert_feedback(repo, "no-such-event", "alice", 4, None, "alice")
        assert outcome.code == RsvpErrorCode.event_not_found


class TestAverageRating:

    def test_average_of_three(self, db, repo):
        event_id = create_test_event(db)
        for participant, rating in (("alice", 4), ("bob", 5), ("carol", 3)):
            feedback_service.upsert_feedback(repo, event_id, participant, rating, None, participant)

        feedback = feedback_service.list_feedback(repo, event_id)
        assert feedback_service.average_rating(feedback) == 4.0

    def test_no_feedback(self):
        assert feedback_service.average_rating([]) is None
