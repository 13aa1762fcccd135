"""Tests for waitlist admission: FIFO promotion, capacity bounds, sweeps."""
from datetime import datetime, timedelta, timezone

from rollcall.models.attendance_audit import AttendanceAction
from rollcall.models.rsvp import RsvpStatus
from rollcall.services import attendance_service, waitlist_service
from rollcall.services.errors import RsvpErrorCode
from tests.conftest import ORGANIZER, create_test_event


def _queue(repo, event_id):
    return [(r.participant_id, r.queue_position) for r in repo.list_waitlisted(event_id)]


class TestWaitlistQueue:

    def test_positions_are_fifo(self, db, repo):
        event_id = create_test_event(db, capacity=1)
        for participant in ("alice", "bob", "carol"):
            attendance_service.waitlist(repo, event_id, participant, ORGANIZER)
        assert _queue(repo, event_id) == [("alice", 1), ("bob", 2), ("carol", 3)]

    def test_rewaitlisting_moves_to_back(self, db, repo):
        event_id = create_test_event(db, capacity=1)
        attendance_service.waitlist(repo, event_id, "alice", ORGANIZER)
        attendance_service.waitlist(repo, event_id, "bob", ORGANIZER)
        outcome = attendance_service.waitlist(repo, event_id, "alice", ORGANIZER)
        assert outcome.ok
        assert _queue(repo, event_id) == [("bob", 2), ("alice", 3)]

        entries = repo.list_audit(event_id)
        assert len(entries) == 3
        assert entries[-1].participant_id == "alice"
        assert entries[-1].action == AttendanceAction.rsvp_waitlisted

    def test_positions_are_never_reused(self, db, repo):
        event_id = create_test_event(db, capacity=1)
        attendance_service.waitlist(repo, event_id, "alice", ORGANIZER)
        attendance_service.waitlist(repo, event_id, "bob", ORGANIZER)
        attendance_service.cancel(repo, event_id, "bob", ORGANIZER)
        attendance_service.waitlist(repo, event_id, "carol", ORGANIZER)
        assert _queue(repo, event_id) == [("alice", 1), ("carol", 3)]

    def test_waitlist_disabled(self, db, repo):
        event_id = create_test_event(db, capacity=1, waitlist_enabled=False)
        outcome = attendance_service.waitlist(repo, event_id, "alice", ORGANIZER)
        assert outcome.code == RsvpErrorCode.waitlist_disabled
        assert repo.get_rsvp(event_id, "alice") is None


class TestPromotion:

    def test_cancel_promotes_head_of_queue(self, db, repo):
        """capacity 2, A and B confirmed, C queued; A cancels and C takes the seat."""
        event_id = create_test_event(db, capacity=2)
        attendance_service.confirm(repo, event_id, "a", ORGANIZER)
        attendance_service.confirm(repo, event_id, "b", ORGANIZER)
        attendance_service.waitlist(repo, event_id, "c", ORGANIZER)
        assert repo.get_rsvp(event_id, "c").queue_position == 1

        outcome = attendance_service.cancel(repo, event_id, "a", ORGANIZER)
        assert outcome.ok
        assert outcome.value.confirmed == 2
        assert outcome.value.waitlisted == 0

        promoted = repo.get_rsvp(event_id, "c")
        assert promoted.status == RsvpStatus.confirmed
        assert promoted.queue_position is None

        last = repo.list_audit(event_id)[-1]
        assert last.participant_id == "c"
        assert last.action == AttendanceAction.rsvp_confirmed
        assert last.reason == "waitlist-promoted"

    def test_sweep_promotes_in_order_up_to_capacity(self, db, repo):
        event_id = create_test_event(db, capacity=2)
        for participant in ("alice", "bob", "carol"):
            attendance_service.waitlist(repo, event_id, participant, ORGANIZER)

        outcome = waitlist_service.sweep_waitlist_for_event(repo, event_id)
        assert outcome.ok
        assert outcome.value == ["alice", "bob"]
        assert _queue(repo, event_id) == [("carol", 3)]

    def test_sweep_is_idempotent(self, db, repo):
        event_id = create_test_event(db, capacity=1)
        attendance_service.waitlist(repo, event_id, "alice", ORGANIZER)
        attendance_service.waitlist(repo, event_id, "bob", ORGANIZER)

        assert waitlist_service.sweep_waitlist_for_event(repo, event_id).value == ["alice"]
        assert waitlist_service.sweep_waitlist_for_event(repo, event_id).value == []
        assert repo.count_by_status(event_id)[RsvpStatus.confirmed] == 1

    def test_unlimited_capacity_promotes_everyone(self, db, repo):
        event_id = create_test_event(db, capacity=None)
        for participant in ("alice", "bob"):
            attendance_service.waitlist(repo, event_id, participant, ORGANIZER)
        assert waitlist_service.sweep_waitlist_for_event(repo, event_id).value == ["alice", "bob"]

    def test_full_event_promotes_nobody(self, db, repo):
        event_id = create_test_event(db, capacity=1)
        attendance_service.confirm(repo, event_id, "alice", ORGANIZER)
        attendance_service.waitlist(repo, event_id, "bob", ORGANIZER)
        assert waitlist_service.sweep_waitlist_for_event(repo, event_id).value == []

    def test_checked_in_does_not_hold_a_seat(self, db, repo):
        event_id = create_test_event(db, capacity=1)
        attendance_service.confirm(repo, event_id, "alice", ORGANIZER)
        attendance_service.check_in(repo, event_id, "alice", ORGANIZER)
        attendance_service.waitlist(repo, event_id, "bob", ORGANIZER)
        assert waitlist_service.sweep_waitlist_for_event(repo, event_id).value == ["bob"]

    def test_organizer_sweep_requires_organizer(self, db, repo):
        event_id = create_test_event(db, capacity=1)
        attendance_service.waitlist(repo, event_id, "alice", ORGANIZER)

        rejected = waitlist_service.organizer_sweep_waitlist(repo, event_id, "mallory")
        assert rejected.code == RsvpErrorCode.not_organizer

        outcome = waitlist_service.organizer_sweep_waitlist(repo, event_id, ORGANIZER)
        assert outcome.ok
        assert outcome.value.confirmed == 1
        assert outcome.value.is_full


class TestScheduledSweep:

    def test_only_events_inside_window(self, db, repo):
        now = datetime.now(timezone.utc)
        soon = create_test_event(db, capacity=1, start_time_utc=now + timedelta(hours=2))
        later = create_test_event(db, capacity=1, start_time_utc=now + timedelta(hours=72))
        for event_id in (soon, later):
            attendance_service.waitlist(repo, event_id, "alice", ORGANIZER)

        results = waitlist_service.sweep_waitlists_for_upcoming_events(repo, hours_ahead=24, now=now)
        assert results == [{"eventId": soon, "promoted": 1}]
        assert repo.get_rsvp(later, "alice").status == RsvpStatus.waitlisted

    def test_promotions_recorded_as_system(self, db, repo):
        now = datetime.now(timezone.utc)
        event_id = create_test_event(db, capacity=1, start_time_utc=now + timedelta(hours=1))
        attendance_service.waitlist(repo, event_id, "alice", ORGANIZER)

        waitlist_service.sweep_waitlists_for_upcoming_events(repo, hours_ahead=24, now=now)
        last = repo.list_audit(event_id)[-1]
        assert last.actor_id == waitlist_service.SYSTEM_ACTOR

    def test_nothing_to_promote(self, db, repo):
        now = datetime.now(timezone.utc)
        create_test_event(db, capacity=1, start_time_utc=now + timedelta(hours=1))
        assert waitlist_service.sweep_waitlists_for_upcoming_events(repo, hours_ahead=24, now=now) == []
