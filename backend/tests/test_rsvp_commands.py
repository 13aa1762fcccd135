"""Tests for command dispatch and control-panel assembly."""
from rollcall.schemas.rsvp import ConfirmCommand, FeedbackCommand
from rollcall.services import rsvp_commands
from rollcall.services.summary_service import AttendanceSummary
from tests.conftest import ORGANIZER, create_test_event


class TestExecuteCommand:

    def test_attendance_command_returns_summary(self, db, repo):
        event_id = create_test_event(db, capacity=2)
        command = ConfirmCommand(action="confirm", targetUserId="alice")
        outcome = rsvp_commands.execute_command(repo, event_id, ORGANIZER, command)
        assert outcome.ok
        assert outcome.value.confirmed == 1

    def test_feedback_returns_no_summary(self, db, repo):
        event_id = create_test_event(db)
        command = FeedbackCommand(action="feedback", rating=4)
        outcome = rsvp_commands.execute_command(repo, event_id, "alice", command)
        assert outcome.ok
        assert outcome.value is None


class TestLoadControlPanel:

    def test_reuses_given_summary(self, db, repo):
        event_id = create_test_event(db)
        summary = AttendanceSummary(
            confirmed=7, waitlisted=0, cancelled=0, checked_in=0, no_show=0,
            capacity=None, remaining_capacity=None, is_full=False,
        )
        panel = rsvp_commands.load_control_panel(repo, event_id, ORGANIZER, summary=summary)
        assert panel.ok
        assert panel.value.summary is summary

    def test_builds_summary_when_missing(self, db, repo):
        event_id = create_test_event(db, capacity=3)
        panel = rsvp_commands.load_control_panel(repo, event_id, ORGANIZER)
        assert panel.value.summary.remaining_capacity == 3
