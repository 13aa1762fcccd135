"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18

Creates the attendance tables:
events, event_co_organizers, event_rsvps, attendance_audit_entries, event_feedback.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

rsvp_status = sa.Enum(
    "confirmed", "waitlisted", "cancelled", "checked_in", "no_show", name="rsvpstatus"
)
attendance_action = sa.Enum(
    "rsvp_confirmed", "rsvp_waitlisted", "rsvp_cancelled", "checked_in", "marked_no_show",
    name="attendanceaction",
)


def upgrade() -> None:
    # --- events ---
    op.create_table(
        "events",
        sa.Column("event_id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("organizer_id", sa.String(36), nullable=False),
        sa.Column("capacity", sa.Integer, nullable=True),
        sa.Column("waitlist_enabled", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("start_time_utc", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rsvp_version", sa.Integer, nullable=False, server_default="0"),
        sa.Column("waitlist_counter", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_events_organizer_id", "events", ["organizer_id"])

    # --- event_co_organizers ---
    op.create_table(
        "event_co_organizers",
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.event_id"), primary_key=True),
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("added_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- event_rsvps ---
    op.create_table(
        "event_rsvps",
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.event_id"), primary_key=True),
        sa.Column("participant_id", sa.String(36), primary_key=True),
        sa.Column("status", rsvp_status, nullable=False),
        sa.Column("queue_position", sa.Integer, nullable=True),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("event_id", "queue_position", name="uq_event_rsvps_event_queue_position"),
    )

    # --- attendance_audit_entries (append-only) ---
    op.create_table(
        "attendance_audit_entries",
        sa.Column("entry_id", sa.String(36), primary_key=True),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.event_id"), nullable=False),
        sa.Column("participant_id", sa.String(36), nullable=False),
        sa.Column("actor_id", sa.String(36), nullable=False),
        sa.Column("action", attendance_action, nullable=False),
        sa.Column("reason", sa.String(64), nullable=True),
        sa.Column("details", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_attendance_audit_entries_event_id", "attendance_audit_entries", ["event_id"])

    # --- event_feedback ---
    op.create_table(
        "event_feedback",
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.event_id"), primary_key=True),
        sa.Column("participant_id", sa.String(36), primary_key=True),
        sa.Column("rating", sa.Integer, nullable=False),
        sa.Column("comment", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_event_feedback_rating_range"),
    )


def downgrade() -> None:
    op.drop_table("event_feedback")
    op.drop_index("ix_attendance_audit_entries_event_id", table_name="attendance_audit_entries")
    op.drop_table("attendance_audit_entries")
    op.drop_table("event_rsvps")
    op.drop_table("event_co_organizers")
    op.drop_index("ix_events_organizer_id", table_name="events")
    op.drop_table("events")
    attendance_action.drop(op.get_bind(), checkfirst=True)
    rsvp_status.drop(op.get_bind(), checkfirst=True)
