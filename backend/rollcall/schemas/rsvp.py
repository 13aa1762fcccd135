"""Pydantic schemas for RSVP commands and the organizer control panel."""
from __future__ import annotations
from datetime import datetime
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, TypeAdapter
from pydantic.alias_generators import to_camel

from rollcall.models.rsvp import RsvpStatus


class CamelModel(BaseModel):
    """Reads ORM/dataclass attributes by name, writes camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ---------------------------------------------------------------------------
# Inbound commands: one model per action, each with exactly its fields
# ---------------------------------------------------------------------------
class _TargetedCommand(BaseModel):
    target_user_id: str = Field(alias="targetUserId", min_length=1)


class ConfirmCommand(_TargetedCommand):
    action: Literal["confirm"]


class WaitlistCommand(_TargetedCommand):
    action: Literal["waitlist"]


class CancelCommand(_TargetedCommand):
    action: Literal["cancel"]


class CheckInCommand(_TargetedCommand):
    action: Literal["check-in"]


class NoShowCommand(_TargetedCommand):
    action: Literal["no-show"]


class SweepWaitlistCommand(BaseModel):
    action: Literal["sweep-waitlist"]


class FeedbackCommand(BaseModel):
    action: Literal["feedback"]
    target_user_id: Optional[str] = Field(default=None, alias="targetUserId", min_length=1)
    rating: Union[StrictInt, StrictFloat]
    comment: Optional[str] = None


RsvpCommand = Annotated[
    Union[
        ConfirmCommand,
        WaitlistCommand,
        CancelCommand,
        CheckInCommand,
        NoShowCommand,
        SweepWaitlistCommand,
        FeedbackCommand,
    ],
    Field(discriminator="action"),
]

rsvp_command_adapter = TypeAdapter(RsvpCommand)


# ---------------------------------------------------------------------------
# Outbound views
# ---------------------------------------------------------------------------
class RsvpOut(CamelModel):
    event_id: str
    participant_id: str
    status: RsvpStatus
    queue_position: Optional[int] = None
    checked_in_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FeedbackOut(CamelModel):
    event_id: str
    participant_id: str
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SummaryOut(CamelModel):
    confirmed: int
    waitlisted: int
    cancelled: int
    checked_in: int
    no_show: int
    capacity: Optional[int] = None
    remaining_capacity: Optional[int] = None
    is_full: bool


class MetaOut(CamelModel):
    total_rsvps: int
    total_feedback: int
    average_rating: Optional[float] = None


class ControlPanelOut(CamelModel):
    rsvps: list[RsvpOut]
    summary: SummaryOut
    feedback: list[FeedbackOut]
    meta: MetaOut


class CommandResultOut(ControlPanelOut):
    success: bool = True
    action: str


class SelfServiceOut(CamelModel):
    status: RsvpStatus
    waitlisted: bool
    queue_position: Optional[int] = None
    promoted_participant_ids: list[str] = []


class SweepResultOut(CamelModel):
    event_id: str
    promoted: int


class SweepReportOut(CamelModel):
    hours_ahead: int
    results: list[SweepResultOut]
