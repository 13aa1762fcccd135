"""RSVP control API — organizer dashboard and command endpoint for one event."""
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status

from rollcall.auth import get_current_user_id, get_rsvp_repository
from rollcall.routers.errors import http_error_from_failure, http_error_from_rejection
from rollcall.schemas.rsvp import (
    CommandResultOut,
    ControlPanelOut,
    FeedbackCommand,
    FeedbackOut,
    MetaOut,
    RsvpOut,
    SummaryOut,
)
from rollcall.services import rsvp_commands
from rollcall.services.repository import RsvpRepository
from rollcall.services.rsvp_commands import CommandRejected, ControlPanel

logger = logging.getLogger(__name__)
router = APIRouter()


def _panel_fields(panel: ControlPanel) -> dict[str, Any]:
    return {
        "rsvps": [RsvpOut.model_validate(rsvp) for rsvp in panel.rsvps],
        "summary": SummaryOut.model_validate(panel.summary),
        "feedback": [FeedbackOut.model_validate(item) for item in panel.feedback],
        "meta": MetaOut(
            total_rsvps=len(panel.rsvps),
            total_feedback=len(panel.feedback),
            average_rating=panel.average_rating,
        ),
    }


@router.get("/{event_id}/rsvp", response_model=ControlPanelOut)
def get_rsvp_control_panel(
    event_id: str,
    caller_id: str = Depends(get_current_user_id),
    repo: RsvpRepository = Depends(get_rsvp_repository),
):
    """RSVPs, summary and feedback for an event (organizers only)."""
    try:
        outcome = rsvp_commands.load_control_panel(repo, event_id, caller_id)
    except Exception:
        logger.exception("Failed to load RSVP data for event %s (caller %s)", event_id, caller_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to load RSVP data")

    if not outcome.ok:
        raise http_error_from_failure(outcome)
    return ControlPanelOut(**_panel_fields(outcome.value))


@router.post("/{event_id}/rsvp", response_model=CommandResultOut)
def post_rsvp_command(
    event_id: str,
    payload: Any = Body(default=None),
    caller_id: str = Depends(get_current_user_id),
    repo: RsvpRepository = Depends(get_rsvp_repository),
):
    """Apply one RSVP command and return the refreshed control panel."""
    command = rsvp_commands.parse_command(payload)
    if isinstance(command, CommandRejected):
        raise http_error_from_rejection(command)

    try:
        outcome = rsvp_commands.execute_command(repo, event_id, caller_id, command)
        if not outcome.ok:
            raise http_error_from_failure(outcome)

        # participants rating themselves only get their own rows back
        restrict = isinstance(command, FeedbackCommand) and not rsvp_commands.is_organizer(
            repo, event_id, caller_id
        )
        panel = rsvp_commands.load_control_panel(
            repo, event_id, caller_id, restrict_to_caller=restrict, summary=outcome.value,
        )
        if not panel.ok:
            raise http_error_from_failure(panel)
    except HTTPException:
        raise
    except Exception:
        logger.exception(
            "Failed to apply RSVP action %s on event %s (caller %s)", command.action, event_id, caller_id
        )
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update RSVP")

    return CommandResultOut(action=command.action, **_panel_fields(panel.value))
