"""Participant self-service routes — join or leave an event."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from rollcall.auth import get_current_user_id, get_rsvp_repository
from rollcall.routers.errors import http_error_from_failure
from rollcall.schemas.rsvp import SelfServiceOut
from rollcall.services import attendance_service
from rollcall.services.repository import RsvpRepository

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/{event_id}/attend", response_model=SelfServiceOut)
def attend_event(
    event_id: str,
    caller_id: str = Depends(get_current_user_id),
    repo: RsvpRepository = Depends(get_rsvp_repository),
):
    """RSVP the caller: a seat if one is free, otherwise a place on the waitlist."""
    try:
        outcome = attendance_service.commit_rsvp(repo, event_id, caller_id)
    except Exception:
        logger.exception("Failed to RSVP %s to event %s", caller_id, event_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to RSVP")

    if not outcome.ok:
        raise http_error_from_failure(outcome)
    return SelfServiceOut.model_validate(outcome.value)


@router.delete("/{event_id}/attend", response_model=SelfServiceOut)
def leave_event(
    event_id: str,
    caller_id: str = Depends(get_current_user_id),
    repo: RsvpRepository = Depends(get_rsvp_repository),
):
    """Withdraw the caller's RSVP; a freed seat goes to the head of the waitlist."""
    try:
        outcome = attendance_service.leave_event(repo, event_id, caller_id)
    except Exception:
        logger.exception("Failed to remove %s from event %s", caller_id, event_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to leave event")

    if not outcome.ok:
        raise http_error_from_failure(outcome)
    return SelfServiceOut.model_validate(outcome.value)
