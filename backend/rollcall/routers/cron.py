"""Scheduled job routes, called by an external scheduler with the cron key."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from rollcall.auth import get_rsvp_repository, require_cron_key
from rollcall.config import settings
from rollcall.schemas.rsvp import SweepReportOut, SweepResultOut
from rollcall.services import waitlist_service
from rollcall.services.repository import RsvpRepository

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(require_cron_key)])


@router.post("/sweep-waitlists", response_model=SweepReportOut)
def sweep_waitlists(
    hours_ahead: Optional[int] = Query(None, ge=1, le=24 * 30),
    repo: RsvpRepository = Depends(get_rsvp_repository),
):
    """Promote waitlisted participants on events starting soon."""
    hours = hours_ahead if hours_ahead is not None else settings.WAITLIST_SWEEP_HOURS_AHEAD
    results = waitlist_service.sweep_waitlists_for_upcoming_events(repo, hours_ahead=hours)
    return SweepReportOut(
        hours_ahead=hours,
        results=[SweepResultOut.model_validate(item) for item in results],
    )
