"""Request-scoped dependencies: caller identity and the RSVP repository."""
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from rollcall.config import settings
from rollcall.database import get_db
from rollcall.services.repository import RsvpRepository


def get_current_user_id(request: Request) -> str:
    """Caller id as resolved by the upstream session layer; 401 when absent."""
    user_id = (request.headers.get(settings.AUTH_HEADER) or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return user_id


def require_cron_key(x_api_key: Optional[str] = Header(default=None)) -> None:
    """Guard for scheduled jobs; the key must match CRON_API_KEY."""
    if not settings.CRON_API_KEY or x_api_key != settings.CRON_API_KEY:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def get_rsvp_repository(db: Session = Depends(get_db)) -> RsvpRepository:
    return RsvpRepository(db)
