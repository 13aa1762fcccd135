"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rollcall.config import settings
from rollcall.database import Base, engine

# Import routers
from rollcall.routers import attendance, cron, rsvp

# Import all models so Base.metadata knows about them
from rollcall.models.event import Event, EventCoOrganizer  # noqa: F401
from rollcall.models.rsvp import EventRsvp  # noqa: F401
from rollcall.models.attendance_audit import AttendanceAuditEntry  # noqa: F401
from rollcall.models.feedback import EventFeedback  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Rollcall",
    description="Event RSVP, waitlist and attendance management",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(rsvp.router, prefix="/api/events", tags=["RSVP"])
app.include_router(attendance.router, prefix="/api/events", tags=["Attendance"])
app.include_router(cron.router, prefix="/api/cron", tags=["Cron"])


@app.exception_handler(RequestValidationError)
def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed requests are client errors (400), never 422."""
    error = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path"))
    logger.debug("Rejected request to %s: %s", request.url.path, error)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": {
                "code": "INVALID_REQUEST",
                "message": error.get("msg", "Invalid request"),
                "field": field or "body",
            }
        },
    )


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
