"""Translate service outcomes into HTTP errors."""
from fastapi import HTTPException, status

from rollcall.services.errors import Failure
from rollcall.services.rsvp_commands import CommandRejected, http_status_for


def http_error_from_failure(failure: Failure) -> HTTPException:
    return HTTPException(
        status_code=http_status_for(failure.code),
        detail={"code": failure.code.value, "message": failure.message},
    )


def http_error_from_rejection(rejection: CommandRejected) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"code": "INVALID_COMMAND", "message": rejection.message, "field": rejection.field},
    )
