from typing import Optional

from fastapi import Header, HTTPException, status

from seating.core.config import settings
from seating.core.exceptions import (
    BookingNotFoundError,
    ReservationError,
    SeatConflictError,
    SeatValidationError,
    ShowtimeNotFoundError,
    TransientStorageError,
)
from seating.schemas.common import ErrorResponse, SeatsUnavailableError


def require_admin(x_admin_key: Optional[str] = Header(None)) -> None:
    """Admin and payment-webhook routes share a static key."""
    if x_admin_key != settings.ADMIN_SECRET_KEY:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid admin key")


def http_error(exc: ReservationError) -> HTTPException:
    """Map an engine error onto the HTTP status the caller should react to."""
    if isinstance(exc, SeatConflictError):
        body = SeatsUnavailableError(
            error="seats_unavailable",
            message=str(exc),
            unavailable_seats=[s.label for s in exc.seats],
        )
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=body.model_dump())
    if isinstance(exc, (ShowtimeNotFoundError, BookingNotFoundError)):
        code, error = status.HTTP_404_NOT_FOUND, "not_found"
    elif isinstance(exc, SeatValidationError):
        code, error = status.HTTP_400_BAD_REQUEST, "invalid_request"
    elif isinstance(exc, TransientStorageError):
        code, error = status.HTTP_503_SERVICE_UNAVAILABLE, "storage_unavailable"
    else:
        code, error = status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error"
    return HTTPException(status_code=code, detail=ErrorResponse(error=error, message=str(exc)).model_dump())
