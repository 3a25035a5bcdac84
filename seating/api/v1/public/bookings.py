import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from seating.api.deps import http_error
from seating.core.exceptions import BookingNotFoundError, DataIntegrityWarning, ReservationError
from seating.db.session import get_db
from seating.models.booking import Booking, BOOKING_PAID, BOOKING_PENDING_PAYMENT
from seating.schemas.booking import (
    BookingCreate,
    Booking as BookingSchema,
    BookingSeatResponse,
)
from seating.utils.ledger import parse_seat_entries
from seating.utils.reservations import commit_reservation, get_showtime, update_reservation_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def serialize_booking(booking: Booking) -> BookingSchema:
    """Convert a Booking ORM object to its schema representation."""
    try:
        seats = parse_seat_entries(booking.seats)
    except DataIntegrityWarning as w:
        logger.warning("Data integrity: booking %s has unreadable seats: %s", booking.id, w)
        seats = []

    return BookingSchema(
        id=booking.id,
        booking_number=booking.booking_number,
        showtime_id=booking.showtime_id,
        seats=[BookingSeatResponse(row=s.row, number=s.number, label=s.label) for s in seats],
        total_amount=booking.total_amount,
        status=booking.status,
        user_id=booking.user_id,
        paid_at=booking.paid_at,
        created_at=booking.created_at,
    )


# ---------------------------------------------------------------------------
# POST /bookings: commit a reservation
# ---------------------------------------------------------------------------


@router.post("/", response_model=BookingSchema, status_code=status.HTTP_201_CREATED)
def create_booking(data: BookingCreate, db: Session = Depends(get_db)):
    """
    Atomically claim the requested seats.

    - 409 lists exactly the seats that were taken; nothing is written.
    - 503 is safe to retry with the same idempotency key: a commit that
      already landed is returned instead of being duplicated.
    - Showtimes without online payment are marked paid straight away.
    """
    try:
        booking = commit_reservation(
            db,
            data.showtime_id,
            data.seats,
            user_id=data.user_id,
            idempotency_key=data.idempotency_key,
        )
        showtime = get_showtime(db, booking.showtime_id)
        if not showtime.payment_enabled and booking.status == BOOKING_PENDING_PAYMENT:
            booking = update_reservation_status(db, booking.id, BOOKING_PAID)
    except ReservationError as e:
        raise http_error(e)

    return serialize_booking(booking)


# ---------------------------------------------------------------------------
# GET /bookings/{id}
# ---------------------------------------------------------------------------


@router.get("/{booking_id}", response_model=BookingSchema)
def get_booking(booking_id: UUID, db: Session = Depends(get_db)):
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise http_error(BookingNotFoundError(f"Booking {booking_id} not found"))
    return serialize_booking(booking)
