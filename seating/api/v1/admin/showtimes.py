from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from seating.api.deps import http_error, require_admin
from seating.api.v1.public.bookings import serialize_booking
from seating.core.exceptions import ReservationError
from seating.db.session import get_db
from seating.models.showtime import Showtime
from seating.schemas.booking import Booking as BookingSchema, BookingStatusUpdate
from seating.schemas.seat import LayoutConfig
from seating.schemas.showtime import ShowtimeCreate, Showtime as ShowtimeSchema
from seating.utils.ledger import fetch_showtime_reservations
from seating.utils.reservations import get_showtime, update_reservation_status
from seating.utils.seat_map import default_layout_config

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


@router.post("/showtimes", response_model=ShowtimeSchema, status_code=status.HTTP_201_CREATED)
def create_showtime(data: ShowtimeCreate, db: Session = Depends(get_db)):
    """Create a showtime. Layout fields left out fall back to the defaults."""
    defaults = default_layout_config()
    try:
        config = LayoutConfig(
            row_labels=tuple(data.row_labels or defaults.row_labels),
            seats_per_row=data.seats_per_row or defaults.seats_per_row,
            lower_tier_rows=(
                data.lower_tier_rows if data.lower_tier_rows is not None else defaults.lower_tier_rows
            ),
            lower_tier_price=(
                data.lower_tier_price if data.lower_tier_price is not None else defaults.lower_tier_price
            ),
            upper_tier_price=(
                data.upper_tier_price if data.upper_tier_price is not None else defaults.upper_tier_price
            ),
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid layout: {e.errors()[0]['msg']}")

    showtime = Showtime(
        **data.model_dump(include={"movie_title", "theater_name", "screen", "show_date", "show_time", "payment_enabled"}),
        row_labels=list(config.row_labels),
        seats_per_row=config.seats_per_row,
        lower_tier_rows=config.lower_tier_rows,
        lower_tier_price=config.lower_tier_price,
        upper_tier_price=config.upper_tier_price,
    )
    db.add(showtime)
    db.commit()
    db.refresh(showtime)
    return showtime


@router.get("/showtimes/{showtime_id}/bookings", response_model=List[BookingSchema])
def list_showtime_bookings(showtime_id: UUID, db: Session = Depends(get_db)):
    """Live (pending or paid) bookings of a showtime, oldest first."""
    try:
        get_showtime(db, showtime_id)
        bookings = fetch_showtime_reservations(db, showtime_id)
    except ReservationError as e:
        raise http_error(e)
    bookings.sort(key=lambda b: (b.created_at is None, b.created_at))
    return [serialize_booking(b) for b in bookings]


@router.patch("/bookings/{booking_id}/status", response_model=BookingSchema)
def update_booking_status(booking_id: UUID, data: BookingStatusUpdate, db: Session = Depends(get_db)):
    """Payment confirmation hook: pending_payment → paid."""
    try:
        booking = update_reservation_status(db, booking_id, data.status)
    except ReservationError as e:
        raise http_error(e)
    return serialize_booking(booking)
