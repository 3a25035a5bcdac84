"""
Booking ledger reader: turns a showtime's stored bookings into an
occupied-seat set.
"""
import json
import logging
from typing import List, Set
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from seating.core.exceptions import DataIntegrityWarning, TransientStorageError
from seating.models.booking import Booking, LIVE_BOOKING_STATUSES
from seating.schemas.seat import SeatRef

logger = logging.getLogger(__name__)


def parse_seat_entries(raw) -> List[SeatRef]:
    """
    Parse a stored seat set. Accepts a list of {"row", "number"} objects or a
    JSON string encoding one. Raises DataIntegrityWarning on anything else.
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise DataIntegrityWarning(f"seats is not valid JSON: {e}") from e

    if not isinstance(raw, list) or not raw:
        raise DataIntegrityWarning("seats must be a non-empty list")

    seats = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise DataIntegrityWarning(f"seat entry is not an object: {entry!r}")
        number = entry.get("number")
        if isinstance(number, bool) or not isinstance(number, int):
            raise DataIntegrityWarning(f"seat number is not an integer: {entry!r}")
        try:
            seats.append(SeatRef(row=entry.get("row"), number=number))
        except ValidationError as e:
            raise DataIntegrityWarning(f"invalid seat entry {entry!r}") from e

    if len(set(seats)) != len(seats):
        raise DataIntegrityWarning("duplicate seats in one booking")
    return seats


def fetch_showtime_reservations(db: Session, showtime_id: UUID) -> List[Booking]:
    """Return all live (pending_payment / paid) bookings for a showtime."""
    try:
        return (
            db.query(Booking)
            .filter(
                Booking.showtime_id == showtime_id,
                Booking.status.in_(LIVE_BOOKING_STATUSES),
            )
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("Failed to read bookings for showtime %s", showtime_id)
        raise TransientStorageError("Could not read the booking ledger") from e


def occupied_seats(db: Session, showtime_id: UUID) -> Set[SeatRef]:
    """
    Union of the seat sets of all live bookings for the showtime.

    A booking whose stored seats cannot be parsed is left out and logged;
    it never blocks the rest of the read.
    """
    occupied: Set[SeatRef] = set()
    for booking in fetch_showtime_reservations(db, showtime_id):
        try:
            seats = parse_seat_entries(booking.seats)
        except DataIntegrityWarning as w:
            logger.warning(
                "Data integrity: skipping booking %s (%s) for showtime %s: %s",
                booking.id, booking.booking_number, showtime_id, w,
            )
            continue
        occupied.update(seats)
    return occupied
