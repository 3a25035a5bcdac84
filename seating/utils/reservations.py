"""
Reservation committer.

The conflict check and the write happen as one unit: the per-showtime lock
serializes commits inside this process, the occupancy re-read and the insert
share one database transaction, and the booking_seats unique constraint
rejects a conflicting writer from any other process.
"""
import logging
import random
import string
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from seating.core.config import settings
from seating.core.exceptions import (
    BookingNotFoundError,
    DataIntegrityWarning,
    SeatConflictError,
    SeatValidationError,
    ShowtimeNotFoundError,
    TransientStorageError,
)
from seating.models.booking import (
    Booking,
    BookingSeat,
    BOOKING_PAID,
    BOOKING_PENDING_PAYMENT,
    LIVE_BOOKING_STATUSES,
)
from seating.models.showtime import Showtime
from seating.schemas.seat import AuditoriumLayout, SeatRef
from seating.utils.ledger import occupied_seats, parse_seat_entries
from seating.utils.locks import ShowtimeLockRegistry
from seating.utils.pricing import total
from seating.utils.seat_map import generate_layout, layout_config_for

logger = logging.getLogger(__name__)

showtime_locks = ShowtimeLockRegistry()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _generate_booking_number(db: Session) -> str:
    """Generate a unique 'FC-XXXXXXXX' booking reference."""
    chars = string.ascii_uppercase + string.digits
    while True:
        number = "FC-" + "".join(random.choices(chars, k=8))
        if not db.query(Booking).filter(Booking.booking_number == number).first():
            return number


def _seat_payload(seats: Iterable[SeatRef]) -> list:
    return [{"row": s.row, "number": s.number} for s in seats]


def _find_by_idempotency_key(db: Session, key: str) -> Optional[Booking]:
    return db.query(Booking).filter(Booking.idempotency_key == key).first()


def _claimed_seats(db: Session, showtime_id: UUID, seats: List[SeatRef]) -> Set[SeatRef]:
    """Seats of `seats` already claimed in booking_seats by a live booking."""
    rows = (
        db.query(BookingSeat.row_label, BookingSeat.seat_number)
        .join(Booking, Booking.id == BookingSeat.booking_id)
        .filter(
            BookingSeat.showtime_id == showtime_id,
            Booking.status.in_(LIVE_BOOKING_STATUSES),
        )
        .all()
    )
    claimed = {SeatRef(row=r, number=n) for r, n in rows}
    return claimed & set(seats)


def _release_stale_claims(db: Session, showtime_id: UUID, seats: List[SeatRef]) -> None:
    """Drop claim rows on `seats` left behind by bookings that no longer hold seats."""
    wanted = set(seats)
    stale = (
        db.query(BookingSeat)
        .join(Booking, Booking.id == BookingSeat.booking_id)
        .filter(
            BookingSeat.showtime_id == showtime_id,
            Booking.status.not_in(LIVE_BOOKING_STATUSES),
        )
        .all()
    )
    released = [c for c in stale if SeatRef(row=c.row_label, number=c.seat_number) in wanted]
    if not released:
        return
    for claim in released:
        db.delete(claim)
    # Deletes must reach the table before the new claims are inserted
    db.flush()
    logger.info(
        "Released %d stale seat claim(s) on showtime %s", len(released), showtime_id
    )


def _acknowledge(existing: Booking, showtime_id: UUID, seats: List[SeatRef]) -> Booking:
    """A retry of an already persisted commit gets the original booking back."""
    try:
        stored = set(parse_seat_entries(existing.seats))
    except DataIntegrityWarning:
        stored = None
    if existing.showtime_id != showtime_id or stored != set(seats):
        raise SeatValidationError("Idempotency key was already used for a different reservation")
    logger.info("Idempotent replay of booking %s", existing.booking_number)
    return existing


def get_showtime(db: Session, showtime_id: UUID) -> Showtime:
    try:
        showtime = db.query(Showtime).filter(Showtime.id == showtime_id).first()
    except SQLAlchemyError as e:
        logger.exception("Failed to load showtime %s", showtime_id)
        raise TransientStorageError("Could not load showtime") from e
    if not showtime:
        raise ShowtimeNotFoundError(f"Showtime {showtime_id} not found")
    return showtime


def validate_seat_set(
    seats: Iterable[SeatRef], layout: AuditoriumLayout, max_seats: Optional[int] = None
) -> List[SeatRef]:
    """Preconditions of a commit: non-empty, within bounds, no duplicates, inside the layout."""
    seats = list(seats)
    max_seats = max_seats if max_seats is not None else settings.MAX_SEATS_PER_BOOKING
    if not seats:
        raise SeatValidationError("At least one seat is required")
    if len(seats) > max_seats:
        raise SeatValidationError(f"At most {max_seats} seats can be booked at once")
    if len(set(seats)) != len(seats):
        seen, dupes = set(), []
        for seat in seats:
            if seat in seen:
                dupes.append(seat.label)
            seen.add(seat)
        raise SeatValidationError(f"Duplicate seats: {', '.join(dupes)}")
    outside = [s.label for s in seats if not layout.contains(s)]
    if outside:
        raise SeatValidationError(f"Seats not in this auditorium: {', '.join(outside)}")
    return seats


# ---------------------------------------------------------------------------
# Storage primitives
# ---------------------------------------------------------------------------


def insert_reservation(
    db: Session,
    showtime_id: UUID,
    seats: List[SeatRef],
    total_amount,
    user_id: Optional[str],
    idempotency_key: str,
) -> Booking:
    """
    Persist a booking and its per-seat claims in one transaction.

    A unique-constraint violation means another writer got there first: the
    transaction is rolled back and the seats now taken are reported as a
    SeatConflictError. A violation on the idempotency key means the same
    logical commit already landed, and that booking is returned.
    Claims still held by bookings outside the live statuses are released
    first, so the claim table agrees with the ledger.
    """
    _release_stale_claims(db, showtime_id, seats)
    booking = Booking(
        showtime_id=showtime_id,
        booking_number=_generate_booking_number(db),
        seats=_seat_payload(seats),
        total_amount=total_amount,
        status=BOOKING_PENDING_PAYMENT,
        user_id=user_id,
        idempotency_key=idempotency_key,
    )
    for seat in seats:
        booking.seat_claims.append(BookingSeat(
            showtime_id=showtime_id,
            row_label=seat.row,
            seat_number=seat.number,
        ))
    db.add(booking)

    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        existing = _find_by_idempotency_key(db, idempotency_key)
        if existing is not None:
            return _acknowledge(existing, showtime_id, seats)
        taken = (occupied_seats(db, showtime_id) | _claimed_seats(db, showtime_id, seats)) & set(seats)
        if taken:
            logger.warning(
                "Seat conflict caught by storage on showtime %s: %s",
                showtime_id, ", ".join(sorted(s.label for s in taken)),
            )
            raise SeatConflictError(taken) from e
        logger.exception("Booking insert rejected for showtime %s", showtime_id)
        raise TransientStorageError("Booking insert was rejected by the database") from e

    db.refresh(booking)
    return booking


def update_reservation_status(db: Session, booking_id: UUID, new_status: str) -> Booking:
    """
    Payment confirmation: pending_payment → paid. Occupancy was locked in at
    commit time and is not re-checked.
    """
    if new_status != BOOKING_PAID:
        raise SeatValidationError(f"Unsupported status transition to '{new_status}'")

    try:
        booking = db.query(Booking).filter(Booking.id == booking_id).first()
        if not booking:
            raise BookingNotFoundError(f"Booking {booking_id} not found")
        if booking.status == BOOKING_PAID:
            return booking
        if booking.status != BOOKING_PENDING_PAYMENT:
            raise SeatValidationError(
                f"Only pending bookings can be marked paid (current status: '{booking.status}')"
            )

        booking.status = BOOKING_PAID
        booking.paid_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(booking)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to update status of booking %s", booking_id)
        raise TransientStorageError("Could not update booking status") from e

    logger.info("Booking %s marked paid", booking.booking_number)
    return booking


# ---------------------------------------------------------------------------
# Commit
# ---------------------------------------------------------------------------


def commit_reservation(
    db: Session,
    showtime_id: UUID,
    seats: Iterable[SeatRef],
    user_id: Optional[str] = None,
    idempotency_key: Optional[str] = None,
    max_seats: Optional[int] = None,
    lock_timeout: Optional[float] = None,
) -> Booking:
    """
    Claim `seats` for a showtime, or fail without writing anything.

    Raises SeatValidationError for malformed requests, SeatConflictError
    naming exactly the seats already taken, and TransientStorageError when the
    lock wait times out or the database fails. Conflicts are never retried
    here: a retry could hand the user seats they did not choose.
    """
    if not idempotency_key:
        raise SeatValidationError("An idempotency key is required")

    showtime = get_showtime(db, showtime_id)
    showtime_id = showtime.id
    layout = generate_layout(layout_config_for(showtime))
    seats = validate_seat_set(seats, layout, max_seats)
    timeout = lock_timeout if lock_timeout is not None else settings.COMMIT_LOCK_TIMEOUT_SECONDS

    with showtime_locks.hold(showtime_id, timeout):
        try:
            existing = _find_by_idempotency_key(db, idempotency_key)
            if existing is not None:
                return _acknowledge(existing, showtime_id, seats)

            # Fresh read inside the lock; a pre-commit snapshot is not enough
            conflicts = set(seats) & occupied_seats(db, showtime_id)
            if conflicts:
                db.rollback()
                logger.warning(
                    "Seat conflict on showtime %s: %s",
                    showtime_id, ", ".join(sorted(s.label for s in conflicts)),
                )
                raise SeatConflictError(conflicts)

            amount = total(seats, layout.config)
            booking = insert_reservation(
                db, showtime_id, seats, amount, user_id, idempotency_key
            )
        except TransientStorageError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Storage failure committing reservation for showtime %s", showtime_id)
            raise TransientStorageError("Could not commit the reservation") from e

    logger.info(
        "Booking %s created for showtime %s: %s (total %s)",
        booking.booking_number, showtime_id,
        ", ".join(s.label for s in seats), booking.total_amount,
    )
    return booking
