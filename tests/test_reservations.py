import gc
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from seating.core.exceptions import (
    BookingNotFoundError,
    SeatConflictError,
    SeatValidationError,
    ShowtimeNotFoundError,
    TransientStorageError,
)
from seating.models.booking import Booking, BookingSeat
from seating.schemas.seat import SeatRef
from seating.utils import reservations
from seating.utils.ledger import occupied_seats, parse_seat_entries
from seating.utils.locks import ShowtimeLockRegistry
from seating.utils.reservations import (
    commit_reservation,
    insert_reservation,
    showtime_locks,
    update_reservation_status,
)


def seats(*labels):
    return [SeatRef.from_label(label) for label in labels]


def key():
    return uuid.uuid4().hex


def test_commit_creates_pending_booking(db, showtime):
    booking = commit_reservation(db, showtime.id, seats("A1", "A2"), user_id="u-1", idempotency_key=key())

    assert booking.status == "pending_payment"
    assert booking.total_amount == Decimal("140")
    assert booking.user_id == "u-1"
    assert booking.booking_number.startswith("FC-")
    assert set(parse_seat_entries(booking.seats)) == set(seats("A1", "A2"))
    assert occupied_seats(db, showtime.id) == set(seats("A1", "A2"))
    assert db.query(BookingSeat).filter(BookingSeat.booking_id == booking.id).count() == 2


def test_anonymous_booking_allowed(db, showtime):
    booking = commit_reservation(db, showtime.id, seats("K12"), idempotency_key=key())
    assert booking.user_id is None


def test_conflict_names_only_taken_seats(db, showtime):
    commit_reservation(db, showtime.id, seats("A1", "A2"), idempotency_key=key())

    with pytest.raises(SeatConflictError) as exc:
        commit_reservation(db, showtime.id, seats("A1", "C5"), idempotency_key=key())

    assert exc.value.seats == seats("A1")
    assert SeatRef.from_label("C5") not in occupied_seats(db, showtime.id)
    assert db.query(Booking).count() == 1


@pytest.mark.parametrize(
    "requested, message",
    [
        ([], "At least one seat"),
        (seats("A1", "A1"), "Duplicate"),
        (seats(*[f"C{n}" for n in range(1, 12)]), "At most 10"),
        (seats("Z1"), "not in this auditorium"),
        (seats("A13"), "not in this auditorium"),
    ],
)
def test_validation_errors(db, showtime, requested, message):
    with pytest.raises(SeatValidationError, match=message):
        commit_reservation(db, showtime.id, requested, idempotency_key=key())
    assert db.query(Booking).count() == 0


def test_idempotency_key_required(db, showtime):
    with pytest.raises(SeatValidationError):
        commit_reservation(db, showtime.id, seats("A1"), idempotency_key=None)


def test_unknown_showtime(db):
    with pytest.raises(ShowtimeNotFoundError):
        commit_reservation(db, uuid.uuid4(), seats("A1"), idempotency_key=key())


def test_retry_with_same_key_returns_original(db, showtime):
    token = key()
    first = commit_reservation(db, showtime.id, seats("D1", "D2"), idempotency_key=token)
    again = commit_reservation(db, showtime.id, seats("D2", "D1"), idempotency_key=token)

    assert again.id == first.id
    assert db.query(Booking).count() == 1


def test_same_key_different_seats_rejected(db, showtime):
    token = key()
    commit_reservation(db, showtime.id, seats("D1"), idempotency_key=token)
    with pytest.raises(SeatValidationError, match="Idempotency key"):
        commit_reservation(db, showtime.id, seats("D3"), idempotency_key=token)


def test_unique_constraint_catches_unlocked_writer(session_factory, showtime):
    # Bypass the lock and the occupancy check, as a writer in another process would
    first, second = session_factory(), session_factory()
    try:
        insert_reservation(first, showtime.id, seats("F4", "F5"), Decimal("300"), None, key())
        with pytest.raises(SeatConflictError) as exc:
            insert_reservation(second, showtime.id, seats("F5", "F6"), Decimal("300"), None, key())
        assert exc.value.seats == seats("F5")
        assert second.query(Booking).count() == 1
    finally:
        first.close()
        second.close()


def test_lock_timeout_is_transient(db, showtime):
    with showtime_locks.hold(showtime.id, timeout=1):
        with pytest.raises(TransientStorageError):
            commit_reservation(db, showtime.id, seats("A1"), idempotency_key=key(), lock_timeout=0.05)


def test_lock_registry_forgets_idle_showtimes():
    registry = ShowtimeLockRegistry()
    showtime_id = uuid.uuid4()
    with registry.hold(showtime_id, timeout=1):
        assert len(registry) == 1
    gc.collect()
    assert len(registry) == 0


def test_claims_of_released_booking_do_not_block(db, showtime):
    old = commit_reservation(db, showtime.id, seats("D1", "D2"), idempotency_key=key())
    old_id = old.id
    # Released through storage; no engine path leaves the live statuses
    old.status = "cancelled"
    db.commit()

    booking = commit_reservation(db, showtime.id, seats("D1"), idempotency_key=key())

    assert booking.status == "pending_payment"
    assert occupied_seats(db, showtime.id) == set(seats("D1"))
    left = db.query(BookingSeat).filter(BookingSeat.booking_id == old_id).all()
    assert [(c.row_label, c.seat_number) for c in left] == [("D", 2)]


def test_storage_failure_is_transient(db, showtime, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("INSERT INTO bookings", {}, Exception("disk I/O error"))

    monkeypatch.setattr(reservations, "insert_reservation", broken)
    with pytest.raises(TransientStorageError):
        commit_reservation(db, showtime.id, seats("A1"), idempotency_key=key())


def test_mark_paid(db, showtime):
    booking = commit_reservation(db, showtime.id, seats("G1"), idempotency_key=key())
    paid = update_reservation_status(db, booking.id, "paid")

    assert paid.status == "paid"
    assert paid.paid_at is not None
    # paid bookings still hold their seats
    assert occupied_seats(db, showtime.id) == set(seats("G1"))
    # marking paid twice is a no-op
    assert update_reservation_status(db, booking.id, "paid").status == "paid"


def test_mark_paid_rejects_other_transitions(db, showtime):
    booking = commit_reservation(db, showtime.id, seats("G1"), idempotency_key=key())
    with pytest.raises(SeatValidationError):
        update_reservation_status(db, booking.id, "pending_payment")
    with pytest.raises(BookingNotFoundError):
        update_reservation_status(db, uuid.uuid4(), "paid")


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


def _attempt(session_factory, showtime_id, requested, barrier):
    db = session_factory()
    try:
        barrier.wait()
        return commit_reservation(db, showtime_id, requested, idempotency_key=key()).id
    except SeatConflictError as e:
        return e
    finally:
        db.close()


def test_concurrent_distinct_seats_all_succeed(session_factory, showtime):
    n = 12
    barrier = threading.Barrier(n)
    with ThreadPoolExecutor(max_workers=n) as pool:
        futures = [
            pool.submit(_attempt, session_factory, showtime.id, [SeatRef(row="E", number=i)], barrier)
            for i in range(1, n + 1)
        ]
        results = [f.result() for f in futures]

    assert not any(isinstance(r, SeatConflictError) for r in results)
    db = session_factory()
    try:
        assert len(occupied_seats(db, showtime.id)) == n
    finally:
        db.close()


def test_concurrent_same_seat_exactly_one_wins(session_factory, showtime):
    n = 8
    barrier = threading.Barrier(n)
    with ThreadPoolExecutor(max_workers=n) as pool:
        futures = [
            pool.submit(_attempt, session_factory, showtime.id, seats("H7", f"J{i}"), barrier)
            for i in range(1, n + 1)
        ]
        results = [f.result() for f in futures]

    conflicts = [r for r in results if isinstance(r, SeatConflictError)]
    assert len(results) - len(conflicts) == 1
    assert all(c.seats == seats("H7") for c in conflicts)

    db = session_factory()
    try:
        claimed = []
        for booking in db.query(Booking).all():
            claimed.extend(parse_seat_entries(booking.seats))
        # no seat in two live bookings
        assert len(claimed) == len(set(claimed)) == 2
    finally:
        db.close()
