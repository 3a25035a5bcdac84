import logging
import uuid
from decimal import Decimal

import pytest

from seating.core.exceptions import DataIntegrityWarning
from seating.models.booking import Booking
from seating.schemas.seat import SeatRef
from seating.utils.ledger import occupied_seats, parse_seat_entries


def add_booking(db, showtime, seats, status="pending_payment"):
    booking = Booking(
        showtime_id=showtime.id,
        booking_number=f"FC-{uuid.uuid4().hex[:8].upper()}",
        seats=seats,
        total_amount=Decimal("0"),
        status=status,
        idempotency_key=uuid.uuid4().hex,
    )
    db.add(booking)
    db.commit()
    return booking


def test_union_of_live_bookings(db, showtime):
    add_booking(db, showtime, [{"row": "A", "number": 1}, {"row": "A", "number": 2}])
    add_booking(db, showtime, [{"row": "C", "number": 5}], status="paid")
    add_booking(db, showtime, [{"row": "D", "number": 1}], status="cancelled")

    assert occupied_seats(db, showtime.id) == {
        SeatRef(row="A", number=1),
        SeatRef(row="A", number=2),
        SeatRef(row="C", number=5),
    }


def test_json_string_seats_accepted(db, showtime):
    add_booking(db, showtime, '[{"row": "B", "number": 3}]')
    assert occupied_seats(db, showtime.id) == {SeatRef(row="B", number=3)}


@pytest.mark.parametrize(
    "corrupt",
    [
        "not json at all",
        {"row": "A", "number": 1},
        [],
        [{"row": "A"}],
        [{"row": "A", "number": "seven"}],
        [{"row": "", "number": 1}],
        ["A1"],
        [{"row": "A", "number": 4}, {"row": "A", "number": 4}],
    ],
)
def test_corrupt_record_skipped_and_logged(db, showtime, caplog, corrupt):
    add_booking(db, showtime, [{"row": "E", "number": 9}])
    bad = add_booking(db, showtime, corrupt)

    with caplog.at_level(logging.WARNING, logger="seating.utils.ledger"):
        occupied = occupied_seats(db, showtime.id)

    assert occupied == {SeatRef(row="E", number=9)}
    assert "Data integrity" in caplog.text
    assert bad.booking_number in caplog.text


def test_other_showtimes_ignored(db, showtime):
    from conftest import make_showtime

    other = make_showtime(db)
    add_booking(db, other, [{"row": "A", "number": 1}])
    assert occupied_seats(db, showtime.id) == set()


def test_parse_rejects_boolean_number():
    with pytest.raises(DataIntegrityWarning):
        parse_seat_entries([{"row": "A", "number": True}])
