from sqlalchemy import inspect
from sqlalchemy.orm import configure_mappers

from seating.db.base import Base


def test_orm_mappings_are_valid():
    configure_mappers()
    assert {"showtimes", "bookings", "booking_seats"} <= set(Base.metadata.tables)


def test_seat_claims_unique_per_showtime(engine):
    constraints = inspect(engine).get_unique_constraints("booking_seats")
    columns = [tuple(c["column_names"]) for c in constraints]
    assert ("showtime_id", "row_label", "seat_number") in columns


def test_idempotency_key_is_unique(engine):
    indexes = inspect(engine).get_unique_constraints("bookings")
    assert any(c["column_names"] == ["idempotency_key"] for c in indexes)
