
import uuid
from sqlalchemy import Column, String, DateTime, func, DECIMAL, Integer, ForeignKey, JSON, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
from seating.db.session import Base

# Statuses that hold seats
BOOKING_PENDING_PAYMENT = "pending_payment"
BOOKING_PAID = "paid"
LIVE_BOOKING_STATUSES = (BOOKING_PENDING_PAYMENT, BOOKING_PAID)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    showtime_id = Column(Uuid(as_uuid=True), ForeignKey("showtimes.id"), nullable=False, index=True)
    booking_number = Column(String(20), unique=True, nullable=False, index=True)
    seats = Column(JSON, nullable=False)  # [{"row": "A", "number": 1}, ...]
    total_amount = Column(DECIMAL(10, 2), nullable=False)
    status = Column(String(20), default=BOOKING_PENDING_PAYMENT, index=True)
    user_id = Column(String(64), nullable=True, index=True)  # anonymous bookings allowed
    idempotency_key = Column(String(64), unique=True, nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    showtime = relationship("Showtime", back_populates="bookings")
    seat_claims = relationship("BookingSeat", back_populates="booking", cascade="all, delete-orphan")


class BookingSeat(Base):
    __tablename__ = "booking_seats"
    __table_args__ = (
        # Storage-level guard: one claim per seat per showtime
        UniqueConstraint("showtime_id", "row_label", "seat_number", name="uq_booking_seat_per_showtime"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(Uuid(as_uuid=True), ForeignKey("bookings.id"), nullable=False, index=True)
    showtime_id = Column(Uuid(as_uuid=True), ForeignKey("showtimes.id"), nullable=False)
    row_label = Column(String(5), nullable=False)
    seat_number = Column(Integer, nullable=False)

    booking = relationship("Booking", back_populates="seat_claims")
