
import uuid
from sqlalchemy import Column, String, Boolean, Date, Time, Integer, DECIMAL, JSON, Uuid, DateTime, func
from sqlalchemy.orm import relationship
from seating.db.session import Base

class Showtime(Base):
    __tablename__ = "showtimes"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    movie_title = Column(String(200), nullable=False)
    theater_name = Column(String(200), nullable=False)
    screen = Column(String(20), nullable=True)
    show_date = Column(Date, nullable=False, index=True)
    show_time = Column(Time, nullable=False)
    payment_enabled = Column(Boolean, default=True)  # False → booking is marked paid on commit

    # Auditorium layout, regenerated on every seat-map view, never stored seat by seat
    row_labels = Column(JSON, nullable=False)
    seats_per_row = Column(Integer, nullable=False)
    lower_tier_rows = Column(Integer, nullable=False)
    lower_tier_price = Column(DECIMAL(10, 2), nullable=False)
    upper_tier_price = Column(DECIMAL(10, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    bookings = relationship("Booking", back_populates="showtime")
