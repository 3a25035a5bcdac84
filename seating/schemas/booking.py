
from typing import Annotated, Optional, List, Literal
from pydantic import BaseModel, Field
from decimal import Decimal
from datetime import datetime
from uuid import UUID

from seating.schemas.seat import SeatRef


# Booking create (POST /bookings)
class BookingCreate(BaseModel):
    showtime_id: UUID
    seats: Annotated[List[SeatRef], Field(min_length=1)]
    idempotency_key: Annotated[str, Field(min_length=8, max_length=64)]
    user_id: Optional[str] = None


class BookingSeatResponse(BaseModel):
    row: str
    number: int
    label: str


# Booking full response (POST /bookings, GET /bookings/{id})
class Booking(BaseModel):
    id: UUID
    booking_number: str
    showtime_id: UUID
    seats: List[BookingSeatResponse]
    total_amount: Decimal
    status: str
    user_id: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Payment confirmation (PATCH /bookings/{id}/status)
class BookingStatusUpdate(BaseModel):
    status: Literal["paid"]
