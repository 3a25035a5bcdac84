
from seating.schemas.common import ErrorResponse, SeatsUnavailableError
from seating.schemas.seat import (
    SeatRef, LayoutConfig, LayoutSeat, LayoutRow, AuditoriumLayout,
    SeatStatus, SeatRow, SeatMapResponse,
    SelectionSession, SelectionOutcome, SelectionState,
    SeatClickRequest, SeatClickResponse, SeatCountRequest, SelectionStartRequest,
)
from seating.schemas.showtime import Showtime, ShowtimeCreate
from seating.schemas.booking import Booking, BookingCreate, BookingSeatResponse, BookingStatusUpdate
