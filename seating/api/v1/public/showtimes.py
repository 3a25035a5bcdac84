from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from seating.api.deps import http_error
from seating.core.config import settings
from seating.core.exceptions import ReservationError
from seating.db.session import get_db
from seating.schemas.seat import (
    SeatClickRequest,
    SeatClickResponse,
    SeatCountRequest,
    SeatMapResponse,
    SelectionSession,
    SelectionStartRequest,
    SelectionState,
)
from seating.schemas.showtime import Showtime as ShowtimeSchema
from seating.utils.ledger import occupied_seats
from seating.utils.reservations import get_showtime
from seating.utils.seat_map import generate_layout, layout_config_for, seat_status_rows
from seating.utils.selection import (
    apply_seat_click,
    get_selection_state,
    new_session,
    set_seat_count,
)

router = APIRouter(prefix="/showtimes", tags=["Showtimes"])


def _layout_and_occupancy(db: Session, showtime_id: UUID):
    showtime = get_showtime(db, showtime_id)
    layout = generate_layout(layout_config_for(showtime))
    return showtime, layout, occupied_seats(db, showtime.id)


# ---------------------------------------------------------------------------
# Showtime detail + seat map
# ---------------------------------------------------------------------------


@router.get("/{showtime_id}", response_model=ShowtimeSchema)
def get_showtime_detail(showtime_id: UUID, db: Session = Depends(get_db)):
    try:
        return get_showtime(db, showtime_id)
    except ReservationError as e:
        raise http_error(e)


@router.get("/{showtime_id}/seat-map", response_model=SeatMapResponse)
def get_seat_map(showtime_id: UUID, db: Session = Depends(get_db)):
    """
    Seat map for a showtime, grouped by row. The layout is regenerated from
    the showtime's configuration and overlaid with current occupancy.
    Anyone can view availability.
    """
    try:
        showtime, layout, occupied = _layout_and_occupancy(db, showtime_id)
    except ReservationError as e:
        raise http_error(e)

    capacity = len(layout.config.row_labels) * layout.config.seats_per_row
    return SeatMapResponse(
        showtime_id=showtime.id,
        selection_mode=settings.SELECTION_MODE,
        max_seats=settings.MAX_SEATS_PER_BOOKING,
        rows=seat_status_rows(layout, occupied),
        occupied_count=len(occupied),
        available_count=capacity - len(occupied),
    )


# ---------------------------------------------------------------------------
# Selection: the session travels with every request, nothing is held
# ---------------------------------------------------------------------------


@router.post("/{showtime_id}/selection", response_model=SelectionState)
def start_selection(showtime_id: UUID, body: SelectionStartRequest, db: Session = Depends(get_db)):
    try:
        _, layout, occupied = _layout_and_occupancy(db, showtime_id)
        return get_selection_state(new_session(body.count), layout, occupied)
    except ReservationError as e:
        raise http_error(e)


@router.post("/{showtime_id}/selection/click", response_model=SeatClickResponse)
def click_seat(showtime_id: UUID, body: SeatClickRequest, db: Session = Depends(get_db)):
    """Apply one seat click. Clicking a taken seat is a no-op (`accepted` false)."""
    try:
        _, layout, occupied = _layout_and_occupancy(db, showtime_id)
        outcome = apply_seat_click(body.session, body.seat, layout, occupied)
        state = get_selection_state(outcome.session, layout, occupied)
    except ReservationError as e:
        raise http_error(e)
    return SeatClickResponse(accepted=outcome.accepted, reason=outcome.reason, state=state)


@router.post("/{showtime_id}/selection/seat-count", response_model=SelectionState)
def change_seat_count(showtime_id: UUID, body: SeatCountRequest, db: Session = Depends(get_db)):
    try:
        _, layout, occupied = _layout_and_occupancy(db, showtime_id)
        session = set_seat_count(body.session, body.count, layout)
        return get_selection_state(session, layout, occupied)
    except ReservationError as e:
        raise http_error(e)


@router.post("/{showtime_id}/selection/state", response_model=SelectionState)
def selection_state(showtime_id: UUID, body: SelectionSession, db: Session = Depends(get_db)):
    """Recompute totals and flag selected seats that have since been booked."""
    try:
        _, layout, occupied = _layout_and_occupancy(db, showtime_id)
        return get_selection_state(body, layout, occupied)
    except ReservationError as e:
        raise http_error(e)
