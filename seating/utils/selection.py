"""
Selection validator: applies seat clicks and seat-count changes to a
client-carried selection session.

Two overflow policies exist and a deployment runs exactly one of them
(settings.SELECTION_MODE):

  fifo        clicking a new seat when the selection is full evicts the
              earliest selected seat; no contiguity requirement.
  contiguous  clicking an unselected seat selects the block of
              `target_count` seats starting at that seat and running toward
              higher numbers in the same row; the click is rejected if the
              block would leave the row or cross an occupied seat.

Sessions are never mutated in place; every operation returns a new one.
"""
from typing import Iterable, List, Optional, Set

from seating.core.config import settings
from seating.core.exceptions import SeatValidationError
from seating.schemas.seat import (
    AuditoriumLayout,
    SeatRef,
    SelectionOutcome,
    SelectionSession,
    SelectionState,
)
from seating.utils.pricing import total

MODE_FIFO = "fifo"
MODE_CONTIGUOUS = "contiguous"
SELECTION_MODES = (MODE_FIFO, MODE_CONTIGUOUS)

REASON_OCCUPIED = "occupied"
REASON_BLOCK_UNAVAILABLE = "block_unavailable"


def _max_seats(max_seats: Optional[int]) -> int:
    return max_seats if max_seats is not None else settings.MAX_SEATS_PER_BOOKING


def _check_count(count: int, max_seats: int) -> None:
    if not 1 <= count <= max_seats:
        raise SeatValidationError(f"Seat count must be between 1 and {max_seats}, got {count}")


def _with_selection(
    session: SelectionSession, selected: List[SeatRef], layout: AuditoriumLayout, **changes
) -> SelectionSession:
    return session.model_copy(
        update={"selected": selected, "total": total(selected, layout.config), **changes}
    )


def check_session(session: SelectionSession, layout: AuditoriumLayout, max_seats: Optional[int] = None) -> None:
    """Reject a carried session that could not have been produced by this engine."""
    _check_count(session.target_count, _max_seats(max_seats))
    if len(session.selected) > session.target_count:
        raise SeatValidationError("Selection is larger than the seat count")
    if len(set(session.selected)) != len(session.selected):
        raise SeatValidationError("Selection contains duplicate seats")
    for seat in session.selected:
        if not layout.contains(seat):
            raise SeatValidationError(f"Seat {seat.label} is not part of this auditorium")


def new_session(count: int = 1, max_seats: Optional[int] = None) -> SelectionSession:
    _check_count(count, _max_seats(max_seats))
    return SelectionSession(target_count=count)


def _contiguous_block(
    anchor: SeatRef, count: int, layout: AuditoriumLayout, occupied: Set[SeatRef]
) -> Optional[List[SeatRef]]:
    last = anchor.number + count - 1
    if last > layout.config.seats_per_row:
        return None
    block = [SeatRef(row=anchor.row, number=n) for n in range(anchor.number, last + 1)]
    if any(seat in occupied for seat in block):
        return None
    return block


def apply_seat_click(
    session: SelectionSession,
    seat: SeatRef,
    layout: AuditoriumLayout,
    occupied: Set[SeatRef],
    mode: Optional[str] = None,
    max_seats: Optional[int] = None,
) -> SelectionOutcome:
    mode = mode or settings.SELECTION_MODE
    if mode not in SELECTION_MODES:
        raise SeatValidationError(f"Unknown selection mode: {mode}")
    check_session(session, layout, max_seats)
    if not layout.contains(seat):
        raise SeatValidationError(f"Seat {seat.label} is not part of this auditorium")

    # Taken seats are inert
    if seat in occupied:
        return SelectionOutcome(session=session, accepted=False, reason=REASON_OCCUPIED)

    # Toggle out
    if seat in session.selected:
        remaining = [s for s in session.selected if s != seat]
        return SelectionOutcome(session=_with_selection(session, remaining, layout), accepted=True)

    if mode == MODE_CONTIGUOUS:
        block = _contiguous_block(seat, session.target_count, layout, occupied)
        if block is None:
            return SelectionOutcome(session=session, accepted=False, reason=REASON_BLOCK_UNAVAILABLE)
        return SelectionOutcome(session=_with_selection(session, block, layout), accepted=True)

    selected = list(session.selected)
    if len(selected) >= session.target_count:
        selected = selected[len(selected) - session.target_count + 1:]
    selected.append(seat)
    return SelectionOutcome(session=_with_selection(session, selected, layout), accepted=True)


def set_seat_count(
    session: SelectionSession,
    count: int,
    layout: AuditoriumLayout,
    max_seats: Optional[int] = None,
) -> SelectionSession:
    """Change the target count; a smaller bound trims the selection from the end."""
    check_session(session, layout, max_seats)
    _check_count(count, _max_seats(max_seats))
    selected = list(session.selected[:count])
    return _with_selection(session, selected, layout, target_count=count)


def sort_key(seat: SeatRef, layout: AuditoriumLayout):
    return (layout.row_index(seat.row), seat.number)


def get_selection_state(
    session: SelectionSession,
    layout: AuditoriumLayout,
    occupied: Iterable[SeatRef] = (),
    max_seats: Optional[int] = None,
) -> SelectionState:
    """
    Recompute the authoritative view of a session: total from the pricing
    rules, display labels in seat-map order, and any selected seats that a
    newer booking has since taken.
    """
    check_session(session, layout, max_seats)
    occupied = set(occupied)
    fresh = _with_selection(session, list(session.selected), layout)
    ordered = sorted(fresh.selected, key=lambda s: sort_key(s, layout))
    return SelectionState(
        session=fresh,
        labels=[s.label for s in ordered],
        remaining=fresh.target_count - len(fresh.selected),
        occupied_in_selection=[s.label for s in ordered if s in occupied],
    )
