from typing import Iterable, Set

from seating.core.config import settings
from seating.models.showtime import Showtime
from seating.schemas.seat import (
    AuditoriumLayout,
    LayoutConfig,
    LayoutRow,
    LayoutSeat,
    SeatRef,
    SeatRow,
    SeatStatus,
)
from seating.utils.pricing import seat_tier, tier_price


def default_layout_config() -> LayoutConfig:
    return LayoutConfig(
        row_labels=tuple(settings.DEFAULT_ROW_LABELS),
        seats_per_row=settings.DEFAULT_SEATS_PER_ROW,
        lower_tier_rows=settings.DEFAULT_LOWER_TIER_ROWS,
        lower_tier_price=settings.LOWER_TIER_PRICE,
        upper_tier_price=settings.UPPER_TIER_PRICE,
    )


def layout_config_for(showtime: Showtime) -> LayoutConfig:
    """Build the layout configuration stored on a showtime row."""
    return LayoutConfig(
        row_labels=tuple(showtime.row_labels),
        seats_per_row=showtime.seats_per_row,
        lower_tier_rows=showtime.lower_tier_rows,
        lower_tier_price=showtime.lower_tier_price,
        upper_tier_price=showtime.upper_tier_price,
    )


def generate_layout(config: LayoutConfig) -> AuditoriumLayout:
    """
    Produce the seat layout for an auditorium configuration.

    Pure and deterministic: the same configuration always yields an equal
    layout, so the map can be regenerated after every ledger refresh.
    """
    rows = []
    for label in config.row_labels:
        tier = seat_tier(label, config)
        price = tier_price(tier, config)
        seats = tuple(
            LayoutSeat(row=label, number=n, tier=tier, price=price)
            for n in range(1, config.seats_per_row + 1)
        )
        rows.append(LayoutRow(label=label, tier=tier, price=price, seats=seats))
    return AuditoriumLayout(config=config, rows=tuple(rows))


def seat_status_rows(
    layout: AuditoriumLayout,
    occupied: Set[SeatRef],
    selected: Iterable[SeatRef] = (),
) -> list[SeatRow]:
    """Overlay occupancy and a session's selection on the layout for display."""
    selected = set(selected)
    out = []
    for row in layout.rows:
        statuses = []
        for seat in row.seats:
            ref = seat.ref
            if ref in occupied:
                status = "occupied"
            elif ref in selected:
                status = "selected"
            else:
                status = "available"
            statuses.append(SeatStatus(number=seat.number, label=ref.label, status=status))
        out.append(SeatRow(label=row.label, tier=row.tier, price=row.price, seats=statuses))
    return out
