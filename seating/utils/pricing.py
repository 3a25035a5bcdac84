from decimal import Decimal
from typing import Iterable

from seating.schemas.seat import LayoutConfig, SeatRef

ECONOMY = "economy"
PREMIUM = "premium"


def seat_tier(row_label: str, config: LayoutConfig) -> str:
    """Tier is a pure function of the row: the first `lower_tier_rows` rows are economy."""
    if config.row_labels.index(row_label) < config.lower_tier_rows:
        return ECONOMY
    return PREMIUM


def tier_price(tier: str, config: LayoutConfig) -> Decimal:
    if tier == ECONOMY:
        return Decimal(config.lower_tier_price)
    return Decimal(config.upper_tier_price)


def price(seat: SeatRef, config: LayoutConfig) -> Decimal:
    return tier_price(seat_tier(seat.row, config), config)


def total(seats: Iterable[SeatRef], config: LayoutConfig) -> Decimal:
    """
    Exact sum of seat prices. Decimal throughout so repeated additions
    never drift; the empty set totals 0.
    """
    return sum((price(seat, config) for seat in seats), Decimal("0"))
