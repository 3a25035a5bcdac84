
import re
from typing import Annotated, List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator
from decimal import Decimal
from uuid import UUID

_LABEL_RE = re.compile(r"^([A-Za-z]+)(\d+)$")
# Row labels must fit booking_seats.row_label and parse back out of a seat label
_ROW_LABEL_RE = re.compile(r"^[A-Z]{1,5}$")


# Seat identity: (row label, seat number). Hashable so it can live in sets
class SeatRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    row: Annotated[str, Field(min_length=1, max_length=5, pattern=r"^[A-Za-z]+$")]
    number: Annotated[int, Field(ge=1)]

    @property
    def label(self) -> str:
        return f"{self.row}{self.number}"

    @classmethod
    def from_label(cls, label: str) -> "SeatRef":
        """Parse 'A12' into SeatRef(row='A', number=12)."""
        match = _LABEL_RE.match(label.strip())
        if not match:
            raise ValueError(f"Invalid seat label: {label!r}")
        return cls(row=match.group(1).upper(), number=int(match.group(2)))


# --- Layout ---

class LayoutConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    row_labels: Annotated[tuple[str, ...], Field(min_length=1)]
    seats_per_row: Annotated[int, Field(ge=1)]
    lower_tier_rows: Annotated[int, Field(ge=0)] = 2
    lower_tier_price: Decimal = Decimal("70")
    upper_tier_price: Decimal = Decimal("150")

    @field_validator("row_labels")
    @classmethod
    def check_row_labels(cls, v):
        bad = [label for label in v if not _ROW_LABEL_RE.match(label)]
        if bad:
            raise ValueError(f"row labels must be 1 to 5 uppercase letters, got {bad[0]!r}")
        if len(set(v)) != len(v):
            raise ValueError("row labels must be unique")
        return v


class LayoutSeat(BaseModel):
    model_config = ConfigDict(frozen=True)

    row: str
    number: int
    tier: str
    price: Decimal

    @property
    def ref(self) -> SeatRef:
        return SeatRef(row=self.row, number=self.number)


class LayoutRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    tier: str
    price: Decimal
    seats: tuple[LayoutSeat, ...]


class AuditoriumLayout(BaseModel):
    model_config = ConfigDict(frozen=True)

    config: LayoutConfig
    rows: tuple[LayoutRow, ...]

    def row(self, label: str) -> Optional[LayoutRow]:
        for row in self.rows:
            if row.label == label:
                return row
        return None

    def contains(self, seat: SeatRef) -> bool:
        row = self.row(seat.row)
        return row is not None and 1 <= seat.number <= len(row.seats)

    def row_index(self, label: str) -> int:
        return self.config.row_labels.index(label)


# --- Seat Map (user-facing) ---

class SeatStatus(BaseModel):
    number: int
    label: str
    status: Literal["available", "selected", "occupied"]


class SeatRow(BaseModel):
    label: str
    tier: str
    price: Decimal
    seats: List[SeatStatus]


class SeatMapResponse(BaseModel):
    showtime_id: UUID
    selection_mode: str
    max_seats: int
    rows: List[SeatRow]
    occupied_count: int
    available_count: int


# --- Selection session (client-carried) ---

class SelectionSession(BaseModel):
    target_count: Annotated[int, Field(ge=1)] = 1
    selected: List[SeatRef] = []
    total: Decimal = Decimal("0")


class SelectionOutcome(BaseModel):
    session: SelectionSession
    accepted: bool
    reason: Optional[str] = None  # occupied, block_unavailable


class SelectionState(BaseModel):
    session: SelectionSession
    labels: List[str]
    remaining: int
    occupied_in_selection: List[str] = []


class SeatClickRequest(BaseModel):
    session: SelectionSession
    seat: SeatRef


class SeatClickResponse(BaseModel):
    accepted: bool
    reason: Optional[str] = None
    state: SelectionState


class SeatCountRequest(BaseModel):
    session: SelectionSession
    count: int


class SelectionStartRequest(BaseModel):
    count: int = 1
