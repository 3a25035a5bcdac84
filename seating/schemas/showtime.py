
from typing import Annotated, Optional, List
from pydantic import BaseModel, Field
from decimal import Decimal
from datetime import date, time, datetime
from uuid import UUID


class ShowtimeBase(BaseModel):
    movie_title: str
    theater_name: str
    screen: Optional[str] = None
    show_date: date
    show_time: time
    payment_enabled: bool = True


# Layout fields fall back to settings when omitted; they are checked as a LayoutConfig
class ShowtimeCreate(ShowtimeBase):
    row_labels: Optional[Annotated[List[str], Field(min_length=1)]] = None
    seats_per_row: Optional[Annotated[int, Field(ge=1, le=100)]] = None
    lower_tier_rows: Optional[Annotated[int, Field(ge=0)]] = None
    lower_tier_price: Optional[Decimal] = None
    upper_tier_price: Optional[Decimal] = None


class Showtime(ShowtimeBase):
    id: UUID
    row_labels: List[str]
    seats_per_row: int
    lower_tier_rows: int
    lower_tier_price: Decimal
    upper_tier_price: Decimal
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
