from datetime import date
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, SkipValidation, field_validator

from app.domain.availability import DateRange, parse_ranges


class BookedRange(BaseModel):
    check_in: date
    check_out: date

    @classmethod
    def from_range(cls, r: DateRange) -> "BookedRange":
        return cls(check_in=r.check_in, check_out=r.check_out)


class RoomBase(BaseModel):
    id: int
    title: str
    type: Optional[str] = None
    # Arrives as a numeric string ("1500")
    price: Decimal = Decimal("0")
    image: Optional[str] = None
    description: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("price")
    @classmethod
    def validate_price(cls, v: Decimal):
        if v < 0:
            raise ValueError("price must not be negative")
        return v


class RoomOut(RoomBase):
    pass


class Room(RoomBase):
    """Room record as returned by GET /api/rooms/{id}"""

    # Parsed by parse_bookings; DateRange enforces its own invariant
    bookings: SkipValidation[list[DateRange]] = Field(default_factory=list)

    @field_validator("bookings", mode="before")
    @classmethod
    def parse_bookings(cls, v):
        if v and all(isinstance(item, DateRange) for item in v):
            return list(v)
        return parse_ranges(v)


class RoomDetailOut(BaseModel):
    room: RoomOut
    bookings: list[BookedRange]
    booked_days: list[date]
    excluded_intervals: list[BookedRange]
    check_in_floor: date


class DayCellOut(BaseModel):
    date: date
    booked: bool
    is_today: bool
    selectable_check_in: bool
    selectable_check_out: bool

    model_config = ConfigDict(from_attributes=True)


class CalendarOut(BaseModel):
    room_id: int
    year: int
    month: int
    weeks: list[list[Optional[DayCellOut]]]
    prev_month: str
    next_month: str
