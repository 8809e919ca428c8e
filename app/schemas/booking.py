from datetime import date
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, field_validator

from app.domain.availability import parse_day
from app.domain.proposal import ProposalState
from app.schemas.room import BookedRange


class DateSelection(BaseModel):
    check_in: Optional[date] = None
    check_out: Optional[date] = None


class QuoteOut(BaseModel):
    room_id: int
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    check_out_floor: date
    nights: int
    price_per_night: Decimal
    total_price: Decimal
    conflict: bool
    conflicts: list[BookedRange] = []


class BookingResultOut(BaseModel):
    room_id: int
    state: ProposalState
    booking_id: Optional[int] = None
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    nights: int = 0
    total_price: Decimal = Decimal("0")
    message: str = ""


class BookingErrorOut(BaseModel):
    error: str
    reason: Optional[str] = None
    message: str
    conflicts: list[BookedRange] = []
    details: list[str] = []


class RoomSummary(BaseModel):
    title: str
    image: Optional[str] = None
    type: Optional[str] = None


class BookingHistoryItem(BaseModel):
    """One row of GET /api/booking/history"""

    id: int
    check_in: date
    check_out: date
    nights: int = 0
    total_price: Decimal = Decimal("0")
    status: str = "pending"
    room: Optional[RoomSummary] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def truncate_to_day(cls, v):
        # The API may send full ISO timestamps
        return parse_day(v)
