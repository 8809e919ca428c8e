import datetime
from typing import Optional

from fastapi import APIRouter, Query

from app.core.config import settings
from app.domain.availability import check_in_floor, excluded_intervals
from app.domain.calendar import build_month_view
from app.schemas.booking import DateSelection, QuoteOut
from app.schemas.room import (
    BookedRange,
    CalendarOut,
    DayCellOut,
    RoomDetailOut,
    RoomOut,
)
from app.services.booking_service import booking_service

router = APIRouter(prefix="/rooms", tags=["rooms"])


@router.get("", response_model=list[RoomOut])
async def list_rooms():
    rooms = await booking_service.list_rooms()
    return [RoomOut.model_validate(room.model_dump(exclude={"bookings"})) for room in rooms]


@router.get("/{room_id}", response_model=RoomDetailOut)
async def room_detail(room_id: int):
    """
    Room page data: the room, its stays and the days to grey out.
    """
    room = await booking_service.load_room(room_id)

    return RoomDetailOut(
        room=RoomOut.model_validate(room.model_dump(exclude={"bookings"})),
        bookings=[BookedRange.from_range(r) for r in room.bookings],
        booked_days=booking_service.booked_days(room),
        excluded_intervals=[
            BookedRange(check_in=start, check_out=end)
            for start, end in excluded_intervals(room.bookings)
        ],
        check_in_floor=check_in_floor(),
    )


@router.get("/{room_id}/calendar", response_model=CalendarOut)
async def room_calendar(
    room_id: int,
    year: Optional[int] = Query(default=None, ge=1970, le=9999),
    month: Optional[int] = Query(default=None, ge=1, le=12),
    check_in: Optional[datetime.date] = None,
):
    """Month grid for the date pickers"""
    today = datetime.date.today()
    room = await booking_service.load_room(room_id)

    view = build_month_view(
        year or today.year,
        month or today.month,
        room.bookings,
        check_in=check_in,
        today=today,
        include_check_out=settings.booked_days_include_checkout,
    )

    return CalendarOut(
        room_id=room.id,
        year=view.year,
        month=view.month,
        weeks=[
            [DayCellOut.model_validate(cell) if cell else None for cell in week]
            for week in view.weeks
        ],
        prev_month=f"{view.prev_month[0]}-{view.prev_month[1]}",
        next_month=f"{view.next_month[0]}-{view.next_month[1]}",
    )


@router.post("/{room_id}/quote", response_model=QuoteOut)
async def room_quote(room_id: int, selection: DateSelection):
    """Nights, total price and conflict flag for the selected dates"""
    room = await booking_service.load_room(room_id)
    quote = booking_service.quote(room, selection.check_in, selection.check_out)
    quote["conflicts"] = [BookedRange.from_range(r) for r in quote["conflicts"]]
    return QuoteOut(**quote)
