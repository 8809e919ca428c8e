import calendar
import datetime
from dataclasses import dataclass, field
from typing import Iterable

from app.domain.availability import (
    DateRange,
    booked_day_set,
    check_in_floor,
    check_out_floor,
)


def get_month_dates(year: int, month: int) -> list[datetime.date]:
    _, days_in_month = calendar.monthrange(year, month)
    return [
        datetime.date(year, month, day)
        for day in range(1, days_in_month + 1)
    ]


@dataclass
class DayCell:
    date: datetime.date
    booked: bool
    is_today: bool
    selectable_check_in: bool
    selectable_check_out: bool


@dataclass
class MonthView:
    year: int
    month: int
    # Weeks start on Monday; None pads the first and last week
    weeks: list[list[DayCell | None]] = field(default_factory=list)
    prev_month: tuple[int, int] = (0, 0)
    next_month: tuple[int, int] = (0, 0)


def build_month_view(
    year: int,
    month: int,
    existing_ranges: Iterable[DateRange],
    check_in: datetime.date | None = None,
    today: datetime.date | None = None,
    include_check_out: bool = True,
) -> MonthView:
    today = today or datetime.date.today()
    ranges = list(existing_ranges)
    booked = booked_day_set(ranges, include_check_out=include_check_out)
    min_check_in = check_in_floor(today)
    min_check_out = check_out_floor(check_in, today)

    view = MonthView(year=year, month=month)

    row: list[DayCell | None] = []
    first_weekday, _ = calendar.monthrange(year, month)
    row.extend([None] * first_weekday)

    for date in get_month_dates(year, month):
        # Date pickers grey out booked days for both ends of the stay
        is_booked = date in booked
        row.append(
            DayCell(
                date=date,
                booked=is_booked,
                is_today=date == today,
                selectable_check_in=date >= min_check_in and not is_booked,
                selectable_check_out=date >= min_check_out and not is_booked,
            )
        )
        if len(row) == 7:
            view.weeks.append(row)
            row = []

    if row:
        # Pad the last week
        while len(row) < 7:
            row.append(None)
        view.weeks.append(row)

    view.prev_month = shift_month(year, month, -1)
    view.next_month = shift_month(year, month, 1)

    return view


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    # Plain arithmetic: date objects overflow past December 9999
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1
