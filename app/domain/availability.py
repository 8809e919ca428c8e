"""
Availability engine for room bookings.

A stay occupies the nights [check_in, check_out): the guest leaves on the
morning of check_out, so a new stay may start that same day. Conflict checks
use that half-open rule. The booked-day set used for calendar highlighting
walks check_in..check_out inclusive unless told otherwise.
"""
import datetime
import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from app.domain.errors import BookingValidationError

logger = logging.getLogger(__name__)

ONE_DAY = datetime.timedelta(days=1)


@dataclass(frozen=True, order=True)
class DateRange:
    check_in: datetime.date
    check_out: datetime.date

    def __post_init__(self):
        if self.check_out <= self.check_in:
            raise BookingValidationError(
                f"check_out {self.check_out} must be after check_in {self.check_in}"
            )

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    def to_dict(self) -> dict:
        return {
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
        }


def parse_day(value) -> datetime.date:
    """Accepts a date, a datetime or an ISO string ("2025-02-01", "2025-02-01T00:00:00Z")"""
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str) and len(value) >= 10:
        try:
            return datetime.date.fromisoformat(value[:10])
        except ValueError:
            pass
    raise BookingValidationError(f"Invalid calendar date: {value!r}")


def parse_range(raw: Mapping) -> DateRange:
    """Build a DateRange from the API shape {"check_in": ..., "check_out": ...}"""
    try:
        check_in, check_out = raw["check_in"], raw["check_out"]
    except KeyError as e:
        raise BookingValidationError(f"Range is missing {e.args[0]}") from e
    return DateRange(parse_day(check_in), parse_day(check_out))


def parse_ranges(raw_list: Optional[Iterable[Mapping]]) -> list[DateRange]:
    """Parse stays coming from the API, skipping malformed or zero-night entries"""
    ranges = []
    for raw in raw_list or []:
        try:
            ranges.append(parse_range(raw))
        except BookingValidationError as e:
            logger.warning(f"Skipping invalid booked range {raw!r}: {e}")
    return ranges


def booked_day_set(
    existing_ranges: Iterable[DateRange],
    include_check_out: bool = True,
) -> frozenset[datetime.date]:
    """
    Calendar days covered by any existing stay.

    Display only: with include_check_out=True (current behavior) the check-out
    day is marked as well, even though has_conflict() treats it as free.
    """
    days: set[datetime.date] = set()
    for r in existing_ranges:
        day = r.check_in
        end = r.check_out if include_check_out else r.check_out - ONE_DAY
        while day <= end:
            days.add(day)
            day += ONE_DAY
    return frozenset(days)


def ranges_overlap(
    start: datetime.date,
    end: datetime.date,
    other_start: datetime.date,
    other_end: datetime.date,
) -> bool:
    # Half-open: adjacent stays (end == other_start) do not overlap
    return not (end <= other_start or start >= other_end)


def conflicting_ranges(
    check_in: datetime.date,
    check_out: datetime.date,
    existing_ranges: Iterable[DateRange],
) -> list[DateRange]:
    return [
        r
        for r in existing_ranges
        if ranges_overlap(check_in, check_out, r.check_in, r.check_out)
    ]


def has_conflict(
    check_in: datetime.date,
    check_out: datetime.date,
    existing_ranges: Iterable[DateRange],
) -> bool:
    """
    True if [check_in, check_out) intersects any existing stay.
    The caller guarantees check_out > check_in.
    """
    return any(
        ranges_overlap(check_in, check_out, r.check_in, r.check_out)
        for r in existing_ranges
    )


def check_in_floor(today: Optional[datetime.date] = None) -> datetime.date:
    return today or datetime.date.today()


def check_out_floor(
    check_in: Optional[datetime.date],
    today: Optional[datetime.date] = None,
) -> datetime.date:
    """Earliest selectable check-out: the day after check-in, or today."""
    if check_in is not None:
        return check_in + ONE_DAY
    return today or datetime.date.today()


def compute_nights(check_in, check_out) -> int:
    if check_in is None or check_out is None or check_out <= check_in:
        return 0
    delta = check_out - check_in
    return math.ceil(delta / ONE_DAY)


def compute_total_price(nights: int, price_per_night) -> Decimal:
    price = Decimal(str(price_per_night))
    if price < 0:
        raise BookingValidationError(f"Negative price per night: {price}")
    if nights <= 0:
        return Decimal("0")
    return price * nights


def excluded_intervals(
    existing_ranges: Iterable[DateRange],
) -> list[tuple[datetime.date, datetime.date]]:
    """Closed (start, end) intervals greyed out in the date pickers"""
    return [(r.check_in, r.check_out) for r in sorted(existing_ranges)]


def merge_ranges(
    existing: Iterable[DateRange], incoming: Iterable[DateRange]
) -> tuple[DateRange, ...]:
    merged: list[DateRange] = []
    seen: set[DateRange] = set()
    for r in [*existing, *incoming]:
        if r not in seen:
            seen.add(r)
            merged.append(r)
    return tuple(merged)
