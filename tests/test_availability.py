"""
Unit tests for the availability engine
"""
import pytest
from datetime import date, datetime
from decimal import Decimal

from app.domain.availability import (
    DateRange,
    booked_day_set,
    check_out_floor,
    compute_nights,
    compute_total_price,
    conflicting_ranges,
    excluded_intervals,
    has_conflict,
    merge_ranges,
    parse_day,
    parse_range,
    parse_ranges,
    ranges_overlap,
)
from app.domain.errors import BookingValidationError


def stay(start: str, end: str) -> DateRange:
    return DateRange(date.fromisoformat(start), date.fromisoformat(end))


class TestDateRange:
    def test_zero_night_range_rejected(self):
        with pytest.raises(BookingValidationError):
            stay("2025-01-10", "2025-01-10")

    def test_inverted_range_rejected(self):
        with pytest.raises(BookingValidationError):
            stay("2025-01-13", "2025-01-10")

    def test_nights(self):
        assert stay("2025-01-10", "2025-01-13").nights == 3


class TestHasConflict:
    """Half-open overlap: the check-out day is free for the next guest"""

    def test_adjacent_ranges_no_conflict(self):
        existing = [stay("2025-01-12", "2025-01-15")]
        assert has_conflict(date(2025, 1, 10), date(2025, 1, 12), existing) is False

    def test_overlap_by_one_day(self):
        existing = [stay("2025-01-12", "2025-01-15")]
        assert has_conflict(date(2025, 1, 10), date(2025, 1, 13), existing) is True

    def test_check_in_on_existing_check_out_day(self):
        existing = [stay("2025-01-12", "2025-01-15")]
        assert has_conflict(date(2025, 1, 15), date(2025, 1, 18), existing) is False

    def test_contained_within(self):
        existing = [stay("2025-03-01", "2025-03-15")]
        assert has_conflict(date(2025, 3, 5), date(2025, 3, 10), existing) is True

    def test_surrounding_existing(self):
        existing = [stay("2025-03-05", "2025-03-06")]
        assert has_conflict(date(2025, 3, 1), date(2025, 3, 10), existing) is True

    def test_no_existing_ranges(self):
        assert has_conflict(date(2025, 3, 1), date(2025, 3, 10), []) is False

    def test_any_of_many(self):
        existing = [stay("2025-01-01", "2025-01-03"), stay("2025-01-20", "2025-01-25")]
        assert has_conflict(date(2025, 1, 24), date(2025, 1, 26), existing) is True
        assert has_conflict(date(2025, 1, 3), date(2025, 1, 20), existing) is False

    @pytest.mark.parametrize(
        "a, b",
        [
            (("2025-01-10", "2025-01-12"), ("2025-01-12", "2025-01-15")),
            (("2025-01-10", "2025-01-13"), ("2025-01-12", "2025-01-15")),
            (("2025-01-01", "2025-01-31"), ("2025-01-10", "2025-01-11")),
            (("2025-01-01", "2025-01-02"), ("2025-02-01", "2025-02-02")),
            (("2025-01-05", "2025-01-09"), ("2025-01-05", "2025-01-09")),
        ],
    )
    def test_overlap_is_symmetric(self, a, b):
        ra, rb = stay(*a), stay(*b)
        assert ranges_overlap(ra.check_in, ra.check_out, rb.check_in, rb.check_out) == (
            ranges_overlap(rb.check_in, rb.check_out, ra.check_in, ra.check_out)
        )
        assert has_conflict(ra.check_in, ra.check_out, [rb]) == has_conflict(
            rb.check_in, rb.check_out, [ra]
        )

    def test_conflicting_ranges_lists_only_overlaps(self):
        hit = stay("2025-01-12", "2025-01-15")
        miss = stay("2025-01-20", "2025-01-22")
        assert conflicting_ranges(date(2025, 1, 10), date(2025, 1, 13), [hit, miss]) == [hit]


class TestBookedDaySet:
    def test_empty_input(self):
        assert booked_day_set([]) == frozenset()

    def test_walks_check_in_through_check_out_inclusive(self):
        days = booked_day_set([stay("2025-02-01", "2025-02-05")])
        assert days == {date(2025, 2, d) for d in range(1, 6)}

    def test_half_open_enumeration_leaves_check_out_free(self):
        days = booked_day_set([stay("2025-02-01", "2025-02-05")], include_check_out=False)
        assert date(2025, 2, 5) not in days
        assert len(days) == 4

    def test_spans_month_boundary(self):
        days = booked_day_set([stay("2025-01-30", "2025-02-02")])
        assert days == {
            date(2025, 1, 30),
            date(2025, 1, 31),
            date(2025, 2, 1),
            date(2025, 2, 2),
        }

    def test_idempotent(self):
        ranges = [stay("2025-02-01", "2025-02-05"), stay("2025-02-04", "2025-02-08")]
        assert booked_day_set(ranges) == booked_day_set(ranges)


class TestNightsAndPrice:
    def test_nights(self):
        assert compute_nights(date(2025, 1, 10), date(2025, 1, 13)) == 3

    def test_same_day_is_zero(self):
        assert compute_nights(date(2025, 1, 10), date(2025, 1, 10)) == 0

    def test_inverted_is_zero(self):
        assert compute_nights(date(2025, 1, 13), date(2025, 1, 10)) == 0

    def test_missing_endpoint_is_zero(self):
        assert compute_nights(None, date(2025, 1, 10)) == 0
        assert compute_nights(date(2025, 1, 10), None) == 0

    def test_partial_day_rounds_up(self):
        assert compute_nights(datetime(2025, 1, 10, 0, 0), datetime(2025, 1, 12, 1, 0)) == 3

    def test_total_price(self):
        assert compute_total_price(3, 1500) == Decimal("4500")
        assert compute_total_price(0, 1500) == Decimal("0")

    def test_total_price_from_numeric_string(self):
        assert compute_total_price(2, "1250.50") == Decimal("2501.00")

    def test_negative_price_rejected(self):
        with pytest.raises(BookingValidationError):
            compute_total_price(2, -1)


class TestCheckOutFloor:
    def test_day_after_check_in(self):
        assert check_out_floor(date(2025, 2, 3)) == date(2025, 2, 4)

    def test_today_without_check_in(self):
        assert check_out_floor(None, today=date(2025, 2, 3)) == date(2025, 2, 3)


class TestParsing:
    def test_parse_iso_date_and_timestamp(self):
        assert parse_day("2025-02-01") == date(2025, 2, 1)
        assert parse_day("2025-02-01T00:00:00.000Z") == date(2025, 2, 1)
        assert parse_day(datetime(2025, 2, 1, 15, 30)) == date(2025, 2, 1)

    def test_parse_invalid_day(self):
        with pytest.raises(BookingValidationError):
            parse_day("not-a-date")

    def test_parse_range(self):
        assert parse_range({"check_in": "2025-02-01", "check_out": "2025-02-05"}) == stay(
            "2025-02-01", "2025-02-05"
        )

    def test_parse_range_missing_key(self):
        with pytest.raises(BookingValidationError):
            parse_range({"check_in": "2025-02-01"})

    def test_parse_ranges_skips_invalid_entries(self):
        ranges = parse_ranges(
            [
                {"check_in": "2025-02-01", "check_out": "2025-02-05"},
                {"check_in": "2025-02-10", "check_out": "2025-02-10"},
                {"check_in": "garbage", "check_out": "2025-02-12"},
            ]
        )
        assert ranges == [stay("2025-02-01", "2025-02-05")]

    def test_parse_ranges_none(self):
        assert parse_ranges(None) == []


class TestMergeAndExclude:
    def test_merge_drops_duplicates_keeps_order(self):
        a, b, c = stay("2025-01-01", "2025-01-03"), stay("2025-01-05", "2025-01-07"), stay("2025-01-09", "2025-01-10")
        assert merge_ranges([a, b], [b, c]) == (a, b, c)

    def test_excluded_intervals_sorted_closed_pairs(self):
        late, early = stay("2025-03-01", "2025-03-04"), stay("2025-01-01", "2025-01-03")
        assert excluded_intervals([late, early]) == [
            (date(2025, 1, 1), date(2025, 1, 3)),
            (date(2025, 3, 1), date(2025, 3, 4)),
        ]
