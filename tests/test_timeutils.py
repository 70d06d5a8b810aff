#!/usr/bin/env python3
"""
Tests for the time normalizer and schedule window matcher.
"""

from datetime import datetime, timezone

import pytest
from zoneinfo import ZoneInfoNotFoundError

from storehours.core.timeutils import (
    clock_for,
    day_of_week_from_iso_date,
    from_minutes,
    is_valid_hhmm,
    is_valid_timezone,
    is_within_window,
    local_clock,
    minutes_until_window_end,
    minutes_until_windows_end,
    to_minutes,
)

pytestmark = pytest.mark.unit

UTC = timezone.utc


def _all_times():
    return [from_minutes(m) for m in range(0, 24 * 60)]


class TestHHMMValidation:

    @pytest.mark.parametrize("value", ["00:00", "09:05", "12:30", "23:59"])
    def test_valid(self, value):
        assert is_valid_hhmm(value)

    @pytest.mark.parametrize("value", ["24:00", "9:00", "09:60", "0900", "", None, "ab:cd", "09:00 "])
    def test_invalid(self, value):
        assert not is_valid_hhmm(value)

    def test_minutes_conversion(self):
        assert to_minutes("00:00") == 0
        assert to_minutes("13:45") == 13 * 60 + 45
        assert from_minutes(0) == "00:00"
        assert from_minutes(1439) == "23:59"
        assert from_minutes(1440) == "00:00"


class TestTimezones:

    def test_known_and_unknown_zones(self):
        assert is_valid_timezone("Australia/Sydney")
        assert is_valid_timezone("UTC")
        assert not is_valid_timezone("Mars/Olympus_Mons")
        assert not is_valid_timezone("")
        assert not is_valid_timezone(None)

    def test_local_clock_converts_to_merchant_zone(self):
        # 03:00 UTC is 14:00 AEDT the same Monday
        clock = local_clock(datetime(2025, 1, 6, 3, 0, tzinfo=UTC), "Australia/Sydney")
        assert clock.date == "2025-01-06"
        assert clock.time == "14:00"
        assert clock.day_of_week == 1

    def test_local_date_rolls_over_before_utc(self):
        # Sunday 13:00 UTC is already Monday 00:00 in Sydney
        clock = local_clock(datetime(2025, 1, 5, 13, 0, tzinfo=UTC), "Australia/Sydney")
        assert clock.date == "2025-01-06"
        assert clock.time == "00:00"
        assert clock.day_of_week == 1

    def test_naive_datetime_is_treated_as_utc(self):
        naive = local_clock(datetime(2025, 1, 6, 3, 0), "Australia/Sydney")
        aware = local_clock(datetime(2025, 1, 6, 3, 0, tzinfo=UTC), "Australia/Sydney")
        assert naive == aware

    def test_dst_offsets_are_applied(self):
        # New York: UTC-5 in January, UTC-4 in July
        assert local_clock(datetime(2025, 1, 15, 12, 0, tzinfo=UTC), "America/New_York").time == "07:00"
        assert local_clock(datetime(2025, 7, 15, 12, 0, tzinfo=UTC), "America/New_York").time == "08:00"

    def test_spring_forward_skips_the_missing_hour(self):
        before = local_clock(datetime(2025, 3, 9, 6, 59, tzinfo=UTC), "America/New_York")
        after = local_clock(datetime(2025, 3, 9, 7, 0, tzinfo=UTC), "America/New_York")
        assert before.time == "01:59"
        assert after.time == "03:00"
        assert before.date == after.date == "2025-03-09"

    def test_unknown_zone_raises(self):
        with pytest.raises(ZoneInfoNotFoundError):
            local_clock(datetime(2025, 1, 6, tzinfo=UTC), "Nowhere/Special")


class TestDayOfWeek:

    @pytest.mark.parametrize("date_iso,expected", [
        ("2025-01-05", 0),  # Sunday
        ("2025-01-06", 1),  # Monday
        ("2025-01-07", 2),
        ("2025-01-11", 6),  # Saturday
        ("2024-02-29", 4),  # Thursday, leap day
    ])
    def test_sunday_first_encoding(self, date_iso, expected):
        assert day_of_week_from_iso_date(date_iso) == expected

    def test_clock_for_explicit_date(self):
        clock = clock_for("2025-12-25", "19:30")
        assert clock.day_of_week == 4
        assert clock.time == "19:30"
        assert clock.at("08:00").date == "2025-12-25"
        assert clock.at("08:00").time == "08:00"


class TestWindowMatcher:

    def test_same_day_window_is_half_open(self):
        assert is_within_window("09:00", "09:00", "22:00")
        assert is_within_window("21:59", "09:00", "22:00")
        assert not is_within_window("22:00", "09:00", "22:00")
        assert not is_within_window("08:59", "09:00", "22:00")

    def test_window_crossing_midnight(self):
        assert is_within_window("23:59", "18:00", "02:00")
        assert is_within_window("00:00", "18:00", "02:00")
        assert is_within_window("01:59", "18:00", "02:00")
        assert not is_within_window("02:00", "18:00", "02:00")
        assert not is_within_window("17:59", "18:00", "02:00")

    @pytest.mark.parametrize("start", ["00:00", "09:30", "23:59"])
    def test_equal_start_and_end_is_full_day(self, start):
        assert all(is_within_window(t, start, start) for t in _all_times())

    @pytest.mark.parametrize("start,end", [("09:00", "22:00"), ("00:00", "00:01"), ("18:00", "02:00"), ("23:00", "00:00")])
    def test_boundary_properties(self, start, end):
        assert is_within_window(start, start, end)
        end_minus_one = from_minutes(to_minutes(end) - 1)
        assert is_within_window(end_minus_one, start, end)
        assert not is_within_window(end, start, end)

    def test_overnight_window_contains_midnight_edges(self):
        for start, end in [("20:00", "01:00"), ("23:59", "00:30"), ("12:00", "11:00")]:
            assert is_within_window("23:59", start, end)
            assert is_within_window("00:00", start, end)


class TestMinutesUntilClose:

    def test_same_day(self):
        assert minutes_until_window_end("14:00", "09:00", "22:00") == 480

    def test_across_midnight(self):
        assert minutes_until_window_end("23:30", "18:00", "02:00") == 150
        assert minutes_until_window_end("01:00", "18:00", "02:00") == 60

    def test_full_day_has_no_close(self):
        assert minutes_until_window_end("10:00", "00:00", "00:00") is None


class TestMinutesUntilUnionClose:

    def test_overlap_takes_latest_end(self):
        assert minutes_until_windows_end("14:30", [("11:00", "15:00"), ("14:00", "16:00")]) == 90

    def test_chain_across_midnight(self):
        windows = [("00:00", "02:00"), ("18:00", "00:00")]
        assert minutes_until_windows_end("23:00", windows) == 180

    def test_gap_stops_chain(self):
        assert minutes_until_windows_end("12:00", [("11:00", "15:00"), ("15:01", "18:00")]) == 180

    def test_union_covering_whole_day_has_no_close(self):
        assert minutes_until_windows_end("14:00", [("00:00", "12:00"), ("12:00", "00:00")]) is None
