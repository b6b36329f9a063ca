"""Tests for hassha.ranking."""

from datetime import datetime

import pytest

from hassha.models import Departure, SplitByDayType, Uniform
from hassha.ranking import (
    format_remaining,
    format_time,
    rank,
    rank_departures,
    remaining_minutes,
)


def _dep(hour, minute, destination="x"):
    return Departure(hour=hour, minute=minute, destination=destination)


class TestRemainingMinutes:
    def test_same_minute_is_zero(self):
        assert remaining_minutes(9, 0, datetime(2024, 5, 7, 9, 0)) == (0, False)

    def test_later_today(self):
        assert remaining_minutes(9, 5, datetime(2024, 5, 7, 9, 0)) == (5, False)

    def test_rolls_over_midnight(self):
        """Verify that 00:10 seen at 23:50 is 20 minutes away, tomorrow."""
        assert remaining_minutes(0, 10, datetime(2024, 5, 7, 23, 50)) == (20, True)

    def test_earlier_today_is_tomorrow(self):
        """Verify that a time one minute in the past rolls over a full day."""
        minutes, rolled = remaining_minutes(8, 59, datetime(2024, 5, 7, 9, 0))
        assert rolled is True
        assert minutes == 24 * 60 - 1

    def test_partial_minute_rounds_up(self):
        """Verify that 9:05 at 9:00:30 counts as 5 minutes (4.5 rounded up)."""
        assert remaining_minutes(9, 5, datetime(2024, 5, 7, 9, 0, 30)) == (5, False)

    def test_current_minute_with_seconds_rolls_over(self):
        """Verify that 9:00 seen at 9:00:30 has already left."""
        minutes, rolled = remaining_minutes(9, 0, datetime(2024, 5, 7, 9, 0, 30))
        assert rolled is True
        assert minutes > 0


class TestRankDepartures:
    def test_sorted_by_remaining(self):
        """Verify that unsorted input comes out in departure order."""
        deps = [_dep(9, 30), _dep(9, 10), _dep(9, 20)]
        result = rank_departures(deps, datetime(2024, 5, 7, 9, 0), cap=10)
        assert [t.time for t in result] == ["9:10", "9:20", "9:30"]
        assert [t.remaining_minutes for t in result] == [10, 20, 30]

    @pytest.mark.parametrize("cap", [0, 1, 2, 3, 4, 5])
    def test_cap(self, cap):
        deps = [_dep(9, m) for m in (5, 10, 15, 20)]
        result = rank_departures(deps, datetime(2024, 5, 7, 9, 0), cap=cap)
        assert len(result) == min(cap, 4)

    def test_negative_cap(self):
        """Verify that a negative cap returns nothing instead of slicing from the end."""
        deps = [_dep(9, 5), _dep(9, 10)]
        assert rank_departures(deps, datetime(2024, 5, 7, 9, 0), cap=-1) == []

    def test_stable_ties(self):
        """Verify that departures at the same time keep their published order."""
        deps = [_dep(9, 5, "first"), _dep(9, 5, "second"), _dep(9, 5, "third")]
        result = rank_departures(deps, datetime(2024, 5, 7, 9, 0), cap=10)
        assert [t.destination for t in result] == ["first", "second", "third"]

    def test_skips_none(self):
        deps = [None, _dep(9, 5)]
        result = rank_departures(deps, datetime(2024, 5, 7, 9, 0), cap=10)
        assert len(result) == 1

    def test_late_night_rollover_within_lookahead(self):
        """Verify that first trains of tomorrow follow the last trains of today."""
        deps = [_dep(5, 10, "first"), _dep(23, 55, "last")]
        result = rank_departures(deps, datetime(2024, 5, 7, 23, 50), cap=10)
        assert [t.destination for t in result] == ["last", "first"]
        assert result[0].next_day is False
        assert result[1].next_day is True
        assert result[1].remaining_minutes == 5 * 60 + 20

    def test_rollover_beyond_lookahead_dropped(self):
        """Verify that tomorrow's departures after the horizon are not shown."""
        deps = [_dep(7, 0), _dep(23, 55)]
        result = rank_departures(deps, datetime(2024, 5, 7, 23, 50), cap=10, lookahead_hours=6)
        assert [t.time for t in result] == ["23:55"]

    def test_lookahead_boundary_inclusive(self):
        deps = [_dep(6, 0)]
        result = rank_departures(deps, datetime(2024, 5, 7, 23, 50), cap=10, lookahead_hours=6)
        assert [t.time for t in result] == ["6:00"]

    def test_unbounded_lookahead(self):
        """Verify that lookahead None keeps every rolled-over departure."""
        deps = [_dep(8, 0), _dep(12, 0)]
        result = rank_departures(deps, datetime(2024, 5, 7, 13, 0), cap=10, lookahead_hours=None)
        assert [t.time for t in result] == ["8:00", "12:00"]
        assert all(t.next_day for t in result)

    def test_no_resurrection_of_past_departures(self):
        """Verify that a midday board with all trains gone shows nothing."""
        deps = [_dep(7, 0), _dep(8, 0)]
        assert rank_departures(deps, datetime(2024, 5, 7, 13, 0), cap=4) == []

    def test_display_fields(self):
        dep = Departure(hour=9, minute=5, destination="大阪難波", label="快速急行")
        (train,) = rank_departures([dep], datetime(2024, 5, 7, 9, 0), cap=1)
        assert train.time == "9:05"
        assert train.destination == "大阪難波"
        assert train.type == "快速急行"
        assert train.remaining_minutes == 5

    def test_input_not_mutated(self):
        deps = [_dep(9, 30), _dep(9, 10)]
        rank_departures(deps, datetime(2024, 5, 7, 9, 0), cap=10)
        assert [d.minute for d in deps] == [30, 10]


class TestRank:
    def test_uniform_ignores_day_type(self):
        schedule = Uniform((_dep(9, 5), _dep(9, 20)))
        now = datetime(2024, 5, 7, 9, 0)
        assert rank(schedule, "weekday", now, 4) == rank(schedule, "holiday", now, 4)

    def test_split_selects_day_type(self):
        schedule = SplitByDayType(weekday=(_dep(9, 5, "w"),), holiday=(_dep(9, 6, "h"),))
        now = datetime(2024, 5, 7, 9, 0)
        assert rank(schedule, "weekday", now, 4)[0].destination == "w"
        assert rank(schedule, "holiday", now, 4)[0].destination == "h"

    def test_missing_schedule(self):
        assert rank(None, "weekday", datetime(2024, 5, 7, 9, 0), 4) == []


class TestFormatting:
    def test_format_time(self):
        assert format_time(9, 5) == "9:05"
        assert format_time(23, 0) == "23:00"

    @pytest.mark.parametrize(
        "minutes,expected",
        [
            (0, "まもなく"),
            (1, "あと1分"),
            (59, "あと59分"),
            (60, "あと1時間"),
            (75, "あと1時間15分"),
        ],
    )
    def test_format_remaining(self, minutes, expected):
        assert format_remaining(minutes) == expected
