"""Filter and rank departures relative to the current time."""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Iterable

from hassha.models import Departure, DirectionSchedule, DisplayTrain

# Rolled-over departures are kept only up to this many hours after the
# next midnight, so end-of-service boards don't list trains 20h out.
DEFAULT_LOOKAHEAD_HOURS = 6.0


def format_time(hour: int, minute: int) -> str:
    """Format a departure time, e.g. (9, 5) -> "9:05"."""
    return f"{hour}:{minute:02d}"


def format_remaining(minutes: int) -> str:
    """Format a countdown for display."""
    if minutes <= 0:
        return "まもなく"
    if minutes < 60:
        return f"あと{minutes}分"
    hours, rest = divmod(minutes, 60)
    if rest == 0:
        return f"あと{hours}時間"
    return f"あと{hours}時間{rest}分"


def remaining_minutes(hour: int, minute: int, now: datetime) -> tuple[int, bool]:
    """Minutes from now until hour:minute, and whether it rolled to tomorrow.

    A time strictly earlier than now is taken to be tomorrow. The rollover
    happens at most once. Partial minutes round up.
    """
    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    rolled = candidate < now
    if rolled:
        candidate += timedelta(days=1)
    seconds = (candidate - now).total_seconds()
    return max(0, math.ceil(seconds / 60)), rolled


def _within_lookahead(
    hour: int, minute: int, lookahead_hours: float | None
) -> bool:
    """Check a rolled-over departure against the next-day horizon."""
    if lookahead_hours is None:
        return True
    return hour * 60 + minute <= lookahead_hours * 60


def rank_departures(
    departures: Iterable[Departure | None],
    now: datetime,
    cap: int,
    lookahead_hours: float | None = DEFAULT_LOOKAHEAD_HOURS,
) -> list[DisplayTrain]:
    """Select, sort and truncate upcoming departures.

    Today's departures at or after now are always kept. Departures before
    now are rolled over to tomorrow and kept only while they fall within
    lookahead_hours of the next midnight (None keeps all of them). Sorting
    is stable on remaining minutes, so ties keep publication order. When
    nothing is upcoming the result is empty.

    Args:
        departures: Departures in published order, not necessarily sorted.
        now: Naive local current time.
        cap: Maximum number of rows to return. Negative values count as 0.
        lookahead_hours: Next-day horizon for rolled-over departures.
    """
    candidates: list[DisplayTrain] = []
    for dep in departures:
        if dep is None or dep.hour is None or dep.minute is None:
            continue
        minutes, rolled = remaining_minutes(dep.hour, dep.minute, now)
        if rolled and not _within_lookahead(dep.hour, dep.minute, lookahead_hours):
            continue
        candidates.append(
            DisplayTrain(
                time=format_time(dep.hour, dep.minute),
                destination=dep.destination,
                type=dep.label,
                remaining_minutes=minutes,
                next_day=rolled,
            )
        )
    candidates.sort(key=lambda t: t.remaining_minutes)
    return candidates[: max(cap, 0)]


def rank(
    schedule: DirectionSchedule | None,
    day_type: str,
    now: datetime,
    cap: int,
    lookahead_hours: float | None = DEFAULT_LOOKAHEAD_HOURS,
) -> list[DisplayTrain]:
    """Rank one direction's departures for the given day type.

    Uniform schedules answer the same list for every day type. A missing
    schedule ranks to an empty list.
    """
    if schedule is None:
        return []
    return rank_departures(
        schedule.departures_for(day_type), now, cap, lookahead_hours
    )
