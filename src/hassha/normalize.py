"""Normalize raw per-operator timetables into one station map."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from hassha.models import (
    Departure,
    DirectionSchedule,
    SplitByDayType,
    StationEntry,
    Uniform,
)

logger = logging.getLogger(__name__)

# Top-level payload keys that never hold train stations
METADATA_KEYS = frozenset({"lastUpdated"})

DEFAULT_BUS_OPERATORS = ("kintetsuBus", "osakaBus")


def parse_int(value: Any) -> int | None:
    """Parse an int or numeric string. Returns None for anything else."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def parse_departure(raw: Any) -> Departure | None:
    """Parse a raw timetable entry into a Departure.

    Providers send hour and minute as strings ("9", "05") or ints. Entries
    with a missing, non-numeric or out-of-range time return None so the
    caller can skip them.
    """
    if not isinstance(raw, dict):
        return None
    hour = parse_int(raw.get("hour"))
    minute = parse_int(raw.get("minute"))
    if hour is None or minute is None:
        return None
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    return Departure(
        hour=hour,
        minute=minute,
        destination=str(raw.get("destination") or ""),
        # Trains publish 'trainType'; some bus feeds use 'type'.
        label=str(raw.get("trainType") or raw.get("type") or ""),
        detail_url=raw.get("detailUrl"),
    )


def parse_departures(raw_list: Iterable[Any]) -> tuple[Departure, ...]:
    """Parse a list of raw entries, dropping malformed ones."""
    departures = []
    for raw in raw_list:
        dep = parse_departure(raw)
        if dep is None:
            logger.debug("Skipping malformed departure: %r", raw)
            continue
        departures.append(dep)
    return tuple(departures)


def parse_direction(raw: Any) -> DirectionSchedule | None:
    """Detect the schedule shape of one direction.

    A bare list has no day-type split and becomes Uniform. A dict with
    'weekday' and/or 'holiday' lists becomes SplitByDayType. Anything else
    is an unknown shape and returns None.
    """
    if isinstance(raw, list):
        return Uniform(parse_departures(raw))
    if isinstance(raw, dict) and ("weekday" in raw or "holiday" in raw):
        weekday = raw.get("weekday")
        holiday = raw.get("holiday")
        return SplitByDayType(
            weekday=parse_departures(weekday) if isinstance(weekday, list) else (),
            holiday=parse_departures(holiday) if isinstance(holiday, list) else (),
        )
    return None


def parse_station(key: str, operator: str, raw: Any) -> StationEntry | None:
    """Parse one station entry (direction key -> schedule)."""
    if not isinstance(raw, dict):
        return None
    directions: dict[str, DirectionSchedule] = {}
    for direction_key, raw_direction in raw.items():
        schedule = parse_direction(raw_direction)
        if schedule is None:
            logger.debug(
                "Skipping direction %r of %r: unknown shape", direction_key, key
            )
            continue
        directions[direction_key] = schedule
    return StationEntry(key=key, operator=operator, directions=directions)


def normalize(
    raw: dict[str, Any],
    bus_operators: Iterable[str] = DEFAULT_BUS_OPERATORS,
) -> dict[str, StationEntry]:
    """Merge every operator's stations into one flat station map.

    Any number of top-level operator groupings is accepted. Metadata keys,
    bus operator keys and non-dict values are ignored. A station key
    present under more than one operator keeps the last one seen. The
    published order of departures is preserved; no sorting happens here.
    """
    skip = METADATA_KEYS | frozenset(bus_operators)
    stations: dict[str, StationEntry] = {}
    if not isinstance(raw, dict):
        return stations
    for operator, raw_stations in raw.items():
        if operator in skip or not isinstance(raw_stations, dict):
            continue
        for key, raw_station in raw_stations.items():
            entry = parse_station(key, operator, raw_station)
            if entry is None:
                logger.debug("Skipping station %r of %s: not a mapping", key, operator)
                continue
            if key in stations:
                logger.debug(
                    "Station %r from %s replaces entry from %s",
                    key, operator, stations[key].operator,
                )
            stations[key] = entry
    return stations
