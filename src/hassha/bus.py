"""Bus timetable parsing and per-stop route merging.

Bus operators publish their timetables in two shapes:

  * the current shape, {"stops": [...], "operationType": "A", "date": ...},
    where each stop record carries one route and a list of
    {"hour": 7, "minutes": [5, 25, 45]} buckets;
  * the legacy shape, keyed directly by stop name, then route name, with
    either {"weekday": [...], "holiday": [...]} or a bare list of
    {"hour", "minute"} entries per route.

Both are parsed into BusStop records, so the merger produces identical
output for equivalent input.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable

from hassha.models import (
    BusSource,
    BusStop,
    DayClassification,
    Departure,
    DirectionSchedule,
    DisplayTrain,
    SplitByDayType,
    Uniform,
)
from hassha.normalize import parse_int, parse_direction
from hassha.ranking import DEFAULT_LOOKAHEAD_HOURS, rank_departures

logger = logging.getLogger(__name__)

# Keys of a bus payload that are metadata, never stop names
_METADATA_KEYS = frozenset({"lastUpdated", "operationType", "date", "stops"})


def flatten_schedule(buckets: Any, route_name: str) -> tuple[Departure, ...]:
    """Expand hour -> [minutes] buckets into individual departures.

    Every departure gets the route name as its destination and no label.
    Malformed buckets and minutes are skipped.
    """
    departures: list[Departure] = []
    if not isinstance(buckets, list):
        return ()
    for bucket in buckets:
        if not isinstance(bucket, dict):
            continue
        hour = parse_int(bucket.get("hour"))
        minutes = bucket.get("minutes")
        if hour is None or not 0 <= hour <= 23 or not isinstance(minutes, list):
            logger.debug("Skipping malformed bus bucket on %s: %r", route_name, bucket)
            continue
        for raw_minute in minutes:
            minute = parse_int(raw_minute)
            if minute is None or not 0 <= minute <= 59:
                continue
            departures.append(Departure(hour=hour, minute=minute, destination=route_name))
    return tuple(departures)


def _as_route(
    schedule: DirectionSchedule | None, route_name: str
) -> DirectionSchedule | None:
    """Give every departure of a legacy route the route name as destination."""

    def relabel(deps: tuple[Departure, ...]) -> tuple[Departure, ...]:
        return tuple(
            Departure(hour=d.hour, minute=d.minute, destination=route_name) for d in deps
        )

    if schedule is None:
        return None
    if isinstance(schedule, Uniform):
        return Uniform(relabel(schedule.departures))
    return SplitByDayType(
        weekday=relabel(schedule.weekday), holiday=relabel(schedule.holiday)
    )


def _parse_stop_records(records: list, exclude: frozenset[str]) -> list[BusStop]:
    stops: list[BusStop] = []
    for record in records:
        if not isinstance(record, dict):
            continue
        stop_name = record.get("stopName")
        if not isinstance(stop_name, str) or not stop_name:
            logger.debug("Skipping bus record without a stop name: %r", stop_name)
            continue
        if stop_name in exclude:
            continue
        route_name = str(record.get("routeName") or "")
        operation_type = record.get("operationType")
        if not isinstance(operation_type, str):
            operation_type = None
        stops.append(
            BusStop(
                stop_name=stop_name,
                route_name=route_name,
                operation_type=operation_type or None,
                schedule=Uniform(flatten_schedule(record.get("schedule"), route_name)),
            )
        )
    return stops


def _parse_legacy(raw: dict, exclude: frozenset[str]) -> list[BusStop]:
    stops: list[BusStop] = []
    for stop_name, routes in raw.items():
        if stop_name in _METADATA_KEYS or stop_name in exclude:
            continue
        if not isinstance(routes, dict):
            continue
        for route_name, raw_schedule in routes.items():
            schedule = _as_route(parse_direction(raw_schedule), route_name)
            if schedule is None:
                logger.debug(
                    "Bus stop %s route %s has no usable schedule", stop_name, route_name
                )
                continue
            stops.append(
                BusStop(
                    stop_name=stop_name,
                    route_name=route_name,
                    operation_type=None,
                    schedule=schedule,
                )
            )
    return stops


def parse_bus_stops(raw: Any, exclude_stops: Iterable[str] = ()) -> list[BusStop]:
    """Parse a bus payload in either shape into BusStop records.

    Args:
        raw: A {"stops": [...]} payload, a bare list of stop records, or
            the legacy stop-name-keyed mapping.
        exclude_stops: Stop names to drop entirely.
    """
    exclude = frozenset(exclude_stops)
    if isinstance(raw, list):
        return _parse_stop_records(raw, exclude)
    if not isinstance(raw, dict):
        return []
    if isinstance(raw.get("stops"), list):
        return _parse_stop_records(raw["stops"], exclude)
    return _parse_legacy(raw, exclude)


def parse_bus_source(
    operator: str,
    raw: Any,
    title: str = "",
    exclude_stops: Iterable[str] = (),
) -> BusSource:
    """Parse one operator's bus payload, keeping its A/B day metadata."""
    meta = raw if isinstance(raw, dict) else {}
    return BusSource(
        operator=operator,
        title=title or operator,
        stops=tuple(parse_bus_stops(raw, exclude_stops)),
        operation_type=meta.get("operationType") or None,
        date=meta.get("date") or None,
    )


def merge_bus_stops(
    stops: Iterable[BusStop],
    day: DayClassification,
    now: datetime,
    cap: int,
    lookahead_hours: float | None = DEFAULT_LOOKAHEAD_HOURS,
) -> dict[str, list[DisplayTrain]]:
    """Merge all routes of each stop and rank them together.

    Records tagged with an A/B operation type that doesn't match the day
    ("B" on holidays, "A" otherwise) are skipped. The remaining routes of
    a stop are pooled before sorting and truncating, so close routes
    interleave by time instead of being listed one after the other.

    Returns:
        Stop name to ranked DisplayTrain list, in first-seen stop order.
        Stops whose routes were all skipped map to an empty list.
    """
    pools: dict[str, list[Departure]] = {}
    for stop in stops:
        pool = pools.setdefault(stop.stop_name, [])
        if stop.operation_type and stop.operation_type != day.operation_type:
            continue
        pool.extend(stop.schedule.departures_for(day.day_type))
    return {
        name: rank_departures(pool, now, cap, lookahead_hours)
        for name, pool in pools.items()
    }
