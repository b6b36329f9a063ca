"""Data models for timetable data and the departure board."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

# Day-type tags. ANY marks a schedule without a weekday/holiday split
# (e.g. JR lines), which answers the same list for both day types.
WEEKDAY = "weekday"
HOLIDAY = "holiday"
ANY = "any"

# Bus operators publish a coarse A/B day calendar instead of weekday/holiday.
OPERATION_WEEKDAY = "A"
OPERATION_HOLIDAY = "B"


@dataclass(frozen=True)
class Departure:
    """A single scheduled departure as published in a timetable.

    Created by parse_departure() from raw provider JSON, or by the bus
    merger when flattening hour/minute buckets. Never mutated after that.

    Attributes:
        hour: Departure hour, 0-23 (naive local wall-clock).
        minute: Departure minute, 0-59.
        destination: Destination shown on the board. For buses this is the
            route name.
        label: Train type (e.g. "快速急行", "区間準急"). Empty for buses.
        detail_url: Optional link to the provider's detail page.
    """

    hour: int
    minute: int
    destination: str
    label: str = ""
    detail_url: str | None = None


@dataclass(frozen=True)
class Uniform:
    """Schedule without a day-type split; the same list applies every day."""

    departures: tuple[Departure, ...] = ()

    @property
    def tag(self) -> str:
        return ANY

    def departures_for(self, day_type: str) -> tuple[Departure, ...]:
        return self.departures


@dataclass(frozen=True)
class SplitByDayType:
    """Schedule with separate weekday and holiday timetables."""

    weekday: tuple[Departure, ...] = ()
    holiday: tuple[Departure, ...] = ()

    @property
    def tag(self) -> str:
        return "split"

    def departures_for(self, day_type: str) -> tuple[Departure, ...]:
        if day_type == HOLIDAY:
            return self.holiday
        if day_type == WEEKDAY:
            return self.weekday
        return ()


DirectionSchedule = Uniform | SplitByDayType


@dataclass(frozen=True)
class StationEntry:
    """One station/line entry with its named directions.

    Attributes:
        key: Opaque display key, e.g. "奈良線 八戸ノ里駅". Looked up by exact
            match against the configured layout.
        operator: Top-level grouping the entry was read from (e.g.
            "kintetsu", "jr"). Attached at ingestion.
        directions: Direction key to schedule.
    """

    key: str
    operator: str
    directions: dict[str, DirectionSchedule] = field(default_factory=dict)


@dataclass(frozen=True)
class BusStop:
    """One route serving one bus stop.

    Several BusStop records may share a stop_name when more than one
    route serves the same physical stop.

    Attributes:
        stop_name: Physical stop name, e.g. "近畿大学東門前".
        route_name: Route name, shown as the destination.
        operation_type: "A" or "B" day tag, or None when the record applies
            to every day.
        schedule: Flattened departures for this route.
    """

    stop_name: str
    route_name: str
    operation_type: str | None
    schedule: DirectionSchedule


@dataclass(frozen=True)
class BusSource:
    """All bus stop records of one bus operator from one refresh."""

    operator: str
    title: str
    stops: tuple[BusStop, ...] = ()
    operation_type: str | None = None
    date: str | None = None


@dataclass(frozen=True)
class DayClassification:
    """Result of classifying a calendar date.

    Attributes:
        is_holiday: True for public holidays and weekends.
        name: Holiday name, localized weekday name for weekends, or "".
    """

    is_holiday: bool
    name: str = ""

    @property
    def day_type(self) -> str:
        return HOLIDAY if self.is_holiday else WEEKDAY

    @property
    def operation_type(self) -> str:
        return OPERATION_HOLIDAY if self.is_holiday else OPERATION_WEEKDAY


@dataclass(frozen=True)
class DisplayTrain:
    """One ranked row on the board.

    Attributes:
        time: Departure time formatted as "H:MM".
        destination: Destination or bus route name.
        type: Train type label, may be empty.
        remaining_minutes: Minutes until departure, always >= 0.
        next_day: True if the departure was rolled over to tomorrow.
    """

    time: str
    destination: str
    type: str
    remaining_minutes: int
    next_day: bool = False


@dataclass(frozen=True)
class DisplayDirection:
    """Ranked departures for one direction of one station."""

    title: str
    color: str
    trains: tuple[DisplayTrain, ...] = ()
    station: str = ""


@dataclass(frozen=True)
class StationGroup:
    """All configured directions of one station, in layout order."""

    station: str
    color: str
    directions: tuple[DisplayDirection, ...] = ()


@dataclass(frozen=True)
class BusStopBoard:
    """Ranked, route-merged departures for one bus stop."""

    stop_name: str
    color: str
    trains: tuple[DisplayTrain, ...] = ()


@dataclass(frozen=True)
class BusGroup:
    """Bus stops of one operator."""

    operator: str
    title: str
    color: str
    operation_type: str | None = None
    stops: tuple[BusStopBoard, ...] = ()


@dataclass(frozen=True)
class Snapshot:
    """Immutable result of one data refresh.

    Each refresh builds a new Snapshot that replaces the previous one as a
    whole. The board is always computed from exactly one snapshot.

    Attributes:
        stations: Station key to normalized entry, merged over all operators.
        bus_sources: Parsed bus data per bus operator, in configured order.
        calendar: ISO date to holiday name. Empty if the calendar could not
            be fetched (weekend-only classification).
        last_updated: Provider's lastUpdated timestamp string, if any.
        fetched_at: Unix timestamp of the refresh.
    """

    stations: dict[str, StationEntry] = field(default_factory=dict)
    bus_sources: tuple[BusSource, ...] = ()
    calendar: dict[str, str] = field(default_factory=dict)
    last_updated: str | None = None
    fetched_at: float = 0.0


@dataclass(frozen=True)
class Board:
    """Engine output for one clock tick."""

    now: datetime
    day: DayClassification
    stations: list[StationGroup] = field(default_factory=list)
    buses: list[BusGroup] = field(default_factory=list)
    last_updated: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.stations and not self.buses
