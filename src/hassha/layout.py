"""Map the configured station layout onto normalized timetable data."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from hassha.bus import merge_bus_stops
from hassha.models import (
    BusGroup,
    BusSource,
    BusStopBoard,
    DayClassification,
    DisplayDirection,
    StationEntry,
    StationGroup,
)
from hassha.ranking import DEFAULT_LOOKAHEAD_HOURS, rank

# Line colour table. Keys are matched as substrings of a station key in
# insertion order (first match wins), or exactly against a line id.
LINE_COLORS = {
    "奈良線": "#E60012",
    "大阪線": "#F8B400",
    "ＪＲ俊徳道駅": "#009944",
    "近鉄バス": "#58A6FF",
    "大阪バス": "#FF8C00",
}
DEFAULT_COLOR = "#cccccc"

# Line-name prefixes glued to a station name without a space
STATION_PREFIXES = ("ＪＲ", "JR")
STATION_SUFFIX = "駅"


@dataclass
class StationLayout:
    """One configured station row of the board.

    Attributes:
        key: Station key, matched exactly against normalized data.
        left: Direction key shown in the left column.
        right: Direction key shown in the right column.
        line: Optional stable line id for the colour table. When empty,
            the colour is found by substring match on the key.
    """

    key: str
    left: str
    right: str
    line: str = ""


def extract_station_name(key: str, prefixes: Iterable[str] = STATION_PREFIXES) -> str:
    """Short station name from a full key.

    "奈良線 八戸ノ里駅" -> "八戸ノ里", "ＪＲ俊徳道駅" -> "俊徳道".
    """
    parts = key.split()
    if not parts:
        return key
    name = parts[-1]
    for prefix in prefixes:
        if name.startswith(prefix) and len(name) > len(prefix):
            name = name[len(prefix):]
            break
    if name.endswith(STATION_SUFFIX) and len(name) > len(STATION_SUFFIX):
        name = name[: -len(STATION_SUFFIX)]
    return name


def direction_title(direction_key: str) -> str:
    """Display title of a direction: its last whitespace-separated token.

    "奈良線 近鉄奈良方面" -> "近鉄奈良方面".
    """
    parts = direction_key.split()
    return parts[-1] if parts else direction_key


def line_color(key: str, colors: dict[str, str] | None = None, line: str = "") -> str:
    """Colour for a station or operator key.

    An explicit line id is looked up exactly; otherwise the first colour
    table key contained in the station key wins.
    """
    table = LINE_COLORS if colors is None else colors
    if line and line in table:
        return table[line]
    for name, color in table.items():
        if name in key:
            return color
    return DEFAULT_COLOR


def assemble(
    layout: Iterable[StationLayout],
    stations: dict[str, StationEntry],
    day_type: str,
    now: datetime,
    cap: int,
    lookahead_hours: float | None = DEFAULT_LOOKAHEAD_HOURS,
    colors: dict[str, str] | None = None,
) -> list[StationGroup]:
    """Build the station part of the board in layout order.

    Each layout entry contributes a left and a right DisplayDirection. A
    station or direction missing from the data gives a direction with no
    trains. Layout entries with the same short station name are grouped
    together.
    """
    groups: dict[str, tuple[str, list[DisplayDirection]]] = {}
    for entry in layout:
        color = line_color(entry.key, colors, entry.line)
        name = extract_station_name(entry.key)
        _, directions = groups.setdefault(name, (color, []))
        station = stations.get(entry.key)
        for direction_key in (entry.left, entry.right):
            schedule = station.directions.get(direction_key) if station else None
            trains = rank(schedule, day_type, now, cap, lookahead_hours)
            directions.append(
                DisplayDirection(
                    title=direction_title(direction_key),
                    color=color,
                    trains=tuple(trains),
                    station=name,
                )
            )
    return [
        StationGroup(station=name, color=color, directions=tuple(directions))
        for name, (color, directions) in groups.items()
    ]


def assemble_buses(
    sources: Iterable[BusSource],
    day: DayClassification,
    now: datetime,
    cap: int,
    lookahead_hours: float | None = DEFAULT_LOOKAHEAD_HOURS,
    colors: dict[str, str] | None = None,
) -> list[BusGroup]:
    """Build the bus part of the board, one group per bus operator."""
    groups: list[BusGroup] = []
    for source in sources:
        color = line_color(source.title, colors, source.operator)
        merged = merge_bus_stops(source.stops, day, now, cap, lookahead_hours)
        groups.append(
            BusGroup(
                operator=source.operator,
                title=source.title,
                color=color,
                operation_type=source.operation_type,
                stops=tuple(
                    BusStopBoard(stop_name=name, color=color, trains=tuple(trains))
                    for name, trains in merged.items()
                ),
            )
        )
    return groups
