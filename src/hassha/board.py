"""Board computation: one snapshot and one instant in, one Board out."""

from __future__ import annotations

import time
from datetime import datetime
from typing import Any, Iterable

from hassha.bus import parse_bus_source
from hassha.holidays import classify_day
from hassha.layout import StationLayout, assemble, assemble_buses
from hassha.models import Board, Snapshot
from hassha.normalize import normalize
from hassha.ranking import DEFAULT_LOOKAHEAD_HOURS, format_remaining

# Bus operators read when nothing else is configured: payload key -> title
DEFAULT_BUS_TITLES = {"kintetsuBus": "近鉄バス", "osakaBus": "大阪バス"}


def build_snapshot(
    raw: dict[str, Any],
    calendar: dict[str, str] | None = None,
    bus_titles: dict[str, str] | None = None,
    exclude_stops: Iterable[str] = (),
    fetched_at: float | None = None,
) -> Snapshot:
    """Normalize a raw timetable payload into an immutable Snapshot.

    Args:
        raw: Decoded /api/all payload.
        calendar: Parsed holiday calendar, or None for weekend-only.
        bus_titles: Bus operator payload keys to their display titles, in
            display order. Only these keys are read as bus data.
        exclude_stops: Bus stop names to drop.
        fetched_at: Unix timestamp of the refresh. Defaults to now.
    """
    titles = DEFAULT_BUS_TITLES if bus_titles is None else bus_titles
    exclude = tuple(exclude_stops)
    bus_sources = tuple(
        parse_bus_source(operator, raw[operator], title, exclude)
        for operator, title in titles.items()
        if raw.get(operator)
    )
    last_updated = raw.get("lastUpdated")
    return Snapshot(
        stations=normalize(raw, bus_operators=titles.keys()),
        bus_sources=bus_sources,
        calendar=dict(calendar or {}),
        last_updated=last_updated if isinstance(last_updated, str) else None,
        fetched_at=time.time() if fetched_at is None else fetched_at,
    )


def build_board(
    snapshot: Snapshot | None,
    now: datetime,
    layout: Iterable[StationLayout],
    cap: int,
    lookahead_hours: float | None = DEFAULT_LOOKAHEAD_HOURS,
    colors: dict[str, str] | None = None,
) -> Board:
    """Compute the board for one instant.

    The day is classified once and the same day type is applied to every
    operator. Without a snapshot the board has no stations or buses.
    """
    calendar = snapshot.calendar if snapshot is not None else {}
    day = classify_day(now.date(), calendar)
    if snapshot is None:
        return Board(now=now, day=day)
    return Board(
        now=now,
        day=day,
        stations=assemble(
            layout, snapshot.stations, day.day_type, now, cap, lookahead_hours, colors
        ),
        buses=assemble_buses(
            snapshot.bus_sources, day, now, cap, lookahead_hours, colors
        ),
        last_updated=snapshot.last_updated,
    )


def format_day(board: Board) -> str:
    """Timetable variant banner, e.g. "休日ダイヤ (元日)"."""
    if not board.day.is_holiday:
        return "平日ダイヤ"
    if board.day.name:
        return f"休日ダイヤ ({board.day.name})"
    return "休日ダイヤ"


def format_date(now: datetime) -> str:
    """Japanese date with weekday, e.g. "2024年5月1日（水）"."""
    weekday = "月火水木金土日"[now.weekday()]
    return f"{now.year}年{now.month}月{now.day}日（{weekday}）"


def format_board(board: Board) -> str:
    """Plain-text board for console output."""
    # Minute resolution, so the console only reprints when a countdown changes
    lines = [f"{format_date(board.now)} {board.now:%H:%M}  {format_day(board)}"]
    for group in board.stations:
        lines.append("")
        lines.append(f"=== {group.station} ===")
        for direction in group.directions:
            lines.append(f"  [{direction.title}]")
            if not direction.trains:
                lines.append("    この時間帯の電車はありません")
            for train in direction.trains:
                lines.append(
                    f"    {train.time:>5}  {train.type:<6} {train.destination:<16} "
                    f"{format_remaining(train.remaining_minutes)}"
                )
    for bus in board.buses:
        lines.append("")
        suffix = f"  {bus.operation_type}日運行" if bus.operation_type else ""
        lines.append(f"=== {bus.title}{suffix} ===")
        for stop in bus.stops:
            lines.append(f"  [{stop.stop_name}]")
            if not stop.trains:
                lines.append("    この時間帯のバスはありません")
            for train in stop.trains:
                lines.append(
                    f"    {train.time:>5}  {train.destination:<24} "
                    f"{format_remaining(train.remaining_minutes)}"
                )
    if board.last_updated:
        lines.append("")
        lines.append(f"最終更新: {board.last_updated}")
    return "\n".join(lines)
