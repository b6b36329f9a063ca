"""Configuration loading: defaults → YAML overlay → environment → argparse overlay."""

from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import yaml

from hassha.layout import LINE_COLORS, StationLayout

logger = logging.getLogger(__name__)

# Environment variables read between the YAML and CLI layers
ENV_API_BASE_URL = "HASSHA_API_BASE_URL"
ENV_DEBUG_DATETIME = "HASSHA_DEBUG_DATETIME"
ENV_MAX_TRAINS = "HASSHA_MAX_TRAINS"


def _default_stations() -> list[StationLayout]:
    return [
        StationLayout(
            key="奈良線 八戸ノ里駅",
            left="奈良線 大阪難波・尼崎(阪神)方面",
            right="奈良線 近鉄奈良方面",
        ),
        StationLayout(
            key="大阪線 長瀬駅",
            left="大阪線 大阪上本町方面",
            right="大阪線 河内国分方面",
        ),
        StationLayout(
            key="ＪＲ俊徳道駅",
            left="放出・新大阪・大阪（地下ホーム）方面",
            right="久宝寺・奈良方面",
        ),
    ]


@dataclass
class ApiConfig:
    """Data provider settings.

    Attributes:
        base_url: Base URL of the timetable server (serves /api/all).
        timeout: HTTP timeout in seconds for every request.
        holiday_url: URL of the public holiday CSV (Cabinet Office).
        holiday_encoding: Text encoding of the holiday CSV.
        bus_calendar_operator: Bus operator fetched from the per-date bus
            calendar endpoint when /api/all doesn't include it. Empty
            disables the fallback.
    """

    base_url: str = "http://localhost:3000"
    timeout: int = 10
    holiday_url: str = "https://www8.cao.go.jp/chosei/shukujitsu/syukujitsu.csv"
    # The Cabinet Office publishes the CSV in Shift_JIS
    holiday_encoding: str = "shift_jis"
    bus_calendar_operator: str = "kintetsuBus"


@dataclass
class RefreshConfig:
    """Refresh tick settings.

    Attributes:
        interval_seconds: Seconds between data refreshes (timetable,
            holiday calendar, bus data).
        clock_seconds: Seconds between board recomputations against the
            already fetched data.
    """

    # Seconds between timetable fetches
    interval_seconds: int = 300
    # Seconds between countdown recomputations
    clock_seconds: float = 1.0


@dataclass
class BoardConfig:
    """Ranking and display policy.

    Attributes:
        max_trains: Display cap: departures shown per direction or bus stop.
        lookahead_hours: Departures rolled over to tomorrow are shown only
            up to this many hours after midnight. None shows all of them.
        highlight_minutes: Departures this close are highlighted.
    """

    max_trains: int = 4
    lookahead_hours: float | None = 6.0
    highlight_minutes: int = 20


@dataclass
class BusOperatorConfig:
    """A bus operator key in the timetable payload and its display title."""

    key: str
    title: str = ""


def _default_bus_operators() -> list[BusOperatorConfig]:
    return [
        BusOperatorConfig(key="kintetsuBus", title="近鉄バス"),
        BusOperatorConfig(key="osakaBus", title="大阪バス"),
    ]


@dataclass
class BusConfig:
    """Bus data settings.

    Attributes:
        operators: Payload keys read as bus data, in display order.
        exclude_stops: Stop names never shown.
    """

    operators: list[BusOperatorConfig] = field(default_factory=_default_bus_operators)
    exclude_stops: list[str] = field(default_factory=lambda: ["八戸ノ里駅前"])

    @property
    def titles(self) -> dict[str, str]:
        return {op.key: op.title or op.key for op in self.operators}


@dataclass
class DisplayConfig:
    """Display window settings.

    Attributes:
        mode: "pygame" for a desktop window, "console" to print the board
            to stdout on every clock tick.
        width: Window width in pixels.
        height: Window height in pixels. Drives font scaling.
        fullscreen: Run Pygame in fullscreen mode.
        fps: Event loop frequency. Events are pumped this often even when
            the board isn't recomputed.
    """

    mode: str = "pygame"
    width: int = 1280
    height: int = 720
    fullscreen: bool = False
    fps: int = 10


@dataclass
class FontConfig:
    """Font files (looked up in the project fonts/ directory) and base sizes.

    The default fonts need CJK glyphs. When a file is missing the renderer
    falls back to Pillow's built-in font.
    """

    font_main: str = "NotoSansJP-Medium.ttf"
    font_bold: str = "NotoSansJP-Bold.ttf"
    # Base font size for the header bar
    header_size: int = 28
    # Base font size for station and direction titles
    title_size: int = 22
    # Base font size for departure rows
    row_size: int = 20


@dataclass
class Config:
    """Top-level application configuration.

    Assembled from four layers with increasing priority:
      1. Hardcoded defaults (dataclass field values)
      2. YAML file overlay (config.yaml or --config path)
      3. Environment variables (HASSHA_*)
      4. CLI argument overlay (--api-url, --now, etc.)

    Attributes:
        api: Data provider settings.
        refresh: Clock and data refresh intervals.
        board: Display cap, lookahead horizon, highlight threshold.
        stations: Station layout, in display order.
        bus: Bus operators and excluded stops.
        colors: Line colour table.
        display: Window settings.
        fonts: Font files and sizes.
        debug_now: Fixed "now" as an ISO 8601 string. The clock doesn't
            advance when set.
        fetch_test: CLI-only: fetch once, print the board and exit.
        render_test: CLI-only: render a sample board to assets/ and exit.
        debug: CLI-only: enable debug-level logging.
    """

    api: ApiConfig = field(default_factory=ApiConfig)
    refresh: RefreshConfig = field(default_factory=RefreshConfig)
    board: BoardConfig = field(default_factory=BoardConfig)
    stations: list[StationLayout] = field(default_factory=_default_stations)
    bus: BusConfig = field(default_factory=BusConfig)
    colors: dict[str, str] = field(default_factory=lambda: dict(LINE_COLORS))
    display: DisplayConfig = field(default_factory=DisplayConfig)
    fonts: FontConfig = field(default_factory=FontConfig)
    debug_now: str | None = None
    # CLI-only flags (not persisted in YAML)
    fetch_test: bool = False
    render_test: bool = False
    debug: bool = False


def parse_debug_now(value: str | None) -> datetime | None:
    """Parse the debug "now" override. Invalid values are logged and ignored."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value).replace(tzinfo=None)
    except ValueError:
        logger.warning("Ignoring invalid debug datetime: %r", value)
        return None


def _apply_yaml(config: Config, yaml_path: str) -> None:
    """Overlay YAML config values onto the Config object."""
    if not os.path.exists(yaml_path):
        return

    with open(yaml_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not data:
        return

    if "api" in data:
        a = data["api"]
        for key in ("base_url", "timeout", "holiday_url", "holiday_encoding", "bus_calendar_operator"):
            if key in a:
                setattr(config.api, key, a[key])

    if "refresh" in data:
        r = data["refresh"]
        for key in ("interval_seconds", "clock_seconds"):
            if key in r:
                setattr(config.refresh, key, r[key])

    if "board" in data:
        b = data["board"]
        for key in ("max_trains", "lookahead_hours", "highlight_minutes"):
            if key in b:
                setattr(config.board, key, b[key])

    if "stations" in data:
        config.stations = [
            StationLayout(
                key=str(s["key"]),
                left=str(s.get("left", "")),
                right=str(s.get("right", "")),
                line=str(s.get("line", "")),
            )
            for s in data["stations"]
            if "key" in s
        ]

    if "bus" in data:
        bus = data["bus"]
        if "operators" in bus:
            config.bus.operators = [
                BusOperatorConfig(key=str(op["key"]), title=str(op.get("title", "")))
                for op in bus["operators"]
                if "key" in op
            ]
        if "exclude_stops" in bus:
            config.bus.exclude_stops = list(bus["exclude_stops"] or [])

    if "colors" in data:
        # YAML colours replace the table so its order controls matching
        config.colors = {str(k): str(v) for k, v in (data["colors"] or {}).items()}

    if "display" in data:
        d = data["display"]
        for key in ("mode", "width", "height", "fullscreen", "fps"):
            if key in d:
                setattr(config.display, key, d[key])

    if "fonts" in data:
        fonts = data["fonts"]
        for key in ("font_main", "font_bold", "header_size", "title_size", "row_size"):
            if key in fonts:
                setattr(config.fonts, key, fonts[key])

    if "debug_now" in data:
        config.debug_now = data["debug_now"] or None


def _apply_env(config: Config, environ: dict[str, str]) -> None:
    """Overlay HASSHA_* environment variables onto the Config object."""
    if environ.get(ENV_API_BASE_URL):
        config.api.base_url = environ[ENV_API_BASE_URL]

    if environ.get(ENV_DEBUG_DATETIME):
        config.debug_now = environ[ENV_DEBUG_DATETIME]

    if environ.get(ENV_MAX_TRAINS):
        try:
            config.board.max_trains = int(environ[ENV_MAX_TRAINS])
        except ValueError:
            logger.warning("Ignoring invalid %s: %r", ENV_MAX_TRAINS, environ[ENV_MAX_TRAINS])


def _build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    All arguments are optional overlays on top of YAML and environment
    config.
    """
    parser = argparse.ArgumentParser(
        prog="hassha",
        description="Live train and bus departure board",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--api-url",
        type=str,
        help="Timetable server base URL",
    )
    parser.add_argument(
        "--refresh",
        type=int,
        help="Data refresh interval in seconds",
    )
    parser.add_argument(
        "--max-trains",
        type=int,
        help="Departures shown per direction",
    )
    parser.add_argument(
        "--lookahead",
        type=float,
        help="Hours after midnight to show tomorrow's departures",
    )
    parser.add_argument(
        "--now",
        type=str,
        help="Fixed current time (ISO 8601) for debugging",
    )
    parser.add_argument(
        "--fullscreen",
        action="store_true",
        default=None,
        help="Run in fullscreen mode",
    )
    parser.add_argument(
        "--console",
        action="store_true",
        default=False,
        help="Print the board to stdout instead of opening a window",
    )
    parser.add_argument(
        "--fetch-test",
        action="store_true",
        default=False,
        help="Fetch once, print the board to stdout and exit",
    )
    parser.add_argument(
        "--render-test",
        action="store_true",
        default=False,
        help="Render a sample board to assets/",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable debug logging",
    )
    return parser


def _apply_args(config: Config, args: argparse.Namespace) -> None:
    """Overlay CLI arguments onto the Config object."""
    if args.api_url:
        config.api.base_url = args.api_url

    if args.refresh is not None:
        config.refresh.interval_seconds = args.refresh

    if args.max_trains is not None:
        config.board.max_trains = args.max_trains

    if args.lookahead is not None:
        config.board.lookahead_hours = args.lookahead

    if args.now:
        config.debug_now = args.now

    if args.fullscreen is True:
        config.display.fullscreen = True

    if args.console:
        config.display.mode = "console"

    config.fetch_test = args.fetch_test
    config.render_test = args.render_test
    config.debug = args.debug


def load_config(
    yaml_path: str | None = None,
    cli_args: list[str] | None = None,
    environ: dict[str, str] | None = None,
) -> Config:
    """Load config: defaults → YAML overlay → environment → argparse overlay.

    Args:
        yaml_path: Path to YAML config file. Defaults to config.yaml in project root.
        cli_args: CLI arguments list. None means use sys.argv.
        environ: Environment mapping. None means use os.environ.
    """
    config = Config()

    parser = _build_parser()
    args = parser.parse_args(cli_args if cli_args is not None else None)

    # Default YAML path: config.yaml in project root (three levels up from
    # this file). CLI --config overrides.
    if yaml_path is None:
        if args.config:
            yaml_path = args.config
        else:
            yaml_path = os.path.join(
                Path(__file__).resolve().parent.parent.parent, "config.yaml"
            )

    _apply_yaml(config, yaml_path)
    _apply_env(config, dict(os.environ) if environ is None else environ)
    _apply_args(config, args)

    return config
