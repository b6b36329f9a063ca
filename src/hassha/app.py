"""Main application loop with clock and data refresh ticks."""

from __future__ import annotations

import logging
import signal
import time
from datetime import datetime
from typing import Callable

import requests

try:
    import sdnotify
except ImportError:
    sdnotify = None

from hassha.api import TimetableClient
from hassha.board import build_board, format_board
from hassha.config import Config, parse_debug_now
from hassha.models import Board, Snapshot
from hassha.renderer import BoardRenderer

logger = logging.getLogger(__name__)


def make_clock(fixed_now: datetime | None = None) -> Callable[[], datetime]:
    """Return a callable giving the current naive local time.

    With fixed_now the clock is frozen at that instant.
    """
    if fixed_now is not None:
        return lambda: fixed_now
    return datetime.now


class BoardApp:
    """Orchestrates fetching, ranking and displaying the departure board.

    Two independent ticks drive the loop: the clock tick recomputes the
    board from the current snapshot, the data refresh tick fetches a new
    snapshot. A failed refresh keeps the previous snapshot. Only one
    thread ever touches the snapshot, and it is replaced as a whole.
    """

    def __init__(
        self,
        config: Config,
        client: TimetableClient | None = None,
        display=None,
        now: datetime | None = None,
    ) -> None:
        """Initialize the departure board application.

        The display backend is selected from config.display.mode with lazy
        imports, so console mode doesn't open a Pygame window.

        Args:
            config: Fully assembled application configuration.
            client: Timetable client. Created from config if omitted.
            display: Display backend. Created from config if omitted.
            now: Fixed current time for debugging. Defaults to the
                config's debug_now, or the wall clock.
        """
        self.config = config
        self.client = client or TimetableClient(config)
        self.clock = make_clock(now or parse_debug_now(config.debug_now))
        self.renderer = None
        if display is None:
            display = self._create_display()
        self.display = display
        if config.display.mode != "console":
            self.renderer = BoardRenderer(
                width=config.display.width,
                height=config.display.height,
                font_main=config.fonts.font_main,
                font_bold=config.fonts.font_bold,
                header_size=config.fonts.header_size,
                title_size=config.fonts.title_size,
                row_size=config.fonts.row_size,
                highlight_minutes=config.board.highlight_minutes,
            )
        self.snapshot: Snapshot | None = None
        self.fetch_ok = False
        self.last_refresh = 0.0
        self.last_tick = 0.0
        self.frame_interval = 1.0 / max(1, config.display.fps)
        self._running = False
        # sd-notify: no-op if sdnotify not installed or NOTIFY_SOCKET not set
        self._notifier = sdnotify.SystemdNotifier() if sdnotify else None

    def _create_display(self):
        if self.config.display.mode == "console":
            from hassha.console_display import ConsoleDisplay

            return ConsoleDisplay()
        from hassha.display import BoardDisplay

        return BoardDisplay(
            width=self.config.display.width,
            height=self.config.display.height,
            fullscreen=self.config.display.fullscreen,
        )

    def _notify(self, state: str) -> None:
        """Send a notification to systemd (no-op outside systemd)."""
        if self._notifier:
            self._notifier.notify(state)

    def needs_refresh(self) -> bool:
        """Check if the data refresh interval has elapsed."""
        return time.time() - self.last_refresh >= self.config.refresh.interval_seconds

    def refresh(self) -> bool:
        """Fetch a new snapshot, keeping the old one on failure.

        Returns True if the snapshot was replaced.
        """
        self.last_refresh = time.time()
        try:
            logger.debug("Fetching timetable from %s ...", self.config.api.base_url)
            t0 = time.time()
            snapshot = self.client.fetch_snapshot(self.clock().date())
        except (requests.RequestException, ValueError):
            logger.warning("Failed to fetch timetable", exc_info=True)
            self.fetch_ok = False
            return False
        self.snapshot = snapshot
        self.fetch_ok = True
        logger.info(
            "Fetched %d stations, %d bus operators (%.1fs)",
            len(snapshot.stations), len(snapshot.bus_sources), time.time() - t0,
        )
        return True

    def compute_board(self) -> Board:
        """Rank the current snapshot against the current time."""
        board_cfg = self.config.board
        return build_board(
            self.snapshot,
            self.clock(),
            self.config.stations,
            board_cfg.max_trains,
            board_cfg.lookahead_hours,
            self.config.colors,
        )

    def draw(self, board: Board) -> None:
        """Show the board, the no-data screen, or the error screen.

        The error screen is only used while no snapshot was ever fetched.
        """
        if self.renderer is None:
            if self.snapshot is None:
                self.display.update_text("時刻表データを取得できません")
            else:
                self.display.update_text(format_board(board))
            return

        from hassha.display import render_error

        if self.snapshot is None:
            img = render_error(
                "時刻表データを取得できません",
                self.config.display.width,
                self.config.display.height,
            )
        elif board.is_empty:
            img = self.renderer.render_no_data(board.now)
        else:
            img = self.renderer.render(board)
        self.display.update(img)

    def _show_boot(self, status: str) -> None:
        """Render and display a boot screen with the given status message."""
        self._notify(f"STATUS={status}")
        if self.renderer is None:
            return
        from hassha.display import render_boot_screen

        img = render_boot_screen(status, self.config.display.width, self.config.display.height)
        self.display.update(img)
        self.display.handle_events()

    def stop(self) -> None:
        self._running = False

    def run(self) -> None:
        """Run the main application loop."""
        signal.signal(signal.SIGTERM, lambda *_: self.stop())
        try:
            logger.info(
                "Starting BoardApp with %d station(s), refresh=%ds, cap=%d",
                len(self.config.stations),
                self.config.refresh.interval_seconds,
                self.config.board.max_trains,
            )
            self._show_boot("時刻表を読み込み中...")
            self.refresh()

            self._notify("READY=1")
            self._notify("STATUS=Running")
            logger.info("Entering main loop")
            self._running = True
            while self._running:
                if not self.display.handle_events():
                    break

                if self.needs_refresh():
                    self.refresh()

                if time.time() - self.last_tick >= self.config.refresh.clock_seconds:
                    self.last_tick = time.time()
                    self.draw(self.compute_board())

                self._notify("WATCHDOG=1")
                time.sleep(self.frame_interval)
        finally:
            self._notify("STOPPING=1")
            self.display.close()
