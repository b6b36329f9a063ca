"""Console display backend: prints the text board to a stream."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

logger = logging.getLogger(__name__)


class ConsoleDisplay:
    """Write the text board to a stream whenever it changes.

    Stands in for the Pygame window on headless machines. The board text
    only changes once a minute (or on refresh), so redraws on every clock
    tick are suppressed.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream or sys.stdout
        self._last = ""
        logger.info("Console display initialized")

    def update_text(self, text: str) -> None:
        """Print the board if it differs from the last one printed."""
        if text == self._last:
            return
        self._last = text
        self.stream.write(text + "\n\n")
        self.stream.flush()

    def handle_events(self) -> bool:
        """No events on a console - always returns True."""
        return True

    def close(self) -> None:
        logger.info("Console display closed")
