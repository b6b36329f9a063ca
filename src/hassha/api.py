"""Timetable server and holiday calendar client."""

from __future__ import annotations

import logging
import time
from datetime import date

import requests

from hassha.board import build_snapshot
from hassha.config import Config
from hassha.holidays import parse_calendar
from hassha.models import Snapshot

logger = logging.getLogger(__name__)


class TimetableClient:
    """Client for the timetable server and the public holiday calendar."""

    def __init__(self, config: Config) -> None:
        """Initialize the client.

        Creates a requests.Session for HTTP connection reuse across the
        timetable, bus calendar and holiday requests.

        Args:
            config: Application configuration. Used for the base URL,
                timeouts, bus operator keys and excluded stops.
        """
        self.config = config
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    @property
    def base_url(self) -> str:
        return self.config.api.base_url.rstrip("/")

    def get_timetable(self) -> dict:
        """Fetch the combined timetable payload.

        GET /api/all
        """
        resp = self.session.get(
            f"{self.base_url}/api/all",
            timeout=self.config.api.timeout,
        )
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected timetable payload: {type(data).__name__}")
        return data

    def get_bus_calendar(self, day: date) -> dict:
        """Fetch one day's bus timetable when /api/all doesn't carry it.

        GET /api/kintetsu-bus/calendar/{YYYY-MM-DD}
        """
        resp = self.session.get(
            f"{self.base_url}/api/kintetsu-bus/calendar/{day:%Y-%m-%d}",
            timeout=self.config.api.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    def get_holiday_text(self) -> str:
        """Fetch the holiday CSV as text.

        The Cabinet Office serves it without a charset, so the configured
        encoding is applied before decoding.
        """
        resp = self.session.get(
            self.config.api.holiday_url,
            timeout=self.config.api.timeout,
        )
        resp.raise_for_status()
        resp.encoding = self.config.api.holiday_encoding
        return resp.text

    def load_calendar(self) -> dict[str, str]:
        """Fetch and parse the holiday calendar.

        Any failure gives an empty calendar, which classifies weekends only.
        """
        try:
            calendar = parse_calendar(self.get_holiday_text())
        except (requests.RequestException, UnicodeDecodeError, LookupError):
            logger.warning(
                "Failed to load holiday calendar, using weekends only", exc_info=True
            )
            return {}
        logger.info("Loaded %d holidays", len(calendar))
        return calendar

    def fetch_snapshot(self, today: date) -> Snapshot:
        """Fetch everything for one data refresh and normalize it.

        Raises requests.RequestException or ValueError if the timetable
        itself can't be fetched. Failures of the holiday calendar and the
        bus calendar fallback are logged and tolerated.
        """
        raw = self.get_timetable()

        fallback = self.config.api.bus_calendar_operator
        if fallback and fallback in self.config.bus.titles and not raw.get(fallback):
            try:
                raw = {**raw, fallback: self.get_bus_calendar(today)}
            except (requests.RequestException, ValueError):
                logger.warning("Failed to fetch bus calendar for %s", today, exc_info=True)

        return build_snapshot(
            raw,
            calendar=self.load_calendar(),
            bus_titles=self.config.bus.titles,
            exclude_stops=self.config.bus.exclude_stops,
            fetched_at=time.time(),
        )
