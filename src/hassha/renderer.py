"""PIL-based departure board renderer.

Renders the board as a PIL Image: a header bar with date, timetable
variant and clock, then one block per station with its two directions
side by side, then the bus stops of each bus operator.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from hassha.board import format_date, format_day
from hassha.models import Board, DisplayTrain

# Project root (three levels up from this file)
_ROOT = Path(__file__).resolve().parent.parent.parent
_FONTS_DIR = _ROOT / "fonts"

BACKGROUND = (17, 24, 39)
PANEL = (31, 41, 55)
TEXT = (229, 231, 235)
MUTED = (156, 163, 175)
# Highlight colour for departures within highlight_minutes
AMBER = (252, 211, 77)
BLACK = (0, 0, 0)

# Base reference height all sizes are scaled against
BASE_HEIGHT = 720

EMPTY_TRAINS = "この時間帯の電車はありません"
EMPTY_BUSES = "この時間帯のバスはありません"


def load_font(name: str, size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load a font from fonts/, falling back to Pillow's built-in font."""
    try:
        return ImageFont.truetype(str(_FONTS_DIR / name), size)
    except OSError:
        return ImageFont.load_default(size=size)


def text_width(font, text: str) -> int:
    bbox = font.getbbox(text)
    return bbox[2] - bbox[0]


class BoardRenderer:
    """Renders a Board as a PIL Image.

    All font sizes and spacing scale with display height, using 720px as
    the base reference, so the same layout works on a small panel or a
    full HD screen. The renderer is stateless: call render() on every
    clock tick with the freshly computed board.
    """

    def __init__(
        self,
        width: int = 1280,
        height: int = 720,
        font_main: str = "NotoSansJP-Medium.ttf",
        font_bold: str = "NotoSansJP-Bold.ttf",
        header_size: int = 28,
        title_size: int = 22,
        row_size: int = 20,
        highlight_minutes: int = 20,
    ) -> None:
        """Initialize the board renderer.

        Args:
            width: Image width in pixels.
            height: Image height in pixels. Drives font scaling.
            font_main: Font file for departure rows.
            font_bold: Font file for the header and titles.
            header_size: Base font size for the header bar.
            title_size: Base font size for station and direction titles.
            row_size: Base font size for departure rows.
            highlight_minutes: Rows departing within this many minutes get
                an amber countdown.
        """
        self.width = width
        self.height = height
        self.scale = height / BASE_HEIGHT
        self.pad = max(2, round(12 * self.scale))
        self.highlight_minutes = highlight_minutes

        self.font_header = load_font(font_bold, max(8, round(header_size * self.scale)))
        self.font_title = load_font(font_bold, max(8, round(title_size * self.scale)))
        self.font_row = load_font(font_main, max(8, round(row_size * self.scale)))

        self.header_height = max(12, round(header_size * self.scale)) + self.pad * 2
        self.title_height = max(10, round(title_size * self.scale)) + self.pad
        self.row_height = max(10, round(row_size * self.scale)) + self.pad

    def _truncate_text(self, text: str, font, max_width: int) -> str:
        """Truncate text with ".." if it exceeds max_width pixels."""
        if not text or text_width(font, text) <= max_width:
            return text
        for end in range(len(text), 0, -1):
            candidate = text[:end] + ".."
            if text_width(font, candidate) <= max_width:
                return candidate
        return ".."

    def render(self, board: Board) -> Image.Image:
        """Render a full board image."""
        img = Image.new("RGB", (self.width, self.height), BACKGROUND)
        draw = ImageDraw.Draw(img)
        self._draw_header(draw, board)

        y = self.header_height + self.pad
        for group in board.stations:
            if y >= self.height:
                break
            draw.text((self.pad, y), group.station, fill=group.color, font=self.font_header)
            y += self.header_height - self.pad
            panels = [
                (d.title, d.color, d.trains, EMPTY_TRAINS) for d in group.directions
            ]
            y = self._draw_panels(draw, panels, y) + self.pad

        for bus in board.buses:
            if y >= self.height:
                break
            title = bus.title
            if bus.operation_type:
                title = f"{title}  {bus.operation_type}日運行"
            draw.text((self.pad, y), title, fill=bus.color, font=self.font_header)
            y += self.header_height - self.pad
            panels = [(s.stop_name, s.color, s.trains, EMPTY_BUSES) for s in bus.stops]
            y = self._draw_panels(draw, panels, y) + self.pad

        return img

    def render_no_data(self, now: datetime, message: str = "表示できる時刻表データがありません") -> Image.Image:
        """Render the header with a centred message, for an empty board."""
        img = Image.new("RGB", (self.width, self.height), BACKGROUND)
        draw = ImageDraw.Draw(img)
        self._draw_clock(draw, now)
        area_top = self.header_height
        cy = area_top + (self.height - area_top) // 2
        draw.text((self.width // 2, cy), message, fill=MUTED, font=self.font_title, anchor="mm")
        return img

    def _draw_clock(self, draw: ImageDraw.ImageDraw, now: datetime) -> None:
        draw.rectangle([(0, 0), (self.width, self.header_height)], fill=PANEL)
        cy = self.header_height // 2
        draw.text(
            (self.width - self.pad, cy),
            now.strftime("%H:%M:%S"),
            fill=TEXT,
            font=self.font_header,
            anchor="rm",
        )

    def _draw_header(self, draw: ImageDraw.ImageDraw, board: Board) -> None:
        """Draw date and timetable variant on the left, clock on the right."""
        self._draw_clock(draw, board.now)
        cy = self.header_height // 2
        draw.text(
            (self.pad, cy),
            format_date(board.now),
            fill=TEXT,
            font=self.font_header,
            anchor="lm",
        )
        date_w = text_width(self.font_header, format_date(board.now))
        draw.text(
            (self.pad * 3 + date_w, cy),
            format_day(board),
            fill=AMBER,
            font=self.font_title,
            anchor="lm",
        )

    def _draw_panels(self, draw: ImageDraw.ImageDraw, panels: list, y: int) -> int:
        """Draw panels two per row. Returns the y below the last row."""
        col_w = (self.width - self.pad * 3) // 2
        bottom = y
        for i, (title, color, trains, empty_msg) in enumerate(panels):
            col = i % 2
            if col == 0 and i > 0:
                y = bottom + self.pad
            x = self.pad + col * (col_w + self.pad)
            bottom = max(bottom, self._draw_panel(draw, x, y, col_w, title, color, trains, empty_msg))
        return bottom

    def _draw_panel(
        self,
        draw: ImageDraw.ImageDraw,
        x: int,
        y: int,
        w: int,
        title: str,
        color: str,
        trains: tuple[DisplayTrain, ...],
        empty_msg: str,
    ) -> int:
        """Draw one direction or bus stop panel. Returns its bottom y."""
        rows = max(1, len(trains))
        h = self.title_height + rows * self.row_height + self.pad // 2
        draw.rectangle([(x, y), (x + w, y + h)], fill=PANEL)
        # Coloured bar on the left edge identifies the line
        bar_w = max(2, round(4 * self.scale))
        draw.rectangle([(x, y), (x + bar_w, y + self.title_height)], fill=color)
        draw.text(
            (x + bar_w + self.pad, y + self.title_height // 2),
            self._truncate_text(title, self.font_title, w - bar_w - self.pad * 2),
            fill=TEXT,
            font=self.font_title,
            anchor="lm",
        )

        row_y = y + self.title_height
        if not trains:
            draw.text(
                (x + w // 2, row_y + self.row_height // 2),
                empty_msg,
                fill=MUTED,
                font=self.font_row,
                anchor="mm",
            )
            return y + h

        time_w = text_width(self.font_row, "00:00") + self.pad
        for train in trains:
            self._draw_row(draw, x + self.pad, row_y, w - self.pad * 2, time_w, color, train)
            row_y += self.row_height
        return y + h

    def _draw_row(
        self,
        draw: ImageDraw.ImageDraw,
        x: int,
        y: int,
        w: int,
        time_w: int,
        color: str,
        train: DisplayTrain,
    ) -> None:
        """Draw a single departure row: time, type + destination, countdown."""
        cy = y + self.row_height // 2
        draw.text((x, cy), train.time, fill=color, font=self.font_row, anchor="lm")

        remaining = f"{train.remaining_minutes} 分"
        rem_w = text_width(self.font_row, remaining)
        right = x + w

        # Departures close to leaving get black text on an amber box
        if train.remaining_minutes <= self.highlight_minutes:
            margin = max(1, round(4 * self.scale))
            draw.rectangle(
                [
                    (right - rem_w - margin * 2, y + margin),
                    (right, y + self.row_height - margin),
                ],
                fill=AMBER,
            )
            draw.text((right - margin, cy), remaining, fill=BLACK, font=self.font_row, anchor="rm")
        else:
            draw.text((right, cy), remaining, fill=MUTED, font=self.font_row, anchor="rm")

        dest = f"{train.type} {train.destination}".strip()
        dest_max = w - time_w - rem_w - self.pad * 3
        draw.text(
            (x + time_w, cy),
            self._truncate_text(dest, self.font_row, dest_max),
            fill=TEXT,
            font=self.font_row,
            anchor="lm",
        )


def _sample_payload() -> dict:
    """Mock /api/all payload covering split, uniform and bus shapes."""
    def trains(times, destination, train_type):
        return [
            {"hour": str(h), "minute": f"{m:02d}", "destination": destination, "trainType": train_type}
            for h, m in times
        ]

    return {
        "kintetsu": {
            "奈良線 八戸ノ里駅": {
                "奈良線 大阪難波・尼崎(阪神)方面": {
                    "weekday": trains([(8, 3), (8, 11), (8, 19), (8, 27)], "大阪難波", "普通"),
                    "holiday": trains([(8, 5), (8, 25)], "大阪難波", "普通"),
                },
                "奈良線 近鉄奈良方面": {
                    "weekday": trains([(8, 6), (8, 36)], "近鉄奈良", "区間準急"),
                    "holiday": [],
                },
            },
        },
        "jr": {
            "ＪＲ俊徳道駅": {
                "放出・新大阪・大阪（地下ホーム）方面": trains([(8, 9), (8, 24)], "大阪", "普通"),
                "久宝寺・奈良方面": trains([(8, 14), (8, 44)], "奈良", "普通"),
            },
        },
        "kintetsuBus": {
            "operationType": "A",
            "stops": [
                {
                    "stopName": "近畿大学東門前",
                    "routeName": "近畿大学東門前→八戸ノ里駅前",
                    "operationType": "A",
                    "schedule": [{"hour": 8, "minutes": [4, 20, 40]}],
                },
            ],
        },
        "lastUpdated": "2024-05-01T07:00:00+09:00",
    }


def run_render_test(config=None) -> str:
    """Render a mock board to assets/test_output.png and return the file path.

    Builds a snapshot from a mock payload (no server needed) and renders
    it at a fixed weekday morning. Uses config for display size, fonts and
    layout if provided.
    """
    from hassha.board import build_board, build_snapshot
    from hassha.config import Config

    config = config or Config()
    snapshot = build_snapshot(
        _sample_payload(),
        bus_titles=config.bus.titles,
        exclude_stops=config.bus.exclude_stops,
    )
    now = datetime(2024, 5, 1, 8, 2, 30)
    board = build_board(
        snapshot,
        now,
        config.stations,
        config.board.max_trains,
        config.board.lookahead_hours,
        config.colors,
    )
    renderer = BoardRenderer(
        width=config.display.width,
        height=config.display.height,
        font_main=config.fonts.font_main,
        font_bold=config.fonts.font_bold,
        header_size=config.fonts.header_size,
        title_size=config.fonts.title_size,
        row_size=config.fonts.row_size,
        highlight_minutes=config.board.highlight_minutes,
    )
    img = renderer.render(board)
    assets_dir = _ROOT / "assets"
    assets_dir.mkdir(exist_ok=True)
    output_path = str(assets_dir / "test_output.png")
    img.save(output_path)
    return output_path
