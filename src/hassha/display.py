"""Pygame display window and standalone status screens."""

from __future__ import annotations

import logging

import pygame
from PIL import Image, ImageDraw

from hassha.renderer import AMBER, BACKGROUND, MUTED, TEXT, load_font

logger = logging.getLogger(__name__)


class BoardDisplay:
    """Manages the Pygame window that displays the board."""

    def __init__(self, width: int = 1280, height: int = 720, fullscreen: bool = False) -> None:
        """Initialize the Pygame display window.

        Args:
            width: Window width in pixels.
            height: Window height in pixels.
            fullscreen: If True, open in fullscreen mode instead of a windowed
                display. Useful for kiosk-style setups.
        """
        pygame.init()
        flags = 0
        if fullscreen:
            flags |= pygame.FULLSCREEN
        self.screen = pygame.display.set_mode((width, height), flags)
        pygame.display.set_caption("発車案内")
        self.width = width
        self.height = height
        mode = "fullscreen" if fullscreen else f"{width}x{height}"
        logger.info("Pygame display initialized (%s)", mode)

    def update(self, pil_image: Image.Image) -> None:
        """Convert a PIL Image to a Pygame surface and display it."""
        raw = pil_image.tobytes()
        surface = pygame.image.frombytes(raw, pil_image.size, pil_image.mode)
        self.screen.blit(surface, (0, 0))
        pygame.display.flip()

    def handle_events(self) -> bool:
        """Process Pygame events. Returns False if the app should quit."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logger.info("Received QUIT event")
                return False
            if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                logger.info("Received ESC keypress")
                return False
        return True

    def close(self) -> None:
        """Shut down the Pygame display."""
        logger.info("Closing Pygame display")
        pygame.quit()


def render_error(message: str, width: int = 1280, height: int = 720) -> Image.Image:
    """Render a centered error message with a reload hint."""
    img = Image.new("RGB", (width, height), BACKGROUND)
    draw = ImageDraw.Draw(img)
    font = load_font("NotoSansJP-Bold.ttf", max(10, round(height * 0.05)))
    small = load_font("NotoSansJP-Medium.ttf", max(8, round(height * 0.03)))

    cx, cy = width // 2, height // 2
    draw.text((cx, cy), message, fill=AMBER, font=font, anchor="mm")
    draw.text(
        (cx, cy + round(height * 0.08)),
        "次回の更新で再取得します",
        fill=MUTED,
        font=small,
        anchor="mm",
    )
    return img


def render_boot_screen(status: str, width: int = 1280, height: int = 720) -> Image.Image:
    """Render a boot/splash screen with the app title, loading status, and version."""
    from hassha import __version__

    img = Image.new("RGB", (width, height), BACKGROUND)
    draw = ImageDraw.Draw(img)

    title_font = load_font("NotoSansJP-Bold.ttf", max(10, int(height * 0.15)))
    status_font = load_font("NotoSansJP-Medium.ttf", max(8, int(height * 0.05)))
    small_font = load_font("NotoSansJP-Medium.ttf", max(8, int(height * 0.03)))

    # Title centered in the upper half
    draw.text((width // 2, int(height * 0.38)), "発車案内", fill=TEXT, font=title_font, anchor="mm")
    # Status line below the title
    draw.text((width // 2, int(height * 0.6)), status, fill=AMBER, font=status_font, anchor="mm")

    margin = int(height * 0.03)
    draw.text(
        (width - margin, height - margin),
        f"v{__version__}",
        fill=MUTED,
        font=small_font,
        anchor="rs",
    )
    return img
