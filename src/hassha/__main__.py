"""Entry point for hassha."""

import logging
import sys

from hassha.config import load_config, parse_debug_now


def run_fetch_test(config):
    """Fetch once and print the board to stdout."""
    from datetime import datetime

    from hassha.api import TimetableClient
    from hassha.board import build_board, format_board

    now = parse_debug_now(config.debug_now) or datetime.now()
    client = TimetableClient(config)
    snapshot = client.fetch_snapshot(now.date())
    board = build_board(
        snapshot,
        now,
        config.stations,
        config.board.max_trains,
        config.board.lookahead_hours,
        config.colors,
    )
    print(format_board(board))


def run_render_test(config):
    """Render a mock board to assets/."""
    from hassha.renderer import run_render_test as _run_render_test

    output_path = _run_render_test(config)
    print(f"Rendered test output to: {output_path}")


def run_app(config):
    """Run the full display application."""
    from hassha.app import BoardApp

    app = BoardApp(config)
    app.run()


def main():
    """CLI entry point for the hassha application.

    Loads configuration (defaults -> YAML -> environment -> CLI args), sets
    up logging to stderr, then dispatches to one of three modes based on
    CLI flags:
      --fetch-test:  print the current board to stdout and exit
      --render-test: save a mock board image to assets/ and exit
      (default):     run the departure board (window or --console)
    """
    config = load_config()

    # Log to stderr so stdout is clean for --fetch-test and console output.
    level = logging.DEBUG if config.debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )

    logger = logging.getLogger(__name__)
    logger.debug(
        "Config loaded: %d station(s), %d bus operator(s), debug=%s",
        len(config.stations), len(config.bus.operators), config.debug,
    )

    try:
        if config.fetch_test:
            logger.info("Running fetch test")
            run_fetch_test(config)
        elif config.render_test:
            logger.info("Running render test")
            run_render_test(config)
        else:
            logger.info("Starting departure board (%s)", config.display.mode)
            run_app(config)
    except KeyboardInterrupt:
        print("\nShutting down.")
        sys.exit(0)
    except Exception as e:
        logger.error("Unexpected error: %s", e, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
