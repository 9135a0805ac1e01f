# main.py

"""Entry point for the backmarket_tracker headless CLI."""

import argparse
import logging
import sys
from pathlib import Path

from src.config.logging_config import setup_logging
from src.config.settings import Settings, TrackerConfig

logger = logging.getLogger("backmarket_tracker.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="backmarket_tracker",
        description="Track refurbished-phone tier prices on Back Market.",
    )
    parser.add_argument(
        "-g",
        "--groups",
        default=None,
        help="Comma-separated group ids to track (default: all).",
    )
    parser.add_argument(
        "--parallel",
        action="store_true",
        default=Settings.PARALLEL_FETCH,
        help="Fetch all URLs concurrently, then persist once.",
    )
    parser.add_argument(
        "--repeat",
        action="store_true",
        default=False,
        help="Run tracking passes forever.",
    )
    parser.add_argument(
        "--replay",
        type=Path,
        default=None,
        metavar="FILE",
        help="Process a captured HTML page instead of fetching.",
    )
    parser.add_argument(
        "--group",
        default="replay",
        dest="replay_group",
        help="Group id for --replay (default: replay).",
    )
    parser.add_argument(
        "--url",
        default="https://example.org",
        dest="replay_url",
        help="Source URL for --replay.",
    )
    parser.add_argument(
        "--recompute",
        action="store_true",
        default=False,
        help="Rebuild the summary file from the history file.",
    )
    parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Print the current best-price summary.",
    )
    return parser


def main() -> None:
    """Route to the requested runner and exit with its code."""
    log_file = setup_logging()
    logger.info("backmarket_tracker starting, log file: %s", log_file)

    args = _build_parser().parse_args()
    config = TrackerConfig()

    from src.cli import runner

    try:
        if args.replay is not None:
            exit_code = runner.run_replay(
                config, args.replay, args.replay_group, args.replay_url
            )
        elif args.recompute:
            exit_code = runner.run_recompute(config)
        elif args.show:
            exit_code = runner.run_show(config)
        else:
            exit_code = runner.run_track(
                config, args.groups, args.parallel, args.repeat
            )
    except Exception:
        logger.critical("Fatal error during run", exc_info=True)
        raise
    finally:
        logger.info("backmarket_tracker shutting down")
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
