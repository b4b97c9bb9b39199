"""Seerr-Matrix bridge entry point.

Usage: seerrbridge [--config PATH] [--check]
"""

import argparse
import logging
import sys
from pathlib import Path

from seerrbridge.config import load_config


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        prog="seerrbridge",
        description="Bridge Seerr issue notifications into a Matrix room and resolve issues from threads",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config.yaml"),
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only load and validate config, then exit",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Entry point: load config, then run the daemon."""
    args = parse_args(argv)

    config_path = args.config
    if not config_path.is_file() and config_path == Path("config.yaml"):
        if Path("config.example.yaml").is_file():
            config_path = Path("config.example.yaml")
            logging.basicConfig(level=logging.INFO)
            logging.getLogger("seerrbridge").warning("config.yaml not found, using config.example.yaml")

    config = load_config(config_path)

    from seerrbridge.daemon import missing_settings, run_daemon

    if args.check:
        missing = missing_settings(config)
        if missing:
            print("Config incomplete, missing:", ", ".join(missing))
            return 1
        print("Config OK:", config.matrix.room, config.seerr.api_url)
        return 0

    try:
        run_daemon(config)
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        logging.getLogger("seerrbridge.daemon").exception("Fatal error: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
