"""Command-line entry point for the bot."""

from __future__ import annotations

import argparse
import logging
import signal
import sqlite3
import threading
from collections.abc import Sequence

from .bot import HearsayBot
from .config import ConfigError, read_config
from .storage import OptOutTracker, init_database

log = logging.getLogger("hearsay_bot")

CONFIG_PATH = "config.yaml"


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="hearsay", description="IRC chat recording bot.")
    parser.add_argument(
        "-s",
        dest="server",
        default="localhost:6697",
        help="server address and port. example: irc.example.net:6697",
    )
    parser.add_argument(
        "-c",
        dest="channel",
        default="#test",
        help="channel to join. example: #test",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    log.info("hearsay is starting...")
    log.info("Reading config from %s.", CONFIG_PATH)
    try:
        config = read_config(CONFIG_PATH, True)
    except ConfigError:
        log.error("Failed to load configuration.")
        return 1
    log.info("Successfully loaded configuration.")

    try:
        db = init_database()
    except sqlite3.Error:
        log.error("Failed DB init.")
        return 1
    log.info("Passed DB init.")

    try:
        opt_outs = OptOutTracker()
        try:
            opt_outs.load(db)
        except sqlite3.Error as exc:
            log.error("Failed loading opt-out map: %s", exc)
            return 1
        log.info("Passed opt-out loading.")

        stop = threading.Event()

        def _terminate(signum: int, frame: object) -> None:
            log.info("Termination signal received. Shutting down...")
            stop.set()

        previous = {
            sig: signal.signal(sig, _terminate) for sig in (signal.SIGINT, signal.SIGTERM)
        }
        try:
            HearsayBot(args.server, args.channel, db, config, opt_outs).run(stop)
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())