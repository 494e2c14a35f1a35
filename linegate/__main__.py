"""Run a linegate server from the command line."""

import argparse
import logging
import sys
from typing import List, Optional

from twisted.python import log

from .server import Server
from .store import MemoryUserStore, SQLiteUserStore, UserStore

logger = logging.getLogger("linegate")

log_levels = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="linegate", description="Run a line based login server."
    )
    parser.add_argument("--port", type=int, default=8023, help="Port to listen on")
    parser.add_argument(
        "--interface", default="0.0.0.0", help="Interface to listen on"
    )
    parser.add_argument(
        "--database",
        default=None,
        help="SQLite database to keep users in (users are kept in memory if omitted)",
    )
    parser.add_argument(
        "--idle-timeout",
        type=int,
        default=600,
        help="Seconds of silence before a client is disconnected (0 disables)",
    )
    parser.add_argument(
        "--log-level", choices=sorted(log_levels), default="info", help="Log level"
    )
    parser.add_argument("--log-file", default=None, help="Write logs to this file")
    return parser.parse_args(argv)


def setup_logging(level: str = "info", log_file: Optional[str] = None) -> None:
    """Configure logging and send Twisted's log events through it."""
    logging.basicConfig(
        level=log_levels.get(level.lower(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        filename=log_file,
    )
    log.PythonLoggingObserver().start()


def make_store(database: Optional[str]) -> UserStore:
    """Return the store named on the command line."""
    if database:
        return SQLiteUserStore(database)
    logger.warning("No database given. Users will be lost on shutdown.")
    return MemoryUserStore()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.log_level, args.log_file)
    server = Server(
        port=args.port,
        interface=args.interface,
        store=make_store(args.database),
        idle_timeout=args.idle_timeout,
    )
    server.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
