"""Command-line entry point: load the dump, persist periodically, serve."""

from __future__ import annotations

import argparse
import sys
import threading
import time

from redlite.database import Database, StrPath, get_database
from redlite.server import DEFAULT_DUMP_FILE, DEFAULT_PORT, RedisServer, persist

PERSIST_INTERVAL_SECONDS = 300


def _persist_periodically(db: Database, dump_file: StrPath) -> None:
    while True:
        time.sleep(PERSIST_INTERVAL_SECONDS)
        persist(db, dump_file)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="redlite", description="Serve a small key-value store over RESP."
    )
    parser.add_argument(
        "port", nargs="?", type=int, default=DEFAULT_PORT, help="TCP port to listen on"
    )
    parser.add_argument(
        "--dump-file",
        default=DEFAULT_DUMP_FILE,
        help="file the database is loaded from and persisted to",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the server; returns 1 if it could not start listening."""
    args = _parser().parse_args(argv)
    db = get_database()

    try:
        db.load(args.dump_file)
    except OSError:
        print("No previous database found, starting with an empty database.")
    else:
        print("Loading RedisDatabase successfully.")

    server = RedisServer(args.port, db, args.dump_file)

    threading.Thread(
        target=_persist_periodically,
        args=(db, args.dump_file),
        name="redlite-persist",
        daemon=True,
    ).start()

    try:
        server.run()
    except OSError as exc:
        print(f"Error starting server: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())