# File: phasetrack/tools/migrate.py
# Usage examples:
#   phasetrack-migrate up
#   phasetrack-migrate status
#   phasetrack-migrate rebuild
#   phasetrack-migrate up --db /path/to/phasetrack.db
#
# Notes:
# - DB path defaults to env PHASETRACK_DB, then settings.json, then the XDG data dir
# - Applies phasetrack/migrations/*.sql in lexicographic order

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from phasetrack.repositories.db import Database
from phasetrack.utils.config import db_path_from, load_settings
from phasetrack.utils.logging_setup import setup_logging
from phasetrack.utils.paths import MIGRATIONS_DIR


def cmd_status(db_path: Path) -> int:
    db = Database(db_path)
    try:
        applied = sorted(db.applied())
        pending = db.pending()
        print(f"DB: {db_path}")
        print(f"Migrations dir: {MIGRATIONS_DIR}")
        print(f"Applied count: {len(applied)}")
        for name in applied:
            print(f"  ✔ {name}")
        print(f"Pending count: {len(pending)}")
        for name in pending:
            print(f"  ⧗ {name}")
        return 0
    finally:
        db.close()


def cmd_up(db_path: Path) -> int:
    db = Database(db_path)
    try:
        applied = db.run_migrations()
        if applied:
            for name in applied:
                print(f"→ Applied migration: {name}")
            print("✓ Database is up to date.")
        else:
            print("✓ No changes. Database already up to date.")
        return 0
    finally:
        db.close()


def cmd_rebuild(db_path: Path) -> int:
    if db_path.exists():
        print(f"⟲ Rebuilding: removing existing DB {db_path}")
        db_path.unlink()
        for suffix in ("-wal", "-shm"):
            side = db_path.with_name(db_path.name + suffix)
            if side.exists():
                side.unlink()
    return cmd_up(db_path)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="phasetrack-migrate", description="Apply phasetrack schema migrations.")
    parser.add_argument("command", choices=["up", "status", "rebuild"])
    parser.add_argument("--db", type=Path, default=None, help="SQLite file (default: $PHASETRACK_DB or settings)")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    setup_logging(level_name=settings["logging"]["level"])
    db_path = args.db if args.db is not None else db_path_from(settings)

    if args.command == "status":
        return cmd_status(db_path)
    if args.command == "rebuild":
        return cmd_rebuild(db_path)
    return cmd_up(db_path)


if __name__ == "__main__":
    sys.exit(main())
