# File: phasetrack/tools/report.py
# Usage examples:
#   phasetrack-report
#   phasetrack-report --project 2

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from phasetrack.app_context import AppContext
from phasetrack.models.types import STATUS_LABELS
from phasetrack.services.tracker_service import TrackerService
from phasetrack.utils.config import load_settings
from phasetrack.utils.logging_setup import setup_logging


def format_summary(summary: Dict[str, Any]) -> List[str]:
    lines = [f"{summary['name']} (#{summary['id']}) - {summary['progress']}%"]
    if not summary["phases"]:
        lines.append("  (no phases)")
    for p in summary["phases"]:
        label = STATUS_LABELS.get(p["status"], p["status"])
        lines.append(
            f"  {p['position'] + 1:>2}. {p['name']:<28} {label:<12} {p['progress']:>3}%"
            f"  {p['completed_item_count']}/{p['total_item_count']} items"
        )
    return lines


def render(service: TrackerService, project_ids: Optional[Sequence[int]] = None) -> List[str]:
    ids = list(project_ids) if project_ids else [int(p["id"]) for p in service.projects.list_projects()]
    out: List[str] = []
    for pid in ids:
        summary = service.project_summary(pid)
        if summary is None:
            out.append(f"project {pid}: not found")
            continue
        out.extend(format_summary(summary))
    return out


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="phasetrack-report", description="Print phase progress per project.")
    parser.add_argument("--db", type=Path, default=None, help="SQLite file (default: $PHASETRACK_DB or settings)")
    parser.add_argument("--project", type=int, action="append", dest="projects", help="Project id (repeatable)")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    setup_logging(level_name=settings["logging"]["level"])
    ctx = AppContext.create(db_path=args.db, settings=settings)
    try:
        lines = render(ctx.service, args.projects)
        print("\n".join(lines) if lines else "No projects.")
        return 0
    finally:
        ctx.close()


if __name__ == "__main__":
    sys.exit(main())
