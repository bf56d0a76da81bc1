# File: phasetrack/tools/seed.py
# Usage examples:
#   phasetrack-seed                       # projects from settings.json (seed.projects)
#   phasetrack-seed --project Herndon
#   phasetrack-seed --reset --project Herndon --project Ashburn
#
# Creates each project from the default build-out phase template.

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from phasetrack.app_context import AppContext
from phasetrack.repositories.db import tx
from phasetrack.services.tracker_service import TrackerService
from phasetrack.utils.config import load_settings
from phasetrack.utils.logging_setup import setup_logging

log = logging.getLogger(__name__)

_SHIPMENT = [
    "Selection", "Quotes", "Final order", "Advance payment", "Production",
    "Container dispatch", "Container arrival", "Customs clearance", "Delivery to site",
]
_PERMIT_FLOW = ["Permit submissions", "Revisions", "Permit approval"]

# phase name -> list of (task name, [subtask names])
DEFAULT_TEMPLATE: List[Dict[str, Any]] = [
    {"name": "Discovery", "tasks": [
        ("Assessment", []), ("Site survey", []), ("Utilities survey", []), ("Lease evaluation", []),
        ("Kitchen assessment", []), ("Code review", []), ("Budget estimation", []), ("Timeline estimation", []),
    ]},
    {"name": "Lease", "tasks": [
        ("Lease negotiation", []), ("Final lease review", []), ("Lease execution", []), ("Signatures", []),
        ("Security deposit", []), ("First rent payment", []), ("Insurance certificates", []),
        ("Tenant improvement confirmation", []),
    ]},
    {"name": "Design & Permits", "tasks": [
        ("Interior design", []), ("Kitchen design", []), ("Branding integration", []),
        ("Design revisions", []), ("Final design approval", []),
        ("Permit pro-work", ["Architectural layouts", "Kitchen layouts", "MEP layouts", "Fire layouts"]),
        ("Landlord approval", []),
        ("Expeditor processing", list(_PERMIT_FLOW)),
        ("County permit processing", list(_PERMIT_FLOW)),
        ("ABC license", ["Application submission", "Background checks", "Inspection", "License approval"]),
    ]},
    {"name": "Ordering", "tasks": [
        ("Crockery (China)", list(_SHIPMENT)),
        ("Furniture (China)", list(_SHIPMENT)),
        ("Packaging (China)", list(_SHIPMENT)),
        ("Kitchen equipment (USA)", [
            "Equipment list", "Vendor selection", "Quotes", "Final order", "Deposit payment",
            "Production lead time", "Delivery scheduling", "Delivery to site", "Installation",
        ]),
        ("Smallwares (USA)", ["Selection", "Ordering", "Delivery"]),
    ]},
    {"name": "Construction", "tasks": [
        ("Mobilization", []), ("Demolition", []), ("Framing", []), ("Plumbing rough-in", []),
        ("Electrical rough-in", []), ("HVAC rough-in", []), ("Fire suppression", []), ("Insulation", []),
        ("Drywall", []), ("Flooring", []), ("Ceiling", []), ("Tile work", []), ("Painting", []),
        ("Millwork", []), ("Bar build-out", []), ("Restroom build-out", []), ("Final finishes", []),
        ("Kitchen installation", [
            "Hood installation", "Equipment placement", "Gas connections", "Electrical connections",
        ]),
    ]},
    {"name": "Inspections", "tasks": [
        ("Rough inspections", ["Plumbing", "Electrical", "Mechanical"]),
        ("Fire inspection", []), ("Health inspection", []), ("Final building inspection", []),
        ("Certificate of occupancy", []),
    ]},
    {"name": "Pro-Launch", "tasks": [
        ("Utility activation", ["Gas", "Electric", "Water", "Internet"]),
        ("POS setup", []), ("Menu setup", []), ("Vendor onboarding", []), ("Inventory ordering", []),
        ("Staff hiring", []), ("Staff training", []), ("Soft opening", []), ("Friends & family launch", []),
    ]},
    {"name": "Launch", "tasks": [
        ("Final cleaning", []), ("Final walkthrough", []), ("Marketing launch", []),
        ("Grand opening", []), ("First service day", []),
    ]},
]


def seed_project(service: TrackerService, name: str, template: Sequence[Dict[str, Any]] = DEFAULT_TEMPLATE) -> int:
    """Create one project from the template in a single transaction; returns its id."""
    with tx(service.phases._conn()):
        project_id = service.projects.create_project(name)
        for phase_spec in template:
            phase_id = service.phases.create_phase(project_id=project_id, name=phase_spec["name"])
            for task_name, subtask_names in phase_spec["tasks"]:
                task_id = service.tasks.create_task(phase_id=phase_id, name=task_name)
                for sub_name in subtask_names:
                    service.subtasks.create_subtask(task_id=task_id, name=sub_name)
            service.refresh_phase(phase_id)
    log.info("Seeded project %r (id=%s) with %d phases", name, project_id, len(template))
    return project_id


def reset(service: TrackerService) -> int:
    projects = service.projects.list_projects()
    with tx(service.projects._conn()):
        for p in projects:
            service.projects.delete_project(p["id"])
    log.info("Deleted %d existing projects", len(projects))
    return len(projects)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="phasetrack-seed", description="Seed projects from the default phase template.")
    parser.add_argument("--db", type=Path, default=None, help="SQLite file (default: $PHASETRACK_DB or settings)")
    parser.add_argument("--project", action="append", dest="projects", help="Project name (repeatable)")
    parser.add_argument("--reset", action="store_true", help="Delete ALL existing projects first")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    setup_logging(level_name=settings["logging"]["level"])
    ctx = AppContext.create(db_path=args.db, settings=settings)
    try:
        if args.reset:
            removed = reset(ctx.service)
            print(f"⟲ Removed {removed} project(s)")
        for name in args.projects or settings["seed"]["projects"]:
            pid = seed_project(ctx.service, name)
            print(f"→ Seeded {name} (id={pid})")
        print("✓ Seeding complete.")
        return 0
    finally:
        ctx.close()


if __name__ == "__main__":
    sys.exit(main())
