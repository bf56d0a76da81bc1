# tests/test_tools.py
from __future__ import annotations

from pathlib import Path

from phasetrack.repositories.db import Database
from phasetrack.services.tracker_service import TrackerService
from phasetrack.tools import migrate, report, seed


def _template_items(phase_spec) -> int:
    return sum(1 + len(subs) for _, subs in phase_spec["tasks"])


def test_seed_project_builds_template_with_metrics(service: TrackerService):
    pid = seed.seed_project(service, "Herndon")
    phases = service.phases.list_phases(pid)
    assert [p["name"] for p in phases] == [s["name"] for s in seed.DEFAULT_TEMPLATE]
    for phase, tmpl in zip(phases, seed.DEFAULT_TEMPLATE):
        assert phase["total_item_count"] == _template_items(tmpl)
        assert (phase["progress"], phase["status"], phase["completed_item_count"]) == (0, "not-started", 0)
    assert service.project_progress(pid) == 0


def test_seed_small_template_and_reset(service: TrackerService):
    template = [{"name": "Only", "tasks": [("a", ["x", "y"]), ("b", [])]}]
    pid = seed.seed_project(service, "Tiny", template)
    tree = service.list_phase_trees(pid)[0]
    assert [t["name"] for t in tree["tasks"]] == ["a", "b"]
    assert [s["name"] for s in tree["tasks"][0]["subtasks"]] == ["x", "y"]
    assert tree["total_item_count"] == 4

    seed.seed_project(service, "Other", template)
    assert seed.reset(service) == 2
    assert service.projects.list_projects() == []


def test_report_lines(service: TrackerService):
    pid = service.create_project("Ashburn").entity_id
    phid = service.create_phase(pid, "Discovery").entity_id
    service.create_phase(pid, "Lease")
    service.toggle_task(service.add_task(phid, "Site survey").entity_id)
    service.add_task(phid, "Code review")

    lines = report.render(service)
    assert lines[0] == f"Ashburn (#{pid}) - 25%"
    assert lines[1].split() == ["1.", "Discovery", "In", "Progress", "50%", "1/2", "items"]
    assert lines[2].split() == ["2.", "Lease", "Not", "Started", "0%", "0/0", "items"]

    assert report.render(service, [999]) == ["project 999: not found"]


def test_report_project_without_phases(service: TrackerService):
    pid = service.create_project("Empty").entity_id
    assert report.render(service, [pid]) == [f"Empty (#{pid}) - 0%", "  (no phases)"]


def test_migrate_up_then_status(tmp_path: Path, capsys):
    db_path = tmp_path / "m.db"
    assert migrate.cmd_up(db_path) == 0
    out = capsys.readouterr().out
    assert "Applied migration: 0001_init.sql" in out

    assert migrate.cmd_up(db_path) == 0
    assert "already up to date" in capsys.readouterr().out

    assert migrate.cmd_status(db_path) == 0
    out = capsys.readouterr().out
    assert "Applied count: 1" in out
    assert "Pending count: 0" in out


def test_migrate_rebuild_drops_data(tmp_path: Path, capsys):
    db_path = tmp_path / "r.db"
    migrate.cmd_up(db_path)
    db = Database(db_path)
    TrackerService(db).create_project("Gone")
    db.close()

    assert migrate.cmd_rebuild(db_path) == 0
    assert "Rebuilding" in capsys.readouterr().out
    db = Database(db_path)
    try:
        assert TrackerService(db).projects.list_projects() == []
    finally:
        db.close()


def test_migrate_parser():
    args = migrate.build_parser().parse_args(["status", "--db", "/tmp/x.db"])
    assert args.command == "status"
    assert args.db == Path("/tmp/x.db")


def test_report_main_end_to_end(tmp_path: Path, monkeypatch, capsys):
    import logging
    import sys

    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        db_path = tmp_path / "e2e.db"
        assert seed.main(["--db", str(db_path), "--project", "Reston"]) == 0
        assert report.main(["--db", str(db_path)]) == 0
    finally:
        for h in root.handlers[len(before):]:
            root.removeHandler(h)
            h.close()
        root.setLevel(level)
    out = capsys.readouterr().out
    assert "Seeded Reston" in out
    assert "Reston (#1) - 0%" in out
    assert (tmp_path / "state" / "phasetrack" / "logs" / "phasetrack.log").exists()
