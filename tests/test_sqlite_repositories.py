# tests/test_sqlite_repositories.py
# Repositories against the real schema from phasetrack/migrations

from __future__ import annotations

import sqlite3

import pytest

from phasetrack.repositories.db import Database, tx
from phasetrack.repositories.sqlite_phase_repository import SQLitePhaseRepository
from phasetrack.repositories.sqlite_project_repository import SQLiteProjectRepository
from phasetrack.repositories.sqlite_subtask_repository import SQLiteSubtaskRepository
from phasetrack.repositories.sqlite_task_repository import SQLiteTaskRepository
from phasetrack.services.progress import PhaseMetrics


def seed_project(conn, name: str = "Demo") -> int:
    cur = conn.execute("INSERT INTO projects(name) VALUES(?)", (name,))
    return int(cur.lastrowid)


def seed_phase(conn, project_id: int, name: str = "P") -> int:
    return SQLitePhaseRepository(conn).create_phase(project_id=project_id, name=name)


# --- migrations --------------------------------------------------------------

def test_migrations_applied_once(db: Database):
    assert "0001_init.sql" in db.applied()
    assert db.pending() == []
    assert db.run_migrations() == []


def test_tables_exist(db_conn):
    names = {r[0] for r in db_conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    assert {"projects", "phases", "tasks", "subtasks", "schema_migrations"} <= names


def test_tx_rolls_back_on_error(db_conn):
    with pytest.raises(RuntimeError):
        with tx(db_conn):
            seed_project(db_conn, "Lost")
            raise RuntimeError("boom")
    assert db_conn.execute("SELECT COUNT(*) FROM projects").fetchone()[0] == 0


def test_repository_rejects_unknown_handle():
    with pytest.raises(RuntimeError):
        SQLiteProjectRepository(object()).list_projects()


# --- projects ----------------------------------------------------------------

def test_project_crud(db):
    repo = SQLiteProjectRepository(db)
    pid = repo.create_project("Herndon")
    assert repo.get_project(pid) == {"id": pid, "name": "Herndon"}
    assert repo.rename_project(pid, "Ashburn") is True
    assert repo.find_by_name("Ashburn")["id"] == pid
    assert [p["name"] for p in repo.list_projects()] == ["Ashburn"]
    assert repo.delete_project(pid) is True
    assert repo.get_project(pid) is None
    assert repo.delete_project(pid) is False


def test_project_delete_cascades(db_conn):
    pid = seed_project(db_conn)
    phid = seed_phase(db_conn, pid)
    tid = SQLiteTaskRepository(db_conn).create_task(phase_id=phid, name="T")
    SQLiteSubtaskRepository(db_conn).create_subtask(task_id=tid, name="S")
    SQLiteProjectRepository(db_conn).delete_project(pid)
    for table in ("phases", "tasks", "subtasks"):
        assert db_conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0] == 0


# --- phases ------------------------------------------------------------------

def test_phase_positions_append_and_reorder(db_conn):
    pid = seed_project(db_conn)
    repo = SQLitePhaseRepository(db_conn)
    a = repo.create_phase(project_id=pid, name="A")
    b = repo.create_phase(project_id=pid, name="B")
    c = repo.create_phase(project_id=pid, name="C")
    assert [p["position"] for p in repo.list_phases(pid)] == [0, 1, 2]

    assert repo.reorder_phases(pid, [c, a, b]) is True
    assert [p["name"] for p in repo.list_phases(pid)] == ["C", "A", "B"]

    # partial or foreign id lists are refused and leave order untouched
    assert repo.reorder_phases(pid, [a, b]) is False
    assert repo.reorder_phases(pid, [a, b, 999]) is False
    assert repo.reorder_phases(pid, [a, a, b]) is False
    assert [p["name"] for p in repo.list_phases(pid)] == ["C", "A", "B"]


def test_phase_defaults_and_set_metrics(db_conn):
    pid = seed_project(db_conn)
    repo = SQLitePhaseRepository(db_conn)
    phid = repo.create_phase(project_id=pid, name="Design")
    rec = repo.get_phase(phid)
    assert (rec["progress"], rec["status"], rec["completed_item_count"], rec["total_item_count"]) == (
        0, "not-started", 0, 0,
    )
    assert repo.set_metrics(phid, PhaseMetrics(progress=50, status="in-progress", completed_count=2, total_count=4))
    rec = repo.get_phase(phid)
    assert (rec["progress"], rec["status"], rec["completed_item_count"], rec["total_item_count"]) == (
        50, "in-progress", 2, 4,
    )
    assert repo.set_metrics(9999, PhaseMetrics(0, "not-started", 0, 0)) is False


def test_phase_status_constraint(db_conn):
    pid = seed_project(db_conn)
    phid = seed_phase(db_conn, pid)
    with pytest.raises(sqlite3.IntegrityError):
        db_conn.execute("UPDATE phases SET status = 'paused' WHERE id = ?", (phid,))


def test_phase_rename_delete(db_conn):
    pid = seed_project(db_conn)
    repo = SQLitePhaseRepository(db_conn)
    phid = repo.create_phase(project_id=pid, name="Lease")
    assert repo.rename_phase(phid, "Lease & Permits")
    assert repo.get_phase(phid)["name"] == "Lease & Permits"
    assert repo.count_phases(pid) == 1
    assert repo.delete_phase(phid)
    assert repo.count_phases(pid) == 0
    assert repo.rename_phase(phid, "x") is False


# --- tasks -------------------------------------------------------------------

def test_task_crud_and_bool_normalization(db_conn):
    pid = seed_project(db_conn)
    phid = seed_phase(db_conn, pid)
    repo = SQLiteTaskRepository(db_conn)
    tid = repo.create_task(phase_id=phid, name="Site survey", due_date="2026-03-01")
    rec = repo.get_task(tid)
    assert rec["completed"] is False
    assert rec["due_date"] == "2026-03-01"

    assert repo.set_completed(tid, True)
    assert repo.get_task(tid)["completed"] is True

    assert repo.update_task_fields(tid, name="Survey")
    assert repo.get_task(tid)["name"] == "Survey"
    assert repo.update_task_fields(tid, clear_due_date=True)
    assert repo.get_task(tid)["due_date"] is None
    assert repo.update_task_fields(tid) is True
    assert repo.update_task_fields(9999) is False

    assert repo.delete_task(tid)
    assert repo.get_task(tid) is None


def test_task_ordering_and_move(db_conn):
    pid = seed_project(db_conn)
    p1 = seed_phase(db_conn, pid, "One")
    p2 = seed_phase(db_conn, pid, "Two")
    repo = SQLiteTaskRepository(db_conn)
    a = repo.create_task(phase_id=p1, name="a")
    b = repo.create_task(phase_id=p1, name="b")
    c = repo.create_task(phase_id=p2, name="c")

    assert repo.reorder_tasks(p1, [b, a])
    assert [t["name"] for t in repo.list_tasks(p1)] == ["b", "a"]

    assert repo.move_task(a, p2)
    moved = repo.get_task(a)
    assert moved["phase_id"] == p2
    assert [t["id"] for t in repo.list_tasks(p2)] == [c, a]
    assert repo.count_tasks_total(phase_id=p1) == 1
    assert repo.count_tasks_by_project(project_id=pid) == 3


# --- subtasks ----------------------------------------------------------------

def test_subtask_crud_and_listing(db_conn):
    pid = seed_project(db_conn)
    phid = seed_phase(db_conn, pid)
    tasks = SQLiteTaskRepository(db_conn)
    t1 = tasks.create_task(phase_id=phid, name="Permit pro-work")
    t2 = tasks.create_task(phase_id=phid, name="ABC license")
    repo = SQLiteSubtaskRepository(db_conn)
    s1 = repo.create_subtask(task_id=t1, name="Architectural layouts")
    s2 = repo.create_subtask(task_id=t1, name="Kitchen layouts")
    s3 = repo.create_subtask(task_id=t2, name="Inspection")

    assert [s["id"] for s in repo.list_subtasks(t1)] == [s1, s2]
    assert [s["id"] for s in repo.list_subtasks_for_phase(phid)] == [s1, s2, s3]
    assert repo.count_subtasks_total_by_project(project_id=pid) == 3

    assert repo.set_completed(s2, True)
    assert repo.get_subtask(s2)["completed"] is True
    assert repo.rename_subtask(s2, "Kitchen layout")
    assert repo.reorder_subtasks(t1, [s2, s1])
    assert [s["name"] for s in repo.list_subtasks(t1)] == ["Kitchen layout", "Architectural layouts"]

    tasks.delete_task(t1)
    assert repo.get_subtask(s1) is None
    assert repo.delete_subtask(s3)
    assert repo.delete_subtask(s3) is False
