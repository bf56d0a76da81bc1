# Rev 0.2.0

"""Tracker service (Rev 0.2.0)
Every mutation of a phase's task tree goes through here. Inside one
transaction the service applies the change, recomputes the owning phase's
metrics with the aggregation engine and stores them, so the cached
progress/status/counts on `phases` never drift from the tree.
"""
from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence

from phasetrack.models.types import ResultCode
from phasetrack.repositories.db import tx
from phasetrack.repositories.sqlite_phase_repository import SQLitePhaseRepository
from phasetrack.repositories.sqlite_project_repository import SQLiteProjectRepository
from phasetrack.repositories.sqlite_subtask_repository import SQLiteSubtaskRepository
from phasetrack.repositories.sqlite_task_repository import SQLiteTaskRepository
from phasetrack.services.progress import (
    PhaseMetrics,
    calculate_phase_metrics,
    calculate_project_progress,
)

log = logging.getLogger(__name__)


@dataclass
class MutationResult:
    ok: bool
    code: ResultCode
    phase: Optional[Dict[str, Any]] = None   # recomputed phase tree, when one was touched
    entity_id: Optional[int] = None
    message: str = ""

    @classmethod
    def applied(cls, *, phase: Optional[Dict[str, Any]] = None, entity_id: Optional[int] = None) -> "MutationResult":
        return cls(ok=True, code="applied", phase=phase, entity_id=entity_id)

    @classmethod
    def not_found(cls, message: str) -> "MutationResult":
        return cls(ok=False, code="not_found", message=message)

    @classmethod
    def invalid(cls, message: str) -> "MutationResult":
        return cls(ok=False, code="invalid", message=message)


def _clean_name(name: Optional[str]) -> Optional[str]:
    if name is None:
        return None
    name = name.strip()
    return name or None


def _valid_due_date(value: Optional[str]) -> bool:
    if value is None:
        return True
    try:
        date.fromisoformat(value)
    except (TypeError, ValueError):
        return False
    return True


class TrackerService:
    def __init__(self, db_or_conn):
        self._db_or_conn = db_or_conn
        self.projects = SQLiteProjectRepository(db_or_conn)
        self.phases = SQLitePhaseRepository(db_or_conn)
        self.tasks = SQLiteTaskRepository(db_or_conn)
        self.subtasks = SQLiteSubtaskRepository(db_or_conn)

    def _conn(self) -> sqlite3.Connection:
        return self.phases._conn()

    def _run(self, action: str, work: Callable[[], MutationResult]) -> MutationResult:
        try:
            with tx(self._conn()):
                result = work()
        except sqlite3.Error as exc:
            log.exception("%s failed", action)
            return MutationResult(ok=False, code="error", message=str(exc))
        if result.ok:
            log.info("%s applied (id=%s)", action, result.entity_id)
        else:
            log.warning("%s rejected: %s (%s)", action, result.code, result.message)
        return result

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def load_phase_tree(self, phase_id: int) -> Optional[Dict[str, Any]]:
        """Phase dict with nested `tasks`, each with nested `subtasks`."""
        phase = self.phases.get_phase(phase_id)
        if phase is None:
            return None
        by_task: Dict[int, List[Dict[str, Any]]] = {}
        for sub in self.subtasks.list_subtasks_for_phase(phase_id):
            by_task.setdefault(sub["task_id"], []).append(sub)
        tasks = self.tasks.list_tasks(phase_id)
        for task in tasks:
            task["subtasks"] = by_task.get(task["id"], [])
        phase["tasks"] = tasks
        return phase

    def list_phase_trees(self, project_id: int) -> List[Dict[str, Any]]:
        out = []
        for phase in self.phases.list_phases(project_id):
            tree = self.load_phase_tree(phase["id"])
            if tree is not None:
                out.append(tree)
        return out

    def project_progress(self, project_id: int) -> Optional[int]:
        if self.projects.get_project(project_id) is None:
            return None
        return calculate_project_progress(self.phases.list_phases(project_id))

    def project_summary(self, project_id: int) -> Optional[Dict[str, Any]]:
        project = self.projects.get_project(project_id)
        if project is None:
            return None
        phases = self.phases.list_phases(project_id)
        return {
            "id": project["id"],
            "name": project["name"],
            "progress": calculate_project_progress(phases),
            "phases": phases,
            "completed_item_count": sum(p["completed_item_count"] for p in phases),
            "total_item_count": sum(p["total_item_count"] for p in phases),
        }

    # ------------------------------------------------------------------
    # Recompute
    # ------------------------------------------------------------------
    def refresh_phase(self, phase_id: int) -> Optional[PhaseMetrics]:
        """Recompute and store one phase's metrics. Caller owns the transaction."""
        tree = self.load_phase_tree(phase_id)
        if tree is None:
            return None
        metrics = calculate_phase_metrics(tree["tasks"])
        self.phases.set_metrics(phase_id, metrics)
        log.debug("phase %s metrics -> %s", phase_id, metrics)
        return metrics

    def refresh_project(self, project_id: int) -> MutationResult:
        def work() -> MutationResult:
            if self.projects.get_project(project_id) is None:
                return MutationResult.not_found(f"project {project_id}")
            for phase in self.phases.list_phases(project_id):
                self.refresh_phase(phase["id"])
            return MutationResult.applied(entity_id=project_id)
        return self._run("refresh_project", work)

    def _refreshed(self, phase_id: int, entity_id: Optional[int] = None) -> MutationResult:
        self.refresh_phase(phase_id)
        return MutationResult.applied(phase=self.load_phase_tree(phase_id), entity_id=entity_id)

    def _phase_of_task(self, task_id: int) -> Optional[int]:
        task = self.tasks.get_task(task_id)
        return int(task["phase_id"]) if task else None

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------
    def create_project(self, name: str) -> MutationResult:
        def work() -> MutationResult:
            clean = _clean_name(name)
            if clean is None:
                return MutationResult.invalid("project name required")
            return MutationResult.applied(entity_id=self.projects.create_project(clean))
        return self._run("create_project", work)

    def rename_project(self, project_id: int, name: str) -> MutationResult:
        def work() -> MutationResult:
            clean = _clean_name(name)
            if clean is None:
                return MutationResult.invalid("project name required")
            if not self.projects.rename_project(project_id, clean):
                return MutationResult.not_found(f"project {project_id}")
            return MutationResult.applied(entity_id=project_id)
        return self._run("rename_project", work)

    def delete_project(self, project_id: int) -> MutationResult:
        def work() -> MutationResult:
            if not self.projects.delete_project(project_id):
                return MutationResult.not_found(f"project {project_id}")
            return MutationResult.applied(entity_id=project_id)
        return self._run("delete_project", work)

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------
    def create_phase(self, project_id: int, name: str) -> MutationResult:
        def work() -> MutationResult:
            clean = _clean_name(name)
            if clean is None:
                return MutationResult.invalid("phase name required")
            if self.projects.get_project(project_id) is None:
                return MutationResult.not_found(f"project {project_id}")
            phase_id = self.phases.create_phase(project_id=project_id, name=clean)
            return self._refreshed(phase_id, phase_id)
        return self._run("create_phase", work)

    def rename_phase(self, phase_id: int, name: str) -> MutationResult:
        def work() -> MutationResult:
            clean = _clean_name(name)
            if clean is None:
                return MutationResult.invalid("phase name required")
            if not self.phases.rename_phase(phase_id, clean):
                return MutationResult.not_found(f"phase {phase_id}")
            return MutationResult.applied(phase=self.load_phase_tree(phase_id), entity_id=phase_id)
        return self._run("rename_phase", work)

    def delete_phase(self, phase_id: int) -> MutationResult:
        def work() -> MutationResult:
            if not self.phases.delete_phase(phase_id):
                return MutationResult.not_found(f"phase {phase_id}")
            return MutationResult.applied(entity_id=phase_id)
        return self._run("delete_phase", work)

    def reorder_phases(self, project_id: int, ordered_ids: Sequence[int]) -> MutationResult:
        def work() -> MutationResult:
            if self.projects.get_project(project_id) is None:
                return MutationResult.not_found(f"project {project_id}")
            if not self.phases.reorder_phases(project_id, ordered_ids):
                return MutationResult.invalid("ordering must list every phase of the project exactly once")
            return MutationResult.applied(entity_id=project_id)
        return self._run("reorder_phases", work)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------
    def add_task(self, phase_id: int, name: str, due_date: Optional[str] = None) -> MutationResult:
        def work() -> MutationResult:
            clean = _clean_name(name)
            if clean is None:
                return MutationResult.invalid("task name required")
            if not _valid_due_date(due_date):
                return MutationResult.invalid(f"due date must be YYYY-MM-DD, got {due_date!r}")
            if self.phases.get_phase(phase_id) is None:
                return MutationResult.not_found(f"phase {phase_id}")
            task_id = self.tasks.create_task(phase_id=phase_id, name=clean, due_date=due_date)
            return self._refreshed(phase_id, task_id)
        return self._run("add_task", work)

    def edit_task(
        self,
        task_id: int,
        *,
        name: Optional[str] = None,
        due_date: Optional[str] = None,
        clear_due_date: bool = False,
    ) -> MutationResult:
        def work() -> MutationResult:
            clean = _clean_name(name)
            if name is not None and clean is None:
                return MutationResult.invalid("task name required")
            if not _valid_due_date(due_date):
                return MutationResult.invalid(f"due date must be YYYY-MM-DD, got {due_date!r}")
            phase_id = self._phase_of_task(task_id)
            if phase_id is None:
                return MutationResult.not_found(f"task {task_id}")
            self.tasks.update_task_fields(task_id, name=clean, due_date=due_date, clear_due_date=clear_due_date)
            return MutationResult.applied(phase=self.load_phase_tree(phase_id), entity_id=task_id)
        return self._run("edit_task", work)

    def toggle_task(self, task_id: int, completed: Optional[bool] = None) -> MutationResult:
        """Flip (or set) a task's own completion; its subtasks are left alone."""
        def work() -> MutationResult:
            task = self.tasks.get_task(task_id)
            if task is None:
                return MutationResult.not_found(f"task {task_id}")
            target = (not task["completed"]) if completed is None else bool(completed)
            self.tasks.set_completed(task_id, target)
            return self._refreshed(int(task["phase_id"]), task_id)
        return self._run("toggle_task", work)

    def remove_task(self, task_id: int) -> MutationResult:
        def work() -> MutationResult:
            phase_id = self._phase_of_task(task_id)
            if phase_id is None:
                return MutationResult.not_found(f"task {task_id}")
            self.tasks.delete_task(task_id)
            return self._refreshed(phase_id, task_id)
        return self._run("remove_task", work)

    def move_task(self, task_id: int, target_phase_id: int) -> MutationResult:
        """Move a task (with its subtasks) to another phase of the same project."""
        def work() -> MutationResult:
            source_id = self._phase_of_task(task_id)
            if source_id is None:
                return MutationResult.not_found(f"task {task_id}")
            target = self.phases.get_phase(target_phase_id)
            if target is None:
                return MutationResult.not_found(f"phase {target_phase_id}")
            if source_id == target_phase_id:
                return MutationResult.applied(phase=self.load_phase_tree(source_id), entity_id=task_id)
            source = self.phases.get_phase(source_id)
            if source["project_id"] != target["project_id"]:
                return MutationResult.invalid("tasks can only move between phases of one project")
            self.tasks.move_task(task_id, target_phase_id)
            self.refresh_phase(source_id)
            return self._refreshed(target_phase_id, task_id)
        return self._run("move_task", work)

    def reorder_tasks(self, phase_id: int, ordered_ids: Sequence[int]) -> MutationResult:
        def work() -> MutationResult:
            if self.phases.get_phase(phase_id) is None:
                return MutationResult.not_found(f"phase {phase_id}")
            if not self.tasks.reorder_tasks(phase_id, ordered_ids):
                return MutationResult.invalid("ordering must list every task of the phase exactly once")
            return MutationResult.applied(phase=self.load_phase_tree(phase_id), entity_id=phase_id)
        return self._run("reorder_tasks", work)

    # ------------------------------------------------------------------
    # Subtasks
    # ------------------------------------------------------------------
    def add_subtask(self, task_id: int, name: str) -> MutationResult:
        def work() -> MutationResult:
            clean = _clean_name(name)
            if clean is None:
                return MutationResult.invalid("subtask name required")
            phase_id = self._phase_of_task(task_id)
            if phase_id is None:
                return MutationResult.not_found(f"task {task_id}")
            sub_id = self.subtasks.create_subtask(task_id=task_id, name=clean)
            return self._refreshed(phase_id, sub_id)
        return self._run("add_subtask", work)

    def rename_subtask(self, subtask_id: int, name: str) -> MutationResult:
        def work() -> MutationResult:
            clean = _clean_name(name)
            if clean is None:
                return MutationResult.invalid("subtask name required")
            sub = self.subtasks.get_subtask(subtask_id)
            if sub is None:
                return MutationResult.not_found(f"subtask {subtask_id}")
            self.subtasks.rename_subtask(subtask_id, clean)
            phase_id = self._phase_of_task(int(sub["task_id"]))
            return MutationResult.applied(phase=self.load_phase_tree(phase_id), entity_id=subtask_id)
        return self._run("rename_subtask", work)

    def toggle_subtask(self, subtask_id: int, completed: Optional[bool] = None) -> MutationResult:
        def work() -> MutationResult:
            sub = self.subtasks.get_subtask(subtask_id)
            if sub is None:
                return MutationResult.not_found(f"subtask {subtask_id}")
            target = (not sub["completed"]) if completed is None else bool(completed)
            self.subtasks.set_completed(subtask_id, target)
            return self._refreshed(self._phase_of_task(int(sub["task_id"])), subtask_id)
        return self._run("toggle_subtask", work)

    def remove_subtask(self, subtask_id: int) -> MutationResult:
        def work() -> MutationResult:
            sub = self.subtasks.get_subtask(subtask_id)
            if sub is None:
                return MutationResult.not_found(f"subtask {subtask_id}")
            phase_id = self._phase_of_task(int(sub["task_id"]))
            self.subtasks.delete_subtask(subtask_id)
            return self._refreshed(phase_id, subtask_id)
        return self._run("remove_subtask", work)

    def reorder_subtasks(self, task_id: int, ordered_ids: Sequence[int]) -> MutationResult:
        def work() -> MutationResult:
            phase_id = self._phase_of_task(task_id)
            if phase_id is None:
                return MutationResult.not_found(f"task {task_id}")
            if not self.subtasks.reorder_subtasks(task_id, ordered_ids):
                return MutationResult.invalid("ordering must list every subtask of the task exactly once")
            return MutationResult.applied(phase=self.load_phase_tree(phase_id), entity_id=task_id)
        return self._run("reorder_subtasks", work)
