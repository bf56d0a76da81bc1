# Rev 0.2.0 - optimistic toggles with explicit result + reload on failure
from __future__ import annotations

import copy
import itertools
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from PySide6.QtCore import QObject, Signal

from phasetrack.services.progress import calculate_phase_metrics
from phasetrack.services.tracker_service import MutationResult, TrackerService

log = logging.getLogger(__name__)


def _with_metrics(phase: Dict[str, Any]) -> Dict[str, Any]:
    metrics = calculate_phase_metrics(phase.get("tasks") or [])
    phase["progress"] = metrics.progress
    phase["status"] = metrics.status
    phase["completed_item_count"] = metrics.completed_count
    phase["total_item_count"] = metrics.total_count
    return phase


class PhasesViewModel(QObject):
    """
    VM for the phase board of one project.
    Emits:
      - phasesReloaded(project_id: int, phases: list[dict])  full tree, ordered by position
      - phaseChanged(phase: dict)                             optimistic or confirmed phase tree
      - mutationFailed(code: str, message: str)               followed by a full reload
    """

    phasesReloaded = Signal(int, list)
    phaseChanged = Signal(dict)
    mutationFailed = Signal(str, str)

    def __init__(self, service: TrackerService):
        super().__init__()
        self._svc = service
        self._project_id: Optional[int] = None
        self._phases: List[Dict[str, Any]] = []
        self._temp_ids = itertools.count(-1, -1)

    # ---- state ----
    def set_project(self, project_id: Optional[int]) -> None:
        self._project_id = project_id

    def phases(self) -> List[Dict[str, Any]]:
        return self._phases

    def phase(self, phase_id: int) -> Optional[Dict[str, Any]]:
        for p in self._phases:
            if p["id"] == phase_id:
                return p
        return None

    # ---- queries ----
    def reload(self) -> None:
        if self._project_id is None:
            self._phases = []
            self.phasesReloaded.emit(0, [])
            return
        self._phases = self._svc.list_phase_trees(self._project_id)
        self.phasesReloaded.emit(self._project_id, self._phases)

    # ---- optimistic commands ----
    def toggle_task(self, task_id: int) -> MutationResult:
        found = self._locate_task(task_id)
        if found is None:
            return self._finish(self._svc.toggle_task(task_id))
        phase, task = found
        target = not task["completed"]

        def edit(p: Dict[str, Any]) -> None:
            for t in p["tasks"]:
                if t["id"] == task_id:
                    t["completed"] = target

        self._optimistic(phase["id"], edit)
        return self._finish(self._svc.toggle_task(task_id, completed=target))

    def toggle_subtask(self, subtask_id: int) -> MutationResult:
        found = self._locate_subtask(subtask_id)
        if found is None:
            return self._finish(self._svc.toggle_subtask(subtask_id))
        phase, sub = found
        target = not sub["completed"]

        def edit(p: Dict[str, Any]) -> None:
            for t in p["tasks"]:
                for s in t.get("subtasks") or []:
                    if s["id"] == subtask_id:
                        s["completed"] = target

        self._optimistic(phase["id"], edit)
        return self._finish(self._svc.toggle_subtask(subtask_id, completed=target))

    def add_task(self, phase_id: int, name: str, due_date: Optional[str] = None) -> MutationResult:
        temp_id = next(self._temp_ids)

        def edit(p: Dict[str, Any]) -> None:
            p["tasks"].append({
                "id": temp_id,
                "phase_id": phase_id,
                "name": name.strip(),
                "completed": False,
                "due_date": due_date,
                "position": len(p["tasks"]),
                "subtasks": [],
            })

        if name and name.strip():
            self._optimistic(phase_id, edit)
        return self._finish(self._svc.add_task(phase_id, name, due_date=due_date))

    def remove_task(self, task_id: int) -> MutationResult:
        found = self._locate_task(task_id)
        if found is not None:
            def edit(p: Dict[str, Any]) -> None:
                p["tasks"] = [t for t in p["tasks"] if t["id"] != task_id]

            self._optimistic(found[0]["id"], edit)
        return self._finish(self._svc.remove_task(task_id))

    def add_subtask(self, task_id: int, name: str) -> MutationResult:
        found = self._locate_task(task_id)
        if found is not None and name and name.strip():
            temp_id = next(self._temp_ids)

            def edit(p: Dict[str, Any]) -> None:
                for t in p["tasks"]:
                    if t["id"] == task_id:
                        t.setdefault("subtasks", []).append(
                            {"id": temp_id, "task_id": task_id, "name": name.strip(), "completed": False}
                        )

            self._optimistic(found[0]["id"], edit)
        return self._finish(self._svc.add_subtask(task_id, name))

    def remove_subtask(self, subtask_id: int) -> MutationResult:
        found = self._locate_subtask(subtask_id)
        if found is not None:
            def edit(p: Dict[str, Any]) -> None:
                for t in p["tasks"]:
                    t["subtasks"] = [s for s in t.get("subtasks") or [] if s["id"] != subtask_id]

            self._optimistic(found[0]["id"], edit)
        return self._finish(self._svc.remove_subtask(subtask_id))

    # ---- server-first commands (structure changes) ----
    def create_phase(self, name: str) -> MutationResult:
        if self._project_id is None:
            return MutationResult.invalid("no project selected")
        return self._finish_structural(self._svc.create_phase(self._project_id, name))

    def rename_phase(self, phase_id: int, name: str) -> MutationResult:
        return self._finish(self._svc.rename_phase(phase_id, name))

    def delete_phase(self, phase_id: int) -> MutationResult:
        return self._finish_structural(self._svc.delete_phase(phase_id))

    def reorder_phases(self, ordered_ids: List[int]) -> MutationResult:
        if self._project_id is None:
            return MutationResult.invalid("no project selected")
        return self._finish_structural(self._svc.reorder_phases(self._project_id, ordered_ids))

    def reorder_tasks(self, phase_id: int, ordered_ids: List[int]) -> MutationResult:
        return self._finish(self._svc.reorder_tasks(phase_id, ordered_ids))

    def move_task(self, task_id: int, target_phase_id: int) -> MutationResult:
        # two phases change; simplest to re-read the board
        return self._finish_structural(self._svc.move_task(task_id, target_phase_id))

    def edit_task(self, task_id: int, **fields: Any) -> MutationResult:
        return self._finish(self._svc.edit_task(task_id, **fields))

    # ---- internals ----
    def _locate_task(self, task_id: int) -> Optional[Tuple[Dict[str, Any], Dict[str, Any]]]:
        for p in self._phases:
            for t in p.get("tasks") or []:
                if t["id"] == task_id:
                    return p, t
        return None

    def _locate_subtask(self, subtask_id: int) -> Optional[Tuple[Dict[str, Any], Dict[str, Any]]]:
        for p in self._phases:
            for t in p.get("tasks") or []:
                for s in t.get("subtasks") or []:
                    if s["id"] == subtask_id:
                        return p, s
        return None

    def _replace(self, phase: Dict[str, Any]) -> None:
        for i, p in enumerate(self._phases):
            if p["id"] == phase["id"]:
                self._phases[i] = phase
                return
        self._phases.append(phase)

    def _optimistic(self, phase_id: int, edit: Callable[[Dict[str, Any]], None]) -> None:
        current = self.phase(phase_id)
        if current is None:
            return
        draft = copy.deepcopy(current)
        edit(draft)
        _with_metrics(draft)
        self._replace(draft)
        self.phaseChanged.emit(draft)

    def _fail(self, result: MutationResult) -> MutationResult:
        log.warning("mutation failed (%s): %s; reloading", result.code, result.message)
        self.mutationFailed.emit(result.code, result.message)
        self.reload()
        return result

    def _finish(self, result: MutationResult) -> MutationResult:
        if not result.ok:
            return self._fail(result)
        if result.phase is not None:
            self._replace(result.phase)
            self.phaseChanged.emit(result.phase)
        return result

    def _finish_structural(self, result: MutationResult) -> MutationResult:
        if not result.ok:
            return self._fail(result)
        self.reload()
        return result
