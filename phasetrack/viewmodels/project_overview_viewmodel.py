# Rev 0.2.0 - project progress is the equal-weighted mean of phase progress
from __future__ import annotations
from typing import Optional, Dict, Any
from PySide6.QtCore import QObject, Signal

from phasetrack.services.tracker_service import TrackerService


class ProjectOverviewViewModel(QObject):
    """
    Emits:
      loaded({
        "id": int,
        "name": str,
        "progress": int,              # mean of phase progress, not item-weighted
        "phases_total": int,
        "tasks_total": int,
        "subtasks_total": int,
        "completed_item_count": int,
        "total_item_count": int,
      })
    or loaded({}) when the project does not exist.
    """
    loaded = Signal(dict)

    def __init__(self, service: TrackerService):
        super().__init__()
        self._svc = service
        self._last: Optional[Dict[str, Any]] = None

    def load(self, project_id: int) -> None:
        summary = self._svc.project_summary(project_id)
        if not summary:
            self._last = None
            self.loaded.emit({})
            return

        info = {
            "id": int(summary["id"]),
            "name": summary["name"] or "",
            "progress": int(summary["progress"]),
            "phases_total": len(summary["phases"]),
            "tasks_total": self._svc.tasks.count_tasks_by_project(project_id=project_id),
            "subtasks_total": self._svc.subtasks.count_subtasks_total_by_project(project_id=project_id),
            "completed_item_count": int(summary["completed_item_count"]),
            "total_item_count": int(summary["total_item_count"]),
        }
        self._last = info
        self.loaded.emit(info)

    def last(self) -> Optional[Dict[str, Any]]:
        return self._last
