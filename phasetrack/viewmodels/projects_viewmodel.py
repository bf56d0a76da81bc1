# Rev 0.2.0
# phasetrack/viewmodels/projects_viewmodel.py
from __future__ import annotations

from phasetrack.services.tracker_service import TrackerService


class ProjectsViewModel:
    def __init__(self, service: TrackerService):
        """
        service exposes the projects repository and the create/delete commands.
        """
        self._svc = service

    def list_projects(self) -> list[tuple[int, str]]:
        return [(int(p["id"]), p["name"]) for p in self._svc.projects.list_projects()]

    def create_project(self, name: str) -> int:
        result = self._svc.create_project(name)
        if not result.ok:
            raise ValueError(result.message or "name required")
        return int(result.entity_id)

    def delete_project(self, project_id: int) -> bool:
        return self._svc.delete_project(project_id).ok
