# Rev 0.2.0
# phasetrack – SQLiteProjectRepository (Rev 0.2.0)
from __future__ import annotations
from typing import List, Dict, Any, Optional

from .base import SQLiteRepository


class SQLiteProjectRepository(SQLiteRepository):
    """
    Thin wrapper around the 'projects' table.
    Deleting a project cascades to its phases, tasks and subtasks.
    """

    # ---------- queries ----------

    def list_projects(self) -> List[Dict[str, Any]]:
        return self._fetch_all("SELECT id, name FROM projects ORDER BY id;")

    def get_project(self, project_id: int) -> Optional[Dict[str, Any]]:
        return self._fetch_one("SELECT id, name FROM projects WHERE id = ?;", (project_id,))

    def find_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        return self._fetch_one("SELECT id, name FROM projects WHERE name = ? ORDER BY id LIMIT 1;", (name,))

    # ---------- mutations ----------

    def create_project(self, name: str) -> int:
        cur = self._conn().execute("INSERT INTO projects(name) VALUES (?)", (name,))
        return int(cur.lastrowid)

    def rename_project(self, project_id: int, name: str) -> bool:
        cur = self._conn().execute(
            "UPDATE projects SET name = ?, updated_at_utc = datetime('now') WHERE id = ?",
            (name, project_id),
        )
        return cur.rowcount > 0

    def delete_project(self, project_id: int) -> bool:
        cur = self._conn().execute("DELETE FROM projects WHERE id = ?", (project_id,))
        return cur.rowcount > 0
