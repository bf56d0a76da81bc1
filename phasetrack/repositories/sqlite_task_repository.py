# Rev 0.2.0
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from .base import SQLiteRepository

_COLUMNS = "id, phase_id, name, completed, due_date, position, created_at_utc, updated_at_utc"


class SQLiteTaskRepository(SQLiteRepository):
    """
    Task CRUD + ordering within a phase.
    `completed` is stored as 0/1 and returned as bool.
    These calls do not touch the owning phase's cached metrics; go through
    TrackerService for anything that changes completion counts.
    """

    @staticmethod
    def _normalize(rec: Dict[str, Any]) -> Dict[str, Any]:
        rec["completed"] = bool(rec.get("completed"))
        return rec

    # -------------------------
    # Queries
    # -------------------------
    def get_task(self, task_id: int) -> Optional[Dict[str, Any]]:
        rec = self._fetch_one(f"SELECT {_COLUMNS} FROM tasks WHERE id = ?", (task_id,))
        return self._normalize(rec) if rec else None

    def list_tasks(self, phase_id: int) -> List[Dict[str, Any]]:
        rows = self._fetch_all(
            f"SELECT {_COLUMNS} FROM tasks WHERE phase_id = ? ORDER BY position, id",
            (phase_id,),
        )
        return [self._normalize(r) for r in rows]

    def count_tasks_total(self, *, phase_id: int) -> int:
        row = self._conn().execute("SELECT COUNT(1) FROM tasks WHERE phase_id = ?", (phase_id,)).fetchone()
        return int(row[0]) if row and row[0] is not None else 0

    def count_tasks_by_project(self, *, project_id: int) -> int:
        row = self._conn().execute(
            """
            SELECT COUNT(1)
            FROM tasks t
            JOIN phases p ON p.id = t.phase_id
            WHERE p.project_id = ?
            """,
            (project_id,),
        ).fetchone()
        return int(row[0]) if row and row[0] is not None else 0

    # -------------------------
    # CRUD
    # -------------------------
    def create_task(
        self,
        *,
        phase_id: int,
        name: str,
        due_date: Optional[str] = None,
        completed: bool = False,
    ) -> int:
        position = self._next_position("tasks", "phase_id", phase_id)
        cur = self._conn().execute(
            """
            INSERT INTO tasks(phase_id, name, completed, due_date, position)
            VALUES (?, ?, ?, ?, ?)
            """,
            (phase_id, name, int(bool(completed)), due_date, position),
        )
        return int(cur.lastrowid)

    def update_task_fields(
        self,
        task_id: int,
        *,
        name: Optional[str] = None,
        due_date: Optional[str] = None,
        clear_due_date: bool = False,
    ) -> bool:
        sets: List[str] = []
        params: List[Any] = []
        if name is not None:
            sets.append("name = ?")
            params.append(name)
        if clear_due_date:
            sets.append("due_date = NULL")
        elif due_date is not None:
            sets.append("due_date = ?")
            params.append(due_date)
        if not sets:
            return self.get_task(task_id) is not None

        sets.append("updated_at_utc = datetime('now')")
        params.append(task_id)
        cur = self._conn().execute(f"UPDATE tasks SET {', '.join(sets)} WHERE id = ?", params)
        return cur.rowcount > 0

    def set_completed(self, task_id: int, completed: bool) -> bool:
        cur = self._conn().execute(
            "UPDATE tasks SET completed = ?, updated_at_utc = datetime('now') WHERE id = ?",
            (int(bool(completed)), task_id),
        )
        return cur.rowcount > 0

    def move_task(self, task_id: int, target_phase_id: int) -> bool:
        """Append the task to the end of another phase."""
        position = self._next_position("tasks", "phase_id", target_phase_id)
        cur = self._conn().execute(
            "UPDATE tasks SET phase_id = ?, position = ?, updated_at_utc = datetime('now') WHERE id = ?",
            (target_phase_id, position, task_id),
        )
        return cur.rowcount > 0

    def delete_task(self, task_id: int) -> bool:
        cur = self._conn().execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        return cur.rowcount > 0

    def reorder_tasks(self, phase_id: int, ordered_ids: Sequence[int]) -> bool:
        return self._reorder("tasks", "phase_id", phase_id, ordered_ids)
