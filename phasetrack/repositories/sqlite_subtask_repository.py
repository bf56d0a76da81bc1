# Rev 0.2.0
from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence

from .base import SQLiteRepository

_COLUMNS = "s.id, s.task_id, s.name, s.completed, s.position, s.created_at_utc, s.updated_at_utc"


class SQLiteSubtaskRepository(SQLiteRepository):
    """
    Subtask CRUD + listing per task or per phase.
    Subtasks count as items toward the phase progress, so completion
    changes should go through TrackerService.
    """

    @staticmethod
    def _normalize(rec: Dict[str, Any]) -> Dict[str, Any]:
        rec["completed"] = bool(rec.get("completed"))
        return rec

    # --------------- queries ---------------
    def get_subtask(self, subtask_id: int) -> Optional[Dict[str, Any]]:
        rec = self._fetch_one(f"SELECT {_COLUMNS} FROM subtasks s WHERE s.id = ?", (subtask_id,))
        return self._normalize(rec) if rec else None

    def list_subtasks(self, task_id: int) -> List[Dict[str, Any]]:
        rows = self._fetch_all(
            f"SELECT {_COLUMNS} FROM subtasks s WHERE s.task_id = ? ORDER BY s.position, s.id",
            (task_id,),
        )
        return [self._normalize(r) for r in rows]

    def list_subtasks_for_phase(self, phase_id: int) -> List[Dict[str, Any]]:
        rows = self._fetch_all(
            f"""
            SELECT {_COLUMNS}
            FROM subtasks s
            JOIN tasks t ON t.id = s.task_id
            WHERE t.phase_id = ?
            ORDER BY t.position, t.id, s.position, s.id
            """,
            (phase_id,),
        )
        return [self._normalize(r) for r in rows]

    def count_subtasks_total_by_project(self, *, project_id: int) -> int:
        row = self._conn().execute(
            """
            SELECT COUNT(1)
            FROM subtasks s
            JOIN tasks t ON t.id = s.task_id
            JOIN phases p ON p.id = t.phase_id
            WHERE p.project_id = ?
            """,
            (project_id,),
        ).fetchone()
        return int(row[0]) if row and row[0] is not None else 0

    # --------------- CRUD ---------------
    def create_subtask(self, *, task_id: int, name: str, completed: bool = False) -> int:
        position = self._next_position("subtasks", "task_id", task_id)
        cur = self._conn().execute(
            "INSERT INTO subtasks(task_id, name, completed, position) VALUES (?, ?, ?, ?)",
            (task_id, name, int(bool(completed)), position),
        )
        return int(cur.lastrowid)

    def rename_subtask(self, subtask_id: int, name: str) -> bool:
        cur = self._conn().execute(
            "UPDATE subtasks SET name = ?, updated_at_utc = datetime('now') WHERE id = ?",
            (name, subtask_id),
        )
        return cur.rowcount > 0

    def set_completed(self, subtask_id: int, completed: bool) -> bool:
        cur = self._conn().execute(
            "UPDATE subtasks SET completed = ?, updated_at_utc = datetime('now') WHERE id = ?",
            (int(bool(completed)), subtask_id),
        )
        return cur.rowcount > 0

    def delete_subtask(self, subtask_id: int) -> bool:
        cur = self._conn().execute("DELETE FROM subtasks WHERE id = ?", (subtask_id,))
        return cur.rowcount > 0

    def reorder_subtasks(self, task_id: int, ordered_ids: Sequence[int]) -> bool:
        return self._reorder("subtasks", "task_id", task_id, ordered_ids)
