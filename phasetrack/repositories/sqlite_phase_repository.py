# Rev 0.2.0

# phasetrack – SQLitePhaseRepository (Rev 0.2.0)
# Phases are ordered per project by `position`; metrics columns are a cache.

from __future__ import annotations
from typing import List, Optional, Dict, Any, Sequence

from phasetrack.services.progress import PhaseMetrics

from .base import SQLiteRepository

_COLUMNS = """
    id, project_id, name, position,
    progress, status, completed_item_count, total_item_count
"""


class SQLitePhaseRepository(SQLiteRepository):
    """
    Thin wrapper around the 'phases' table.
    progress/status/completed_item_count/total_item_count are written only
    through set_metrics(), which TrackerService calls after every tree change.
    """

    # --- queries ------------------------------------------------------------

    def list_phases(self, project_id: int) -> List[Dict[str, Any]]:
        return self._fetch_all(
            f"SELECT {_COLUMNS} FROM phases WHERE project_id = ? ORDER BY position, id;",
            (project_id,),
        )

    def get_phase(self, phase_id: int) -> Optional[Dict[str, Any]]:
        return self._fetch_one(f"SELECT {_COLUMNS} FROM phases WHERE id = ?;", (phase_id,))

    def count_phases(self, project_id: int) -> int:
        row = self._conn().execute("SELECT COUNT(1) FROM phases WHERE project_id = ?", (project_id,)).fetchone()
        return int(row[0]) if row and row[0] is not None else 0

    # --- mutations ----------------------------------------------------------

    def create_phase(self, *, project_id: int, name: str) -> int:
        position = self._next_position("phases", "project_id", project_id)
        cur = self._conn().execute(
            "INSERT INTO phases(project_id, name, position) VALUES (?, ?, ?)",
            (project_id, name, position),
        )
        return int(cur.lastrowid)

    def rename_phase(self, phase_id: int, name: str) -> bool:
        cur = self._conn().execute(
            "UPDATE phases SET name = ?, updated_at_utc = datetime('now') WHERE id = ?",
            (name, phase_id),
        )
        return cur.rowcount > 0

    def delete_phase(self, phase_id: int) -> bool:
        cur = self._conn().execute("DELETE FROM phases WHERE id = ?", (phase_id,))
        return cur.rowcount > 0

    def reorder_phases(self, project_id: int, ordered_ids: Sequence[int]) -> bool:
        return self._reorder("phases", "project_id", project_id, ordered_ids)

    def set_metrics(self, phase_id: int, metrics: PhaseMetrics) -> bool:
        cur = self._conn().execute(
            """
            UPDATE phases
               SET progress = ?, status = ?, completed_item_count = ?, total_item_count = ?,
                   updated_at_utc = datetime('now')
             WHERE id = ?
            """,
            (metrics.progress, metrics.status, metrics.completed_count, metrics.total_count, phase_id),
        )
        return cur.rowcount > 0
