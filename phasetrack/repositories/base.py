# Rev 0.2.0
from __future__ import annotations

import sqlite3
from typing import Any, Dict, List, Optional, Sequence, Union


class SQLiteRepository:
    """
    Shared plumbing for the table repositories.
    Accepts a raw sqlite3.Connection or a wrapper exposing `.conn` (Database).
    Rows come back as plain dicts.
    """

    def __init__(self, db_or_conn: Union[sqlite3.Connection, Any]):
        self._db_or_conn = db_or_conn

    # -------------------------
    # Connection handling
    # -------------------------
    def _conn(self) -> sqlite3.Connection:
        if isinstance(self._db_or_conn, sqlite3.Connection):
            return self._db_or_conn
        if hasattr(self._db_or_conn, "conn") and isinstance(self._db_or_conn.conn, sqlite3.Connection):
            return self._db_or_conn.conn
        raise RuntimeError(
            f"{type(self).__name__}: could not obtain sqlite3.Connection "
            "(expected a raw Connection or a wrapper with .conn)."
        )

    def _fetch_all(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        cur = self._conn().execute(sql, tuple(params))
        cols = [d[0] for d in cur.description]
        return [{cols[i]: row[i] for i in range(len(cols))} for row in cur.fetchall()]

    def _fetch_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        rows = self._fetch_all(sql, params)
        return rows[0] if rows else None

    # -------------------------
    # Ordering helpers
    # -------------------------
    def _next_position(self, table: str, scope_col: str, scope_id: int) -> int:
        row = self._conn().execute(
            f"SELECT COALESCE(MAX(position), -1) + 1 FROM {table} WHERE {scope_col} = ?",
            (scope_id,),
        ).fetchone()
        return int(row[0])

    def _reorder(self, table: str, scope_col: str, scope_id: int, ordered_ids: Sequence[int]) -> bool:
        """Rewrite positions 0..n-1; ordered_ids must be exactly the rows in scope."""
        con = self._conn()
        current = {
            int(r[0]) for r in con.execute(f"SELECT id FROM {table} WHERE {scope_col} = ?", (scope_id,))
        }
        wanted = [int(i) for i in ordered_ids]
        if len(wanted) != len(current) or set(wanted) != current:
            return False
        con.executemany(
            f"UPDATE {table} SET position = ?, updated_at_utc = datetime('now') WHERE id = ?",
            [(pos, row_id) for pos, row_id in enumerate(wanted)],
        )
        return True
