# Rev 0.2.0
from __future__ import annotations

import sqlite3
from typing import Any, Dict, List, Optional, Union


class SQLiteKeyValueRepository:
    """
    String key → string value storage over the kv_store table.

    Schema expectation (0001_kv_store.sql):

      kv_store(
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at_utc TEXT NOT NULL
      )
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
            "SQLiteKeyValueRepository: could not obtain sqlite3.Connection "
            "(expected .conn on wrapper, or a raw Connection)."
        )

    # -------------------------
    # Queries
    # -------------------------
    def get(self, key: str) -> Optional[str]:
        row = self._conn().execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def has(self, key: str) -> bool:
        return self._conn().execute("SELECT 1 FROM kv_store WHERE key = ?", (key,)).fetchone() is not None

    def keys(self, prefix: str = "") -> List[str]:
        rows = self._conn().execute(
            "SELECT key FROM kv_store WHERE substr(key, 1, ?) = ? ORDER BY key",
            (len(prefix), prefix),
        ).fetchall()
        return [r[0] for r in rows]

    # -------------------------
    # Commands
    # -------------------------
    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def set_many(self, items: Dict[str, str]) -> None:
        """Write every item or none of them."""
        con = self._conn()
        con.execute("BEGIN;")
        try:
            con.executemany(
                """
                INSERT INTO kv_store(key, value, updated_at_utc)
                VALUES (?, ?, datetime('now'))
                ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                               updated_at_utc = excluded.updated_at_utc
                """,
                list(items.items()),
            )
        except Exception:
            con.execute("ROLLBACK;")
            raise
        else:
            con.execute("COMMIT;")

    def delete(self, key: str) -> bool:
        cur = self._conn().execute("DELETE FROM kv_store WHERE key = ?", (key,))
        return cur.rowcount > 0
