# Rev 0.2.0

"""SQLite connection & migration runner (Rev 0.2.0)
- WAL mode, foreign_keys=ON
- Applies the in-package MIGRATIONS in order
- Tracks applied names in schema_migrations(filename TEXT PRIMARY KEY, applied_at UTC)
"""
from __future__ import annotations
import sqlite3
from pathlib import Path
from datetime import datetime, timezone
from typing import Sequence, Tuple

from ..utils.logging_setup import get_logger
from ..utils.paths import default_db_path


MIGRATIONS: Sequence[Tuple[str, str]] = (
    (
        "0001_kv_store.sql",
        """
        CREATE TABLE IF NOT EXISTS kv_store (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at_utc TEXT NOT NULL
        );
        """,
    ),
)


class Database:
    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else default_db_path()
        self._log = get_logger("Database")
        if str(self.path) != ":memory:":
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.path), isolation_level=None, check_same_thread=False)
        self.conn.execute("PRAGMA journal_mode=WAL;")
        self.conn.execute("PRAGMA foreign_keys=ON;")
        self.conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_migrations (filename TEXT PRIMARY KEY, applied_at TEXT NOT NULL)"
        )
        self._log.info("SQLite open %s", self.path)

    def close(self) -> None:
        self.conn.close()

    def applied(self) -> set[str]:
        rows = self.conn.execute("SELECT filename FROM schema_migrations").fetchall()
        return {r[0] for r in rows}

    def run_migrations(self, migrations: Sequence[Tuple[str, str]] = MIGRATIONS) -> list[str]:
        applied = self.applied()
        to_apply = [(name, sql) for name, sql in migrations if name not in applied]
        for name, sql in to_apply:
            self.conn.executescript(sql)
            self.conn.execute(
                "INSERT INTO schema_migrations(filename, applied_at) VALUES(?, ?)",
                (name, datetime.now(timezone.utc).isoformat()),
            )
            self._log.info("Applied migration %s", name)
        return [name for name, _ in to_apply]

    def cursor(self) -> sqlite3.Cursor:
        return self.conn.cursor()
