# Rev 0.2.0

"""Pytest fixtures for Reflex CRM (Rev 0.2.0)"""
from __future__ import annotations
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from reflexcrm.models.entities import Project
from reflexcrm.repositories.db import Database
from reflexcrm.repositories.session_store import SessionStore
from reflexcrm.repositories.sqlite_kv_repository import SQLiteKeyValueRepository


class StepClock:
    """Deterministic clock: each call is one second after the previous one."""

    def __init__(self, start: datetime = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current


@pytest.fixture()
def clock() -> StepClock:
    return StepClock()


@pytest.fixture()
def db(tmp_path: Path):
    database = Database(path=tmp_path / "test.db")
    try:
        database.run_migrations()
        yield database
    finally:
        database.close()


@pytest.fixture()
def kv(db: Database) -> SQLiteKeyValueRepository:
    return SQLiteKeyValueRepository(db)


@pytest.fixture()
def store(kv: SQLiteKeyValueRepository, clock: StepClock) -> SessionStore:
    return SessionStore(kv, clock=clock)


@pytest.fixture()
def project() -> Project:
    return Project(
        id="p1",
        name="Hospital Wing",
        client="City Health",
        status="modeling",
        is_active=True,
        progress=40,
        level_of_development="LOD 300",
        team_members=["A", "B"],
    )
