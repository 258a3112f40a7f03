# Reflex CRM application context
# Rev 0.2.0

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .utils.config import db_path_from, load_settings
from .utils.logging_setup import get_logger
from .repositories.db import Database
from .repositories.sqlite_kv_repository import SQLiteKeyValueRepository
from .repositories.session_store import SessionStore
from .services.session_resolver import SessionResolver
from .viewmodels.app_state_viewmodel import AppStateViewModel


@dataclass
class AppContext:
    """Central container for shared app resources."""
    db_path: Path
    db: Database
    store: SessionStore
    resolver: SessionResolver
    state: AppStateViewModel

    @classmethod
    def create(
        cls,
        db_path: Optional[Path] = None,
        *,
        settings: Optional[Dict[str, Any]] = None,
        access_key: Optional[str] = None,
    ) -> "AppContext":
        """Open storage and build the (not yet loaded) state container."""
        log = get_logger("AppContext")
        settings = settings if settings is not None else load_settings()
        db_path = Path(db_path) if db_path is not None else db_path_from(settings)
        db = Database(db_path)
        db.run_migrations()
        store = SessionStore(SQLiteKeyValueRepository(db))
        resolver = SessionResolver.from_settings(settings, access_key=access_key)
        actor = settings.get("user", {}).get("display_name") or "Unknown"
        state = AppStateViewModel(store, actor=actor)
        log.info("AppContext initialized with DB=%s", db_path)
        return cls(db_path=db_path, db=db, store=store, resolver=resolver, state=state)

    def start(self) -> str:
        """Resolve the session id, then load it; autosave is armed only after this returns."""
        session_id = self.resolver.resolve()
        self.state.load(session_id)
        return session_id

    def close(self) -> None:
        self.db.close()
