# Rev 0.2.0

"""Namespaced session storage (Rev 0.2.0)
- One key per bundle field: REFLEX_<session>_<FIELD>
- Reads fall back namespaced → legacy global key (REFLEX_CRM_<FIELD>) → default
- Legacy keys are read-only; the first save for a session starts the namespaced copy
"""
from __future__ import annotations

import enum
import json
import sqlite3
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..models.entities import (
    SessionBundle,
    parse_branding,
    parse_language,
    parse_members,
    parse_projects,
    parse_theme,
)
from ..models.types import DEFAULT_LANGUAGE, DEFAULT_THEME
from ..utils.clock import Clock, to_iso, utc_now
from ..utils.logging_setup import get_logger
from .sqlite_kv_repository import SQLiteKeyValueRepository

KEY_PREFIX = "REFLEX_"
LEGACY_SESSION = "CRM"


class SessionState(str, enum.Enum):
    UNSEEN = "unseen"
    RECOVERED_FROM_LEGACY = "recovered_from_legacy"
    NAMESPACED = "namespaced"


@dataclass(frozen=True)
class _Field:
    attr: str
    dump: Callable[[SessionBundle], Any]
    parse: Callable[[Any], Any]
    default: Callable[[], Any]


FIELDS: Dict[str, _Field] = {
    "PROJECTS": _Field("projects", lambda b: [p.to_dict() for p in b.projects], parse_projects, list),
    "MEMBERS": _Field("members", lambda b: [m.to_dict() for m in b.members], parse_members, list),
    "BRANDING": _Field("branding", lambda b: b.branding.to_dict() if b.branding else None, parse_branding, lambda: None),
    "THEME": _Field("theme", lambda b: b.theme, parse_theme, lambda: DEFAULT_THEME),
    "LANG": _Field("language", lambda b: b.language, parse_language, lambda: DEFAULT_LANGUAGE),
}


def namespaced_key(session_id: str, field: str) -> str:
    return f"{KEY_PREFIX}{session_id}_{field}"


def legacy_key(field: str) -> str:
    return f"{KEY_PREFIX}{LEGACY_SESSION}_{field}"


class SessionStore:
    """Durable storage of one SessionBundle per session identifier."""

    def __init__(self, kv: SQLiteKeyValueRepository, *, clock: Clock = utc_now):
        self._kv = kv
        self._clock = clock
        self._log = get_logger("SessionStore")
        # tried in order; first value that parses wins
        self._resolvers: List[Tuple[str, Callable[[str, str], Optional[str]]]] = [
            ("namespaced", lambda sid, f: self._kv.get(namespaced_key(sid, f))),
            ("legacy", lambda sid, f: self._kv.get(legacy_key(f))),
        ]

    # ---------- commands ----------

    def save(self, session_id: str, bundle: SessionBundle) -> bool:
        """Write all five fields together. Failures are logged, never raised; stored data stays as it was."""
        if not session_id:
            return False
        try:
            items = {namespaced_key(session_id, name): json.dumps(f.dump(bundle)) for name, f in FIELDS.items()}
        except (TypeError, ValueError, AttributeError) as exc:
            self._log.error("Error serializing session %s; nothing written: %s", session_id, exc)
            return False
        try:
            self._kv.set_many(items)
        except sqlite3.Error as exc:
            self._log.error("Error saving session %s to storage: %s", session_id, exc)
            return False
        return True

    # ---------- queries ----------

    def load(self, session_id: str) -> Optional[SessionBundle]:
        return self.load_with_sources(session_id)[0]

    def load_with_sources(self, session_id: str) -> Tuple[Optional[SessionBundle], Dict[str, str]]:
        """Bundle plus the tier ('namespaced', 'legacy', 'default') that served each field."""
        if not session_id:
            return None, {}
        values: Dict[str, Any] = {}
        sources: Dict[str, str] = {}
        for name, f in FIELDS.items():
            values[f.attr], sources[name] = self._resolve(session_id, name, f)
        return SessionBundle(timestamp=to_iso(self._clock()), **values), sources

    def state_of(self, session_id: str) -> SessionState:
        if any(self._kv.has(namespaced_key(session_id, name)) for name in FIELDS):
            return SessionState.NAMESPACED
        if any(self._kv.has(legacy_key(name)) for name in FIELDS):
            return SessionState.RECOVERED_FROM_LEGACY
        return SessionState.UNSEEN

    # ---------- internals ----------

    def _resolve(self, session_id: str, name: str, f: _Field) -> Tuple[Any, str]:
        for source, read in self._resolvers:
            try:
                raw = read(session_id, name)
            except sqlite3.Error as exc:
                self._log.error("Error reading %s %s for session %s: %s", source, name, session_id, exc)
                continue
            if raw is None:
                continue
            try:
                value = f.parse(json.loads(raw))
            except ValueError as exc:
                self._log.warning("Discarding unreadable %s %s for session %s: %s", source, name, session_id, exc)
                continue
            if source == "legacy":
                self._log.info("Recovering legacy data for %s", name)
            return value, source
        return f.default(), "default"
