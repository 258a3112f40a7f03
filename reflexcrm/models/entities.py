# Rev 0.2.0
"""Entities for the Reflex CRM session bundle.

Each record serializes to the camelCase JSON shape the dashboard has always
written to storage (``isActive``, ``teamMembers``, ``workLogs``, ``lod`` ...),
and parses back through a validating ``from_dict``. Nothing read from storage
or a backup file is trusted until it has passed through one of these.
"""
from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from .types import (
    DEFAULT_LANGUAGE,
    DEFAULT_THEME,
    HISTORY_ACTIONS,
    LANGUAGES,
    PROJECT_STATUSES,
    TASK_PRIORITIES,
    THEMES,
)


class SchemaError(ValueError):
    """A stored or imported value does not have the shape of the record it claims to be."""


def new_id() -> str:
    return uuid.uuid4().hex


# ---------- parse helpers ----------

def _mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise SchemaError(f"{what}: expected an object, got {type(data).__name__}")
    return data


def _str(data: Mapping[str, Any], key: str, what: str, default: Optional[str] = None) -> str:
    value = data.get(key, default)
    if value is None:
        raise SchemaError(f"{what}: missing '{key}'")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # old dashboards stored Date.now() ids as numbers
        return str(value)
    if not isinstance(value, str):
        raise SchemaError(f"{what}: '{key}' must be a string")
    return value


def _opt_str(data: Mapping[str, Any], key: str, what: str) -> Optional[str]:
    if data.get(key) is None:
        return None
    return _str(data, key, what)


def _bool(data: Mapping[str, Any], key: str, what: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise SchemaError(f"{what}: '{key}' must be a boolean")
    return value


def _number(data: Mapping[str, Any], key: str, what: str, default: float) -> float:
    value = data.get(key, default)
    if isinstance(value, bool):
        raise SchemaError(f"{what}: '{key}' must be a number")
    if isinstance(value, str):
        if not value.strip():
            return default
        try:
            value = float(value)
        except ValueError:
            raise SchemaError(f"{what}: '{key}' is not numeric: {value!r}") from None
    if not isinstance(value, (int, float)):
        raise SchemaError(f"{what}: '{key}' must be a number")
    # json reads NaN, Infinity and 1e400 as floats
    if isinstance(value, float) and not math.isfinite(value):
        raise SchemaError(f"{what}: '{key}' must be finite; got {value!r}")
    return value


def _choice(data: Mapping[str, Any], key: str, what: str, choices: tuple[str, ...], default: str) -> str:
    value = data.get(key, default)
    if value not in choices:
        raise SchemaError(f"{what}: '{key}' must be one of {', '.join(choices)}; got {value!r}")
    return value


def _date(data: Mapping[str, Any], key: str, what: str) -> Optional[date]:
    value = data.get(key)
    if value in (None, ""):
        return None
    if not isinstance(value, str):
        raise SchemaError(f"{what}: '{key}' must be an ISO date string")
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise SchemaError(f"{what}: '{key}' is not an ISO date: {value!r}") from None


def _list(data: Mapping[str, Any], key: str, what: str) -> List[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise SchemaError(f"{what}: '{key}' must be a list")
    return value


def _iso(d: Optional[date]) -> str:
    return d.isoformat() if d else ""


# ---------- records ----------

@dataclass
class Member:
    id: str
    name: str
    role: str
    avatar: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "name": self.name, "role": self.role}
        if self.avatar is not None:
            out["avatar"] = self.avatar
        return out

    @classmethod
    def from_dict(cls, data: Any) -> "Member":
        d = _mapping(data, "member")
        return cls(
            id=_str(d, "id", "member"),
            name=_str(d, "name", "member"),
            role=_str(d, "role", "member", default=""),
            avatar=_opt_str(d, "avatar", "member"),
        )


@dataclass(frozen=True)
class HistoryEntry:
    """One audit record. Frozen: entries are never edited after they are written."""
    id: str
    action: str
    details: str
    timestamp: str
    user: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "action": self.action,
            "details": self.details,
            "timestamp": self.timestamp,
            "user": self.user,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "HistoryEntry":
        d = _mapping(data, "history entry")
        return cls(
            id=_str(d, "id", "history entry"),
            action=_choice(d, "action", "history entry", HISTORY_ACTIONS, "updated"),
            details=_str(d, "details", "history entry", default=""),
            timestamp=_str(d, "timestamp", "history entry"),
            user=_str(d, "user", "history entry", default=""),
        )


@dataclass
class WorkLog:
    id: str
    date: date
    hours: float
    description: Optional[str] = None

    def __post_init__(self):
        if not 0 <= self.hours < math.inf:
            raise SchemaError(f"work log {self.id}: hours must be a non-negative finite number")

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "date": self.date.isoformat(), "hours": self.hours}
        if self.description is not None:
            out["description"] = self.description
        return out

    @classmethod
    def from_dict(cls, data: Any) -> "WorkLog":
        d = _mapping(data, "work log")
        day = _date(d, "date", "work log")
        if day is None:
            raise SchemaError("work log: missing 'date'")
        return cls(
            id=_str(d, "id", "work log"),
            date=day,
            hours=_number(d, "hours", "work log", 0.0),
            description=_opt_str(d, "description", "work log"),
        )


@dataclass
class Task:
    id: str
    title: str
    due_date: Optional[date] = None
    completed: bool = False
    priority: str = "medium"

    def toggle(self) -> bool:
        self.completed = not self.completed
        return self.completed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "dueDate": _iso(self.due_date),
            "completed": self.completed,
            "priority": self.priority,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Task":
        d = _mapping(data, "task")
        return cls(
            id=_str(d, "id", "task"),
            title=_str(d, "title", "task"),
            due_date=_date(d, "dueDate", "task"),
            completed=_bool(d, "completed", "task", False),
            priority=_choice(d, "priority", "task", TASK_PRIORITIES, "medium"),
        )


@dataclass(frozen=True)
class ProjectNote:
    id: str
    content: str
    timestamp: str
    user: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "content": self.content, "timestamp": self.timestamp, "user": self.user}

    @classmethod
    def from_dict(cls, data: Any) -> "ProjectNote":
        d = _mapping(data, "note")
        return cls(
            id=_str(d, "id", "note"),
            content=_str(d, "content", "note"),
            timestamp=_str(d, "timestamp", "note"),
            user=_str(d, "user", "note", default=""),
        )


@dataclass
class Project:
    id: str
    name: str
    client: str = ""
    status: str = "planning"
    is_active: bool = True
    deadline: Optional[date] = None
    progress: int = 0
    level_of_development: str = ""
    team_members: List[str] = field(default_factory=list)
    history: List[HistoryEntry] = field(default_factory=list)
    work_logs: List[WorkLog] = field(default_factory=list)
    tasks: List[Task] = field(default_factory=list)
    notes: List[ProjectNote] = field(default_factory=list)
    description: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.progress, float) and not math.isfinite(self.progress):
            raise SchemaError(f"project {self.id}: progress must be finite")
        self.progress = max(0, min(100, int(round(self.progress))))
        # dict preserves first-seen order
        self.team_members = list(dict.fromkeys(self.team_members))

    @property
    def total_hours(self) -> float:
        return sum(log.hours for log in self.work_logs)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "client": self.client,
            "status": self.status,
            "isActive": self.is_active,
            "deadline": _iso(self.deadline),
            "progress": self.progress,
            "lod": self.level_of_development,
            "teamMembers": list(self.team_members),
            "history": [h.to_dict() for h in self.history],
            "workLogs": [w.to_dict() for w in self.work_logs],
            "tasks": [t.to_dict() for t in self.tasks],
            "notes": [n.to_dict() for n in self.notes],
        }
        if self.description is not None:
            out["description"] = self.description
        return out

    @classmethod
    def from_dict(cls, data: Any) -> "Project":
        d = _mapping(data, "project")
        what = f"project {d.get('id', '?')}"
        lod_key = "lod" if "lod" in d else "levelOfDevelopment"
        members = _list(d, "teamMembers", what)
        return cls(
            id=_str(d, "id", what),
            name=_str(d, "name", what),
            client=_str(d, "client", what, default=""),
            status=_choice(d, "status", what, PROJECT_STATUSES, "planning"),
            is_active=_bool(d, "isActive", what, True),
            deadline=_date(d, "deadline", what),
            progress=_number(d, "progress", what, 0),
            level_of_development=_str(d, lod_key, what, default=""),
            team_members=[_str({"id": m}, "id", f"{what} team member") for m in members],
            history=[HistoryEntry.from_dict(h) for h in _list(d, "history", what)],
            work_logs=[WorkLog.from_dict(w) for w in _list(d, "workLogs", what)],
            tasks=[Task.from_dict(t) for t in _list(d, "tasks", what)],
            notes=[ProjectNote.from_dict(n) for n in _list(d, "notes", what)],
            description=_opt_str(d, "description", what),
        )


@dataclass
class Branding:
    company_name: str
    primary_color: str
    logo_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"companyName": self.company_name, "primaryColor": self.primary_color, "logoUrl": self.logo_url}

    @classmethod
    def from_dict(cls, data: Any) -> "Branding":
        d = _mapping(data, "branding")
        return cls(
            company_name=_str(d, "companyName", "branding"),
            primary_color=_str(d, "primaryColor", "branding"),
            logo_url=_opt_str(d, "logoUrl", "branding"),
        )


DEFAULT_BRANDING = Branding(company_name="REFLEX CRM", primary_color="#BEF264", logo_url=None)


# ---------- list/scalar parsers shared by storage and backup ----------

def parse_projects(data: Any) -> List[Project]:
    if not isinstance(data, list):
        raise SchemaError("projects must be a list")
    return [Project.from_dict(p) for p in data]


def parse_members(data: Any) -> List[Member]:
    if not isinstance(data, list):
        raise SchemaError("members must be a list")
    return [Member.from_dict(m) for m in data]


def parse_branding(data: Any) -> Optional[Branding]:
    return None if data is None else Branding.from_dict(data)


def parse_theme(data: Any) -> str:
    if data not in THEMES:
        raise SchemaError(f"theme must be one of {', '.join(THEMES)}; got {data!r}")
    return data


def parse_language(data: Any) -> str:
    if data not in LANGUAGES:
        raise SchemaError(f"language must be one of {', '.join(LANGUAGES)}; got {data!r}")
    return data


@dataclass
class SessionBundle:
    """The full persisted state for one session identifier."""
    projects: List[Project] = field(default_factory=list)
    members: List[Member] = field(default_factory=list)
    branding: Optional[Branding] = None
    theme: str = DEFAULT_THEME
    language: str = DEFAULT_LANGUAGE
    timestamp: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "projects": [p.to_dict() for p in self.projects],
            "members": [m.to_dict() for m in self.members],
            "branding": self.branding.to_dict() if self.branding else None,
            "theme": self.theme,
            "lang": self.language,
            "timestamp": self.timestamp,
        }
