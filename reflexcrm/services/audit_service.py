# Rev 0.2.0

"""Project audit trail (Rev 0.2.0)
Compares the stored and edited snapshot of a project at commit time and
prepends one history entry that lists every tracked change. Edits that touch
no tracked field leave the history alone.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Callable, List, Tuple

from ..models.entities import HistoryEntry, Project, new_id
from ..utils.clock import Clock, to_iso, utc_now
from ..utils.logging_setup import get_logger

log = get_logger(__name__)

CREATED_DETAILS = "Project initialized"

# (field, fragment builder) in the order fragments are reported
_SCALAR_FIELDS: Tuple[Tuple[str, Callable[[Project], str]], ...] = (
    ("name", lambda p: f'Name changed to "{p.name}"'),
    ("status", lambda p: f"Status changed to {p.status}"),
    ("is_active", lambda p: f"Project marked as {'Active' if p.is_active else 'Inactive'}"),
    ("progress", lambda p: f"Progress updated to {p.progress}%"),
    ("level_of_development", lambda p: f"LOD updated to {p.level_of_development}"),
    ("deadline", lambda p: f"Deadline changed to {p.deadline.isoformat() if p.deadline else 'none'}"),
)


def make_entry(action: str, details: str, *, actor: str, clock: Clock = utc_now) -> HistoryEntry:
    return HistoryEntry(id=new_id(), action=action, details=details, timestamp=to_iso(clock()), user=actor)


def describe_changes(previous: Project, current: Project) -> List[str]:
    """Human-readable fragments for every tracked field that differs."""
    if previous.id != current.id:
        raise ValueError(f"cannot diff project {previous.id} against {current.id}")

    changes = [describe(current) for name, describe in _SCALAR_FIELDS
               if getattr(previous, name) != getattr(current, name)]

    before, after = set(previous.team_members), set(current.team_members)
    added, removed = after - before, before - after
    if added:
        changes.append(f"Added {len(added)} member(s)")
    if removed:
        changes.append(f"Removed {len(removed)} member(s)")
    return changes


def record_update(previous: Project, current: Project, *, actor: str, clock: Clock = utc_now) -> Project:
    """Return `current` with one 'updated' entry prepended, or unchanged when nothing tracked moved."""
    changes = describe_changes(previous, current)
    if not changes:
        return current
    entry = make_entry("updated", "; ".join(changes), actor=actor, clock=clock)
    log.debug("project %s: %s", current.id, entry.details)
    return replace(current, history=[entry, *current.history])


def record_event(project: Project, details: str, *, actor: str, clock: Clock = utc_now) -> Project:
    """Prepend a free-text 'updated' entry; used for roster changes made outside the project editor."""
    entry = make_entry("updated", details, actor=actor, clock=clock)
    return replace(project, history=[entry, *project.history])


def seed_history(project: Project, *, actor: str, clock: Clock = utc_now) -> Project:
    """Creation path: the project's history is exactly one 'created' entry."""
    entry = make_entry("created", CREATED_DETAILS, actor=actor, clock=clock)
    return replace(project, history=[entry])
