# Rev 0.2.0
"""Member ↔ project assignment sync.

Projects hold member ids only. Saving a member from the roster screen assigns
or unassigns it on each project and logs the move there; deleting a member
detaches it everywhere so no project keeps a dangling id.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List, Sequence, Tuple

from ..models.entities import Member, Project
from ..utils.clock import Clock, utc_now
from ..utils.logging_setup import get_logger
from .audit_service import record_event

log = get_logger(__name__)


def sync_assignments(
    projects: Sequence[Project],
    member: Member,
    project_ids: Iterable[str],
    *,
    actor: str,
    clock: Clock = utc_now,
) -> List[Project]:
    selected = set(project_ids)
    out: List[Project] = []
    for p in projects:
        assigned = member.id in p.team_members
        if p.id in selected and not assigned:
            p = replace(p, team_members=[*p.team_members, member.id])
            p = record_event(p, f"Assigned {member.name} ({member.role})", actor=actor, clock=clock)
        elif p.id not in selected and assigned:
            p = replace(p, team_members=[m for m in p.team_members if m != member.id])
            p = record_event(p, f"Removed {member.name}", actor=actor, clock=clock)
        out.append(p)
    return out


def remove_member(
    projects: Sequence[Project],
    members: Sequence[Member],
    member_id: str,
    *,
    actor: str,
    clock: Clock = utc_now,
) -> Tuple[List[Project], List[Member]]:
    """Cascade delete: drop the member and its id from every team."""
    name = next((m.name for m in members if m.id == member_id), "Member")
    remaining = [m for m in members if m.id != member_id]
    out: List[Project] = []
    for p in projects:
        if member_id in p.team_members:
            p = replace(p, team_members=[m for m in p.team_members if m != member_id])
            p = record_event(p, f"Member {name} deleted and removed from team", actor=actor, clock=clock)
        out.append(p)
    log.info("Member %s removed", member_id)
    return out, remaining


def resolve_members(project: Project, members: Sequence[Member]) -> List[Member]:
    """Members of a project's team, in team order; ids with no member are skipped."""
    by_id: Dict[str, Member] = {m.id: m for m in members}
    return [by_id[mid] for mid in project.team_members if mid in by_id]


def project_ids_for(member_id: str, projects: Sequence[Project]) -> List[str]:
    return [p.id for p in projects if member_id in p.team_members]
