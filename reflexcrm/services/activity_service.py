# Rev 0.2.0
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import List, Optional, Sequence

from ..models.entities import HistoryEntry, Project
from ..utils.clock import parse_ts


@dataclass(frozen=True)
class ActivityItem:
    project_id: str
    project_name: str
    entry: HistoryEntry


@dataclass(frozen=True)
class DashboardSummary:
    total: int
    active: int
    completed: int
    average_progress: int
    total_hours: float


def _sort_key(item: ActivityItem) -> datetime:
    return parse_ts(item.entry.timestamp) or datetime.min.replace(tzinfo=timezone.utc)


def activity_feed(
    projects: Sequence[Project],
    *,
    search: str = "",
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[ActivityItem]:
    """History across every project, newest first.

    `search` matches details or user, case-insensitively. `start`/`end` are
    inclusive calendar days; entries whose timestamp cannot be read are left
    out whenever a date bound is given.
    """
    needle = search.strip().lower()
    lo = datetime.combine(start, time.min, tzinfo=timezone.utc) if start else None
    hi = datetime.combine(end, time.max, tzinfo=timezone.utc) if end else None

    items: List[ActivityItem] = []
    for p in projects:
        for h in p.history:
            if needle and needle not in h.details.lower() and needle not in h.user.lower():
                continue
            if lo or hi:
                ts = parse_ts(h.timestamp)
                if ts is None or (lo and ts < lo) or (hi and ts > hi):
                    continue
            items.append(ActivityItem(project_id=p.id, project_name=p.name, entry=h))
    items.sort(key=_sort_key, reverse=True)
    return items


def summarize(projects: Sequence[Project]) -> DashboardSummary:
    total = len(projects)
    return DashboardSummary(
        total=total,
        active=sum(1 for p in projects if p.is_active),
        completed=sum(1 for p in projects if p.status == "completed"),
        average_progress=round(sum(p.progress for p in projects) / total) if total else 0,
        total_hours=sum(p.total_hours for p in projects),
    )
