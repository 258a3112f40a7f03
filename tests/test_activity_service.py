from __future__ import annotations

from datetime import date

from reflexcrm.models.entities import HistoryEntry, Project, WorkLog
from reflexcrm.services.activity_service import activity_feed, summarize


def _h(hid: str, ts: str, details: str = "x", user: str = "Ana") -> HistoryEntry:
    return HistoryEntry(id=hid, action="updated", details=details, timestamp=ts, user=user)


PROJECTS = [
    Project(id="a", name="Tower", status="completed", progress=100, history=[
        _h("a2", "2024-03-05T10:00:00.000Z", "Progress updated to 100%"),
        _h("a1", "2024-03-01T10:00:00.000Z", "Project initialized", user="Bo"),
    ], work_logs=[WorkLog("w", date(2024, 3, 2), 6)]),
    Project(id="b", name="Bridge", is_active=False, progress=35, history=[
        _h("b2", "garbage"),
        _h("b1", "2024-03-03T23:59:00.000Z", "Added 2 member(s)"),
    ]),
]


def test_feed_is_newest_first_across_projects():
    ids = [i.entry.id for i in activity_feed(PROJECTS)]
    assert ids == ["a2", "b1", "a1", "b2"]
    first = activity_feed(PROJECTS)[0]
    assert (first.project_id, first.project_name) == ("a", "Tower")


def test_search_matches_details_or_user():
    assert [i.entry.id for i in activity_feed(PROJECTS, search="MEMBER")] == ["b1"]
    assert [i.entry.id for i in activity_feed(PROJECTS, search="bo")] == ["a1"]


def test_date_bounds_are_inclusive_and_skip_unreadable():
    got = activity_feed(PROJECTS, start=date(2024, 3, 1), end=date(2024, 3, 3))
    assert [i.entry.id for i in got] == ["b1", "a1"]


def test_summary():
    s = summarize(PROJECTS)
    assert (s.total, s.active, s.completed) == (2, 1, 1)
    assert s.average_progress == 68
    assert s.total_hours == 6


def test_summary_of_nothing():
    s = summarize([])
    assert s.average_progress == 0 and s.total_hours == 0
