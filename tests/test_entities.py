from __future__ import annotations

from datetime import date

import pytest

from reflexcrm.models.entities import (
    Branding,
    HistoryEntry,
    Member,
    Project,
    SchemaError,
    Task,
    WorkLog,
    new_id,
    parse_projects,
)


def test_progress_is_clamped():
    assert Project(id="p", name="n", progress=140).progress == 100
    assert Project(id="p", name="n", progress=-5).progress == 0


def test_team_members_deduplicated_in_order():
    p = Project(id="p", name="n", team_members=["b", "a", "b", "c", "a"])
    assert p.team_members == ["b", "a", "c"]


def test_total_hours_is_derived_from_work_logs():
    p = Project(id="p", name="n", work_logs=[
        WorkLog(id="w1", date=date(2024, 1, 1), hours=3),
        WorkLog(id="w2", date=date(2024, 1, 2), hours=1.25),
    ])
    before = p.total_hours
    p.work_logs.append(WorkLog(id="w3", date=date(2024, 1, 3), hours=2.5))
    assert before == 4.25
    assert p.total_hours == before + 2.5


def test_negative_hours_rejected():
    with pytest.raises(SchemaError):
        WorkLog(id="w", date=date(2024, 1, 1), hours=-1)


def test_history_entry_is_immutable():
    h = HistoryEntry(id="h", action="created", details="Project initialized", timestamp="2024-01-01T00:00:00.000Z", user="u")
    with pytest.raises(AttributeError):
        h.details = "edited"


def test_task_toggle_in_place():
    t = Task(id="t", title="Clash report")
    assert t.toggle() is True
    assert t.completed is True
    assert t.toggle() is False


def test_project_reads_legacy_shape():
    # numeric ids, no tasks/notes/workLogs keys, progress as string
    p = Project.from_dict({
        "id": 1700000000000,
        "name": "Old",
        "client": "C",
        "status": "planning",
        "isActive": False,
        "deadline": "2024-05-01",
        "progress": "55",
        "lod": "LOD 200",
        "teamMembers": [1700000000001, "x"],
        "history": [],
    })
    assert p.id == "1700000000000"
    assert p.team_members == ["1700000000001", "x"]
    assert p.progress == 55
    assert p.deadline == date(2024, 5, 1)
    assert p.tasks == [] and p.notes == [] and p.work_logs == []


def test_level_of_development_alias():
    p = Project.from_dict({"id": "p", "name": "n", "levelOfDevelopment": "LOD 400"})
    assert p.level_of_development == "LOD 400"


def test_project_to_dict_round_trips():
    p = Project(
        id=new_id(), name="n", deadline=date(2025, 1, 31),
        tasks=[Task(id="t", title="x", due_date=date(2025, 1, 2), priority="urgent")],
        description="desc",
    )
    assert Project.from_dict(p.to_dict()) == p


@pytest.mark.parametrize(
    "payload",
    [
        {"id": "p", "name": "n", "status": "archived"},
        {"id": "p", "name": "n", "isActive": "yes"},
        {"id": "p", "name": "n", "deadline": "tomorrow"},
        {"id": "p", "name": "n", "teamMembers": "a,b"},
        {"id": "p"},
        "not-an-object",
    ],
)
def test_project_from_dict_rejects_bad_shapes(payload):
    with pytest.raises(SchemaError):
        Project.from_dict(payload)


def test_parse_projects_requires_list():
    with pytest.raises(SchemaError):
        parse_projects({"id": "p"})


def test_member_and_branding_parse():
    assert Member.from_dict({"id": "m", "name": "Ana", "role": "BIM Lead"}) == Member("m", "Ana", "BIM Lead")
    b = Branding.from_dict({"companyName": "ACME", "primaryColor": "#000000", "logoUrl": None})
    assert b.logo_url is None
    with pytest.raises(SchemaError):
        Branding.from_dict({"companyName": "ACME"})


def test_new_ids_are_unique():
    assert len({new_id() for _ in range(1000)}) == 1000


@pytest.mark.parametrize("hours", [float("nan"), float("inf")])
def test_non_finite_hours_rejected(hours):
    with pytest.raises(SchemaError):
        WorkLog(id="w", date=date(2024, 1, 1), hours=hours)


def test_non_finite_progress_rejected():
    with pytest.raises(SchemaError):
        Project(id="p", name="x", progress=float("nan"))
