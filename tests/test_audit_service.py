# tests/test_audit_service.py
from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from reflexcrm.models.entities import Project
from reflexcrm.services.audit_service import (
    describe_changes,
    record_update,
    seed_history,
)


@pytest.fixture()
def seeded(project: Project, clock) -> Project:
    return seed_history(project, actor="Gianfranco", clock=clock)


def test_seed_history_single_created_entry(seeded: Project):
    assert len(seeded.history) == 1
    entry = seeded.history[0]
    assert (entry.action, entry.details, entry.user) == ("created", "Project initialized", "Gianfranco")
    assert entry.timestamp == "2024-03-01T09:00:00.000Z"


def test_identical_copy_appends_nothing(seeded: Project, clock):
    out = record_update(seeded, replace(seeded), actor="u", clock=clock)
    assert out.history == seeded.history


def test_reordered_team_is_not_a_change(seeded: Project, clock):
    edited = replace(seeded, team_members=list(reversed(seeded.team_members)))
    assert describe_changes(seeded, edited) == []
    assert len(record_update(seeded, edited, actor="u", clock=clock).history) == 1


def test_many_fields_one_entry(seeded: Project, clock):
    edited = replace(seeded, name="Hospital East Wing", status="coordination", progress=75)
    out = record_update(seeded, edited, actor="Ana", clock=clock)
    assert len(out.history) == 2
    newest = out.history[0]
    assert newest.action == "updated"
    assert newest.user == "Ana"
    assert newest.details == 'Name changed to "Hospital East Wing"; Status changed to coordination; Progress updated to 75%'
    assert len(newest.details.split("; ")) == 3


def test_set_diff_reports_counts(seeded: Project, clock):
    edited = replace(seeded, team_members=["B", "C"])
    assert describe_changes(seeded, edited) == ["Added 1 member(s)", "Removed 1 member(s)"]


@pytest.mark.parametrize(
    "changes,fragment",
    [
        ({"is_active": False}, "Project marked as Inactive"),
        ({"level_of_development": "LOD 350"}, "LOD updated to LOD 350"),
        ({"deadline": date(2025, 6, 30)}, "Deadline changed to 2025-06-30"),
    ],
)
def test_single_field_fragments(seeded: Project, changes, fragment):
    assert describe_changes(seeded, replace(seeded, **changes)) == [fragment]


def test_untracked_fields_are_ignored(seeded: Project):
    assert describe_changes(seeded, replace(seeded, client="Other", description="x")) == []


def test_history_is_append_only_across_edits(seeded: Project, clock):
    current = seeded
    captured = []
    for progress in (50, 60, 60, 70):
        captured = [h.to_dict() for h in current.history]
        current = record_update(current, replace(current, progress=progress), actor="u", clock=clock)
        # existing entries untouched and still at the tail
        assert [h.to_dict() for h in current.history[-len(captured):]] == captured
    assert [h.details for h in current.history] == [
        "Progress updated to 70%",
        "Progress updated to 60%",
        "Progress updated to 50%",
        "Project initialized",
    ]


def test_update_does_not_touch_previous(seeded: Project, clock):
    edited = replace(seeded, name="Renamed")
    record_update(seeded, edited, actor="u", clock=clock)
    assert len(seeded.history) == 1
    assert len(edited.history) == 1


def test_mismatched_ids_is_a_contract_violation(seeded: Project):
    with pytest.raises(ValueError):
        describe_changes(seeded, replace(seeded, id="other"))
