from __future__ import annotations

import json
from datetime import date

import pytest

from reflexcrm.models.entities import (
    Branding,
    HistoryEntry,
    Member,
    Project,
    ProjectNote,
    SessionBundle,
    Task,
    WorkLog,
)
from reflexcrm.services.backup_service import (
    BackupError,
    export_backup,
    import_backup,
    parse_backup,
)


@pytest.fixture()
def bundle() -> SessionBundle:
    return SessionBundle(
        projects=[
            Project(
                id="p1", name="Tower", client="ACME", status="coordination", is_active=False,
                deadline=date(2025, 2, 14), progress=80, level_of_development="LOD 400",
                team_members=["m1", "ghost"],
                history=[HistoryEntry("h1", "created", "Project initialized", "2024-01-01T10:00:00.000Z", "Ana")],
                work_logs=[WorkLog("w1", date(2024, 1, 2), 2.5, "clash run"), WorkLog("w2", date(2024, 1, 3), 4)],
                tasks=[Task("t1", "Federate models", date(2024, 2, 1), True, "high")],
                notes=[ProjectNote("n1", "Client call", "2024-01-05T08:00:00.000Z", "Ana")],
                description="North tower",
            )
        ],
        members=[Member("m1", "Ana", "BIM Manager", avatar="https://example.test/a.png")],
        branding=Branding("ACME BIM", "#FF0000", None),
        theme="light",
        language="en",
        timestamp="2024-03-01T09:00:00.000Z",
    )


def test_export_shape(bundle: SessionBundle):
    data = json.loads(export_backup(bundle))
    assert set(data) == {"projects", "members", "branding", "theme", "lang", "timestamp"}
    assert data["lang"] == "en"
    assert data["projects"][0]["teamMembers"] == ["m1", "ghost"]


def test_round_trip(bundle: SessionBundle):
    result = import_backup(export_backup(bundle), SessionBundle())
    assert result.ok and result.code == "applied"
    assert result.bundle == bundle


def test_round_trip_of_empty_bundle():
    empty = SessionBundle(timestamp="2024-01-01T00:00:00.000Z")
    assert import_backup(export_backup(empty), SessionBundle(theme="light")).bundle == empty


def test_import_merges_present_fields_only(bundle: SessionBundle):
    result = import_backup('{"theme": "dark", "somethingNew": 1}', bundle)
    assert result.ok
    assert result.bundle.theme == "dark"
    assert result.bundle.projects == bundle.projects
    assert result.bundle.members == bundle.members
    assert result.bundle.language == "en"


def test_projects_not_a_list_is_rejected(bundle: SessionBundle):
    result = import_backup('{"projects": "not-a-list"}', bundle)
    assert not result.ok
    assert result.code == "validation_error"
    assert result.bundle is bundle
    assert result.bundle.projects[0].name == "Tower"


def test_bad_entity_rejects_whole_blob(bundle: SessionBundle):
    text = json.dumps({"theme": "dark", "members": [{"id": "m9", "name": "Bo", "role": "x"}], "projects": [{"id": "p9"}]})
    result = import_backup(text, bundle)
    assert not result.ok
    assert result.bundle.theme == "light"
    assert result.bundle.members == bundle.members


@pytest.mark.parametrize("text", ["", "{not json", "[1, 2]", "null"])
def test_malformed_text(text, bundle: SessionBundle):
    result = import_backup(text, bundle)
    assert not result.ok
    assert result.code in {"parse_error", "validation_error"}
    assert result.error


def test_parse_backup_raises_typed_error():
    with pytest.raises(BackupError) as exc:
        parse_backup('{"members": {}}')
    assert exc.value.code == "validation_error"


def test_branding_null_means_caller_default(bundle: SessionBundle):
    result = import_backup('{"branding": null}', bundle)
    assert result.ok and result.bundle.branding is None


NON_FINITE = ["NaN", "Infinity", "-Infinity", "1e400"]


def _project_with(field_json: str) -> str:
    return '{"projects": [{"id": "p1", "name": "x", %s}]}' % field_json


@pytest.mark.parametrize("number", NON_FINITE)
@pytest.mark.parametrize(
    "template",
    ['"progress": %s', '"workLogs": [{"id": "w1", "date": "2024-01-01", "hours": %s}]'],
    ids=["progress", "hours"],
)
def test_non_finite_numbers_are_a_validation_error(template: str, number: str, bundle: SessionBundle):
    result = import_backup(_project_with(template % number), bundle)
    assert not result.ok
    assert result.code == "validation_error"
    assert result.bundle is bundle


@pytest.mark.parametrize("number", ['"NaN"', '"inf"'])
def test_non_finite_numeric_strings_are_rejected(number: str, bundle: SessionBundle):
    result = import_backup(_project_with('"progress": %s' % number), bundle)
    assert result.code == "validation_error"
