# Rev 0.2.0

"""Backup export/import (Rev 0.2.0)
A backup is one JSON object {projects, members, branding, theme, lang, timestamp}
that is independent of the session it came from. Import is a merge: only the
top-level fields present in the blob replace the current ones, and nothing is
replaced unless every present field validates.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Optional

from ..models.entities import (
    SchemaError,
    SessionBundle,
    parse_branding,
    parse_language,
    parse_members,
    parse_projects,
    parse_theme,
)
from ..utils.logging_setup import get_logger

log = get_logger(__name__)


class BackupError(ValueError):
    """A backup blob could not be parsed or does not have the expected shape."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code


# blob key → (bundle attribute, validating parser)
_FIELDS: Dict[str, tuple[str, Callable[[Any], Any]]] = {
    "projects": ("projects", parse_projects),
    "members": ("members", parse_members),
    "branding": ("branding", parse_branding),
    "theme": ("theme", parse_theme),
    "lang": ("language", parse_language),
    "timestamp": ("timestamp", lambda v: v if isinstance(v, str) else _bad_timestamp(v)),
}


def _bad_timestamp(value: Any) -> str:
    raise SchemaError(f"timestamp must be a string; got {type(value).__name__}")


@dataclass
class BackupPatch:
    """Validated fields of a backup, keyed by SessionBundle attribute."""
    fields: Dict[str, Any] = field(default_factory=dict)

    def apply_to(self, bundle: SessionBundle) -> SessionBundle:
        return replace(bundle, **self.fields)


@dataclass
class ImportResult:
    ok: bool
    code: str            # applied | parse_error | validation_error
    bundle: SessionBundle
    error: Optional[str] = None


def export_backup(bundle: SessionBundle) -> str:
    return json.dumps(bundle.to_dict(), indent=2, ensure_ascii=False)


def parse_backup(text: str) -> BackupPatch:
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise BackupError("parse_error", f"Backup is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise BackupError("validation_error", "Backup root must be an object")

    # list shape first so a bad blob is rejected before any entity is parsed
    for key in ("projects", "members"):
        if key in data and not isinstance(data[key], list):
            raise BackupError("validation_error", f"'{key}' must be a list")

    patch = BackupPatch()
    for key, (attr, parse) in _FIELDS.items():
        if key not in data:
            continue
        try:
            patch.fields[attr] = parse(data[key])
        except SchemaError as exc:
            raise BackupError("validation_error", f"'{key}': {exc}") from exc
    return patch


def import_backup(text: str, current: SessionBundle) -> ImportResult:
    """Merge a backup into `current`. On any error `current` is returned untouched."""
    try:
        patch = parse_backup(text)
    except BackupError as exc:
        log.warning("Backup import rejected (%s): %s", exc.code, exc)
        return ImportResult(ok=False, code=exc.code, bundle=current, error=str(exc))
    log.info("Backup import applied fields: %s", ", ".join(sorted(patch.fields)) or "none")
    return ImportResult(ok=True, code="applied", bundle=patch.apply_to(current))
