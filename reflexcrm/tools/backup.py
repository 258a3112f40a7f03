# File: reflexcrm/tools/backup.py
# Usage examples:
#   python -m reflexcrm.tools.backup status  --session local-user
#   python -m reflexcrm.tools.backup export  --session local-user --out backup.json
#   python -m reflexcrm.tools.backup import  --session 203.0.113.7 --in backup.json
#   python -m reflexcrm.tools.backup export  --session local-user --db /path/to/reflex.db
#
# Notes:
# - DB path defaults to env REFLEX_DB or the XDG data dir
# - import merges the fields present in the file into the session and saves it
# - legacy REFLEX_CRM_* keys are only ever read

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from ..models.entities import SessionBundle
from ..repositories.db import Database
from ..repositories.session_store import FIELDS, SessionStore
from ..repositories.sqlite_kv_repository import SQLiteKeyValueRepository
from ..services.backup_service import export_backup, import_backup
from ..utils.paths import default_db_path


def _open_store(db_path: Path) -> tuple[Database, SessionStore]:
    db = Database(db_path)
    db.run_migrations()
    return db, SessionStore(SQLiteKeyValueRepository(db))


def cmd_status(store: SessionStore, session: str) -> int:
    bundle, sources = store.load_with_sources(session)
    if bundle is None:
        print("error: empty session id", file=sys.stderr)
        return 2
    print(f"session:  {session}")
    print(f"state:    {store.state_of(session).value}")
    print(f"projects: {len(bundle.projects)}")
    print(f"members:  {len(bundle.members)}")
    for name in FIELDS:
        print(f"  {name:<9}{sources[name]}")
    return 0


def cmd_export(store: SessionStore, session: str, out: Optional[Path]) -> int:
    bundle = store.load(session)
    if bundle is None:
        print("error: empty session id", file=sys.stderr)
        return 2
    text = export_backup(bundle)
    if out is None:
        print(text)
    else:
        out.write_text(text, encoding="utf-8")
        print(f"wrote {out}")
    return 0


def cmd_import(store: SessionStore, session: str, src: Path) -> int:
    if not src.exists():
        print(f"error: backup not found at {src}", file=sys.stderr)
        return 2
    current = store.load(session) or SessionBundle()
    result = import_backup(src.read_text(encoding="utf-8"), current)
    if not result.ok:
        print(f"error: {result.code}: {result.error}", file=sys.stderr)
        return 1
    if not store.save(session, result.bundle):
        print("error: could not write session storage", file=sys.stderr)
        return 1
    print(f"imported {src} into session {session}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="reflex-backup", description="Reflex CRM session backup tool")
    ap.add_argument("--db", type=Path, default=None, help="Path to the session database")
    sub = ap.add_subparsers(dest="cmd", required=True)

    st = sub.add_parser("status", help="Show where each field of a session is read from")
    st.add_argument("--session", required=True)

    ex = sub.add_parser("export", help="Write a session as a backup blob")
    ex.add_argument("--session", required=True)
    ex.add_argument("--out", type=Path, default=None)

    im = sub.add_parser("import", help="Merge a backup blob into a session")
    im.add_argument("--session", required=True)
    im.add_argument("--in", dest="src", type=Path, required=True)
    return ap


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    db, store = _open_store(args.db or default_db_path())
    try:
        if args.cmd == "status":
            return cmd_status(store, args.session)
        if args.cmd == "export":
            return cmd_export(store, args.session, args.out)
        return cmd_import(store, args.session, args.src)
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
