# Rev 0.2.0: load gates autosave; every mutation goes through here
from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Iterable, List, Optional

from PySide6.QtCore import QObject, Signal

from ..models.entities import (
    DEFAULT_BRANDING,
    Branding,
    Member,
    Project,
    ProjectNote,
    SessionBundle,
    Task,
    WorkLog,
    new_id,
)
from ..models.types import DEFAULT_LANGUAGE, DEFAULT_THEME, LANGUAGES, THEMES
from ..repositories.session_store import SessionStore
from ..services import activity_service, audit_service, backup_service, roster_service
from ..utils.clock import Clock, to_iso, utc_now
from ..utils.logging_setup import get_logger


class AppStateViewModel(QObject):
    """
    Live entity graph for one session.

    Emits:
      stateChanged()      after every mutation
      dataLoaded(str)     once load() has populated state (session id)
      saveFailed(str)     when an autosave could not be written (session id)

    Saves are armed by load(): a mutation made before the stored bundle has
    been read never reaches storage, so an empty startup state cannot
    overwrite durable data.
    """

    stateChanged = Signal()
    dataLoaded = Signal(str)
    saveFailed = Signal(str)

    def __init__(self, store: SessionStore, *, actor: str, clock: Clock = utc_now):
        super().__init__()
        self._store = store
        self._actor = actor
        self._clock = clock
        self._log = get_logger("AppStateViewModel")

        self._session_id: Optional[str] = None
        self._loaded = False

        self.projects: List[Project] = []
        self.members: List[Member] = []
        self.branding: Branding = DEFAULT_BRANDING
        self.theme: str = DEFAULT_THEME
        self.language: str = DEFAULT_LANGUAGE

        self.stateChanged.connect(self._autosave)

    # ---- lifecycle
    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    def load(self, session_id: str) -> bool:
        bundle = self._store.load(session_id)
        if bundle is None:
            self._log.warning("No session id; staying on defaults with autosave disarmed")
            return False
        self._session_id = session_id
        self._adopt(bundle)
        self._loaded = True
        self._log.info("Loaded session %s: %d projects, %d members", session_id, len(self.projects), len(self.members))
        self.dataLoaded.emit(session_id)
        return True

    def snapshot(self) -> SessionBundle:
        return SessionBundle(
            projects=list(self.projects),
            members=list(self.members),
            branding=self.branding,
            theme=self.theme,
            language=self.language,
            timestamp=to_iso(self._clock()),
        )

    # ---- projects
    def project(self, project_id: str) -> Optional[Project]:
        return next((p for p in self.projects if p.id == project_id), None)

    def create_project(self, draft: Project) -> Project:
        project = replace(draft, id=new_id(), tasks=[], notes=[], work_logs=list(draft.work_logs))
        project = audit_service.seed_history(project, actor=self._actor, clock=self._clock)
        self.projects = [*self.projects, project]
        self._changed()
        return project

    def update_project(self, edited: Project) -> bool:
        previous = self.project(edited.id)
        if previous is None:
            return False
        # history is append-only
        edited = replace(edited, history=list(previous.history))
        updated = audit_service.record_update(previous, edited, actor=self._actor, clock=self._clock)
        self._replace_project(updated)
        return True

    def delete_project(self, project_id: str) -> bool:
        before = len(self.projects)
        self.projects = [p for p in self.projects if p.id != project_id]
        if len(self.projects) == before:
            return False
        self._changed()
        return True

    def total_hours(self, project_id: str) -> float:
        p = self.project(project_id)
        return p.total_hours if p else 0.0

    # ---- members
    def save_member(self, member: Member, project_ids: Optional[Iterable[str]] = None) -> Member:
        """Insert or replace a member. ``None`` keeps its current project assignments."""
        if not member.id:
            member = replace(member, id=new_id())
        if project_ids is None:
            project_ids = roster_service.project_ids_for(member.id, self.projects)
        if any(m.id == member.id for m in self.members):
            self.members = [member if m.id == member.id else m for m in self.members]
        else:
            self.members = [*self.members, member]
        self.projects = roster_service.sync_assignments(
            self.projects, member, project_ids, actor=self._actor, clock=self._clock
        )
        self._changed()
        return member

    def delete_member(self, member_id: str) -> bool:
        if not any(m.id == member_id for m in self.members):
            return False
        self.projects, self.members = roster_service.remove_member(
            self.projects, self.members, member_id, actor=self._actor, clock=self._clock
        )
        self._changed()
        return True

    def members_of(self, project_id: str) -> List[Member]:
        p = self.project(project_id)
        return roster_service.resolve_members(p, self.members) if p else []

    # ---- tasks
    def add_task(self, project_id: str, title: str, *, due_date: Optional[date] = None, priority: str = "medium") -> Optional[Task]:
        p = self.project(project_id)
        if p is None:
            return None
        task = Task(id=new_id(), title=title, due_date=due_date, priority=priority)
        self._replace_project(replace(p, tasks=[*p.tasks, task]))
        return task

    def toggle_task(self, project_id: str, task_id: str) -> Optional[bool]:
        p = self.project(project_id)
        task = next((t for t in p.tasks if t.id == task_id), None) if p else None
        if task is None:
            return None
        done = task.toggle()
        self._changed()
        return done

    def delete_task(self, project_id: str, task_id: str) -> bool:
        p = self.project(project_id)
        if p is None or not any(t.id == task_id for t in p.tasks):
            return False
        self._replace_project(replace(p, tasks=[t for t in p.tasks if t.id != task_id]))
        return True

    # ---- work logs
    def add_work_log(self, project_id: str, day: date, hours: float, description: Optional[str] = None) -> Optional[WorkLog]:
        p = self.project(project_id)
        if p is None:
            return None
        entry = WorkLog(id=new_id(), date=day, hours=hours, description=description)
        self._replace_project(replace(p, work_logs=[*p.work_logs, entry]))
        return entry

    def delete_work_log(self, project_id: str, log_id: str) -> bool:
        p = self.project(project_id)
        if p is None or not any(w.id == log_id for w in p.work_logs):
            return False
        self._replace_project(replace(p, work_logs=[w for w in p.work_logs if w.id != log_id]))
        return True

    # ---- notes (append/delete only)
    def add_note(self, project_id: str, content: str) -> Optional[ProjectNote]:
        p = self.project(project_id)
        if p is None or not content.strip():
            return None
        note = ProjectNote(id=new_id(), content=content, timestamp=to_iso(self._clock()), user=self._actor)
        self._replace_project(replace(p, notes=[note, *p.notes]))
        return note

    def delete_note(self, project_id: str, note_id: str) -> bool:
        p = self.project(project_id)
        if p is None or not any(n.id == note_id for n in p.notes):
            return False
        self._replace_project(replace(p, notes=[n for n in p.notes if n.id != note_id]))
        return True

    # ---- preferences
    def set_branding(self, branding: Branding) -> None:
        self.branding = branding
        self._changed()

    def set_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f"unknown theme {theme!r}")
        self.theme = theme
        self._changed()

    def toggle_theme(self) -> str:
        self.set_theme("light" if self.theme == "dark" else "dark")
        return self.theme

    def set_language(self, language: str) -> None:
        if language not in LANGUAGES:
            raise ValueError(f"unknown language {language!r}")
        self.language = language
        self._changed()

    def toggle_language(self) -> str:
        self.set_language("pt" if self.language == "en" else "en")
        return self.language

    # ---- backup
    def export_backup(self) -> str:
        return backup_service.export_backup(self.snapshot())

    def import_backup(self, text: str) -> backup_service.ImportResult:
        result = backup_service.import_backup(text, self.snapshot())
        if result.ok:
            self._adopt(result.bundle)
            self._changed()
        return result

    # ---- read models
    def activity(self, *, search: str = "", start: Optional[date] = None, end: Optional[date] = None) -> List[activity_service.ActivityItem]:
        return activity_service.activity_feed(self.projects, search=search, start=start, end=end)

    def summary(self) -> activity_service.DashboardSummary:
        return activity_service.summarize(self.projects)

    # ---- internals
    def _adopt(self, bundle: SessionBundle) -> None:
        self.projects = list(bundle.projects)
        self.members = list(bundle.members)
        self.branding = bundle.branding or DEFAULT_BRANDING
        self.theme = bundle.theme
        self.language = bundle.language

    def _replace_project(self, project: Project) -> None:
        self.projects = [project if p.id == project.id else p for p in self.projects]
        self._changed()

    def _changed(self) -> None:
        self.stateChanged.emit()

    def _autosave(self) -> None:
        if not self._loaded or not self._session_id:
            self._log.debug("Skipping save: state not loaded yet")
            return
        if not self._store.save(self._session_id, self.snapshot()):
            self.saveFailed.emit(self._session_id)
