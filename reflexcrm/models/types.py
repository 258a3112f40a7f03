# Reflex CRM type definitions
# Rev 0.2.0

from __future__ import annotations
from typing import Literal, get_args

ProjectStatus = Literal["planning", "modeling", "coordination", "completed"]
TaskPriority = Literal["low", "medium", "high", "urgent"]
HistoryAction = Literal["created", "updated"]
Theme = Literal["dark", "light"]
Language = Literal["en", "pt"]

PROJECT_STATUSES: tuple[str, ...] = get_args(ProjectStatus)
TASK_PRIORITIES: tuple[str, ...] = get_args(TaskPriority)
HISTORY_ACTIONS: tuple[str, ...] = get_args(HistoryAction)
THEMES: tuple[str, ...] = get_args(Theme)
LANGUAGES: tuple[str, ...] = get_args(Language)

DEFAULT_THEME: Theme = "dark"
DEFAULT_LANGUAGE: Language = "pt"
