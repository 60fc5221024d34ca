"""
外部連携 - タスクストア・カレンダー・ベンチャー
"""

from .task_store import (
    FirestoreTaskStore, FirestoreVentureDirectory, RepositoryError,
    TaskNotFoundError, TaskStore, VentureDirectory
)
from .google_calendar import CalendarSource, GoogleCalendarClient, GoogleCalendarConfig
from .local_store import (
    Fixture, InMemoryTaskStore, InMemoryVentureDirectory, StaticCalendarSource, load_fixture
)

__all__ = [
    # ストア
    "TaskStore",
    "VentureDirectory",
    "FirestoreTaskStore",
    "FirestoreVentureDirectory",
    "RepositoryError",
    "TaskNotFoundError",

    # カレンダー
    "CalendarSource",
    "GoogleCalendarClient",
    "GoogleCalendarConfig",

    # インメモリ
    "Fixture",
    "InMemoryTaskStore",
    "InMemoryVentureDirectory",
    "StaticCalendarSource",
    "load_fixture",
]
