"""
インメモリ実装（開発・テスト・CLIのオフライン利用）

YAML / JSON のフィクスチャファイルからタスク・ベンチャー・イベントを読み込みます。
"""

import json
import logging
from datetime import date, timedelta
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import yaml
from pydantic import BaseModel, Field

from ..models import CalendarEvent, CalendarWeek, Task, TaskPatch, Venture
from .google_calendar import CalendarSource
from .task_store import TaskNotFoundError, TaskStore, VentureDirectory

logger = logging.getLogger(__name__)


class InMemoryTaskStore(TaskStore):
    """インメモリタスクストア"""

    def __init__(self, tasks: Optional[Iterable[Task]] = None):
        self._tasks: Dict[str, Task] = {task.id: task for task in (tasks or [])}
        self.update_count = 0

    async def list_tasks(self) -> List[Task]:
        return list(self._tasks.values())

    async def update_task(self, task_id: str, patch: TaskPatch) -> Task:
        if task_id not in self._tasks:
            raise TaskNotFoundError(f"ID {task_id} のタスクが見つかりません")

        updated = patch.apply_to(self._tasks[task_id])
        self._tasks[task_id] = updated
        self.update_count += 1
        logger.debug(f"タスクを更新: {task_id}")
        return updated

    def get(self, task_id: str) -> Optional[Task]:
        """IDでタスクを取得"""
        return self._tasks.get(task_id)


class InMemoryVentureDirectory(VentureDirectory):
    """インメモリベンチャーディレクトリ"""

    def __init__(self, ventures: Optional[Iterable[Venture]] = None):
        self._ventures = list(ventures or [])

    async def list_ventures(self) -> List[Venture]:
        return list(self._ventures)


class StaticCalendarSource(CalendarSource):
    """固定イベントのカレンダー"""

    def __init__(self, events: Optional[Iterable[CalendarEvent]] = None, configured: bool = True):
        self._events = list(events or [])
        self.configured = configured

    async def get_week(self, week_start: date) -> CalendarWeek:
        if not self.configured:
            return CalendarWeek.not_configured()

        week_end = week_start + timedelta(days=6)
        events = [event for event in self._events if week_start <= event.event_date <= week_end]
        return CalendarWeek(configured=True, events=events)


class Fixture(BaseModel):
    """フィクスチャファイルの内容"""
    tasks: List[Task] = Field(default_factory=list)
    ventures: List[Venture] = Field(default_factory=list)
    events: List[CalendarEvent] = Field(default_factory=list)
    calendar_configured: bool = Field(default=True, description="カレンダー連携済みとして扱うか")

    def task_store(self) -> InMemoryTaskStore:
        return InMemoryTaskStore(self.tasks)

    def venture_directory(self) -> InMemoryVentureDirectory:
        return InMemoryVentureDirectory(self.ventures)

    def calendar_source(self) -> StaticCalendarSource:
        return StaticCalendarSource(self.events, configured=self.calendar_configured)


def load_fixture(path: Union[str, Path]) -> Fixture:
    """
    フィクスチャファイルを読み込み

    イベントは Google Calendar API 形式（start.dateTime / start.date）で記述します。
    """
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        if path.suffix == ".json":
            raw = json.load(f)
        else:
            raw = yaml.safe_load(f)
    raw = raw or {}

    fixture = Fixture(
        tasks=[Task.from_dict(item) for item in raw.get("tasks", [])],
        ventures=[Venture.from_dict(item) for item in raw.get("ventures", [])],
        events=[CalendarEvent.from_api(item) for item in raw.get("events", [])],
        calendar_configured=raw.get("calendar_configured", True)
    )
    logger.info(
        f"フィクスチャ読み込み: {path} "
        f"(タスク{len(fixture.tasks)}件, ベンチャー{len(fixture.ventures)}件, イベント{len(fixture.events)}件)"
    )
    return fixture
