"""
割り当て集計 (Assignment Aggregator)

日付・スロットごとに、割り当て済みタスクとカレンダー競合を集計して
利用状況スナップショットを作成します。読み取り専用の純粋関数です。
"""

import logging
from datetime import date, timedelta, tzinfo
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field

from ..models import (
    SLOT_CATALOG, CalendarEvent, SlotId, Task,
    effort_hours, map_event_to_slot, slot_capacity
)

logger = logging.getLogger(__name__)


# 容量バッジの閾値（%）
WARNING_THRESHOLD_PERCENT = 70.0
DAYS_IN_WEEK = 7


class CapacityLevel(str, Enum):
    """容量使用レベル"""
    OK = "ok"              # 余裕あり
    WARNING = "warning"    # 70%超
    OVER = "over"          # 100%超


def capacity_level(usage_hours: float, capacity_hours: float) -> CapacityLevel:
    """使用量から容量レベルを判定"""
    percentage = usage_hours / capacity_hours * 100
    if percentage > 100:
        return CapacityLevel.OVER
    if percentage > WARNING_THRESHOLD_PERCENT:
        return CapacityLevel.WARNING
    return CapacityLevel.OK


class SlotAssignmentView(BaseModel):
    """スロット割り当てビュー（派生データ・非永続）"""
    day: date = Field(..., description="日付")
    slot_id: SlotId = Field(..., description="スロットID")
    scheduled_tasks: List[Task] = Field(default_factory=list, description="割り当て済みタスク")
    conflicting_events: List[CalendarEvent] = Field(default_factory=list, description="競合するカレンダーイベント")
    current_usage_hours: float = Field(default=0.0, description="現在の使用時間")
    capacity_hours: float = Field(..., description="スロット容量（時間）")

    @property
    def remaining_hours(self) -> float:
        """残り容量（負なら超過）"""
        return self.capacity_hours - self.current_usage_hours

    @property
    def utilization_percent(self) -> float:
        """使用率（%）"""
        return self.current_usage_hours / self.capacity_hours * 100

    @property
    def capacity_level(self) -> CapacityLevel:
        """容量レベル"""
        return capacity_level(self.current_usage_hours, self.capacity_hours)

    @property
    def has_conflicts(self) -> bool:
        """カレンダー競合があるか"""
        return len(self.conflicting_events) > 0

    @property
    def is_empty(self) -> bool:
        """タスクもイベントもないか"""
        return not self.scheduled_tasks and not self.conflicting_events


def aggregate(
    day: date,
    slot_id: SlotId,
    all_tasks: Iterable[Task],
    all_events: Iterable[CalendarEvent],
    tz: Optional[tzinfo] = None
) -> SlotAssignmentView:
    """
    日付・スロットの利用状況を集計

    ステータスによる除外は行わない（完了済みタスクも使用量に含まれる）。
    イベントの日付とスロットは tz（表示タイムゾーン）で判定する。
    """
    scheduled_tasks = [task for task in all_tasks if task.is_assigned_to(day, slot_id)]
    conflicting_events = [
        event for event in all_events
        if event.date_in(tz) == day and map_event_to_slot(event, tz) == slot_id
    ]
    current_usage = sum(effort_hours(task) for task in scheduled_tasks)

    return SlotAssignmentView(
        day=day,
        slot_id=slot_id,
        scheduled_tasks=scheduled_tasks,
        conflicting_events=conflicting_events,
        current_usage_hours=current_usage,
        capacity_hours=slot_capacity(slot_id)
    )


def week_start(day: date) -> date:
    """週の開始日（月曜）を取得"""
    return day - timedelta(days=day.weekday())


def week_days(day: date) -> List[date]:
    """指定日を含む週の7日間（月曜始まり）"""
    monday = week_start(day)
    return [monday + timedelta(days=offset) for offset in range(DAYS_IN_WEEK)]


class WeekGrid(BaseModel):
    """週間グリッド（7日 × 全スロット）"""
    week_start: date = Field(..., description="週の開始日（月曜）")
    days: List[date] = Field(default_factory=list, description="週の日付")
    cells: Dict[str, SlotAssignmentView] = Field(default_factory=dict, description="セル（キー: 日付_スロット）")

    @staticmethod
    def cell_key(day: date, slot_id: SlotId) -> str:
        """セルキーを生成"""
        return f"{day.isoformat()}_{SlotId(slot_id).value}"

    def cell(self, day: date, slot_id: SlotId) -> SlotAssignmentView:
        """セルを取得"""
        return self.cells[self.cell_key(day, slot_id)]

    def day_views(self, day: date) -> List[SlotAssignmentView]:
        """1日分のセル（スロット表示順）"""
        return [self.cell(day, slot_id) for slot_id in SLOT_CATALOG]

    def day_usage(self, day: date) -> float:
        """1日の合計使用時間"""
        return sum(view.current_usage_hours for view in self.day_views(day))


def _group_by_cell(
    tasks: Iterable[Task],
    events: Iterable[CalendarEvent],
    tz: Optional[tzinfo] = None
) -> Tuple[Dict[Tuple[date, SlotId], List[Task]], Dict[Tuple[date, SlotId], List[CalendarEvent]]]:
    tasks_by_cell: Dict[Tuple[date, SlotId], List[Task]] = {}
    for task in tasks:
        if task.focus_date is None or task.focus_slot is None:
            continue
        tasks_by_cell.setdefault((task.focus_date, task.focus_slot), []).append(task)

    events_by_cell: Dict[Tuple[date, SlotId], List[CalendarEvent]] = {}
    for event in events:
        events_by_cell.setdefault((event.date_in(tz), map_event_to_slot(event, tz)), []).append(event)

    return tasks_by_cell, events_by_cell


def build_week_grid(
    any_day: date,
    all_tasks: Iterable[Task],
    all_events: Iterable[CalendarEvent],
    tz: Optional[tzinfo] = None
) -> WeekGrid:
    """指定日を含む週のグリッドを作成"""
    days = week_days(any_day)
    tasks_by_cell, events_by_cell = _group_by_cell(all_tasks, all_events, tz)

    cells: Dict[str, SlotAssignmentView] = {}
    for day in days:
        for slot_id in SLOT_CATALOG:
            # セル単位で集計（aggregate と同じ定義）
            cells[WeekGrid.cell_key(day, slot_id)] = aggregate(
                day,
                slot_id,
                tasks_by_cell.get((day, slot_id), []),
                events_by_cell.get((day, slot_id), []),
                tz
            )

    logger.debug(f"週間グリッド作成: {days[0].isoformat()} - {len(cells)}セル")
    return WeekGrid(week_start=days[0], days=days, cells=cells)
