"""
候補ランキング (Candidate Ranker)

未スケジュール（またはオプションで全オープン）タスクを絞り込み、
期限の緊急度と優先度で並び替えます。
"""

import logging
from datetime import date
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field

from ..models import CandidateFilters, Task

logger = logging.getLogger(__name__)


class UrgencyLevel(str, Enum):
    """期限の緊急度（表示用）"""
    OVERDUE = "overdue"              # 期限切れ
    DUE_TODAY = "due_today"          # 今日
    DUE_TOMORROW = "due_tomorrow"    # 明日
    DUE_SOON = "due_soon"            # 3日以内
    DUE_THIS_WEEK = "due_this_week"  # 7日以内
    DUE_LATER = "due_later"          # それ以降


URGENT_LEVELS = frozenset({UrgencyLevel.OVERDUE, UrgencyLevel.DUE_TODAY, UrgencyLevel.DUE_TOMORROW})


class DueDateUrgency(BaseModel):
    """期限の緊急度表示"""
    level: UrgencyLevel = Field(..., description="緊急度")
    days_until_due: int = Field(..., description="期限までの日数（負は超過）")
    label: str = Field(..., description="表示テキスト")

    @property
    def urgent(self) -> bool:
        """強調表示すべき緊急度か"""
        return self.level in URGENT_LEVELS


def days_until_due(due_date: date, today: date) -> int:
    """期限までの日数（暦日差）"""
    return (due_date - today).days


def classify_urgency(days: int, due_date: date) -> DueDateUrgency:
    """期限までの日数から緊急度を分類"""
    if days < 0:
        level, label = UrgencyLevel.OVERDUE, f"{abs(days)}d overdue"
    elif days == 0:
        level, label = UrgencyLevel.DUE_TODAY, "Due today"
    elif days == 1:
        level, label = UrgencyLevel.DUE_TOMORROW, "Due tomorrow"
    elif days <= 3:
        level, label = UrgencyLevel.DUE_SOON, f"Due in {days}d"
    elif days <= 7:
        level, label = UrgencyLevel.DUE_THIS_WEEK, f"Due in {days}d"
    else:
        level, label = UrgencyLevel.DUE_LATER, f"{due_date:%b} {due_date.day}"

    return DueDateUrgency(level=level, days_until_due=days, label=label)


def task_urgency(task: Task, today: Optional[date] = None) -> Optional[DueDateUrgency]:
    """タスクの緊急度（期限なしはNone）"""
    if task.due_date is None:
        return None
    today = today or date.today()
    return classify_urgency(days_until_due(task.due_date, today), task.due_date)


def _in_base_pool(task: Task, show_scheduled: bool) -> bool:
    if not task.is_open:
        return False
    if not show_scheduled and task.is_scheduled:
        return False
    return True


def _matches_filters(task: Task, filters: CandidateFilters) -> bool:
    if filters.search is not None and filters.search.lower() not in task.title.lower():
        return False
    if filters.priority is not None and task.priority != filters.priority:
        return False
    if filters.venture_id is not None and task.venture_id != filters.venture_id:
        return False
    return True


def _sort_key(task: Task, today: date) -> Tuple[int, int, int]:
    # 期限あり → 期限までの日数 → 優先度。期限なしは優先度のみ
    if task.due_date is None:
        return (1, 0, task.priority.rank)
    return (0, days_until_due(task.due_date, today), task.priority.rank)


def rank(
    all_tasks: Iterable[Task],
    filters: Optional[CandidateFilters] = None,
    today: Optional[date] = None
) -> List[Task]:
    """
    候補タスクを絞り込み・並び替え

    Args:
        all_tasks: 全タスク
        filters: フィルタ条件（省略時は未スケジュールの全オープンタスク）
        today: 基準日（省略時は今日）

    Returns:
        並び替え済みの候補タスク（同順位は入力順を維持）
    """
    filters = filters or CandidateFilters()
    today = today or date.today()

    pool = [
        task for task in all_tasks
        if _in_base_pool(task, filters.show_scheduled) and _matches_filters(task, filters)
    ]
    logger.debug(f"候補プール: {len(pool)}件 (基準日 {today.isoformat()})")
    return sorted(pool, key=lambda task: _sort_key(task, today))


class PoolSummary(BaseModel):
    """候補プールの集計"""
    total: int = Field(default=0, description="候補数")
    with_due_date: int = Field(default=0, description="期限ありの候補数")
    without_due_date: int = Field(default=0, description="期限なしの候補数")
    hidden_scheduled_with_due_date: int = Field(
        default=0,
        description="非表示の割り当て済み・期限ありタスク数"
    )


def summarize_pool(
    all_tasks: Iterable[Task],
    filters: Optional[CandidateFilters] = None,
    today: Optional[date] = None
) -> PoolSummary:
    """候補プールの件数を集計"""
    filters = filters or CandidateFilters()
    tasks = list(all_tasks)
    candidates = rank(tasks, filters, today)

    with_due = sum(1 for task in candidates if task.due_date is not None)
    hidden = 0
    if not filters.show_scheduled:
        hidden = sum(
            1 for task in tasks
            if task.is_open and task.is_scheduled and task.due_date is not None
        )

    return PoolSummary(
        total=len(candidates),
        with_due_date=with_due,
        without_due_date=len(candidates) - with_due,
        hidden_scheduled_with_due_date=hidden
    )
