"""
スケジューリング - 集計・ランキング・容量予測・一括割り当て
"""

from .errors import CalendarFetchError, CommitFailure, SchedulingError, SchedulingValidationError
from .aggregator import (
    CapacityLevel, SlotAssignmentView, WeekGrid,
    aggregate, build_week_grid, capacity_level, week_days, week_start
)
from .ranker import (
    DueDateUrgency, PoolSummary, UrgencyLevel,
    classify_urgency, days_until_due, rank, summarize_pool, task_urgency
)
from .projector import CapacityProjection, project, selection_effort
from .commit import CommitCoordinator, CommitResult, TaskAssignmentOutcome
from .planner import DeepWorkPlanner, PlanningSnapshot

__all__ = [
    # エラー
    "SchedulingError",
    "SchedulingValidationError",
    "CalendarFetchError",
    "CommitFailure",

    # 集計
    "CapacityLevel",
    "SlotAssignmentView",
    "WeekGrid",
    "aggregate",
    "build_week_grid",
    "capacity_level",
    "week_days",
    "week_start",

    # ランキング
    "DueDateUrgency",
    "PoolSummary",
    "UrgencyLevel",
    "classify_urgency",
    "days_until_due",
    "rank",
    "summarize_pool",
    "task_urgency",

    # 容量予測
    "CapacityProjection",
    "project",
    "selection_effort",

    # 一括割り当て
    "CommitCoordinator",
    "CommitResult",
    "TaskAssignmentOutcome",

    # プランナー
    "DeepWorkPlanner",
    "PlanningSnapshot",
]
