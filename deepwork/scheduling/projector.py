"""
容量予測 (Capacity Projector)

スロットの現在使用量と選択中タスクの工数を合算し、容量超過を判定します。
"""

from typing import Iterable

from pydantic import BaseModel, Field

from ..models import Task, effort_hours
from .aggregator import CapacityLevel, SlotAssignmentView, capacity_level


class CapacityProjection(BaseModel):
    """容量予測結果"""
    current_usage_hours: float = Field(..., description="現在の使用時間")
    selection_effort_hours: float = Field(..., description="選択中タスクの工数合計")
    projected_usage_hours: float = Field(..., description="割り当て後の予測使用時間")
    capacity_hours: float = Field(..., description="スロット容量")
    is_over_capacity: bool = Field(..., description="容量超過か（同値は超過ではない）")

    @property
    def remaining_hours(self) -> float:
        """割り当て後の残り容量（負なら超過）"""
        return self.capacity_hours - self.projected_usage_hours

    @property
    def capacity_level(self) -> CapacityLevel:
        """割り当て後の容量レベル"""
        return capacity_level(self.projected_usage_hours, self.capacity_hours)


def selection_effort(selection: Iterable[str], all_tasks: Iterable[Task]) -> float:
    """選択中タスクの工数合計（未登録IDは0）"""
    selected = set(selection)
    return sum(effort_hours(task) for task in all_tasks if task.id in selected)


def project(
    view: SlotAssignmentView,
    selection: Iterable[str],
    all_tasks: Iterable[Task]
) -> CapacityProjection:
    """スロットビューと選択から容量を予測"""
    added = selection_effort(selection, all_tasks)
    projected = view.current_usage_hours + added

    return CapacityProjection(
        current_usage_hours=view.current_usage_hours,
        selection_effort_hours=added,
        projected_usage_hours=projected,
        capacity_hours=view.capacity_hours,
        is_over_capacity=projected > view.capacity_hours
    )
