"""
一括割り当て (Commit Coordinator)

選択中のタスクを日付・スロットへ並行して書き込みます。
各書き込みは独立しており、一部が失敗しても成功分はロールバックしません。
同じパッチの再送は冪等なので、失敗分のみ再試行できます。
"""

import asyncio
import logging
from datetime import date
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from ..integrations.task_store import TaskStore
from ..models import SlotId, TaskPatch, get_slot
from .errors import CommitFailure, SchedulingValidationError

logger = logging.getLogger(__name__)


class TaskAssignmentOutcome(BaseModel):
    """タスク1件の書き込み結果"""
    task_id: str = Field(..., description="タスクID")
    success: bool = Field(..., description="書き込み成功か")
    error_message: Optional[str] = Field(None, description="エラーメッセージ")


class CommitResult(BaseModel):
    """一括書き込み結果"""
    outcomes: List[TaskAssignmentOutcome] = Field(default_factory=list, description="タスクごとの結果（選択順）")

    @property
    def success(self) -> bool:
        """全件成功したか"""
        return all(outcome.success for outcome in self.outcomes)

    @property
    def succeeded_ids(self) -> List[str]:
        """成功したタスクID"""
        return [outcome.task_id for outcome in self.outcomes if outcome.success]

    @property
    def failed_ids(self) -> List[str]:
        """失敗したタスクID"""
        return [outcome.task_id for outcome in self.outcomes if not outcome.success]


class CommitCoordinator:
    """タスク割り当ての一括書き込み"""

    def __init__(self, task_store: TaskStore, max_concurrency: Optional[int] = None):
        """
        コーディネーターを初期化

        Args:
            task_store: タスクストア
            max_concurrency: 最大並行書き込み数（None は無制限）
        """
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency は1以上である必要があります")
        self.task_store = task_store
        self.max_concurrency = max_concurrency

    async def commit(self, day: Optional[date], slot_id: Optional[SlotId], selection: Sequence[str]) -> CommitResult:
        """
        選択タスクを日付・スロットへ割り当て

        Raises:
            SchedulingValidationError: 選択が空、または割り当て先が未指定・不正（通信なし）
            CommitFailure: 1件以上の書き込みが失敗
        """
        if not selection:
            raise SchedulingValidationError("タスクが選択されていません")
        if day is None or slot_id is None:
            raise SchedulingValidationError("割り当て日とスロットを指定してください")
        slot = get_slot(slot_id)
        if slot is None:
            raise SchedulingValidationError(f"不明なスロットです: {slot_id}")

        patch = TaskPatch.assign(day, slot.slot_id)
        logger.info(f"割り当て開始: {len(selection)}件 → {day.isoformat()} {slot.slot_id.value}")

        result = await self._apply(list(dict.fromkeys(selection)), patch)
        if not result.success:
            raise CommitFailure(
                f"{len(result.failed_ids)}/{len(result.outcomes)}件の割り当てに失敗しました",
                result
            )

        logger.info(f"割り当て完了: {len(result.succeeded_ids)}件")
        return result

    async def unassign(self, task_ids: Sequence[str]) -> CommitResult:
        """
        タスクの割り当てを解除

        Raises:
            SchedulingValidationError: タスク未指定
            CommitFailure: 1件以上の書き込みが失敗
        """
        if not task_ids:
            raise SchedulingValidationError("解除するタスクが指定されていません")

        logger.info(f"割り当て解除開始: {len(task_ids)}件")
        result = await self._apply(list(dict.fromkeys(task_ids)), TaskPatch.clear())
        if not result.success:
            raise CommitFailure(
                f"{len(result.failed_ids)}/{len(result.outcomes)}件の割り当て解除に失敗しました",
                result
            )
        return result

    async def _apply(self, task_ids: List[str], patch: TaskPatch) -> CommitResult:
        """パッチを並行適用し、タスクごとの結果を収集"""
        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None

        async def patch_one(task_id: str) -> None:
            if semaphore is None:
                await self.task_store.update_task(task_id, patch)
                return
            async with semaphore:
                await self.task_store.update_task(task_id, patch)

        # 発行済みの書き込みは呼び出し側のキャンセルで中断しない
        writes = asyncio.gather(
            *(patch_one(task_id) for task_id in task_ids),
            return_exceptions=True
        )
        try:
            results = await asyncio.shield(writes)
        except asyncio.CancelledError:
            logger.warning(f"キャンセル要求: 発行済みの書き込み{len(task_ids)}件の完了を待機します")
            await writes
            raise

        outcomes = []
        for task_id, result in zip(task_ids, results):
            if isinstance(result, BaseException):
                logger.error(f"タスク書き込みエラー: {task_id} - {result}")
                outcomes.append(TaskAssignmentOutcome(task_id=task_id, success=False, error_message=str(result)))
            else:
                outcomes.append(TaskAssignmentOutcome(task_id=task_id, success=True))

        return CommitResult(outcomes=outcomes)
