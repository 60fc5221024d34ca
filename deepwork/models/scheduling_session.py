"""
SchedulingSession エンティティモデル

1回のスケジュール操作（タスク選択→割り当て）のセッション状態を保持します。
呼び出し側が所有し、永続化はしません。閉じると選択・フィルタは破棄されます。
"""

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, validator

from .task import TaskPriority
from .time_slot import SlotId

logger = logging.getLogger(__name__)


class CandidateFilters(BaseModel):
    """候補プールのフィルタ条件（AND結合）"""
    search: Optional[str] = Field(None, description="タイトル部分一致（大文字小文字無視）")
    priority: Optional[TaskPriority] = Field(None, description="優先度の完全一致")
    venture_id: Optional[str] = Field(None, description="ベンチャーIDの完全一致")
    show_scheduled: bool = Field(default=False, description="割り当て済みタスクも表示するか")

    @validator('search')
    def normalize_search(cls, v):
        """空文字は未指定として扱う"""
        if v is not None and not v.strip():
            return None
        return v


class SchedulingSession(BaseModel):
    """スケジュール操作セッション"""

    session_id: str = Field(default_factory=lambda: str(uuid4()))

    # 割り当て先
    target_date: Optional[date] = Field(None, description="割り当て日")
    target_slot: Optional[SlotId] = Field(None, description="割り当てスロット")

    # セッションローカル状態
    filters: CandidateFilters = Field(default_factory=CandidateFilters, description="候補フィルタ")
    selected_task_ids: List[str] = Field(default_factory=list, description="選択中のタスクID（順序付き集合）")

    # ライフサイクル
    is_open: bool = Field(default=True, description="セッションが開いているか")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    closed_at: Optional[datetime] = Field(None, description="終了時刻")

    class Config:
        """Pydantic設定"""
        validate_assignment = True

    @validator('selected_task_ids')
    def deduplicate_selection(cls, v):
        """選択IDの重複を除去（順序は維持）"""
        return list(dict.fromkeys(v))

    @classmethod
    def open(
        cls,
        target_date: Optional[date] = None,
        target_slot: Optional[SlotId] = None,
        preselected_task_id: Optional[str] = None
    ) -> "SchedulingSession":
        """セッションを開始"""
        session = cls(target_date=target_date, target_slot=target_slot)
        if preselected_task_id:
            session.select(preselected_task_id)
        logger.debug(f"スケジュールセッション開始: {session.session_id}")
        return session

    def _ensure_open(self) -> None:
        if not self.is_open:
            raise RuntimeError(f"セッションは既に終了しています: {self.session_id}")

    def set_target(self, target_date: Optional[date], target_slot: Optional[SlotId]) -> None:
        """割り当て先を設定"""
        self._ensure_open()
        self.target_date = target_date
        self.target_slot = target_slot

    def update_filters(self, **changes) -> None:
        """フィルタ条件を更新"""
        self._ensure_open()
        self.filters = CandidateFilters(**{**self.filters.dict(), **changes})

    def select(self, task_id: str) -> None:
        """タスクを選択"""
        self._ensure_open()
        if task_id not in self.selected_task_ids:
            self.selected_task_ids = self.selected_task_ids + [task_id]

    def deselect(self, task_id: str) -> None:
        """タスクの選択を解除"""
        self._ensure_open()
        self.selected_task_ids = [tid for tid in self.selected_task_ids if tid != task_id]

    def toggle(self, task_id: str) -> bool:
        """選択を切り替え（切り替え後に選択中ならTrue）"""
        if self.is_selected(task_id):
            self.deselect(task_id)
            return False
        self.select(task_id)
        return True

    def select_many(self, task_ids: Iterable[str]) -> None:
        """複数タスクを選択"""
        self._ensure_open()
        self.selected_task_ids = self.selected_task_ids + list(task_ids)

    def narrow_selection(self, task_ids: Iterable[str]) -> None:
        """選択を指定IDのみに絞り込む（再試行用）"""
        self._ensure_open()
        keep = set(task_ids)
        self.selected_task_ids = [tid for tid in self.selected_task_ids if tid in keep]

    def clear_selection(self) -> None:
        """選択をクリア"""
        self.selected_task_ids = []

    def is_selected(self, task_id: str) -> bool:
        """選択中かチェック"""
        return task_id in self.selected_task_ids

    @property
    def selected_ids(self) -> List[str]:
        """選択中のタスクID（コピー）"""
        return list(self.selected_task_ids)

    @property
    def has_selection(self) -> bool:
        """選択があるか"""
        return len(self.selected_task_ids) > 0

    @property
    def has_target(self) -> bool:
        """割り当て先が設定済みか"""
        return self.target_date is not None and self.target_slot is not None

    def close(self) -> None:
        """セッションを終了（選択・フィルタ・割り当て先を破棄）"""
        if not self.is_open:
            return
        self.selected_task_ids = []
        self.filters = CandidateFilters()
        self.target_date = None
        self.target_slot = None
        self.is_open = False
        self.closed_at = datetime.utcnow()
        logger.debug(f"スケジュールセッション終了: {self.session_id}")
