"""
Task エンティティモデル

外部タスクストアが所有するタスクを表現します。
スケジューラが書き込むのは focus_date / focus_slot / day_id の3フィールドのみです。
"""

from datetime import date
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, validator

from .time_slot import SlotId


DAY_KEY_PREFIX = "day_"


class TaskStatus(str, Enum):
    """タスクステータス列挙"""
    TODO = "todo"                  # 未着手
    NEXT = "next"                  # 次にやる
    IN_PROGRESS = "in_progress"    # 進行中
    COMPLETED = "completed"        # 完了
    ON_HOLD = "on_hold"            # 保留


# 候補プールから除外されるステータス
CLOSED_STATUSES = frozenset({TaskStatus.COMPLETED.value, TaskStatus.ON_HOLD.value})


class TaskPriority(str, Enum):
    """タスク優先度列挙（P0が最優先）"""
    P0 = "P0"    # 緊急
    P1 = "P1"    # 高
    P2 = "P2"    # 中
    P3 = "P3"    # 低

    @property
    def rank(self) -> int:
        """並び替え用の順位（小さいほど優先）"""
        return int(self.value[1])


def day_key(day: date) -> str:
    """日付から日次集約キーを生成（例: day_2026-10-18）"""
    return f"{DAY_KEY_PREFIX}{day.isoformat()}"


class Task(BaseModel):
    """タスクエンティティ"""

    # 基本識別情報
    id: str = Field(..., description="タスクID")
    title: str = Field(..., description="タイトル")
    status: str = Field(default=TaskStatus.TODO.value, description="ステータス")
    priority: TaskPriority = Field(default=TaskPriority.P2, description="優先度")

    # 関連・見積もり
    venture_id: Optional[str] = Field(None, description="ベンチャーID")
    est_effort: Optional[float] = Field(None, description="見積もり工数（時間）")
    due_date: Optional[date] = Field(None, description="期限日")
    notes: Optional[str] = Field(None, description="メモ")

    # フォーカス割り当て
    focus_date: Optional[date] = Field(None, description="割り当て日")
    focus_slot: Optional[SlotId] = Field(None, description="割り当てスロット")
    day_id: Optional[str] = Field(None, description="日次集約キー")

    @validator('status', pre=True)
    def normalize_status(cls, v):
        """ステータスを文字列に正規化"""
        if isinstance(v, Enum):
            return v.value
        return v

    @validator('est_effort')
    def validate_est_effort(cls, v):
        """見積もり工数の検証"""
        if v is not None and v < 0:
            raise ValueError('見積もり工数は0以上である必要があります')
        return v

    @validator('focus_slot', always=True)
    def validate_focus_pair(cls, v, values):
        """割り当て日とスロットは両方指定するか両方省略する"""
        if 'focus_date' not in values:
            return v
        if (values['focus_date'] is None) != (v is None):
            raise ValueError('focus_date と focus_slot は両方指定するか両方省略する必要があります')
        return v

    @property
    def is_open(self) -> bool:
        """候補プール対象のステータスか"""
        return self.status not in CLOSED_STATUSES

    @property
    def is_scheduled(self) -> bool:
        """フォーカス日が設定済みか"""
        return self.focus_date is not None

    def is_assigned_to(self, day: date, slot_id: SlotId) -> bool:
        """指定の日付・スロットに割り当て済みか"""
        return self.focus_date == day and self.focus_slot == slot_id

    def to_dict(self) -> Dict[str, Any]:
        """辞書形式に変換（ストレージ用）"""
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status,
            "priority": self.priority.value,
            "venture_id": self.venture_id,
            "est_effort": self.est_effort,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "notes": self.notes,
            "focus_date": self.focus_date.isoformat() if self.focus_date else None,
            "focus_slot": self.focus_slot.value if self.focus_slot else None,
            "day_id": self.day_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """辞書から Task インスタンスを作成"""
        return cls(**data)


def effort_hours(task: Task) -> float:
    """見積もり工数（未設定は0時間として扱う）"""
    if task.est_effort is None:
        return 0.0
    return float(task.est_effort)


class TaskPatch(BaseModel):
    """
    タスクの部分更新（スケジュール割り当てフィールドのみ）

    None は割り当て解除を意味する。
    """
    focus_date: Optional[date] = Field(None, description="割り当て日")
    focus_slot: Optional[SlotId] = Field(None, description="割り当てスロット")
    day_id: Optional[str] = Field(None, description="日次集約キー")

    @classmethod
    def assign(cls, day: date, slot_id: SlotId) -> "TaskPatch":
        """割り当てパッチを作成"""
        return cls(focus_date=day, focus_slot=slot_id, day_id=day_key(day))

    @classmethod
    def clear(cls) -> "TaskPatch":
        """割り当て解除パッチを作成"""
        return cls(focus_date=None, focus_slot=None, day_id=None)

    @property
    def is_clear(self) -> bool:
        """割り当て解除パッチか"""
        return self.focus_date is None and self.focus_slot is None

    def to_dict(self) -> Dict[str, Any]:
        """辞書形式に変換（ストレージ用・nullを含む）"""
        return {
            "focus_date": self.focus_date.isoformat() if self.focus_date else None,
            "focus_slot": self.focus_slot.value if self.focus_slot else None,
            "day_id": self.day_id,
        }

    def apply_to(self, task: Task) -> Task:
        """タスクにパッチを適用した新しいインスタンスを返す"""
        data = task.to_dict()
        data.update(self.to_dict())
        return Task.from_dict(data)
