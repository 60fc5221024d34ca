"""
TimeSlot カタログと時間→スロット変換

1日を固定の時間枠（スロット）に分割し、それぞれの容量（時間）を定義します。
カレンダーイベントの開始時刻をスロットに割り当てる純粋関数も提供します。
"""

from datetime import datetime, tzinfo
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, validator

from .calendar_event import CalendarEvent


# スロットIDが未登録の場合の容量（時間）
FALLBACK_CAPACITY_HOURS = 8.0


class SlotId(str, Enum):
    """フォーカススロットID列挙"""
    MORNING_ROUTINE = "morning_routine"    # 朝のルーティン
    DEEP_WORK_1 = "deep_work_1"            # ディープワーク
    ADMIN_BLOCK = "admin_block"            # 事務処理
    LUNCH = "lunch"                        # 昼食
    GYM = "gym"                            # ジム・運動
    AFTERNOON = "afternoon"                # 午後
    EVENING_REVIEW = "evening_review"      # 夜の振り返り
    MEETINGS = "meetings"                  # 会議（時間指定なし）
    BUFFER = "buffer"                      # バッファ（時間指定なし）


# 時間枠を持たない（手動割り当て専用の）スロット
FLEXIBLE_SLOTS = frozenset({SlotId.MEETINGS, SlotId.BUFFER})


class TimeSlot(BaseModel):
    """時間スロット定義（不変）"""
    slot_id: SlotId = Field(..., description="スロットID")
    label: str = Field(..., description="表示ラベル")
    time_range: str = Field(..., description="表示用の時間帯")
    capacity_hours: float = Field(..., description="容量（時間）")
    start_hour: Optional[float] = Field(None, description="開始時刻（24時間制・小数）")
    end_hour: Optional[float] = Field(None, description="終了時刻（24時間制・小数）")

    class Config:
        """Pydantic設定"""
        frozen = True

    @validator('capacity_hours')
    def validate_capacity(cls, v):
        """容量の検証"""
        if v <= 0:
            raise ValueError('容量は正の値である必要があります')
        return v

    @validator('end_hour', always=True)
    def validate_window(cls, v, values):
        """時間枠の検証"""
        start = values.get('start_hour')
        if (start is None) != (v is None):
            raise ValueError('開始時刻と終了時刻は両方指定するか両方省略する必要があります')
        if v is not None and not (0 <= start <= 24 and 0 <= v <= 24):
            raise ValueError('時刻は0-24の範囲である必要があります')
        return v

    @property
    def is_flexible(self) -> bool:
        """時間枠を持たないスロットか"""
        return self.slot_id in FLEXIBLE_SLOTS

    def contains_hour(self, hour: float) -> bool:
        """指定時刻がこのスロットの時間枠に含まれるか"""
        if self.is_flexible or self.start_hour is None:
            return False
        return hour_in_window(hour, self.start_hour, self.end_hour)


def hour_in_window(hour: float, start: float, end: float) -> bool:
    """
    時刻が時間枠に含まれるかチェック

    start > end の場合は日付をまたぐ枠として扱う（例: 22-2）。
    """
    if start > end:
        return hour >= start or hour < end
    return start <= hour < end


def _slot(slot_id: SlotId, label: str, time_range: str, capacity: float,
          start: Optional[float] = None, end: Optional[float] = None) -> TimeSlot:
    return TimeSlot(
        slot_id=slot_id,
        label=label,
        time_range=time_range,
        capacity_hours=capacity,
        start_hour=start,
        end_hour=end
    )


# 1日のスロットカタログ（表示順）
SLOT_CATALOG: Dict[SlotId, TimeSlot] = {
    SlotId.MORNING_ROUTINE: _slot(SlotId.MORNING_ROUTINE, "Morning Routine", "7:00-9:00 AM", 2, 7, 9),
    SlotId.DEEP_WORK_1: _slot(SlotId.DEEP_WORK_1, "Deep Work 1", "9:00-11:00 AM", 2, 9, 11),
    SlotId.ADMIN_BLOCK: _slot(SlotId.ADMIN_BLOCK, "Admin Block", "11:00 AM-12:00 PM", 1, 11, 12),
    SlotId.LUNCH: _slot(SlotId.LUNCH, "Lunch", "12:00-1:00 PM", 1, 12, 13),
    SlotId.GYM: _slot(SlotId.GYM, "Gym / Workout", "1:00-3:00 PM", 2, 13, 15),
    SlotId.AFTERNOON: _slot(SlotId.AFTERNOON, "Afternoon", "3:00-11:00 PM", 8, 15, 23),
    SlotId.EVENING_REVIEW: _slot(SlotId.EVENING_REVIEW, "Evening Review", "11:00 PM-12:00 AM", 1, 23, 24),
    SlotId.MEETINGS: _slot(SlotId.MEETINGS, "Meetings", "Flexible", 4),
    SlotId.BUFFER: _slot(SlotId.BUFFER, "Buffer", "Flexible", 2),
}

def validate_catalog(catalog: Dict[SlotId, TimeSlot]) -> None:
    """カタログが全スロットIDを網羅しているかチェック"""
    missing = [slot_id.value for slot_id in SlotId if slot_id not in catalog]
    if missing:
        raise RuntimeError(f"スロットカタログに未定義のスロットがあります: {missing}")


validate_catalog(SLOT_CATALOG)


def get_slot(slot_id) -> Optional[TimeSlot]:
    """スロット定義を取得（未登録ならNone）"""
    try:
        return SLOT_CATALOG.get(SlotId(slot_id))
    except ValueError:
        return None


def slot_capacity(slot_id) -> float:
    """スロット容量を取得（未登録ならフォールバック容量）"""
    slot = get_slot(slot_id)
    if slot is None:
        return FALLBACK_CAPACITY_HOURS
    return slot.capacity_hours


def timed_slots() -> List[TimeSlot]:
    """時間枠を持つスロットのみ（表示順）"""
    return [slot for slot in SLOT_CATALOG.values() if not slot.is_flexible]


def fractional_hour(moment: datetime) -> float:
    """時刻を小数の時間に変換（例: 8:30 → 8.5）"""
    return moment.hour + moment.minute / 60


def map_event_to_slot(event: CalendarEvent, tz: Optional[tzinfo] = None) -> SlotId:
    """
    カレンダーイベントをスロットに割り当て

    終日イベント、またはどの時間枠にも入らないイベントは会議スロットに入る。
    tz を指定するとタイムゾーン付きの開始時刻をその表示タイムゾーンに変換して評価する。
    未指定、またはナイーブな日時の場合はイベント自身の時刻をそのまま使う。
    """
    if event.is_all_day:
        return SlotId.MEETINGS

    hour = fractional_hour(event.start.local_datetime(tz))
    for slot in timed_slots():
        if slot.contains_hour(hour):
            return slot.slot_id

    return SlotId.MEETINGS
