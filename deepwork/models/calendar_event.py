"""
CalendarEvent エンティティモデル

外部カレンダー（Google Calendar）から取得した読み取り専用のイベントを表現します。
"""

from datetime import date, datetime, tzinfo
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, validator


class EventTime(BaseModel):
    """イベント時刻（日時指定または終日）"""
    date_time: Optional[datetime] = Field(None, description="日時（タイムゾーン付き）")
    all_day_date: Optional[date] = Field(None, description="終日イベントの日付")

    @validator('all_day_date', always=True)
    def validate_one_of(cls, v, values):
        """日時か日付のどちらかが必要"""
        if v is None and values.get('date_time') is None:
            raise ValueError('dateTime または date のいずれかが必要です')
        return v

    @property
    def has_time(self) -> bool:
        """時刻成分を持つか"""
        return self.date_time is not None

    def local_datetime(self, tz: Optional[tzinfo] = None) -> Optional[datetime]:
        """
        表示タイムゾーンでの日時を取得

        タイムゾーン付きの日時のみ変換し、ナイーブな日時はそのまま返す。
        """
        if self.date_time is None:
            return None
        if tz is None or self.date_time.tzinfo is None:
            return self.date_time
        return self.date_time.astimezone(tz)

    def local_date(self, tz: Optional[tzinfo] = None) -> date:
        """ローカル日付を取得"""
        if self.date_time is not None:
            return self.local_datetime(tz).date()
        return self.all_day_date

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "EventTime":
        """Google Calendar API形式（dateTime / date）から作成"""
        return cls(date_time=data.get("dateTime"), all_day_date=data.get("date"))

    def to_api(self) -> Dict[str, Any]:
        """Google Calendar API形式に変換"""
        if self.date_time is not None:
            return {"dateTime": self.date_time.isoformat()}
        return {"date": self.all_day_date.isoformat()}


class CalendarEvent(BaseModel):
    """カレンダーイベント（読み取り専用）"""
    id: str = Field(..., description="イベントID")
    summary: str = Field(default="", description="イベント概要")
    start: EventTime = Field(..., description="開始時刻")
    end: Optional[EventTime] = Field(None, description="終了時刻")
    hangout_link: Optional[str] = Field(None, description="会議リンク")

    @property
    def is_all_day(self) -> bool:
        """終日イベントか（開始に時刻成分がない）"""
        return not self.start.has_time

    @property
    def event_date(self) -> date:
        """イベントのローカル日付"""
        return self.start.local_date()

    def date_in(self, tz: Optional[tzinfo] = None) -> date:
        """表示タイムゾーンでのイベント日付"""
        return self.start.local_date(tz)

    @property
    def has_conference(self) -> bool:
        """会議リンクを持つか"""
        return bool(self.hangout_link)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "CalendarEvent":
        """Google Calendar APIのイベントリソースから作成"""
        end_data = data.get("end")
        return cls(
            id=data["id"],
            summary=data.get("summary") or "",
            start=EventTime.from_api(data.get("start") or {}),
            end=EventTime.from_api(end_data) if end_data else None,
            hangout_link=data.get("hangoutLink")
        )

    def to_dict(self) -> Dict[str, Any]:
        """辞書形式に変換（API形式）"""
        data = {
            "id": self.id,
            "summary": self.summary,
            "start": self.start.to_api(),
        }
        if self.end is not None:
            data["end"] = self.end.to_api()
        if self.hangout_link:
            data["hangoutLink"] = self.hangout_link
        return data


class CalendarWeek(BaseModel):
    """週単位のカレンダー取得結果"""
    configured: bool = Field(..., description="カレンダー連携が設定済みか")
    events: List[CalendarEvent] = Field(default_factory=list, description="イベント一覧")
    week_start: Optional[datetime] = Field(None, description="週の開始（月曜0時）")
    week_end: Optional[datetime] = Field(None, description="週の終了（日曜23:59:59）")

    @classmethod
    def not_configured(cls) -> "CalendarWeek":
        """未連携状態（エラーではない）"""
        return cls(configured=False, events=[])
