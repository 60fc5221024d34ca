"""
Google Calendar 統合（読み取り専用）

週単位でプライマリカレンダーのイベントを取得します。
認証情報が未設定の場合はエラーではなく「未連携」として扱います。
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from google.oauth2.credentials import Credentials
from googleapiclient import discovery
from pydantic import BaseModel, Field, ValidationError

from ..models import CalendarEvent, CalendarWeek
from ..scheduling.errors import CalendarFetchError

logger = logging.getLogger(__name__)


class CalendarSource(ABC):
    """カレンダー取得インターフェース"""

    @abstractmethod
    async def get_week(self, week_start: date) -> CalendarWeek:
        """
        週（月曜0時〜日曜23:59:59）のイベントを取得

        Raises:
            CalendarFetchError: 取得失敗
        """
        pass


class GoogleCalendarConfig(BaseModel):
    """Google Calendar 接続設定（リフレッシュトークン方式）"""
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    refresh_token: Optional[str] = None
    calendar_id: str = "primary"
    timezone: str = "Asia/Tokyo"
    max_results: int = Field(default=100, description="1週あたりの最大取得件数")
    scopes: List[str] = Field(default_factory=lambda: [
        "https://www.googleapis.com/auth/calendar.readonly"
    ])
    token_uri: str = "https://oauth2.googleapis.com/token"

    @property
    def is_configured(self) -> bool:
        """認証情報が揃っているか"""
        return bool(self.client_id and self.client_secret and self.refresh_token)


def week_bounds(week_start: date, tz: ZoneInfo):
    """週の開始（月曜0時）と終了（日曜23:59:59）"""
    start = datetime.combine(week_start, time.min, tzinfo=tz)
    end = datetime.combine(week_start + timedelta(days=6), time(23, 59, 59), tzinfo=tz)
    return start, end


class GoogleCalendarClient(CalendarSource):
    """
    Google Calendar API クライアント
    - リフレッシュトークンによる認証
    - 週単位のイベント取得（単一イベント展開・開始時刻順）
    """

    def __init__(self, config: GoogleCalendarConfig):
        self.config = config
        self._service = None

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    def _build_service(self):
        """Calendar APIサービスを構築（初回のみ）"""
        if self._service is None:
            credentials = Credentials(
                token=None,
                refresh_token=self.config.refresh_token,
                client_id=self.config.client_id,
                client_secret=self.config.client_secret,
                token_uri=self.config.token_uri,
                scopes=self.config.scopes
            )
            self._service = discovery.build(
                "calendar", "v3", credentials=credentials, cache_discovery=False
            )
        return self._service

    def _list_events(self, time_min: datetime, time_max: datetime) -> Dict[str, Any]:
        service = self._build_service()
        return service.events().list(
            calendarId=self.config.calendar_id,
            timeMin=time_min.isoformat(),
            timeMax=time_max.isoformat(),
            singleEvents=True,
            orderBy="startTime",
            maxResults=self.config.max_results
        ).execute()

    async def get_week(self, week_start: date) -> CalendarWeek:
        """週のイベントを取得"""
        if not self.is_configured:
            logger.info("Google Calendar 未連携のためイベント取得をスキップ")
            return CalendarWeek.not_configured()

        time_min, time_max = week_bounds(week_start, ZoneInfo(self.config.timezone))
        logger.info(f"Google Calendar イベント取得: {time_min.isoformat()} - {time_max.isoformat()}")

        try:
            response = await asyncio.to_thread(self._list_events, time_min, time_max)
        except Exception as e:
            logger.error(f"カレンダーイベント取得エラー: {str(e)}")
            raise CalendarFetchError(f"カレンダーイベントの取得に失敗しました: {e}")

        events = []
        for item in response.get("items", []):
            try:
                events.append(CalendarEvent.from_api(item))
            except (KeyError, ValidationError) as e:
                logger.warning(f"イベントの変換をスキップ: {item.get('id')} - {e}")

        return CalendarWeek(configured=True, events=events, week_start=time_min, week_end=time_max)
