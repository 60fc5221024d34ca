"""
Google Calendar API統合のコントラクトテスト。

週単位のイベント取得が正しいパラメータで行われ、
未連携・取得失敗がそれぞれ正しく表現されることを検証します。
"""

from datetime import date
from unittest.mock import Mock, patch

import pytest

from deepwork.integrations import GoogleCalendarClient, GoogleCalendarConfig
from deepwork.models import SlotId, map_event_to_slot
from deepwork.scheduling import CalendarFetchError


MONDAY = date(2026, 10, 19)


class TestGoogleCalendarAPI:
    """Google Calendar APIコントラクトテスト。"""

    @pytest.fixture
    def calendar_config(self) -> GoogleCalendarConfig:
        """テスト用接続設定。"""
        return GoogleCalendarConfig(
            client_id="client_id",
            client_secret="client_secret",
            refresh_token="refresh_token",
            timezone="Asia/Tokyo"
        )

    @pytest.fixture
    def calendar_client(self, calendar_config: GoogleCalendarConfig) -> GoogleCalendarClient:
        """テスト用Calendar APIクライアント。"""
        return GoogleCalendarClient(calendar_config)

    @pytest.fixture
    def mock_calendar_service(self):
        """モックされたCalendar APIサービス。"""
        with patch('googleapiclient.discovery.build') as mock_build:
            mock_service = Mock()
            mock_build.return_value = mock_service
            yield mock_service

    @pytest.mark.asyncio
    async def test_get_week_success(self, calendar_client, mock_calendar_service) -> None:
        """週のイベント取得の成功テスト。"""
        mock_calendar_service.events.return_value.list.return_value.execute.return_value = {
            "items": [
                {
                    "id": "standup",
                    "summary": "朝会",
                    "start": {"dateTime": "2026-10-19T09:30:00+09:00"},
                    "end": {"dateTime": "2026-10-19T09:45:00+09:00"},
                    "hangoutLink": "https://meet.google.com/abc-defg-hij"
                },
                {
                    "id": "holiday",
                    "summary": "祝日",
                    "start": {"date": "2026-10-21"},
                    "end": {"date": "2026-10-22"}
                }
            ]
        }

        week = await calendar_client.get_week(MONDAY)

        assert week.configured
        assert [event.id for event in week.events] == ["standup", "holiday"]
        assert week.events[0].has_conference
        assert map_event_to_slot(week.events[0]) == SlotId.DEEP_WORK_1
        assert map_event_to_slot(week.events[1]) == SlotId.MEETINGS

        kwargs = mock_calendar_service.events.return_value.list.call_args.kwargs
        assert kwargs["calendarId"] == "primary"
        assert kwargs["timeMin"] == "2026-10-19T00:00:00+09:00"
        assert kwargs["timeMax"] == "2026-10-25T23:59:59+09:00"
        assert kwargs["singleEvents"] is True
        assert kwargs["orderBy"] == "startTime"
        assert kwargs["maxResults"] == 100
        assert week.week_start.isoformat() == "2026-10-19T00:00:00+09:00"

    @pytest.mark.asyncio
    async def test_not_configured(self, mock_calendar_service) -> None:
        """認証情報未設定時は未連携として返すテスト。"""
        client = GoogleCalendarClient(GoogleCalendarConfig(client_id="only_id"))

        week = await client.get_week(MONDAY)

        assert not week.configured
        assert week.events == []
        mock_calendar_service.events.assert_not_called()

    @pytest.mark.asyncio
    async def test_api_error_handling(self, calendar_client, mock_calendar_service) -> None:
        """API エラーハンドリングテスト。"""
        from googleapiclient.errors import HttpError

        mock_calendar_service.events.return_value.list.return_value.execute.side_effect = HttpError(
            resp=Mock(status=429, reason="Too Many Requests"),
            content=b'{"error": {"code": 429, "message": "Rate Limit Exceeded"}}'
        )

        with pytest.raises(CalendarFetchError) as exc_info:
            await calendar_client.get_week(MONDAY)

        assert "429" in str(exc_info.value) or "Rate Limit" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_malformed_event_is_skipped(self, calendar_client, mock_calendar_service) -> None:
        """不正なイベントはスキップされるテスト。"""
        mock_calendar_service.events.return_value.list.return_value.execute.return_value = {
            "items": [
                {"id": "broken", "start": {}},
                {"id": "ok", "start": {"dateTime": "2026-10-20T16:00:00+09:00"}}
            ]
        }

        week = await calendar_client.get_week(MONDAY)

        assert [event.id for event in week.events] == ["ok"]

    @pytest.mark.asyncio
    async def test_service_is_built_once(self, calendar_client, mock_calendar_service) -> None:
        """サービスは初回のみ構築されるテスト。"""
        mock_calendar_service.events.return_value.list.return_value.execute.return_value = {"items": []}

        with patch('googleapiclient.discovery.build', return_value=mock_calendar_service) as mock_build:
            await calendar_client.get_week(MONDAY)
            await calendar_client.get_week(MONDAY)

        assert mock_build.call_count == 1
        assert mock_build.call_args.args[:2] == ("calendar", "v3")
