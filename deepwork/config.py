"""
スケジューラ設定

環境変数または YAML ファイルから設定を読み込みます。
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, Field, validator

from .integrations.google_calendar import GoogleCalendarConfig

logger = logging.getLogger(__name__)


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class SchedulerSettings(BaseModel):
    """スケジューラ設定"""

    # 基本設定
    timezone: str = Field(default="Asia/Tokyo", description="「今日」と週境界の基準タイムゾーン")
    commit_max_concurrency: Optional[int] = Field(None, description="割り当て書き込みの最大並行数（None は無制限）")
    log_level: str = Field(default="INFO", description="ログレベル")

    # Firestore
    gcp_project_id: Optional[str] = Field(None, description="GCPプロジェクトID")
    tasks_collection: str = Field(default="tasks", description="タスクのコレクション名")
    ventures_collection: str = Field(default="ventures", description="ベンチャーのコレクション名")

    # Google Calendar
    calendar: GoogleCalendarConfig = Field(default_factory=GoogleCalendarConfig, description="カレンダー接続設定")

    @validator('timezone')
    def validate_timezone(cls, v):
        """タイムゾーン名の検証"""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f'不明なタイムゾーンです: {v}')
        return v

    @validator('commit_max_concurrency')
    def validate_concurrency(cls, v):
        if v is not None and v < 1:
            raise ValueError('最大並行数は1以上である必要があります')
        return v

    @validator('log_level')
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f'不明なログレベルです: {v}')
        return level

    @property
    def tz(self) -> ZoneInfo:
        """タイムゾーンオブジェクト"""
        return ZoneInfo(self.timezone)

    @classmethod
    def from_env(cls) -> "SchedulerSettings":
        """環境変数から設定を作成"""
        timezone = os.getenv("DEEPWORK_TIMEZONE", "Asia/Tokyo")
        concurrency = os.getenv("DEEPWORK_COMMIT_MAX_CONCURRENCY")

        return cls(
            timezone=timezone,
            commit_max_concurrency=int(concurrency) if concurrency else None,
            log_level=os.getenv("DEEPWORK_LOG_LEVEL", "INFO"),
            gcp_project_id=os.getenv("GCP_PROJECT_ID"),
            tasks_collection=os.getenv("DEEPWORK_TASKS_COLLECTION", "tasks"),
            ventures_collection=os.getenv("DEEPWORK_VENTURES_COLLECTION", "ventures"),
            calendar=GoogleCalendarConfig(
                client_id=os.getenv("GOOGLE_CALENDAR_CLIENT_ID"),
                client_secret=os.getenv("GOOGLE_CALENDAR_CLIENT_SECRET"),
                refresh_token=os.getenv("GOOGLE_CALENDAR_REFRESH_TOKEN"),
                calendar_id=os.getenv("GOOGLE_CALENDAR_ID", "primary"),
                timezone=timezone
            )
        )

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "SchedulerSettings":
        """YAML ファイルから設定を作成"""
        with open(path, 'r', encoding='utf-8') as f:
            data: Dict[str, Any] = yaml.safe_load(f) or {}

        calendar = data.get("calendar") or {}
        calendar.setdefault("timezone", data.get("timezone", "Asia/Tokyo"))
        data["calendar"] = calendar

        logger.info(f"設定ファイル読み込み: {path}")
        return cls(**data)
