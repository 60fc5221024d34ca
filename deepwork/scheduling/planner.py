"""
ディープワーク・プランナー (Planner facade)

タスクストア・カレンダー・ベンチャーを読み込み、集計・ランキング・容量予測・
一括割り当てを1つのセッション操作として提供します。
"""

import logging
from datetime import date, datetime, tzinfo
from typing import TYPE_CHECKING, Awaitable, Callable, List, Optional, Sequence

from pydantic import BaseModel, Field

from ..models import CalendarEvent, SchedulingSession, SlotId, Task, Venture
from .aggregator import SlotAssignmentView, WeekGrid, aggregate, build_week_grid, week_start
from .commit import CommitCoordinator, CommitResult
from .errors import CommitFailure, SchedulingValidationError
from .projector import CapacityProjection, project
from .ranker import PoolSummary, rank, summarize_pool

if TYPE_CHECKING:
    from ..config import SchedulerSettings
    from ..integrations import CalendarSource, TaskStore, VentureDirectory

logger = logging.getLogger(__name__)

RefreshHandler = Callable[[Optional[date]], Awaitable[None]]


class PlanningSnapshot(BaseModel):
    """読み込み済みデータ（1週間分）"""
    week_start: date = Field(..., description="週の開始日（月曜）")
    tasks: List[Task] = Field(default_factory=list, description="全タスク")
    events: List[CalendarEvent] = Field(default_factory=list, description="週のカレンダーイベント")
    ventures: List[Venture] = Field(default_factory=list, description="ベンチャー一覧")
    calendar_configured: bool = Field(default=False, description="カレンダー連携済みか")
    loaded_at: datetime = Field(default_factory=datetime.utcnow)

    def covers(self, day: date) -> bool:
        """指定日を含む週のスナップショットか"""
        return week_start(day) == self.week_start

    def venture(self, venture_id: Optional[str]) -> Optional[Venture]:
        """IDでベンチャーを取得"""
        for venture in self.ventures:
            if venture.id == venture_id:
                return venture
        return None


class DeepWorkPlanner:
    """ディープワーク・プランナー"""

    def __init__(
        self,
        task_store: "TaskStore",
        calendar: "CalendarSource",
        ventures: "VentureDirectory",
        settings: Optional["SchedulerSettings"] = None
    ):
        """
        プランナーを初期化

        Args:
            task_store: タスクストア
            calendar: カレンダー取得元
            ventures: ベンチャーディレクトリ
            settings: スケジューラ設定
        """
        self.task_store = task_store
        self.calendar = calendar
        self.ventures = ventures
        self.settings = settings
        self.coordinator = CommitCoordinator(
            task_store,
            max_concurrency=settings.commit_max_concurrency if settings else None
        )

        self.snapshot: Optional[PlanningSnapshot] = None
        self.refresh_handlers: List[RefreshHandler] = []

    def today(self) -> date:
        """設定タイムゾーンでの今日"""
        if self.settings is None:
            return date.today()
        return datetime.now(self.settings.tz).date()

    @property
    def display_tz(self) -> Optional[tzinfo]:
        """表示タイムゾーン（設定なしならイベント自身の時刻を使う）"""
        if self.settings is None:
            return None
        return self.settings.tz

    def register_refresh_handler(self, handler: RefreshHandler) -> None:
        """書き込み後の再取得ハンドラーを登録"""
        self.refresh_handlers.append(handler)

    def open_session(
        self,
        target_date: Optional[date] = None,
        target_slot: Optional[SlotId] = None,
        preselected_task_id: Optional[str] = None
    ) -> SchedulingSession:
        """スケジュールセッションを開始"""
        return SchedulingSession.open(target_date, target_slot, preselected_task_id)

    async def load_snapshot(self, for_date: Optional[date] = None) -> PlanningSnapshot:
        """
        指定日を含む週のデータを読み込み

        カレンダー未連携・取得失敗はいずれも「イベントなし」として扱う。
        タスク・ベンチャーの取得失敗はそのまま送出する。
        """
        monday = week_start(for_date or self.today())

        tasks = await self.task_store.list_tasks()
        ventures = await self.ventures.list_ventures()

        events: List[CalendarEvent] = []
        configured = False
        try:
            week = await self.calendar.get_week(monday)
            configured = week.configured
            events = week.events if week.configured else []
            if not week.configured:
                logger.info("カレンダー未連携: 競合イベントなしとして扱います")
        except Exception as e:
            logger.warning(f"カレンダー取得失敗のため競合イベントなしとして扱います: {e}")

        self.snapshot = PlanningSnapshot(
            week_start=monday,
            tasks=tasks,
            events=events,
            ventures=ventures,
            calendar_configured=configured
        )
        logger.info(
            f"スナップショット読み込み: {monday.isoformat()}週 "
            f"(タスク{len(tasks)}件, イベント{len(events)}件)"
        )
        return self.snapshot

    async def _snapshot_for(self, day: Optional[date] = None) -> PlanningSnapshot:
        day = day or self.today()
        if self.snapshot is None or not self.snapshot.covers(day):
            return await self.load_snapshot(day)
        return self.snapshot

    async def slot_view(self, day: date, slot_id: SlotId) -> SlotAssignmentView:
        """日付・スロットの利用状況"""
        snapshot = await self._snapshot_for(day)
        return aggregate(day, slot_id, snapshot.tasks, snapshot.events, self.display_tz)

    async def week_grid(self, for_date: Optional[date] = None) -> WeekGrid:
        """週間グリッド"""
        snapshot = await self._snapshot_for(for_date)
        return build_week_grid(snapshot.week_start, snapshot.tasks, snapshot.events, self.display_tz)

    async def candidates(self, session: SchedulingSession) -> List[Task]:
        """セッションのフィルタで候補タスクを取得"""
        snapshot = await self._snapshot_for(session.target_date)
        return rank(snapshot.tasks, session.filters, self.today())

    async def pool_summary(self, session: SchedulingSession) -> PoolSummary:
        """候補プールの集計"""
        snapshot = await self._snapshot_for(session.target_date)
        return summarize_pool(snapshot.tasks, session.filters, self.today())

    async def projection(self, session: SchedulingSession) -> CapacityProjection:
        """選択中タスクを割り当てた場合の容量予測"""
        if not session.has_target:
            raise SchedulingValidationError("割り当て日とスロットを指定してください")
        view = await self.slot_view(session.target_date, session.target_slot)
        return project(view, session.selected_ids, self.snapshot.tasks)

    async def commit(self, session: SchedulingSession) -> CommitResult:
        """
        選択中タスクを割り当てて、セッションを終了

        成功時は再取得ハンドラーを実行してからセッションを閉じる。
        失敗時（検証エラー・一部失敗）は選択を保持したまま送出する。
        """
        target_date = session.target_date
        try:
            result = await self.coordinator.commit(target_date, session.target_slot, session.selected_ids)
        except CommitFailure as e:
            logger.error(f"割り当て一部失敗: 失敗 {e.failed_ids} / 成功 {e.succeeded_ids}")
            # 成功分はロールバックしないため、表示は最新化する
            await self._refresh(target_date)
            raise

        session.clear_selection()
        await self._refresh(target_date)
        session.close()
        return result

    async def unassign(self, task_ids: Sequence[str], day: Optional[date] = None) -> CommitResult:
        """タスクの割り当てを解除"""
        try:
            result = await self.coordinator.unassign(task_ids)
        except CommitFailure:
            await self._refresh(day)
            raise

        await self._refresh(day)
        return result

    async def clear_slot(self, day: date, slot_id: SlotId) -> CommitResult:
        """スロットの全タスクの割り当てを解除"""
        view = await self.slot_view(day, slot_id)
        task_ids = [task.id for task in view.scheduled_tasks]
        if not task_ids:
            logger.info(f"解除対象なし: {day.isoformat()} {SlotId(slot_id).value}")
            return CommitResult()
        return await self.unassign(task_ids, day)

    async def _refresh(self, day: Optional[date]) -> None:
        """スナップショットを破棄し、再取得ハンドラーを実行"""
        self.snapshot = None
        for handler in self.refresh_handlers:
            try:
                await handler(day)
            except Exception as e:
                logger.error(f"再取得ハンドラーでエラーが発生: {e}")
