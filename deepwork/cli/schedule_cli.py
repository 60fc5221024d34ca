"""
Deep-Work Scheduler CLI - タスクのタイムスロット割り当てツール
"""

import asyncio
import logging
from datetime import date
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import SchedulerSettings
from ..integrations import (
    FirestoreTaskStore, FirestoreVentureDirectory, GoogleCalendarClient, load_fixture
)
from ..models import SLOT_CATALOG, SlotId, TaskPriority
from ..scheduling import (
    CapacityLevel, CommitFailure, DeepWorkPlanner, SchedulingError, task_urgency
)

console = Console()
app = typer.Typer(help="Deep-Work Scheduler CLI - ディープワーク時間割り当てツール")

logger = logging.getLogger(__name__)

LEVEL_STYLES = {
    CapacityLevel.OK: "green",
    CapacityLevel.WARNING: "yellow",
    CapacityLevel.OVER: "red",
}


class CLIState:
    """コマンド間で共有する設定"""

    def __init__(self, settings: SchedulerSettings, fixture: Optional[Path]):
        self.settings = settings
        self.fixture = fixture

    def build_planner(self) -> DeepWorkPlanner:
        """プランナーを作成（フィクスチャ指定時はインメモリ）"""
        if self.fixture is not None:
            data = load_fixture(self.fixture)
            return DeepWorkPlanner(
                data.task_store(),
                data.calendar_source(),
                data.venture_directory(),
                self.settings
            )

        project_id = self.settings.gcp_project_id
        return DeepWorkPlanner(
            FirestoreTaskStore(collection_name=self.settings.tasks_collection, project_id=project_id),
            GoogleCalendarClient(self.settings.calendar),
            FirestoreVentureDirectory(collection_name=self.settings.ventures_collection, project_id=project_id),
            self.settings
        )


def _parse_date(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"日付は YYYY-MM-DD 形式で指定してください: {value}")


def _level_text(usage: float, capacity: float, level: CapacityLevel) -> str:
    style = LEVEL_STYLES[level]
    return f"[{style}]{usage:.1f}/{capacity:.1f}h[/{style}]"


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="設定ファイル (YAML)"),
    fixture: Optional[Path] = typer.Option(None, "--fixture", "-f", help="オフラインデータ (YAML / JSON)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="詳細ログを表示")
):
    """Deep-Work Scheduler"""
    settings = SchedulerSettings.from_yaml(config) if config else SchedulerSettings.from_env()

    # ログ設定
    logging.basicConfig(level=logging.DEBUG if verbose else getattr(logging, settings.log_level))
    ctx.obj = CLIState(settings, fixture)


@app.command()
def catalog():
    """スロットカタログを表示"""
    table = Table(title="Slot Catalog")
    table.add_column("Slot", style="cyan")
    table.add_column("Label")
    table.add_column("Time")
    table.add_column("Capacity", justify="right")

    for slot in SLOT_CATALOG.values():
        table.add_row(slot.slot_id.value, slot.label, slot.time_range, f"{slot.capacity_hours:.0f}h")

    console.print(table)


@app.command()
def week(
    ctx: typer.Context,
    on: Optional[str] = typer.Option(None, "--date", "-d", help="週内の任意の日 (YYYY-MM-DD、省略時は今日)")
):
    """週間グリッドを表示"""

    async def _week():
        planner = ctx.obj.build_planner()
        grid = await planner.week_grid(_parse_date(on))

        table = Table(title=f"Week of {grid.week_start.isoformat()}")
        table.add_column("Slot", style="cyan")
        for day in grid.days:
            table.add_column(f"{day:%a} {day:%m/%d}", justify="center")

        for slot_id in SLOT_CATALOG:
            row = [slot_id.value]
            for day in grid.days:
                view = grid.cell(day, slot_id)
                cell = "" if view.is_empty else _level_text(
                    view.current_usage_hours, view.capacity_hours, view.capacity_level
                )
                if view.has_conflicts:
                    cell += f" 📅{len(view.conflicting_events)}"
                row.append(cell)
            table.add_row(*row)

        table.add_row("total", *[f"{grid.day_usage(day):.1f}h" for day in grid.days], style="bold")
        console.print(table)

        if planner.snapshot is not None and not planner.snapshot.calendar_configured:
            console.print("⚠️  カレンダー未連携: 競合イベントは表示されません", style="yellow")

    asyncio.run(_week())


@app.command()
def slot(
    ctx: typer.Context,
    on: str = typer.Argument(..., help="日付 (YYYY-MM-DD)"),
    slot_id: SlotId = typer.Argument(..., help="スロットID")
):
    """スロットの詳細を表示"""

    async def _slot():
        planner = ctx.obj.build_planner()
        view = await planner.slot_view(_parse_date(on), slot_id)
        definition = SLOT_CATALOG[slot_id]

        style = LEVEL_STYLES[view.capacity_level]
        console.print(Panel(
            f"{definition.label} ({definition.time_range})\n"
            f"使用: [{style}]{view.current_usage_hours:.1f}h / {view.capacity_hours:.1f}h "
            f"({view.utilization_percent:.0f}%)[/{style}]",
            title=f"{view.day.isoformat()} {slot_id.value}"
        ))

        if view.scheduled_tasks:
            table = Table(title="Scheduled Tasks")
            table.add_column("ID", style="cyan")
            table.add_column("Title")
            table.add_column("Priority")
            table.add_column("Effort", justify="right")
            table.add_column("Status")
            for task in view.scheduled_tasks:
                effort = f"{task.est_effort:.1f}h" if task.est_effort is not None else "-"
                table.add_row(task.id, task.title, task.priority.value, effort, task.status)
            console.print(table)
        else:
            console.print("割り当て済みタスクはありません")

        for event in view.conflicting_events:
            when = "終日" if event.is_all_day else f"{event.start.local_datetime(planner.display_tz):%H:%M}"
            link = " 🎥" if event.has_conference else ""
            console.print(f"📅 {when} {event.summary}{link}")

    asyncio.run(_slot())


@app.command()
def candidates(
    ctx: typer.Context,
    on: Optional[str] = typer.Option(None, "--date", "-d", help="割り当て日 (YYYY-MM-DD)"),
    slot_id: Optional[SlotId] = typer.Option(None, "--slot", "-s", help="割り当てスロット"),
    search: Optional[str] = typer.Option(None, "--search", help="タイトル検索"),
    priority: Optional[TaskPriority] = typer.Option(None, "--priority", "-p", help="優先度"),
    venture: Optional[str] = typer.Option(None, "--venture", help="ベンチャーID"),
    show_scheduled: bool = typer.Option(False, "--show-scheduled", help="割り当て済みタスクも表示"),
    select: List[str] = typer.Option([], "--select", help="容量予測に含めるタスクID")
):
    """候補タスクを表示"""

    async def _candidates():
        planner = ctx.obj.build_planner()
        session = planner.open_session(_parse_date(on), slot_id)
        session.update_filters(
            search=search, priority=priority, venture_id=venture, show_scheduled=show_scheduled
        )
        session.select_many(select)

        ranked = await planner.candidates(session)
        summary = await planner.pool_summary(session)
        today = planner.today()

        table = Table(title=f"Candidates ({summary.total})")
        table.add_column("", width=2)
        table.add_column("ID", style="cyan")
        table.add_column("Title")
        table.add_column("Priority")
        table.add_column("Due")
        table.add_column("Effort", justify="right")
        table.add_column("Venture")

        for task in ranked:
            urgency = task_urgency(task, today)
            due = ""
            if urgency is not None:
                due = f"[red]{urgency.label}[/red]" if urgency.urgent else urgency.label
            venture_obj = planner.snapshot.venture(task.venture_id)
            effort = f"{task.est_effort:.1f}h" if task.est_effort is not None else "-"
            table.add_row(
                "✓" if session.is_selected(task.id) else "",
                task.id,
                task.title,
                task.priority.value,
                due,
                effort,
                venture_obj.display_name if venture_obj else ""
            )

        console.print(table)
        console.print(
            f"期限あり: {summary.with_due_date}件 / 期限なし: {summary.without_due_date}件"
        )
        if summary.hidden_scheduled_with_due_date:
            console.print(
                f"割り当て済みの期限ありタスク {summary.hidden_scheduled_with_due_date}件を非表示 "
                f"(--show-scheduled で表示)"
            )

        if session.has_target and session.has_selection:
            projection = await planner.projection(session)
            style = LEVEL_STYLES[projection.capacity_level]
            console.print(
                f"予測: [{style}]{projection.projected_usage_hours:.1f}h / "
                f"{projection.capacity_hours:.1f}h[/{style}]"
            )

    asyncio.run(_candidates())


@app.command()
def assign(
    ctx: typer.Context,
    on: str = typer.Argument(..., help="割り当て日 (YYYY-MM-DD)"),
    slot_id: SlotId = typer.Argument(..., help="割り当てスロット"),
    task_ids: List[str] = typer.Argument(..., help="割り当てるタスクID")
):
    """タスクをスロットへ割り当て"""

    async def _assign():
        planner = ctx.obj.build_planner()
        session = planner.open_session(_parse_date(on), slot_id)
        session.select_many(task_ids)

        projection = await planner.projection(session)
        if projection.is_over_capacity:
            console.print(
                f"⚠️  容量超過: {projection.projected_usage_hours:.1f}h / {projection.capacity_hours:.1f}h",
                style="yellow"
            )

        try:
            result = await planner.commit(session)
        except CommitFailure as e:
            console.print(f"❌ 割り当て一部失敗: {e}", style="red")
            console.print(f"成功: {', '.join(e.succeeded_ids) or 'なし'}")
            console.print(f"失敗: {', '.join(e.failed_ids)}")
            console.print("失敗したタスクのみ再実行してください（成功分は取り消されません）")
            raise typer.Exit(1)
        except SchedulingError as e:
            console.print(f"❌ {e}", style="red")
            raise typer.Exit(1)

        console.print(f"✅ {len(result.succeeded_ids)}件を {on} {slot_id.value} に割り当てました", style="green")
        if ctx.obj.fixture is not None:
            console.print("（フィクスチャモード: 変更はファイルに保存されません）")

    asyncio.run(_assign())


@app.command()
def unassign(
    ctx: typer.Context,
    task_ids: List[str] = typer.Argument(None, help="割り当てを解除するタスクID"),
    on: Optional[str] = typer.Option(None, "--date", "-d", help="スロット全体を解除する日付"),
    slot_id: Optional[SlotId] = typer.Option(None, "--slot", "-s", help="スロット全体を解除するスロット")
):
    """タスクの割り当てを解除（--date と --slot でスロット全体）"""

    async def _unassign():
        planner = ctx.obj.build_planner()
        try:
            if task_ids:
                result = await planner.unassign(task_ids)
            elif on and slot_id:
                result = await planner.clear_slot(_parse_date(on), slot_id)
            else:
                console.print("❌ タスクIDか --date と --slot を指定してください", style="red")
                raise typer.Exit(1)
        except CommitFailure as e:
            console.print(f"❌ 割り当て解除一部失敗: {e}", style="red")
            console.print(f"失敗: {', '.join(e.failed_ids)}")
            raise typer.Exit(1)
        except SchedulingError as e:
            console.print(f"❌ {e}", style="red")
            raise typer.Exit(1)

        console.print(f"✅ {len(result.succeeded_ids)}件の割り当てを解除しました", style="green")

    asyncio.run(_unassign())


if __name__ == "__main__":
    app()
