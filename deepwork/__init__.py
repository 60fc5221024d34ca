"""
Deep-Work Time-Slot Scheduler

パーソナルダッシュボードのディープワーク時間枠スケジューラ:
- 1日を容量付きの固定時間枠に分割
- 外部カレンダーイベントとタスクの競合検出
- 未スケジュールタスクの緊急度ランキング
- 選択中タスクの容量予測
- 複数タスクの一括割り当て
"""

__version__ = "0.1.0"
