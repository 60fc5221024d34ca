"""
スケジューラのエラー分類
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .commit import CommitResult


class SchedulingError(Exception):
    """スケジューラエラー基底クラス"""
    pass


class SchedulingValidationError(SchedulingError):
    """割り当て前の入力検証エラー（通信は発生しない）"""
    pass


class CalendarFetchError(SchedulingError):
    """カレンダー取得エラー（プランナー側で「競合なし」として吸収される）"""
    pass


class CommitFailure(SchedulingError):
    """一括割り当ての一部または全部が失敗"""

    def __init__(self, message: str, result: "CommitResult"):
        super().__init__(message)
        self.result = result

    @property
    def failed_ids(self):
        """失敗したタスクID"""
        return self.result.failed_ids

    @property
    def succeeded_ids(self):
        """成功したタスクID（ロールバックされない）"""
        return self.result.succeeded_ids
