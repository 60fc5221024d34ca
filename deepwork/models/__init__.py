"""
データモデル - Deep-Work Time-Slot Scheduler

このパッケージには、スケジューラのコアエンティティモデルが含まれています。
"""

from .calendar_event import CalendarEvent, CalendarWeek, EventTime
from .time_slot import (
    FALLBACK_CAPACITY_HOURS, SLOT_CATALOG, SlotId, TimeSlot,
    get_slot, hour_in_window, map_event_to_slot, slot_capacity, timed_slots, validate_catalog
)
from .task import Task, TaskPatch, TaskPriority, TaskStatus, day_key, effort_hours
from .venture import Venture
from .scheduling_session import CandidateFilters, SchedulingSession

__all__ = [
    # Calendar関連
    "CalendarEvent",
    "CalendarWeek",
    "EventTime",

    # Slot関連
    "FALLBACK_CAPACITY_HOURS",
    "SLOT_CATALOG",
    "SlotId",
    "TimeSlot",
    "get_slot",
    "hour_in_window",
    "map_event_to_slot",
    "slot_capacity",
    "timed_slots",
    "validate_catalog",

    # Task関連
    "Task",
    "TaskPatch",
    "TaskPriority",
    "TaskStatus",
    "day_key",
    "effort_hours",

    # Venture関連
    "Venture",

    # Session関連
    "CandidateFilters",
    "SchedulingSession",
]
