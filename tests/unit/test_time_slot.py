"""
Unit tests for the slot catalog and the time-to-slot mapper
"""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from deepwork.models import (
    FALLBACK_CAPACITY_HOURS, SLOT_CATALOG, CalendarEvent, EventTime, SlotId, TimeSlot,
    get_slot, hour_in_window, map_event_to_slot, slot_capacity, timed_slots, validate_catalog
)


JST = timezone(timedelta(hours=9))


def timed_event(hour: int, minute: int = 0, tz=JST) -> CalendarEvent:
    return CalendarEvent(
        id=f"evt_{hour}_{minute}",
        summary="Sync",
        start=EventTime(date_time=datetime(2026, 10, 19, hour, minute, tzinfo=tz))
    )


class TestSlotCatalog:
    """Test the fixed catalog of daily slots"""

    def test_catalog_order_and_capacities(self):
        """Catalog lists nine slots in display order with their capacities"""
        assert list(SLOT_CATALOG) == [
            SlotId.MORNING_ROUTINE, SlotId.DEEP_WORK_1, SlotId.ADMIN_BLOCK, SlotId.LUNCH,
            SlotId.GYM, SlotId.AFTERNOON, SlotId.EVENING_REVIEW, SlotId.MEETINGS, SlotId.BUFFER
        ]
        capacities = {slot_id.value: slot.capacity_hours for slot_id, slot in SLOT_CATALOG.items()}
        assert capacities == {
            "morning_routine": 2, "deep_work_1": 2, "admin_block": 1, "lunch": 1, "gym": 2,
            "afternoon": 8, "evening_review": 1, "meetings": 4, "buffer": 2
        }

    def test_flexible_slots_have_no_window(self):
        """Meetings and buffer are flexible and never contain an hour"""
        assert SLOT_CATALOG[SlotId.MEETINGS].is_flexible
        assert SLOT_CATALOG[SlotId.BUFFER].is_flexible
        assert not SLOT_CATALOG[SlotId.MEETINGS].contains_hour(10)
        assert [slot.slot_id for slot in timed_slots()][-1] == SlotId.EVENING_REVIEW
        assert len(timed_slots()) == 7

    def test_lookup_by_string_and_unknown(self):
        """Slots can be looked up by raw id; unknown ids fall back"""
        assert get_slot("gym").slot_id == SlotId.GYM
        assert get_slot("nap_time") is None
        assert slot_capacity("afternoon") == 8
        assert slot_capacity("nap_time") == FALLBACK_CAPACITY_HOURS

    def test_slot_is_immutable(self):
        """Catalog entries cannot be mutated"""
        slot = SLOT_CATALOG[SlotId.LUNCH]
        with pytest.raises((TypeError, ValidationError)):
            slot.capacity_hours = 3

    def test_incomplete_catalog_is_rejected(self):
        """A catalog missing a slot id fails loudly, not via assert"""
        validate_catalog(SLOT_CATALOG)
        partial = {slot_id: slot for slot_id, slot in SLOT_CATALOG.items() if slot_id != SlotId.BUFFER}
        with pytest.raises(RuntimeError, match="buffer"):
            validate_catalog(partial)

    def test_invalid_slot_definitions(self):
        """Non-positive capacity and half-open windows are rejected"""
        with pytest.raises(ValidationError):
            TimeSlot(slot_id=SlotId.GYM, label="Gym", time_range="-", capacity_hours=0)
        with pytest.raises(ValidationError):
            TimeSlot(slot_id=SlotId.GYM, label="Gym", time_range="-", capacity_hours=1, start_hour=13)


class TestHourInWindow:
    """Test the half-open window check"""

    def test_regular_window(self):
        assert hour_in_window(9, 9, 11)
        assert hour_in_window(10.99, 9, 11)
        assert not hour_in_window(11, 9, 11)
        assert not hour_in_window(8.5, 9, 11)

    def test_wrapping_window(self):
        """Windows crossing midnight wrap around"""
        assert hour_in_window(23.5, 23, 2)
        assert hour_in_window(1, 23, 2)
        assert not hour_in_window(2, 23, 2)
        assert not hour_in_window(12, 23, 2)


class TestMapEventToSlot:
    """Test mapping calendar events to slots"""

    @pytest.mark.parametrize("hour,minute,expected", [
        (7, 0, SlotId.MORNING_ROUTINE),
        (8, 30, SlotId.MORNING_ROUTINE),
        (9, 0, SlotId.DEEP_WORK_1),
        (10, 59, SlotId.DEEP_WORK_1),
        (11, 0, SlotId.ADMIN_BLOCK),
        (12, 30, SlotId.LUNCH),
        (14, 0, SlotId.GYM),
        (15, 0, SlotId.AFTERNOON),
        (22, 59, SlotId.AFTERNOON),
        (23, 30, SlotId.EVENING_REVIEW),
    ])
    def test_timed_events(self, hour, minute, expected):
        """Start hour decides the slot"""
        assert map_event_to_slot(timed_event(hour, minute)) == expected

    def test_event_outside_every_window_goes_to_meetings(self):
        """Early-morning events fall back to meetings"""
        assert map_event_to_slot(timed_event(5, 30)) == SlotId.MEETINGS

    def test_all_day_event_goes_to_meetings(self):
        event = CalendarEvent(id="holiday", summary="Holiday", start=EventTime(all_day_date=date(2026, 10, 19)))
        assert event.is_all_day
        assert map_event_to_slot(event) == SlotId.MEETINGS

    def test_event_local_time_is_used(self):
        """The event's own offset decides the hour, not UTC"""
        event = timed_event(9, 30, tz=timezone(timedelta(hours=-5)))
        assert map_event_to_slot(event) == SlotId.DEEP_WORK_1

    def test_display_timezone_is_applied(self):
        """A UTC start is mapped by its Tokyo wall-clock hour"""
        tokyo = ZoneInfo("Asia/Tokyo")
        event = timed_event(0, 30, tz=timezone.utc)  # 09:30 in Tokyo
        assert map_event_to_slot(event, tokyo) == SlotId.DEEP_WORK_1
        assert map_event_to_slot(event) == SlotId.MEETINGS

    def test_display_timezone_moves_date(self):
        """Conversion can move an event onto the next local day"""
        tokyo = ZoneInfo("Asia/Tokyo")
        event = CalendarEvent(
            id="late", start=EventTime(date_time=datetime(2026, 10, 18, 22, 0, tzinfo=timezone.utc))
        )
        assert event.date_in(tokyo) == date(2026, 10, 19)
        assert event.event_date == date(2026, 10, 18)
        assert map_event_to_slot(event, tokyo) == SlotId.MORNING_ROUTINE

    def test_naive_datetime_is_left_as_is(self):
        event = CalendarEvent(id="naive", start=EventTime(date_time=datetime(2026, 10, 19, 9, 15)))
        assert map_event_to_slot(event, ZoneInfo("Asia/Tokyo")) == SlotId.DEEP_WORK_1

    def test_from_api_payload(self):
        """Google Calendar payloads are parsed and mapped"""
        event = CalendarEvent.from_api({
            "id": "abc",
            "summary": "1:1",
            "start": {"dateTime": "2026-10-19T14:15:00+09:00"},
            "end": {"dateTime": "2026-10-19T14:45:00+09:00"},
            "hangoutLink": "https://meet.google.com/abc"
        })
        assert event.has_conference
        assert event.event_date == date(2026, 10, 19)
        assert map_event_to_slot(event) == SlotId.GYM

    def test_event_time_requires_date_or_datetime(self):
        with pytest.raises(ValidationError):
            EventTime()
