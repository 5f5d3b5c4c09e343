from datetime import date, datetime, time

import pytest

from studio_booking.services.availability.availability_checker import (
    DayHours,
    TimeWindow,
    addon_window_fits,
    find_conflicts,
    generate_slots,
    resolve_day_hours,
    windows_overlap,
)
from studio_booking.utils.datetime_utils import DateTimeHelper

EVENT_DATE = date(2030, 6, 17)


def _window(start, end, owner=None):
    return TimeWindow.from_times(start, end, owner)


def test_touching_windows_do_not_overlap():
    assert not windows_overlap(540, 600, 600, 660)
    assert not windows_overlap(600, 660, 540, 600)


def test_partial_overlap():
    assert windows_overlap(540, 630, 600, 660)


def test_containment_overlaps():
    assert windows_overlap(600, 630, 540, 720)
    assert windows_overlap(540, 720, 600, 630)


def test_facility_windows_overlap():
    booked = [_window("14:00", "16:00", "res-1")]

    conflicts = find_conflicts(_window("15:00", "17:00"), booked)

    assert [c.owner_id for c in conflicts] == ["res-1"]


def test_excluded_reservation_is_ignored():
    booked = [_window("14:00", "16:00", "res-1")]

    assert find_conflicts(_window("14:00", "16:00"), booked, exclude_id="res-1") == []


def test_window_must_have_positive_length():
    with pytest.raises(ValueError):
        TimeWindow(600, 600)


def test_window_label():
    assert _window(time(9, 0), time(10, 30)).label == "09:00 - 10:30"


def test_slots_slide_over_opening_hours():
    hours = DayHours(is_open=True, open=540, close=720)
    occupied = [_window("10:00", "11:00", "res-1")]

    slots = generate_slots(hours, 60, 30, occupied=occupied)

    starts = [DateTimeHelper.minutes_to_time(s.start).strftime("%H:%M") for s in slots]
    assert starts == ["09:00", "09:30", "10:00", "10:30", "11:00"]
    assert [s.available for s in slots] == [True, False, False, False, True]
    assert slots[1].conflict.owner_id == "res-1"


def test_blocked_and_past_slots():
    hours = DayHours(is_open=True, open=540, close=660)
    blocked = [_window("10:00", "10:30")]

    slots = generate_slots(
        hours,
        30,
        30,
        blocked=blocked,
        day=EVENT_DATE,
        now=datetime(2030, 6, 17, 9, 15),
    )

    assert slots[0].is_past and not slots[0].available
    assert slots[2].is_blocked and not slots[2].available
    assert slots[1].available and slots[3].available


def test_closed_day_has_no_slots():
    assert generate_slots(DayHours(is_open=False), 60, 30) == []


def test_day_hours_fall_back_to_defaults():
    defaults = {"monday": {"open": "09:00", "close": "18:00", "is_open": True}}

    hours = resolve_day_hours({"tuesday": {"open": "10:00", "close": "12:00"}}, date(2030, 6, 17), defaults)

    assert hours == DayHours(is_open=True, open=540, close=1080)


def test_day_marked_closed():
    table = {"monday": {"open": "09:00", "close": "18:00", "is_open": False}}

    assert not resolve_day_hours(table, date(2030, 6, 17), {}).is_open


def test_addon_window_fits_inside_primary():
    primary = _window("13:00", "15:00")

    assert addon_window_fits(_window("13:00", "14:00"), primary)
    assert not addon_window_fits(_window("14:30", "15:30"), primary)
