"""
Shift clock: which shift is running, when it started, and how much planned
runtime has elapsed net of breaks.

Shifts and breaks are any objects with start_time/end_time strings in HH:MM
form (shifts also carry a name). A window whose end is not after its start
wraps past midnight. All datetimes here are naive plant-local time.
"""
from datetime import datetime, timedelta

MINUTES_PER_DAY = 24 * 60


def parse_time_of_day(value):
    """Minutes since midnight for an HH:MM string"""
    hours, minutes = value.split(':')
    return int(hours) * 60 + int(minutes)


def _minute_of_day(moment):
    return moment.hour * 60 + moment.minute


def _wraps(start, end):
    return end <= start


def _in_window(minute, start, end):
    if _wraps(start, end):
        return minute >= start or minute < end
    return start <= minute < end


def find_active_shift(now, shifts):
    """Return the shift whose window contains now, or None"""
    minute = _minute_of_day(now)
    for shift in shifts:
        start = parse_time_of_day(shift.start_time)
        end = parse_time_of_day(shift.end_time)
        if _in_window(minute, start, end):
            return shift
    return None


def shift_start_instant(now, shift):
    """When the occurrence of shift containing now began.

    In the post-midnight part of an overnight shift the start was yesterday.
    """
    start = parse_time_of_day(shift.start_time)
    end = parse_time_of_day(shift.end_time)
    midnight = datetime(now.year, now.month, now.day)
    started = midnight + timedelta(minutes=start)
    if _wraps(start, end) and _minute_of_day(now) < start:
        started -= timedelta(days=1)
    return started


def shift_bucket(moment, shifts):
    """Attribute a moment to (shift start date as YYYY-MM-DD, shift name)"""
    shift = find_active_shift(moment, shifts)
    if shift is None:
        return moment.date().isoformat(), None
    return shift_start_instant(moment, shift).date().isoformat(), shift.name


def _break_occurrences(break_window, first_day, last_day):
    """Concrete (start, end) datetimes of a daily break between two dates"""
    start = parse_time_of_day(break_window.start_time)
    end = parse_time_of_day(break_window.end_time)
    length = (end - start) % MINUTES_PER_DAY
    day = first_day
    while day <= last_day:
        midnight = datetime(day.year, day.month, day.day)
        occurrence_start = midnight + timedelta(minutes=start)
        yield occurrence_start, occurrence_start + timedelta(minutes=length)
        day += timedelta(days=1)


def elapsed_break_seconds(window_start, now, breaks):
    """Seconds of break time that overlap [window_start, now)"""
    if now <= window_start:
        return 0
    first_day = window_start.date() - timedelta(days=1)
    last_day = now.date()
    total = 0
    for break_window in breaks:
        for start, end in _break_occurrences(break_window, first_day, last_day):
            overlap = (min(end, now) - max(start, window_start)).total_seconds()
            if overlap > 0:
                total += overlap
    return total


def planned_runtime_elapsed(now, shifts, breaks):
    """Minutes of planned runtime elapsed in the current shift.

    Only the part of each break that has already happened is subtracted.
    Returns 0 outside any shift.
    """
    shift = find_active_shift(now, shifts)
    if shift is None:
        return 0
    started = shift_start_instant(now, shift)
    elapsed = int((now - started).total_seconds() // 60)
    on_break = int(elapsed_break_seconds(started, now, breaks) // 60)
    return max(elapsed - on_break, 0)
