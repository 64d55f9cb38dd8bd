from datetime import datetime
from types import SimpleNamespace
from shopfloor.utils.shift_clock import (
    find_active_shift, shift_start_instant, shift_bucket, elapsed_break_seconds,
    planned_runtime_elapsed, parse_time_of_day,
)
from config import Config

SHIFTS = [SimpleNamespace(name=name, start_time=start, end_time=end)
          for name, start, end in Config.DEFAULT_SHIFTS]
BREAKS = [SimpleNamespace(label=label, start_time=start, end_time=end)
          for label, start, end in Config.DEFAULT_BREAKS]


def test_parse_time_of_day():
    assert parse_time_of_day('06:30') == 390
    assert parse_time_of_day('00:00') == 0


def test_day_shift_is_active_in_the_morning():
    assert find_active_shift(datetime(2024, 3, 4, 8, 0), SHIFTS).name == 'Day'


def test_shift_boundary_belongs_to_next_shift():
    assert find_active_shift(datetime(2024, 3, 4, 14, 30), SHIFTS).name == 'Evening'


def test_night_shift_wraps_past_midnight():
    now = datetime(2024, 3, 5, 2, 0)
    shift = find_active_shift(now, SHIFTS)
    assert shift.name == 'Night'
    assert shift_start_instant(now, shift) == datetime(2024, 3, 4, 22, 30)
    assert shift_bucket(now, SHIFTS) == ('2024-03-04', 'Night')


def test_no_active_shift():
    shifts = [SimpleNamespace(name='Day', start_time='08:00', end_time='16:00')]
    now = datetime(2024, 3, 4, 20, 0)
    assert find_active_shift(now, shifts) is None
    assert shift_bucket(now, shifts) == ('2024-03-04', None)
    assert planned_runtime_elapsed(now, shifts, []) == 0


def test_elapsed_runtime_before_any_break():
    assert planned_runtime_elapsed(datetime(2024, 3, 4, 8, 30), SHIFTS, BREAKS) == 120


def test_break_in_progress_counts_only_elapsed_part():
    # 06:30-09:10 is 160 minutes, 10 of them in the 09:00 break
    assert planned_runtime_elapsed(datetime(2024, 3, 4, 9, 10), SHIFTS, BREAKS) == 150


def test_full_day_shift_nets_out_all_breaks():
    assert planned_runtime_elapsed(datetime(2024, 3, 4, 14, 29), SHIFTS, BREAKS) == 479 - 60


def test_overnight_breaks_are_subtracted():
    # 22:30-02:00 is 210 minutes, minus the 01:00-01:15 break
    assert planned_runtime_elapsed(datetime(2024, 3, 5, 2, 0), SHIFTS, BREAKS) == 195


def test_break_seconds_outside_window_are_ignored():
    start = datetime(2024, 3, 4, 9, 15)
    assert elapsed_break_seconds(start, datetime(2024, 3, 4, 11, 0), BREAKS) == 0
    assert elapsed_break_seconds(start, start, BREAKS) == 0
