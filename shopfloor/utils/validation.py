"""
Request-body checks shared by the API routes.

The calculation core trusts its inputs; bad timestamps and counters are
rejected here, at the edge, before anything is stored.
"""
import math
import re

TIME_OF_DAY_PATTERN = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')


def is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def finite_or_zero(value):
    """Numbers that are missing, non-numeric or non-finite are stored as 0"""
    if is_number(value) and math.isfinite(value):
        return value
    return 0


def parse_count(value, field, errors):
    """Non-negative integer counter, appending an error message when invalid"""
    if is_number(value) and value >= 0 and float(value).is_integer():
        return int(value)
    errors.append({'field': field, 'message': f'{field} must be a non-negative integer'})
    return None


def parse_positive_number(value, field, errors, allow_none=True):
    """Positive number or None"""
    if value is None and allow_none:
        return None
    if is_number(value) and math.isfinite(value) and value > 0:
        return value
    errors.append({'field': field, 'message': f'{field} must be a positive number'})
    return None


def is_time_of_day(value):
    """True for an HH:MM string on a 24 hour clock"""
    return isinstance(value, str) and bool(TIME_OF_DAY_PATTERN.match(value))


def check_downtime_times(start_time, end_time, now):
    """Ordering and no-future rules for a downtime interval"""
    errors = []
    if start_time is not None and start_time > now:
        errors.append({'field': 'start_time', 'message': 'Start time cannot be in the future'})
    if end_time is not None and end_time > now:
        errors.append({'field': 'end_time', 'message': 'End time cannot be in the future'})
    if start_time is not None and end_time is not None and end_time < start_time:
        errors.append({'field': 'end_time', 'message': 'End time must be after start time'})
    return errors
