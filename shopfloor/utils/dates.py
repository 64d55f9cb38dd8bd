"""
Timestamp helpers shared by models and routes.

Timestamps are stored as naive UTC datetimes. Incoming values are ISO 8601
strings (with or without an offset); values without an offset are taken to
be UTC already.
"""
import re
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

YMD_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')


def utcnow():
    """Current time as a naive UTC datetime"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_iso(value):
    """Serialize a stored UTC datetime for JSON output"""
    if value is None:
        return None
    return value.isoformat() + 'Z'


def parse_timestamp(value):
    """Parse an ISO 8601 string into a naive UTC datetime.

    Raises ValueError for anything that is not a timestamp.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError('timestamp must be a non-empty ISO 8601 string')
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def is_ymd(value):
    """True for a YYYY-MM-DD string that names a real date"""
    if not isinstance(value, str) or not YMD_PATTERN.match(value):
        return False
    try:
        datetime.strptime(value, '%Y-%m-%d')
    except ValueError:
        return False
    return True


def to_plant_time(value, tz_name):
    """Convert a naive UTC datetime to naive plant-local time"""
    return value.replace(tzinfo=timezone.utc).astimezone(ZoneInfo(tz_name)).replace(tzinfo=None)


def plant_now(tz_name):
    """Current naive plant-local time"""
    return to_plant_time(utcnow(), tz_name)
