"""
Do-not-disturb gate — decides whether a notification call is suppressed.

Hours are compared in the fixed deployment zone (DND_TIMEZONE); minutes are
ignored. A window whose start is after its end spans midnight.
"""
from datetime import datetime

import pytz

from leadbridge.config import DND_TIMEZONE

TARGET_TZ = pytz.timezone(DND_TIMEZONE)


def local_now(now=None):
    """Convert `now` (default: current time) into the target zone.

    Naive datetimes are taken to already be wall-clock time in the target zone.
    """
    if now is None:
        return datetime.now(TARGET_TZ)
    if now.tzinfo is None:
        return TARGET_TZ.localize(now)
    return now.astimezone(TARGET_TZ)


def is_suppressed(start_hour, end_hour, now=None) -> bool:
    """True when the local hour falls inside the [start_hour, end_hour) window."""
    if start_hour is None or end_hour is None:
        return False

    hour = local_now(now).hour
    if start_hour > end_hour:
        return hour >= start_hour or hour < end_hour
    return start_hour <= hour < end_hour


def validate_hour(value):
    """Parse an optional hour-of-day (None/'' → None); raise ValueError outside 0..23."""
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise ValueError('hour must be an integer between 0 and 23')
    if isinstance(value, float) and not value.is_integer():
        raise ValueError('hour must be an integer between 0 and 23')
    try:
        hour = int(value)
    except (TypeError, ValueError):
        raise ValueError('hour must be an integer between 0 and 23')
    if not 0 <= hour <= 23:
        raise ValueError('hour must be an integer between 0 and 23')
    return hour
