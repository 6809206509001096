"""Local-time helpers.

Attendance timestamps are stored as naive wall-clock times in the configured
attendance timezone (the firmware reports local time without an offset).
"""
from datetime import date, datetime, time
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from flask import current_app, has_app_context

from attendee.exceptions import ValidationError

DEFAULT_TIMEZONE = 'Asia/Kolkata'


def attendance_timezone(name: str = None) -> ZoneInfo:
    if name is None and has_app_context():
        name = current_app.config.get('ATTENDANCE_TIMEZONE')
    try:
        return ZoneInfo(name or DEFAULT_TIMEZONE)
    except ZoneInfoNotFoundError:
        raise ValidationError(f"Unknown timezone: {name}")


def now_local(tz_name: str = None) -> datetime:
    """Current wall-clock time in the attendance timezone, without tzinfo."""
    return datetime.now(attendance_timezone(tz_name)).replace(tzinfo=None)


def to_local(value: datetime, tz_name: str = None) -> datetime:
    """Normalize an aware datetime to naive local time; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone(attendance_timezone(tz_name)).replace(tzinfo=None)


def parse_timestamp(value: Optional[str], tz_name: str = None) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; ``None``/empty returns ``None``."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if not isinstance(value, str):
        raise ValidationError("Timestamp must be an ISO-8601 string")

    raw = value.strip()
    if raw.endswith('Z'):
        raw = raw[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"Invalid timestamp: {value}")
    return to_local(parsed, tz_name)


def parse_date(value: str) -> date:
    """Parse YYYY-MM-DD (a full ISO timestamp is accepted and truncated)."""
    try:
        return date.fromisoformat(value.strip()[:10])
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid date: {value}")


def parse_clock(value: str) -> time:
    """Parse an HH:MM setting such as the cleanup cutoff."""
    try:
        hours, minutes = value.strip().split(':')
        return time(int(hours), int(minutes))
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid time of day: {value}")
