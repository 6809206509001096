"""Models package with all models."""
from .base import BaseModel
from .user import User, UserRole, UserStatus
from .attendance import (
    AttendanceSession,
    DayAttendanceRecord,
    calculate_daily_hours,
    date_only,
    legacy_view,
    partition_sessions,
)

__all__ = [
    'BaseModel', 'User', 'UserRole', 'UserStatus',
    'AttendanceSession', 'DayAttendanceRecord',
    'calculate_daily_hours', 'date_only', 'legacy_view', 'partition_sessions'
]
