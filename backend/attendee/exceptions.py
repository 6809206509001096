"""Error taxonomy for attendance and user operations.

Services raise these; the app factory renders them with ``error_response``
so every rejection carries a reason and, where it helps the client, the
current state of the day's record.
"""
from typing import Any, Dict, Optional


class AttendeeError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500
    error_type: Optional[str] = None

    def __init__(self, message: str, payload: Optional[Dict[str, Any]] = None, error_type: str = None):
        super().__init__(message)
        self.message = message
        self.payload = payload or {}
        if error_type is not None:
            self.error_type = error_type

    def to_payload(self) -> Dict[str, Any]:
        result = dict(self.payload)
        if self.error_type:
            result.setdefault('type', self.error_type)
        return result


class NotFoundError(AttendeeError):
    """Unknown RFID tag, user id or record."""
    status_code = 404


class ForbiddenError(AttendeeError):
    """Inactive user, or a caller without the required role."""
    status_code = 403


class ConflictError(AttendeeError):
    """Duplicate entry/exit, or a concurrent update of the same day record."""
    status_code = 409


class DayCompletedError(ConflictError):
    """A scan arrived after the day's entry and exit were both recorded."""
    status_code = 400
    error_type = 'complete'


class ValidationError(AttendeeError):
    """Malformed input or an out-of-order entry/exit."""
    status_code = 400
    error_type = 'validation_error'


class InternalFailure(AttendeeError):
    """Store or delivery failure."""
    status_code = 500


class NotificationError(InternalFailure):
    """Raised by a notification sink when delivery fails."""
