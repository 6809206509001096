"""Day attendance record and its entry/exit sessions.

One ``DayAttendanceRecord`` exists per user per calendar day and owns the
ordered list of sessions recorded that day. ``sessions`` is the only source
of truth: the legacy single-entry fields (``entryTime``, ``exitTime``,
``timestamp``, ``userId``) that older clients read are derived from it by
``legacy_view`` at serialisation time and never stored.
"""
import datetime as dt
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.ext.orderinglist import ordering_list

from attendee import db
from attendee.models.base import BaseModel


def date_only(value: dt.datetime) -> dt.date:
    """Calendar date (grouping key) of a timestamp."""
    if isinstance(value, dt.datetime):
        return value.date()
    return value


def session_hours(session) -> float:
    """Hours covered by one session; open sessions count as zero."""
    if session.entry_time is None or session.exit_time is None:
        return 0.0
    seconds = (session.exit_time - session.entry_time).total_seconds()
    return max(seconds, 0.0) / 3600.0


def calculate_daily_hours(sessions: Iterable) -> float:
    """Total worked hours across the closed sessions of a day."""
    return sum(session_hours(session) for session in sessions)


def partition_sessions(sessions: Iterable) -> Tuple[List, List]:
    """Split sessions into ``(closed, open)`` keeping their order."""
    closed, still_open = [], []
    for session in sessions:
        (closed if session.exit_time is not None else still_open).append(session)
    return closed, still_open


def _iso(value: Optional[dt.datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def legacy_view(record) -> Dict[str, Any]:
    """Legacy mirror fields for readers of the single-entry schema."""
    sessions = list(record.sessions or [])
    first = sessions[0] if sessions else None
    last = sessions[-1] if sessions else None
    return {
        'userId': record.user_id,
        'entryTime': _iso(first.entry_time) if first else None,
        'exitTime': _iso(last.exit_time) if last else None,
        'timestamp': _iso(first.entry_time) if first else None,
    }


class AttendanceSession(db.Model):
    """A single entry/exit pair (exit is null while the session is open)."""

    __tablename__ = 'attendance_sessions'

    id = db.Column(db.Integer, primary_key=True)
    record_id = db.Column(
        db.Integer,
        db.ForeignKey('attendance_records.id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )
    position = db.Column(db.Integer, nullable=False, default=0)
    entry_time = db.Column(db.DateTime, nullable=False)
    exit_time = db.Column(db.DateTime, nullable=True)
    # Kept for wire compatibility; closing logic never reads it
    auto_exit_set = db.Column(db.Boolean, nullable=False, default=False)

    record = db.relationship('DayAttendanceRecord', back_populates='sessions')

    @property
    def is_open(self) -> bool:
        return self.exit_time is None

    @property
    def hours(self) -> float:
        return session_hours(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'entryTime': _iso(self.entry_time),
            'exitTime': _iso(self.exit_time),
            'autoExitSet': bool(self.auto_exit_set),
        }

    def __repr__(self) -> str:
        return f'<AttendanceSession {self.entry_time} -> {self.exit_time}>'


class DayAttendanceRecord(BaseModel):
    """All sessions of one user on one calendar day."""

    __tablename__ = 'attendance_records'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'date', name='uq_attendance_records_user_date'),
    )

    user_id = db.Column(
        db.Integer,
        db.ForeignKey('users.id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )
    date = db.Column(db.Date, nullable=False, index=True)
    version = db.Column(db.Integer, nullable=False)

    sessions = db.relationship(
        'AttendanceSession',
        back_populates='record',
        order_by='AttendanceSession.position',
        collection_class=ordering_list('position'),
        cascade='all, delete-orphan'
    )
    user = db.relationship('User', back_populates='attendance_records')

    __mapper_args__ = {'version_id_col': version}

    @classmethod
    def for_user_and_date(cls, user_id: int, day: dt.date) -> Optional['DayAttendanceRecord']:
        return cls.query.filter_by(user_id=user_id, date=day).first()

    @classmethod
    def start(cls, user_id: int, entry_time: dt.datetime) -> 'DayAttendanceRecord':
        """New record holding a single open session."""
        record = cls(user_id=user_id, date=date_only(entry_time))
        record.open_session(entry_time)
        return record

    @property
    def latest_session(self) -> Optional[AttendanceSession]:
        return self.sessions[-1] if self.sessions else None

    @property
    def open_sessions(self) -> List[AttendanceSession]:
        return partition_sessions(self.sessions)[1]

    @property
    def is_currently_inside(self) -> bool:
        latest = self.latest_session
        return latest is not None and latest.is_open

    @property
    def hours_worked(self) -> float:
        return calculate_daily_hours(self.sessions)

    def open_session(self, entry_time: dt.datetime) -> AttendanceSession:
        session = AttendanceSession(entry_time=entry_time, exit_time=None, auto_exit_set=False)
        self.sessions.append(session)
        self.sync_date()
        return session

    def close_latest(self, exit_time: dt.datetime) -> AttendanceSession:
        session = self.latest_session
        session.exit_time = exit_time
        session.auto_exit_set = False
        return session

    def discard_open_sessions(self) -> List[AttendanceSession]:
        """Remove open sessions; returns what was removed."""
        removed = partition_sessions(self.sessions)[1]
        for session in removed:
            self.sessions.remove(session)
        self.sync_date()
        return removed

    def sync_date(self) -> None:
        """Keep ``date`` on the calendar day of the first session."""
        if self.sessions:
            self.date = date_only(self.sessions[0].entry_time)

    def to_dict(self, include_user: bool = True) -> Dict[str, Any]:
        result = {
            'id': self.id,
            'date': self.date.isoformat() if self.date else None,
            'sessions': [s.to_dict() for s in self.sessions],
            'sessionCount': len(self.sessions),
            'isCurrentlyInside': self.is_currently_inside,
            'hoursWorked': round(self.hours_worked, 2),
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }
        result.update(legacy_view(self))
        if include_user and self.user is not None:
            result['user'] = self.user.summary()
        return result

    def __repr__(self) -> str:
        return f'<DayAttendanceRecord user={self.user_id} date={self.date}>'
