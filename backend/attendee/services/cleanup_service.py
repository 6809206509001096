"""End-of-day sweep of sessions that were never closed."""
import logging
from dataclasses import dataclass
from datetime import datetime, time
from typing import Any, Dict, Optional

from attendee import db
from attendee.exceptions import AttendeeError
from attendee.models.attendance import DayAttendanceRecord
from attendee.services.attendance_service import commit_record
from attendee.services.notification_service import INCOMPLETE_SESSION, NotificationSink, Recipient
from attendee.utils.timeutils import now_local, parse_clock

logger = logging.getLogger(__name__)


@dataclass
class CleanupSummary:
    records_updated: int = 0
    records_deleted: int = 0
    sessions_removed: int = 0
    users_notified: int = 0
    skipped: bool = False
    message: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'recordsUpdated': self.records_updated,
            'recordsDeleted': self.records_deleted,
            'sessionsRemoved': self.sessions_removed,
            'usersNotified': self.users_notified,
            'skipped': self.skipped,
        }


class SessionCleanupJob:
    """Discards today's open sessions once the cutoff has passed.

    Open sessions are removed, not closed: a user who never scanned out
    gets no hours for that session. Records left without sessions are
    deleted. Each record is committed on its own, so an interrupted sweep
    can simply be run again.
    """

    def __init__(self, notifier: NotificationSink, cutoff: time = time(22, 0), tz_name: str = None):
        self.notifier = notifier
        self.cutoff = cutoff
        self.tz_name = tz_name

    @classmethod
    def from_app(cls, app) -> 'SessionCleanupJob':
        return cls(
            notifier=app.extensions['attendee.notifier'],
            cutoff=parse_clock(app.config.get('CLEANUP_CUTOFF', '22:00')),
            tz_name=app.config.get('ATTENDANCE_TIMEZONE'),
        )

    def run(self, now: Optional[datetime] = None) -> CleanupSummary:
        now = now or now_local(self.tz_name)
        cutoff_label = self.cutoff.strftime('%H:%M')

        if now.time() < self.cutoff:
            logger.info('Cleanup skipped, %s is before the %s cutoff', now.strftime('%H:%M'), cutoff_label)
            return CleanupSummary(
                skipped=True,
                message=f'Cleanup only runs after {cutoff_label}'
            )

        summary = CleanupSummary()
        today = now.date()

        for record in DayAttendanceRecord.query.filter_by(date=today).all():
            if not record.open_sessions:
                continue

            user = record.user
            recipient = Recipient(name=user.name, email=user.email) if user else None

            removed = record.discard_open_sessions()
            entry_times = [session.entry_time for session in removed]
            emptied = not record.sessions
            if emptied:
                db.session.delete(record)
            else:
                record.touch()

            try:
                commit_record(record)
            except AttendeeError as e:
                logger.warning('Cleanup of record for user %s failed: %s', recipient and recipient.name, e.message)
                continue

            summary.sessions_removed += len(removed)
            if emptied:
                summary.records_deleted += 1
            else:
                summary.records_updated += 1

            if recipient and self._notify(recipient, today, entry_times, cutoff_label):
                summary.users_notified += 1

        summary.message = (
            f'Cleanup removed {summary.sessions_removed} incomplete sessions: '
            f'{summary.records_updated} records updated, {summary.records_deleted} deleted'
        )
        logger.info(summary.message)
        return summary

    def _notify(self, recipient: Recipient, day, entry_times, cutoff_label: str) -> bool:
        if not recipient.email:
            return False
        try:
            self.notifier.send(recipient, INCOMPLETE_SESSION, {
                'date': day,
                'sessions': entry_times,
                'cutoff': cutoff_label,
            })
        except Exception:
            logger.exception('Failed to send incomplete session notification to %s', recipient.email)
            return False
        return True
