"""Daily low-attendance audit."""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from attendee.models.attendance import DayAttendanceRecord, calculate_daily_hours
from attendee.models.user import User, UserRole
from attendee.services.notification_service import (
    LOW_ATTENDANCE,
    LOW_ATTENDANCE_REPORT,
    NotificationSink,
    Recipient,
)
from attendee.utils.timeutils import now_local

logger = logging.getLogger(__name__)


@dataclass
class AuditSummary:
    date: date
    total_users: int = 0
    flagged: int = 0
    notified: int = 0
    report_sent: bool = False
    flagged_users: List[Dict[str, Any]] = field(default_factory=list)
    message: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date.isoformat(),
            'totalUsers': self.total_users,
            'flagged': self.flagged,
            'notified': self.notified,
            'reportSent': self.report_sent,
            'flaggedUsers': self.flagged_users,
        }


class LowAttendanceAuditor:
    """Flags non-admin users whose worked hours fall below the threshold.

    Read-only with respect to attendance: open sessions count as zero hours
    and nothing is closed or removed here.
    """

    def __init__(self, notifier: NotificationSink, threshold_hours: float = 2.0,
                 admin_emails: Sequence[str] = (), tz_name: str = None):
        self.notifier = notifier
        self.threshold_hours = threshold_hours
        self.admin_emails = list(admin_emails)
        self.tz_name = tz_name

    @classmethod
    def from_app(cls, app) -> 'LowAttendanceAuditor':
        return cls(
            notifier=app.extensions['attendee.notifier'],
            threshold_hours=float(app.config.get('LOW_ATTENDANCE_THRESHOLD_HOURS', 2.0)),
            admin_emails=app.config.get('ADMIN_EMAILS') or [],
            tz_name=app.config.get('ATTENDANCE_TIMEZONE'),
        )

    def run(self, target_date: Optional[date] = None) -> AuditSummary:
        day = target_date or now_local(self.tz_name).date()
        users = User.query.filter(User.role != UserRole.ADMIN).order_by(User.name).all()
        records = {
            record.user_id: record
            for record in DayAttendanceRecord.query.filter_by(date=day).all()
        }

        summary = AuditSummary(date=day, total_users=len(users))
        for user in users:
            record = records.get(user.id)
            hours = calculate_daily_hours(record.sessions) if record else 0.0
            if hours >= self.threshold_hours:
                continue

            summary.flagged_users.append({
                'id': user.id,
                'name': user.name,
                'email': user.email,
                'hours': round(hours, 2),
                'deficit': round(self.threshold_hours - hours, 2),
            })
            if user.email and self._send(user, LOW_ATTENDANCE, {
                'date': day,
                'hours': hours,
                'threshold': self.threshold_hours,
            }):
                summary.notified += 1

        summary.flagged = len(summary.flagged_users)
        summary.report_sent = self._send_report(summary)
        summary.message = (
            f'Low attendance check for {day.isoformat()}: '
            f'{summary.flagged} of {summary.total_users} users below {self.threshold_hours:g} hours'
        )
        logger.info(summary.message)
        return summary

    def _send_report(self, summary: AuditSummary) -> bool:
        if not self.admin_emails:
            logger.warning('No ADMIN_EMAILS configured, skipping low attendance report')
            return False

        data = {
            'date': summary.date,
            'threshold': self.threshold_hours,
            'total_users': summary.total_users,
            'users': summary.flagged_users,
        }
        sent = False
        for address in self.admin_emails:
            sent = self._send(Recipient(name='Admin', email=address), LOW_ATTENDANCE_REPORT, data) or sent
        return sent

    def _send(self, recipient, template: str, data: Dict[str, Any]) -> bool:
        try:
            self.notifier.send(recipient, template, data)
        except Exception:
            logger.exception('Failed to send %s notification to %s', template, recipient.email)
            return False
        return True
