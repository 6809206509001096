"""Background scheduler for the daily cleanup and low-attendance jobs."""
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from attendee.utils.timeutils import attendance_timezone, parse_clock

logger = logging.getLogger(__name__)

CLEANUP_JOB_ID = 'attendance_cleanup'
AUDIT_JOB_ID = 'low_attendance_audit'


class DailyJobScheduler:
    """Owns one ``BackgroundScheduler`` per app; jobs run inside an app context."""

    def __init__(self, app):
        self.app = app
        self._scheduler = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        if self.running:
            return

        config = self.app.config
        tz = attendance_timezone(config.get('ATTENDANCE_TIMEZONE'))
        cutoff = parse_clock(config.get('CLEANUP_CUTOFF', '22:00'))
        audit_at = parse_clock(config.get('AUDIT_TIME', '23:00'))

        scheduler = BackgroundScheduler(timezone=tz)
        scheduler.add_job(
            self.run_cleanup,
            CronTrigger(hour=cutoff.hour, minute=cutoff.minute, timezone=tz),
            id=CLEANUP_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        scheduler.add_job(
            self.run_audit,
            CronTrigger(hour=audit_at.hour, minute=audit_at.minute, timezone=tz),
            id=AUDIT_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info('Attendance scheduler started (cleanup %s, audit %s, %s)',
                    cutoff.strftime('%H:%M'), audit_at.strftime('%H:%M'), tz.key)

    def stop(self) -> None:
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info('Attendance scheduler stopped')

    def get_job(self, job_id: str):
        return self._scheduler.get_job(job_id) if self._scheduler else None

    def run_cleanup(self):
        from attendee.services.cleanup_service import SessionCleanupJob

        with self.app.app_context():
            try:
                return SessionCleanupJob.from_app(self.app).run()
            except Exception:
                logger.exception('Scheduled cleanup failed')

    def run_audit(self):
        from attendee.services.audit_service import LowAttendanceAuditor

        with self.app.app_context():
            try:
                return LowAttendanceAuditor.from_app(self.app).run()
            except Exception:
                logger.exception('Scheduled low attendance check failed')
