"""End-of-day cleanup of open sessions."""
from datetime import date, datetime, time
from attendee.models.attendance import DayAttendanceRecord
from attendee.services.attendance_service import AttendanceRecorder
from attendee.services.cleanup_service import SessionCleanupJob
from conftest import RecordingSink, make_user

DAY = date(2024, 3, 1)
AFTER_CUTOFF = datetime(2024, 3, 1, 22, 5)


def job(sink):
    return SessionCleanupJob(notifier=sink, cutoff=time(22, 0))


def test_open_only_record_is_deleted_and_user_notified(member, notifier):
    AttendanceRecorder.record_scan('T1', '2024-03-01T09:00:00')

    summary = job(notifier).run(now=AFTER_CUTOFF)

    assert summary.records_deleted == 1
    assert summary.sessions_removed == 1
    assert summary.users_notified == 1
    assert DayAttendanceRecord.for_user_and_date(member.id, DAY) is None

    email, template, data = notifier.sent[0]
    assert (email, template) == ('member@example.com', 'incomplete_session')
    assert data['sessions'] == [datetime(2024, 3, 1, 9, 0)]


def test_closed_sessions_survive_cleanup(admin, member, notifier):
    AttendanceRecorder.record_scan('T1', '2024-03-01T09:00:00')
    AttendanceRecorder.record_scan('T1', '2024-03-01T12:00:00')
    AttendanceRecorder.record_manual(member.id, '2024-03-01T14:00:00', 'entry', admin)

    summary = job(notifier).run(now=AFTER_CUTOFF)

    assert summary.records_updated == 1
    assert summary.records_deleted == 0
    record = DayAttendanceRecord.for_user_and_date(member.id, DAY)
    assert len(record.sessions) == 1
    assert not record.is_currently_inside
    assert record.hours_worked == 3


def test_cleanup_is_idempotent(member, notifier):
    AttendanceRecorder.record_scan('T1', '2024-03-01T09:00:00')

    first = job(notifier).run(now=AFTER_CUTOFF)
    second = job(notifier).run(now=AFTER_CUTOFF)

    assert first.sessions_removed == 1
    assert second.sessions_removed == 0
    assert second.records_updated == second.records_deleted == 0
    assert len(notifier.sent) == 1


def test_cleanup_before_cutoff_does_nothing(member, notifier):
    AttendanceRecorder.record_scan('T1', '2024-03-01T09:00:00')

    summary = job(notifier).run(now=datetime(2024, 3, 1, 21, 59))

    assert summary.skipped
    assert DayAttendanceRecord.for_user_and_date(member.id, DAY).is_currently_inside
    assert notifier.sent == []


def test_other_days_are_not_touched(member, notifier):
    AttendanceRecorder.record_scan('T1', '2024-02-29T09:00:00')

    summary = job(notifier).run(now=AFTER_CUTOFF)

    assert summary.sessions_removed == 0
    assert DayAttendanceRecord.for_user_and_date(member.id, date(2024, 2, 29)) is not None


def test_notification_failure_does_not_undo_cleanup(app, member):
    other = make_user('Oli Other', 'T2', 'other@example.com')
    AttendanceRecorder.record_scan('T1', '2024-03-01T09:00:00')
    AttendanceRecorder.record_scan('T2', '2024-03-01T10:00:00')
    sink = RecordingSink(fail_for={'member@example.com'})

    summary = job(sink).run(now=AFTER_CUTOFF)

    assert summary.records_deleted == 2
    assert summary.users_notified == 1
    assert [email for email, _, _ in sink.sent] == ['other@example.com']
    assert DayAttendanceRecord.for_user_and_date(member.id, DAY) is None
    assert DayAttendanceRecord.for_user_and_date(other.id, DAY) is None


def test_from_app_reads_configuration(app, notifier):
    app.config['CLEANUP_CUTOFF'] = '21:30'
    cleanup = SessionCleanupJob.from_app(app)
    assert cleanup.cutoff == time(21, 30)
    assert cleanup.notifier is notifier
