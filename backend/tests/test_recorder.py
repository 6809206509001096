"""Scan and manual recording rules."""
from datetime import date, datetime
import pytest
from sqlalchemy import text
from attendee import db
from attendee.exceptions import (
    ConflictError,
    DayCompletedError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from attendee.models.attendance import DayAttendanceRecord
from attendee.services.attendance_service import AttendanceRecorder, commit_record

DAY = date(2024, 3, 1)


def test_scan_sequence_entry_exit_complete(member):
    first = AttendanceRecorder.record_scan('T1', '2024-03-01T09:00:00')
    assert first.type == 'entry'
    assert first.status_code == 201
    assert first.record.is_currently_inside

    second = AttendanceRecorder.record_scan('T1', '2024-03-01T17:00:00')
    assert second.type == 'exit'
    assert second.status_code == 200
    closed = second.record.sessions[0]
    assert (closed.entry_time, closed.exit_time) == (datetime(2024, 3, 1, 9), datetime(2024, 3, 1, 17))

    with pytest.raises(DayCompletedError) as excinfo:
        AttendanceRecorder.record_scan('T1', '2024-03-01T18:00:00')
    assert excinfo.value.status_code == 400
    assert excinfo.value.to_payload()['type'] == 'complete'

    record = DayAttendanceRecord.for_user_and_date(member.id, DAY)
    assert len(record.sessions) == 1
    assert record.hours_worked == 8


def test_scan_on_a_new_day_starts_a_new_record(member):
    AttendanceRecorder.record_scan('T1', '2024-03-01T09:00:00')
    AttendanceRecorder.record_scan('T1', '2024-03-01T17:00:00')

    result = AttendanceRecorder.record_scan('T1', '2024-03-02T09:00:00')
    assert result.type == 'entry'
    assert DayAttendanceRecord.query.filter_by(user_id=member.id).count() == 2


def test_scan_unknown_tag(member):
    with pytest.raises(NotFoundError):
        AttendanceRecorder.record_scan('NOPE', '2024-03-01T09:00:00')


def test_inactive_user_never_mutates_attendance(inactive_member):
    for clock in ('09:00', '12:00', '15:00'):
        with pytest.raises(ForbiddenError):
            AttendanceRecorder.record_scan('T9', f'2024-03-01T{clock}:00')
    assert DayAttendanceRecord.query.count() == 0


def test_scan_exit_before_entry_closes_with_zero_hours(member):
    AttendanceRecorder.record_scan('T1', '2024-03-01T10:00:00')
    result = AttendanceRecorder.record_scan('T1', '2024-03-01T09:30:00')

    assert result.type == 'exit'
    assert not result.record.is_currently_inside
    assert result.record.hours_worked == 0


def test_malformed_timestamp_is_rejected(member):
    with pytest.raises(ValidationError):
        AttendanceRecorder.record_scan('T1', 'yesterday at nine')
    assert DayAttendanceRecord.query.count() == 0


def test_offset_timestamps_are_converted_to_local_time(member):
    # 03:30Z is 09:00 in Asia/Kolkata
    result = AttendanceRecorder.record_scan('T1', '2024-03-01T03:30:00Z')
    assert result.record.sessions[0].entry_time == datetime(2024, 3, 1, 9, 0)
    assert result.record.date == DAY


def test_manual_requires_elevated_actor(member):
    with pytest.raises(ForbiddenError):
        AttendanceRecorder.record_manual(member.id, '2024-03-01T09:00:00', 'entry', member)


def test_manual_rejects_unknown_kind(admin, member):
    with pytest.raises(ValidationError):
        AttendanceRecorder.record_manual(member.id, '2024-03-01T09:00:00', 'lunch', admin)


def test_manual_exit_without_entry_creates_nothing(admin, member):
    with pytest.raises(ValidationError):
        AttendanceRecorder.record_manual(member.id, '2024-03-01T17:00:00', 'exit', admin)
    assert DayAttendanceRecord.query.count() == 0


def test_manual_exit_before_entry_is_rejected(mentor, member):
    AttendanceRecorder.record_manual(member.id, '2024-03-01T09:00:00', 'entry', mentor)
    with pytest.raises(ValidationError):
        AttendanceRecorder.record_manual(member.id, '2024-03-01T08:00:00', 'exit', mentor)


def test_manual_entry_conflicts_with_open_session(admin, member):
    AttendanceRecorder.record_scan('T1', '2024-03-01T09:00:00')
    with pytest.raises(ConflictError):
        AttendanceRecorder.record_manual(member.id, '2024-03-01T10:00:00', 'entry', admin)


def test_manual_exit_conflicts_with_closed_session(admin, member):
    AttendanceRecorder.record_scan('T1', '2024-03-01T09:00:00')
    AttendanceRecorder.record_scan('T1', '2024-03-01T12:00:00')
    with pytest.raises(ConflictError):
        AttendanceRecorder.record_manual(member.id, '2024-03-01T13:00:00', 'exit', admin)


def test_manual_entry_opens_second_session_on_completed_day(admin, member):
    """Elevated users may add a session after the scan path reports the day complete."""
    AttendanceRecorder.record_scan('T1', '2024-03-01T09:00:00')
    AttendanceRecorder.record_scan('T1', '2024-03-01T12:00:00')

    entry = AttendanceRecorder.record_manual(member.id, '2024-03-01T13:00:00', 'entry', admin)
    assert entry.session_number == 2
    exit_ = AttendanceRecorder.record_manual(member.id, '2024-03-01T15:00:00', 'exit', admin)
    assert exit_.type == 'exit'

    record = DayAttendanceRecord.for_user_and_date(member.id, DAY)
    assert len(record.sessions) == 2
    assert record.hours_worked == 5


def test_manual_for_inactive_user_is_forbidden(admin, inactive_member):
    with pytest.raises(ForbiddenError):
        AttendanceRecorder.record_manual(inactive_member.id, '2024-03-01T09:00:00', 'entry', admin)


def test_stale_record_version_is_a_conflict(member):
    result = AttendanceRecorder.record_scan('T1', '2024-03-01T09:00:00')
    record_id = result.record.id
    assert result.record.version == 1

    # Another writer bumps the version behind this session's back
    db.session.execute(
        text('UPDATE attendance_records SET version = version + 1 WHERE id = :id'),
        {'id': record_id}
    )

    with pytest.raises(ConflictError):
        AttendanceRecorder.record_scan('T1', '2024-03-01T17:00:00')

    db.session.expire_all()
    record = db.session.get(DayAttendanceRecord, record_id)
    assert record.is_currently_inside


def test_duplicate_day_record_is_a_conflict(member):
    AttendanceRecorder.record_scan('T1', '2024-03-01T09:00:00')

    duplicate = DayAttendanceRecord.start(member.id, datetime(2024, 3, 1, 10))
    db.session.add(duplicate)
    with pytest.raises(ConflictError):
        commit_record(duplicate)
    assert DayAttendanceRecord.query.count() == 1
