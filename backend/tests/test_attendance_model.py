"""Session record model and its pure helpers."""
from datetime import date, datetime
from attendee import db
from attendee.models.attendance import (
    AttendanceSession,
    DayAttendanceRecord,
    calculate_daily_hours,
    date_only,
    legacy_view,
    partition_sessions,
)


def session(entry, exit_=None):
    return AttendanceSession(entry_time=entry, exit_time=exit_)


def test_date_only_drops_time():
    assert date_only(datetime(2024, 3, 1, 23, 59)) == date(2024, 3, 1)


def test_daily_hours_ignores_open_sessions():
    sessions = [
        session(datetime(2024, 3, 1, 9), datetime(2024, 3, 1, 11, 30)),
        session(datetime(2024, 3, 1, 13)),
    ]
    assert calculate_daily_hours(sessions) == 2.5


def test_daily_hours_is_additive():
    first = [session(datetime(2024, 3, 1, 9), datetime(2024, 3, 1, 10))]
    second = [session(datetime(2024, 3, 1, 14), datetime(2024, 3, 1, 16, 15))]
    assert calculate_daily_hours(first + second) == calculate_daily_hours(first) + calculate_daily_hours(second)
    assert calculate_daily_hours([]) == 0


def test_reversed_session_counts_as_zero_hours():
    sessions = [
        session(datetime(2024, 3, 1, 9), datetime(2024, 3, 1, 10)),
        session(datetime(2024, 3, 1, 15), datetime(2024, 3, 1, 14)),
    ]
    assert calculate_daily_hours(sessions) == 1


def test_partition_keeps_order():
    a = session(datetime(2024, 3, 1, 9), datetime(2024, 3, 1, 10))
    b = session(datetime(2024, 3, 1, 11))
    c = session(datetime(2024, 3, 1, 12), datetime(2024, 3, 1, 13))
    closed, still_open = partition_sessions([a, b, c])
    assert closed == [a, c]
    assert still_open == [b]


def test_legacy_view_mirrors_first_and_last_session(member):
    record = DayAttendanceRecord.start(member.id, datetime(2024, 3, 1, 9))
    record.close_latest(datetime(2024, 3, 1, 12))
    record.open_session(datetime(2024, 3, 1, 13))
    record.close_latest(datetime(2024, 3, 1, 17))
    db.session.add(record)
    db.session.commit()

    view = legacy_view(record)
    assert view == {
        'userId': member.id,
        'entryTime': '2024-03-01T09:00:00',
        'exitTime': '2024-03-01T17:00:00',
        'timestamp': '2024-03-01T09:00:00',
    }


def test_legacy_view_of_empty_record_is_null(member):
    record = DayAttendanceRecord(user_id=member.id, date=date(2024, 3, 1))
    view = legacy_view(record)
    assert view['entryTime'] is None
    assert view['exitTime'] is None
    assert view['timestamp'] is None


def test_sessions_keep_insertion_order(member):
    record = DayAttendanceRecord.start(member.id, datetime(2024, 3, 1, 9))
    record.close_latest(datetime(2024, 3, 1, 10))
    record.open_session(datetime(2024, 3, 1, 11))
    db.session.add(record)
    db.session.commit()
    db.session.expire_all()

    reloaded = DayAttendanceRecord.for_user_and_date(member.id, date(2024, 3, 1))
    assert [s.position for s in reloaded.sessions] == [0, 1]
    assert reloaded.sessions[1].entry_time == datetime(2024, 3, 1, 11)
    assert reloaded.is_currently_inside
    assert reloaded.version == 1


def test_record_serialisation_includes_legacy_fields(member):
    record = DayAttendanceRecord.start(member.id, datetime(2024, 3, 1, 9))
    db.session.add(record)
    db.session.commit()

    data = record.to_dict()
    assert data['date'] == '2024-03-01'
    assert data['sessionCount'] == 1
    assert data['isCurrentlyInside'] is True
    assert data['hoursWorked'] == 0
    assert data['entryTime'] == data['timestamp'] == '2024-03-01T09:00:00'
    assert data['exitTime'] is None
    assert data['user']['rfidTag'] == 'T1'
