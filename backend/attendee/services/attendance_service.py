"""Attendance recording and attendance queries.

``AttendanceRecorder`` turns RFID scans and manual corrections into
entry/exit sessions on the user's day record. ``AttendanceQueryService``
serves the read side (today, history, per-user lists, statistics).
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from attendee import db
from attendee.exceptions import (
    ConflictError,
    DayCompletedError,
    ForbiddenError,
    InternalFailure,
    NotFoundError,
    ValidationError,
)
from attendee.models.attendance import DayAttendanceRecord, date_only
from attendee.models.user import User, UserStatus
from attendee.utils.timeutils import now_local, parse_date, parse_timestamp

logger = logging.getLogger(__name__)

ENTRY = 'entry'
EXIT = 'exit'


@dataclass
class AttendanceResult:
    """Outcome of a recorded scan or manual correction."""
    type: str
    message: str
    record: DayAttendanceRecord
    session_number: int
    status_code: int = 200

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'sessionNumber': self.session_number,
            'attendance': self.record.to_dict(),
        }


def commit_record(record: DayAttendanceRecord) -> None:
    """Commit the current unit of work, mapping store conflicts to ``ConflictError``."""
    user_id = record.user_id
    try:
        db.session.commit()
    except (StaleDataError, IntegrityError) as e:
        db.session.rollback()
        logger.warning('Concurrent update of attendance for user %s: %s', user_id, e)
        raise ConflictError('Attendance was updated concurrently, please retry')
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception('Failed to save attendance for user %s', user_id)
        raise InternalFailure('Failed to save attendance record')


def _resolve_active_user(user: Optional[User], missing_message: str) -> User:
    if user is None:
        raise NotFoundError(missing_message)
    if not user.is_active:
        raise ForbiddenError('User account is inactive. Contact an administrator.')
    return user


class AttendanceRecorder:
    """Maps RFID scans and manual corrections onto day records."""

    @staticmethod
    def record_scan(rfid_tag: str, timestamp: Optional[str] = None) -> AttendanceResult:
        """Record an RFID tap: first tap enters, second exits, third is rejected."""
        tag = str(rfid_tag or '').strip()
        if not tag:
            raise ValidationError('RFID tag is required')

        user = _resolve_active_user(
            User.query.filter_by(rfid_tag=tag).first(),
            'User not found with this RFID tag'
        )
        moment = parse_timestamp(timestamp) or now_local()

        record = DayAttendanceRecord.for_user_and_date(user.id, date_only(moment))
        if record is None:
            record = DayAttendanceRecord.start(user.id, moment)
            db.session.add(record)
            commit_record(record)
            logger.info('Entry recorded for %s at %s', user.name, moment)
            return AttendanceResult(ENTRY, 'Entry recorded successfully', record, 1, 201)

        if not record.sessions:
            record.open_session(moment)
            record.touch()
            commit_record(record)
            logger.info('Entry recorded for %s at %s', user.name, moment)
            return AttendanceResult(ENTRY, 'Entry recorded successfully', record, 1, 201)

        if record.is_currently_inside:
            record.close_latest(moment)
            record.touch()
            commit_record(record)
            logger.info('Exit recorded for %s at %s', user.name, moment)
            return AttendanceResult(EXIT, 'Exit recorded successfully', record, len(record.sessions))

        raise DayCompletedError(
            'You have already completed entry and exit for today',
            payload={'attendance': record.to_dict()}
        )

    @staticmethod
    def record_manual(user_id, timestamp: Optional[str], kind: str, actor: Optional[User]) -> AttendanceResult:
        """Admin/mentor correction. Entry may open a further session on a closed day."""
        if actor is None or not actor.is_elevated():
            raise ForbiddenError('Access denied. Admin or Mentor role required.')

        if kind not in (ENTRY, EXIT):
            raise ValidationError("Type must be either 'entry' or 'exit'")
        if not timestamp:
            raise ValidationError('Timestamp is required')
        moment = parse_timestamp(timestamp)

        try:
            user_pk = int(user_id)
        except (TypeError, ValueError):
            raise ValidationError('A valid userId is required')
        user = _resolve_active_user(db.session.get(User, user_pk), 'User not found')

        record = DayAttendanceRecord.for_user_and_date(user.id, date_only(moment))

        if kind == ENTRY:
            if record is not None and record.is_currently_inside:
                raise ConflictError(
                    'User already has an open session for this day',
                    payload={'attendance': record.to_dict()}
                )
            if record is None:
                record = DayAttendanceRecord.start(user.id, moment)
                db.session.add(record)
            else:
                record.open_session(moment)
                record.touch()
            commit_record(record)
            logger.info('Manual entry for %s at %s by %s', user.name, moment, actor.email)
            return AttendanceResult(
                ENTRY, 'Manual entry recorded successfully', record, len(record.sessions), 201
            )

        if record is None or not record.sessions:
            raise ValidationError('No entry found for this day. Record an entry first.')
        latest = record.latest_session
        if not latest.is_open:
            raise ConflictError(
                'No open session to close for this day',
                payload={'attendance': record.to_dict()}
            )
        if moment < latest.entry_time:
            raise ValidationError('Exit time cannot be before entry time')

        record.close_latest(moment)
        record.touch()
        commit_record(record)
        logger.info('Manual exit for %s at %s by %s', user.name, moment, actor.email)
        return AttendanceResult(EXIT, 'Manual exit recorded successfully', record, len(record.sessions))


def _date_range_filter(query, start: Optional[str], end: Optional[str]):
    if start:
        query = query.filter(DayAttendanceRecord.date >= parse_date(start))
    if end:
        query = query.filter(DayAttendanceRecord.date <= parse_date(end))
    return query


class AttendanceQueryService:
    """Read side of attendance: lists, history and statistics."""

    @staticmethod
    def today(viewer: Optional[User]) -> List[Dict[str, Any]]:
        """Today's records, newest first; non-elevated viewers only see active users."""
        today = now_local().date()
        query = DayAttendanceRecord.query.join(User).filter(DayAttendanceRecord.date == today)
        if viewer is None or not viewer.is_elevated():
            query = query.filter(User.status == UserStatus.ACTIVE)

        records = query.all()
        records.sort(
            key=lambda r: r.sessions[0].entry_time if r.sessions else r.created_at,
            reverse=True
        )

        result = []
        for record in records:
            item = record.to_dict(include_user=False)
            item.update({
                'name': record.user.name,
                'rfidTag': record.user.rfid_tag,
                'role': record.user.role.value,
                'status': record.user.status.value,
            })
            result.append(item)
        return result

    @staticmethod
    def for_user(user_id: int, page: int, limit: int,
                 start: Optional[str] = None, end: Optional[str] = None) -> Dict[str, Any]:
        """Paginated records of one user, newest day first."""
        user = db.session.get(User, user_id)
        if not user:
            raise NotFoundError('User not found')

        query = _date_range_filter(DayAttendanceRecord.query.filter_by(user_id=user.id), start, end)
        pagination = query.order_by(DayAttendanceRecord.date.desc()).paginate(
            page=page, per_page=limit, error_out=False
        )
        return {
            'user': user.summary(),
            'records': [r.to_dict(include_user=False) for r in pagination.items],
            'total': pagination.total,
        }

    @staticmethod
    def history(page: int, limit: int, start: Optional[str] = None, end: Optional[str] = None,
                user_id: Optional[int] = None, status: str = 'active') -> Dict[str, Any]:
        """Filtered history across users; ``status='all'`` includes inactive users."""
        query = _date_range_filter(DayAttendanceRecord.query.join(User), start, end)
        if user_id:
            query = query.filter(DayAttendanceRecord.user_id == user_id)
        if status and status != 'all':
            try:
                query = query.filter(User.status == UserStatus(status))
            except ValueError:
                raise ValidationError(f'Invalid status filter: {status}')

        pagination = query.order_by(
            DayAttendanceRecord.date.desc(), DayAttendanceRecord.id.desc()
        ).paginate(page=page, per_page=limit, error_out=False)
        return {
            'records': [r.to_dict() for r in pagination.items],
            'total': pagination.total,
        }

    @staticmethod
    def stats(start: Optional[str] = None, end: Optional[str] = None) -> Dict[str, Any]:
        """Totals, unique attendees and per-day counts for the most recent 30 days."""
        base = _date_range_filter(DayAttendanceRecord.query, start, end)
        total = base.count()
        unique_attendees = base.with_entities(
            func.count(func.distinct(DayAttendanceRecord.user_id))
        ).scalar() or 0

        per_day = base.with_entities(
            DayAttendanceRecord.date,
            func.count(DayAttendanceRecord.id),
            func.count(func.distinct(DayAttendanceRecord.user_id))
        ).group_by(DayAttendanceRecord.date).order_by(DayAttendanceRecord.date.desc()).limit(30).all()

        total_hours = sum(record.hours_worked for record in base.all())

        return {
            'totalAttendance': total,
            'uniqueAttendeesCount': unique_attendees,
            'totalHours': round(total_hours, 2),
            'attendanceByDay': [
                {
                    'date': day.isoformat(),
                    'attendanceCount': count,
                    'uniqueUsersCount': users,
                }
                for day, count, users in per_day
            ],
        }

    @staticmethod
    def delete(record_id: int) -> Dict[str, Any]:
        record = db.session.get(DayAttendanceRecord, record_id)
        if not record:
            raise NotFoundError('Attendance record not found')

        deleted = {
            'id': record.id,
            'userName': record.user.name if record.user else None,
            'date': record.date.isoformat(),
        }
        db.session.delete(record)
        try:
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception('Failed to delete attendance record %s', record_id)
            raise InternalFailure('Failed to delete attendance record')
        logger.info('Deleted attendance record %s', record_id)
        return deleted
