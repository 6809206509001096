"""Import of single-entry attendance documents from the previous system.

Old documents carry ``entryTime``/``exitTime``/``timestamp`` on the record
itself and reference the user through ``userId`` or ``user`` (an id, or an
object with ``id``/``rfidTag``/``email``). Documents that already have a
``sessions`` list keep it.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from attendee import db
from attendee.exceptions import AttendeeError
from attendee.models.attendance import AttendanceSession, DayAttendanceRecord, date_only
from attendee.models.user import User
from attendee.utils.timeutils import parse_timestamp

logger = logging.getLogger(__name__)


def _resolve_user(document: Dict[str, Any]) -> Optional[User]:
    ref = document.get('user', document.get('userId'))
    if isinstance(ref, dict):
        if ref.get('rfidTag'):
            return User.query.filter_by(rfid_tag=str(ref['rfidTag'])).first()
        if ref.get('email'):
            return User.query.filter_by(email=str(ref['email']).lower().strip()).first()
        ref = ref.get('id')
    if ref is None and document.get('rfidTag'):
        return User.query.filter_by(rfid_tag=str(document['rfidTag'])).first()
    try:
        return db.session.get(User, int(ref))
    except (TypeError, ValueError):
        return None


def _session_pairs(document: Dict[str, Any]) -> List[Tuple[Any, Any, bool]]:
    sessions = document.get('sessions') or []
    if sessions:
        return [
            (parse_timestamp(s.get('entryTime')), parse_timestamp(s.get('exitTime')), bool(s.get('autoExitSet')))
            for s in sessions
            if s.get('entryTime')
        ]

    entry = parse_timestamp(document.get('entryTime')) or parse_timestamp(document.get('timestamp'))
    if entry is None:
        return []
    return [(entry, parse_timestamp(document.get('exitTime')), False)]


def import_legacy_records(documents: Iterable[Dict[str, Any]]) -> Dict[str, int]:
    """Create day records from exported documents; returns ``imported``/``skipped``/``errors`` counts."""
    result = {'imported': 0, 'skipped': 0, 'errors': 0}

    for index, document in enumerate(documents):
        try:
            user = _resolve_user(document)
            if user is None:
                logger.warning('Legacy document %s: user not found', index)
                result['errors'] += 1
                continue

            pairs = _session_pairs(document)
            if not pairs:
                result['skipped'] += 1
                continue

            day = date_only(pairs[0][0])
            if DayAttendanceRecord.for_user_and_date(user.id, day) is not None:
                result['skipped'] += 1
                continue

            record = DayAttendanceRecord(user_id=user.id, date=day)
            for entry, exit_, auto_exit in pairs:
                record.sessions.append(
                    AttendanceSession(entry_time=entry, exit_time=exit_, auto_exit_set=auto_exit)
                )
            db.session.add(record)
            db.session.commit()
            result['imported'] += 1
        except (AttendeeError, SQLAlchemyError, AttributeError) as e:
            db.session.rollback()
            logger.warning('Legacy document %s could not be imported: %s', index, e)
            result['errors'] += 1

    logger.info('Legacy import finished: %s', result)
    return result
