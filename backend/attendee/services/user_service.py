"""User management service."""
import logging
from typing import Any, Dict, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from attendee import db
from attendee.exceptions import ConflictError, NotFoundError, ValidationError
from attendee.models.attendance import DayAttendanceRecord
from attendee.models.user import User, UserRole, UserStatus
from attendee.utils.validators import Validator, ensure

logger = logging.getLogger(__name__)

PROFILE_FIELDS = {
    'phone': 'phone',
    'profilePicture': 'profile_picture',
    'bio': 'bio',
    'skills': 'skills',
}


def _parse_role(value: str) -> UserRole:
    try:
        return UserRole(str(value).lower())
    except ValueError:
        raise ValidationError('Invalid role. Must be member, admin, or mentor')


def _parse_status(value: str) -> UserStatus:
    try:
        return UserStatus(str(value).lower())
    except ValueError:
        raise ValidationError('Invalid status. Must be active or inactive')


class UserService:
    """Create, update, list and remove users."""

    @staticmethod
    def get_user(user_id: int) -> User:
        user = db.session.get(User, user_id)
        if not user:
            raise NotFoundError('User not found')
        return user

    @staticmethod
    def list_users(page: int, limit: int, status: str = None, role: str = None, search: str = None):
        query = User.query
        if status:
            query = query.filter(User.status == _parse_status(status))
        if role:
            query = query.filter(User.role == _parse_role(role))
        if search:
            pattern = f'%{search.strip()}%'
            query = query.filter(or_(
                User.name.ilike(pattern),
                User.email.ilike(pattern),
                User.rfid_tag.ilike(pattern)
            ))

        return query.order_by(User.created_at.desc(), User.id.desc()).paginate(
            page=page, per_page=limit, error_out=False
        )

    @staticmethod
    def _check_unique(email: Optional[str] = None, rfid_tag: Optional[str] = None, exclude_id: int = None):
        if email:
            existing = User.query.filter_by(email=email).first()
            if existing and existing.id != exclude_id:
                raise ConflictError('User with this email already exists')
        if rfid_tag:
            existing = User.query.filter_by(rfid_tag=rfid_tag).first()
            if existing and existing.id != exclude_id:
                raise ConflictError('User with this RFID tag already exists')

    @staticmethod
    def create_user(data: Dict[str, Any]) -> User:
        """Create a user from API-shaped data (``rfidTag``, ``profilePicture``...)."""
        ensure(Validator.validate_required_fields(data, ['name', 'rfidTag', 'email', 'password']))
        ensure(Validator.validate_name(data['name']))
        ensure(Validator.validate_rfid_tag(data['rfidTag']))
        ensure(Validator.validate_password(data['password']))

        email = str(data['email']).lower().strip()
        if not Validator.validate_email(email):
            raise ValidationError('Invalid email format')
        rfid_tag = str(data['rfidTag']).strip()
        UserService._check_unique(email=email, rfid_tag=rfid_tag)

        user = User(
            name=data['name'].strip(),
            email=email,
            rfid_tag=rfid_tag,
            phone=data.get('phone'),
            role=_parse_role(data.get('role') or 'member'),
            status=_parse_status(data.get('status') or 'active'),
            profile_picture=data.get('profilePicture') or '',
            bio=data.get('bio') or '',
            skills=list(data.get('skills') or []),
        )
        user.set_password(data['password'])
        UserService._commit(user)
        logger.info('Created user %s (%s)', user.email, user.role.value)
        return user

    @staticmethod
    def update_user(user: User, data: Dict[str, Any]) -> User:
        """Admin edit of identity, role and status."""
        email = str(data['email']).lower().strip() if data.get('email') else None
        rfid_tag = str(data['rfidTag']).strip() if data.get('rfidTag') else None
        if email and not Validator.validate_email(email):
            raise ValidationError('Invalid email format')
        if rfid_tag:
            ensure(Validator.validate_rfid_tag(rfid_tag))
        UserService._check_unique(email=email, rfid_tag=rfid_tag, exclude_id=user.id)

        if data.get('name'):
            ensure(Validator.validate_name(data['name']))
            user.name = data['name'].strip()
        if email:
            user.email = email
        if rfid_tag:
            user.rfid_tag = rfid_tag
        if 'phone' in data:
            user.phone = data['phone']
        if data.get('role'):
            user.role = _parse_role(data['role'])
        if data.get('status'):
            user.status = _parse_status(data['status'])

        UserService._commit(user)
        return user

    @staticmethod
    def update_profile(user: User, data: Dict[str, Any]) -> User:
        """Self-service edit: email, phone, profile picture, skills, bio and password."""
        if data.get('email'):
            email = str(data['email']).lower().strip()
            if not Validator.validate_email(email):
                raise ValidationError('Invalid email format')
            UserService._check_unique(email=email, exclude_id=user.id)
            user.email = email

        for key, attr in PROFILE_FIELDS.items():
            if key in data:
                value = data[key]
                if attr == 'skills':
                    if not isinstance(value, list):
                        raise ValidationError('Skills must be a list')
                    value = [str(skill) for skill in value]
                elif attr != 'phone':
                    value = value or ''
                setattr(user, attr, value)

        if data.get('password'):
            ensure(Validator.validate_password(data['password']))
            user.set_password(data['password'])

        UserService._commit(user)
        return user

    @staticmethod
    def set_status(user: User, status: str, actor: User) -> User:
        new_status = _parse_status(status)
        if user.id == actor.id and new_status == UserStatus.INACTIVE:
            raise ValidationError('You cannot deactivate your own account')
        user.status = new_status
        UserService._commit(user)
        logger.info('User %s set to %s by %s', user.email, new_status.value, actor.email)
        return user

    @staticmethod
    def delete_user(user: User, actor: User) -> Dict[str, Any]:
        if user.id == actor.id:
            raise ValidationError('You cannot delete your own account')

        deleted = {'id': user.id, 'name': user.name, 'email': user.email}
        for record in DayAttendanceRecord.query.filter_by(user_id=user.id).all():
            db.session.delete(record)
        db.session.delete(user)
        db.session.commit()
        logger.info('Deleted user %s by %s', deleted['email'], actor.email)
        return deleted

    @staticmethod
    def summary_stats() -> Dict[str, Any]:
        by_role = dict(
            (role.value, count)
            for role, count in db.session.query(User.role, func.count(User.id)).group_by(User.role)
        )
        return {
            'totalUsers': User.query.count(),
            'activeUsers': User.query.filter_by(status=UserStatus.ACTIVE).count(),
            'inactiveUsers': User.query.filter_by(status=UserStatus.INACTIVE).count(),
            'usersByRole': by_role,
        }

    @staticmethod
    def _commit(user: User) -> None:
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError('Email or RFID tag already exists')
