"""User model for authentication and authorization."""
from datetime import datetime
from enum import Enum
from werkzeug.security import generate_password_hash, check_password_hash
from attendee import db
from attendee.models.base import BaseModel

class UserRole(Enum):
    """User roles enumeration."""
    MEMBER = 'member'
    MENTOR = 'mentor'
    ADMIN = 'admin'

class UserStatus(Enum):
    """Account status enumeration."""
    ACTIVE = 'active'
    INACTIVE = 'inactive'

ELEVATED_ROLES = (UserRole.ADMIN, UserRole.MENTOR)

class User(BaseModel):
    """User model for all system users."""

    __tablename__ = 'users'

    # Basic Information
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    rfid_tag = db.Column(db.String(64), unique=True, nullable=False, index=True)
    phone = db.Column(db.String(20), nullable=True)

    # Role and Status
    role = db.Column(db.Enum(UserRole), nullable=False, default=UserRole.MEMBER)
    status = db.Column(db.Enum(UserStatus), nullable=False, default=UserStatus.ACTIVE)

    # Profile
    profile_picture = db.Column(db.String(512), nullable=False, default='')
    bio = db.Column(db.Text, nullable=False, default='')
    skills = db.Column(db.JSON, nullable=False, default=list)
    joined_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    attendance_records = db.relationship(
        'DayAttendanceRecord',
        back_populates='user',
        lazy='dynamic',
        passive_deletes=True
    )

    def set_password(self, password: str) -> None:
        """Set user password with hashing."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Check if provided password matches user's password."""
        return check_password_hash(self.password_hash, password)

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def is_admin(self) -> bool:
        """Check if user is an admin."""
        return self.role == UserRole.ADMIN

    def is_elevated(self) -> bool:
        """Admins and mentors may record manual attendance and read history."""
        return self.role in ELEVATED_ROLES

    def summary(self) -> dict:
        """Short form embedded in attendance payloads."""
        return {
            'id': self.id,
            'name': self.name,
            'rfidTag': self.rfid_tag,
            'role': self.role.value,
            'status': self.status.value
        }

    def to_dict(self) -> dict:
        """Convert to dictionary excluding sensitive data."""
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'rfidTag': self.rfid_tag,
            'phone': self.phone,
            'role': self.role.value if self.role else None,
            'status': self.status.value if self.status else None,
            'profilePicture': self.profile_picture,
            'bio': self.bio,
            'skills': list(self.skills or []),
            'joinedDate': self.joined_date.isoformat() if self.joined_date else None,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None
        }

    def __repr__(self) -> str:
        return f'<User {self.email}>'
