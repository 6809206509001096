"""Database seeding service for demo data."""
import random
from datetime import datetime, time, timedelta
from attendee import db
from attendee.models.attendance import AttendanceSession, DayAttendanceRecord
from attendee.models.user import User, UserRole, UserStatus
from attendee.utils.timeutils import now_local

DEMO_PASSWORD = 'password123'

DEMO_USERS = [
    ('John Doe', '04A1B2C3', 'john.doe', UserRole.MEMBER, UserStatus.ACTIVE),
    ('Jane Smith', '05B2C3D4', 'jane.smith', UserRole.MENTOR, UserStatus.ACTIVE),
    ('Bob Johnson', '06C3D4E5', 'bob.johnson', UserRole.MEMBER, UserStatus.ACTIVE),
    ('Alice Brown', '07D4E5F6', 'alice.brown', UserRole.MEMBER, UserStatus.ACTIVE),
    ('Charlie Wilson', '08E5F6A7', 'charlie.wilson', UserRole.MEMBER, UserStatus.INACTIVE),
    ('Diana Davis', '09F6A7B8', 'diana.davis', UserRole.MENTOR, UserStatus.ACTIVE),
    ('Eve Miller', '0AA7B8C9', 'eve.miller', UserRole.MEMBER, UserStatus.ACTIVE),
    ('Frank Garcia', '0BB8C9DA', 'frank.garcia', UserRole.MEMBER, UserStatus.ACTIVE),
]

class SeedService:
    """Service to seed database with demo data."""

    @staticmethod
    def seed_all(days: int = 7) -> dict:
        """Seed users and a week of attendance; returns created counts."""
        users = SeedService.seed_users()
        records = SeedService.seed_attendance(users, days)
        return {'users': len(users), 'records': records}

    @staticmethod
    def seed_users() -> list:
        """Seed demo users (existing RFID tags are left untouched)."""
        users = []
        for index, (name, tag, username, role, status) in enumerate(DEMO_USERS):
            user = User.query.filter_by(rfid_tag=tag).first()
            if user:
                continue
            user = User(
                name=name,
                rfid_tag=tag,
                email=f"{username}@launchlog.com",
                role=role,
                status=status,
                phone=f"+12345678{90 + index}"
            )
            user.set_password(DEMO_PASSWORD)
            db.session.add(user)
            users.append(user)

        db.session.commit()
        return users

    @staticmethod
    def seed_attendance(users: list, days: int = 7) -> int:
        """Seed past days of attendance, one or two sessions per active user per day."""
        today = now_local().date()
        created = 0

        for offset in range(1, days + 1):
            day = today - timedelta(days=offset)
            for user in users:
                if not user.is_active or random.random() < 0.2:
                    continue

                record = DayAttendanceRecord(user_id=user.id, date=day)
                start = datetime.combine(day, time(9, 0)) + timedelta(minutes=random.randint(0, 90))
                end = start + timedelta(hours=random.uniform(1.0, 4.0))
                record.sessions.append(AttendanceSession(entry_time=start, exit_time=end))

                # Some users come back after lunch
                if random.random() < 0.4:
                    back = end + timedelta(minutes=random.randint(30, 90))
                    record.sessions.append(
                        AttendanceSession(entry_time=back, exit_time=back + timedelta(hours=random.uniform(1.0, 3.0)))
                    )

                db.session.add(record)
                created += 1

        db.session.commit()
        return created
