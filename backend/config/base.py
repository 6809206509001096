"""Base configuration shared by every environment."""
import os
from datetime import timedelta


def _env_list(name: str) -> list:
    raw = os.environ.get(name, '')
    return [item.strip() for item in raw.split(',') if item.strip()]


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False

    # JWT Configuration
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY') or 'jwt-secret-key-change-in-production'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=7)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=30)
    JWT_ALGORITHM = 'HS256'

    # CORS
    CORS_ORIGINS = _env_list('CORS_ORIGINS') or [
        "https://attendee.xrocketry.in",
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    # Rate Limiting
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI') or 'memory://'
    RATELIMIT_DEFAULT = "1000 per day, 200 per hour"

    # Attendance
    ATTENDANCE_TIMEZONE = os.environ.get('ATTENDANCE_TIMEZONE', 'Asia/Kolkata')
    CLEANUP_CUTOFF = os.environ.get('CLEANUP_CUTOFF', '22:00')
    AUDIT_TIME = os.environ.get('AUDIT_TIME', '23:00')
    LOW_ATTENDANCE_THRESHOLD_HOURS = float(os.environ.get('LOW_ATTENDANCE_THRESHOLD_HOURS', '2.0'))
    SCHEDULER_ENABLED = os.environ.get('SCHEDULER_ENABLED', '0') == '1'

    # Notifications
    ADMIN_EMAILS = _env_list('ADMIN_EMAILS')
    MAIL_SERVER = os.environ.get('MAIL_SERVER')
    MAIL_PORT = int(os.environ.get('MAIL_PORT', '587'))
    MAIL_USE_TLS = os.environ.get('MAIL_USE_TLS', '1') == '1'
    MAIL_USERNAME = os.environ.get('MAIL_USERNAME')
    MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD')
    MAIL_SENDER = os.environ.get('MAIL_SENDER') or MAIL_USERNAME
    MAIL_TIMEOUT = 15

    # Pagination
    DEFAULT_PAGE_SIZE = 20
    MAX_PAGE_SIZE = 100

    # Logging
    LOG_LEVEL = 'INFO'
    LOG_FILE = 'logs/app.log'
