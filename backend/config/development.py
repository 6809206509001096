"""Development configuration."""
import os

from .base import Config


class DevelopmentConfig(Config):
    """Development configuration class."""

    DEBUG = True
    TESTING = False

    # Database (SQLite unless overridden)
    SQLALCHEMY_DATABASE_URI = os.getenv('DEV_DATABASE_URL') or 'sqlite:///attendee_dev.db'
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', '0') == '1'

    # Relaxed limits while iterating on the firmware
    RATELIMIT_ENABLED = False

    LOG_LEVEL = 'DEBUG'
