"""Shared fixtures: app on in-memory SQLite, users, tokens and a fake notifier."""
import pytest
from flask_jwt_extended import create_access_token
from attendee import create_app, db
from attendee.exceptions import NotificationError
from attendee.models.user import User, UserRole, UserStatus


class RecordingSink:
    """Notification sink that keeps what it was asked to send."""

    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    def send(self, recipient, template, data):
        if recipient.email in self.fail_for:
            raise NotificationError(f"SMTP refused {recipient.email}")
        self.sent.append((recipient.email, template, data))

    def templates(self):
        return [template for _, template, _ in self.sent]


@pytest.fixture
def app():
    """Create test app."""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def notifier(app):
    sink = RecordingSink()
    app.extensions['attendee.notifier'] = sink
    return sink


def make_user(name, rfid_tag, email, role=UserRole.MEMBER, status=UserStatus.ACTIVE, password='password123'):
    user = User(name=name, rfid_tag=rfid_tag, email=email, role=role, status=status)
    user.set_password(password)
    return user.save()


@pytest.fixture
def admin(app):
    return make_user('Ada Admin', 'ADMIN01', 'admin@example.com', role=UserRole.ADMIN)


@pytest.fixture
def mentor(app):
    return make_user('Mia Mentor', 'MENTOR01', 'mentor@example.com', role=UserRole.MENTOR)


@pytest.fixture
def member(app):
    return make_user('Max Member', 'T1', 'member@example.com')


@pytest.fixture
def inactive_member(app):
    return make_user('Ina Inactive', 'T9', 'inactive@example.com', status=UserStatus.INACTIVE)


def auth_headers(user):
    token = create_access_token(identity=str(user.id))
    return {'Authorization': f'Bearer {token}'}
