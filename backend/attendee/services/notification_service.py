"""Outbound notifications for the daily attendance jobs.

Jobs call ``send(recipient, template, data)`` on whichever sink the app
factory attached to ``app.extensions['attendee.notifier']``. Templates are
rendered to a subject, an HTML body and a plain-text body.
"""
import logging
import smtplib
from dataclasses import dataclass
from datetime import date, datetime
from email.message import EmailMessage
from html import escape
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol

from attendee.exceptions import NotificationError

logger = logging.getLogger(__name__)

INCOMPLETE_SESSION = 'incomplete_session'
LOW_ATTENDANCE = 'low_attendance'
LOW_ATTENDANCE_REPORT = 'low_attendance_report'


@dataclass
class Recipient:
    """Addressee of a notification; users satisfy the same shape."""
    name: str
    email: Optional[str]


class NotificationSink(Protocol):
    def send(self, recipient: Any, template: str, data: Mapping[str, Any]) -> None:
        ...


def _day_label(value) -> str:
    if isinstance(value, (date, datetime)):
        return value.strftime('%a %b %d %Y')
    return str(value)


def _clock(value) -> str:
    if isinstance(value, datetime):
        return value.strftime('%H:%M')
    return str(value)


def _join_text(*lines: str) -> str:
    return "\n".join(line for line in lines if line)


def _render_incomplete_session(name: str, data: Mapping[str, Any]) -> Dict[str, str]:
    day = _day_label(data['date'])
    entries = [_clock(t) for t in data.get('sessions', [])]
    subject = f"Incomplete Session Alert - {day}"
    items = "".join(f"<li>Entry at {escape(e)} (no exit recorded)</li>" for e in entries)
    body = (
        f"<p>Hello {escape(name)},</p>"
        f"<p>You have incomplete sessions that were removed at "
        f"{escape(str(data.get('cutoff', '22:00')))} on {escape(day)}.</p>"
        f"<ul>{items}</ul>"
        f"<p>Please remember to scan out when you leave. "
        f"Contact an administrator if you need the time restored.</p>"
    )
    text = _join_text(
        f"Hello {name},",
        f"You have incomplete sessions that were removed at {data.get('cutoff', '22:00')} on {day}.",
        *[f"- Entry at {e} (no exit recorded)" for e in entries],
        "Please remember to scan out when you leave.",
    )
    return {'subject': subject, 'html': body, 'text': text}


def _render_low_attendance(name: str, data: Mapping[str, Any]) -> Dict[str, str]:
    day = _day_label(data['date'])
    hours = float(data.get('hours', 0.0))
    threshold = float(data.get('threshold', 0.0))
    subject = f"Low Attendance Alert - {day}"
    body = (
        f"<p>Hello {escape(name)},</p>"
        f"<p>Your attendance on {escape(day)} was <strong>{hours:.2f} hours</strong>, "
        f"below the required {threshold:.1f} hours.</p>"
        f"<p>You were short by {max(threshold - hours, 0.0):.2f} hours.</p>"
    )
    text = _join_text(
        f"Hello {name},",
        f"Your attendance on {day} was {hours:.2f} hours, below the required {threshold:.1f} hours.",
        f"You were short by {max(threshold - hours, 0.0):.2f} hours.",
    )
    return {'subject': subject, 'html': body, 'text': text}


def _render_low_attendance_report(name: str, data: Mapping[str, Any]) -> Dict[str, str]:
    day = _day_label(data['date'])
    users: List[Mapping[str, Any]] = list(data.get('users', []))
    threshold = float(data.get('threshold', 0.0))
    subject = f"Daily Low Attendance Report - {day}"
    if users:
        rows = "".join(
            f"<tr><td>{escape(u['name'])}</td><td>{escape(u.get('email') or '-')}</td>"
            f"<td>{u['hours']:.2f}</td><td>{u['deficit']:.2f}</td></tr>"
            for u in users
        )
        table = (
            "<table><tr><th>Name</th><th>Email</th><th>Hours</th><th>Short by</th></tr>"
            f"{rows}</table>"
        )
    else:
        table = "<p>All users met the attendance requirement.</p>"
    body = (
        f"<p>Low attendance report for {escape(day)} (threshold {threshold:.1f} hours).</p>"
        f"<p><strong>Users checked:</strong> {data.get('total_users', 0)}<br>"
        f"<strong>Users with low attendance:</strong> {len(users)}</p>"
        f"{table}"
    )
    text = _join_text(
        f"Low attendance report for {day} (threshold {threshold:.1f} hours).",
        f"Users checked: {data.get('total_users', 0)}",
        f"Users with low attendance: {len(users)}",
        *[f"- {u['name']}: {u['hours']:.2f}h (short by {u['deficit']:.2f}h)" for u in users],
    )
    return {'subject': subject, 'html': body, 'text': text}


TEMPLATES: Dict[str, Callable[[str, Mapping[str, Any]], Dict[str, str]]] = {
    INCOMPLETE_SESSION: _render_incomplete_session,
    LOW_ATTENDANCE: _render_low_attendance,
    LOW_ATTENDANCE_REPORT: _render_low_attendance_report,
}


def render(template: str, recipient: Any, data: Mapping[str, Any]) -> Dict[str, str]:
    try:
        renderer = TEMPLATES[template]
    except KeyError:
        raise NotificationError(f"Unknown notification template: {template}")
    return renderer(getattr(recipient, 'name', '') or '', data)


class EmailNotificationSink:
    """Delivers rendered templates over SMTP."""

    def __init__(self, host: str, port: int = 587, sender: str = None, username: str = None,
                 password: str = None, use_tls: bool = True, timeout: int = 15):
        self.host = host
        self.port = port
        self.sender = sender or username
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> 'EmailNotificationSink':
        return cls(
            host=config['MAIL_SERVER'],
            port=config.get('MAIL_PORT', 587),
            sender=config.get('MAIL_SENDER'),
            username=config.get('MAIL_USERNAME'),
            password=config.get('MAIL_PASSWORD'),
            use_tls=config.get('MAIL_USE_TLS', True),
            timeout=config.get('MAIL_TIMEOUT', 15),
        )

    def send(self, recipient: Any, template: str, data: Mapping[str, Any]) -> None:
        if not getattr(recipient, 'email', None):
            raise NotificationError(f"Recipient {getattr(recipient, 'name', '?')} has no email address")
        if not self.sender:
            raise NotificationError("MAIL_SENDER not configured")

        content = render(template, recipient, data)
        message = EmailMessage()
        message['Subject'] = content['subject']
        message['From'] = self.sender
        message['To'] = recipient.email
        message.set_content(content['text'])
        message.add_alternative(content['html'], subtype='html')

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"Failed to send {template} to {recipient.email}: {e}")

        logger.info('Sent %s notification to %s', template, recipient.email)


class LoggingNotificationSink:
    """Used when no mail server is configured: logs what would have been sent."""

    def send(self, recipient: Any, template: str, data: Mapping[str, Any]) -> None:
        content = render(template, recipient, data)
        logger.info('Notification (not delivered) to %s <%s>: %s',
                    getattr(recipient, 'name', ''), getattr(recipient, 'email', None),
                    content['subject'])


def build_notification_sink(config: Mapping[str, Any]) -> NotificationSink:
    if config.get('MAIL_SERVER'):
        return EmailNotificationSink.from_config(config)
    logger.info('MAIL_SERVER not configured, notifications will only be logged')
    return LoggingNotificationSink()
