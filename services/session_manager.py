"""
Session lifecycle: Anonymous -> Active(expiry) -> Anonymous.

The authenticated state is an explicit SessionRecord stored under one key of
the signed cookie session. Its expiry is absolute from login and depends on
the remember-me choice.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from flask.sessions import SecureCookieSessionInterface

RECORD_KEY = 'user'
SESSION_ID_KEY = 'sid'
RETURN_TO_KEY = 'return_to'

DEFAULT_LIFETIME = timedelta(days=1)
DEFAULT_REMEMBER_LIFETIME = timedelta(days=30)


@dataclass
class SessionRecord:
    session_id: str
    user_id: int
    username: str
    email: str
    full_name: str
    role: str
    login_time: datetime
    expires_at: datetime
    remember: bool = False

    @property
    def display_name(self) -> str:
        return self.full_name or self.username

    @property
    def is_admin(self) -> bool:
        return self.role == 'admin'

    def is_expired(self, now: datetime = None) -> bool:
        now = now or datetime.utcnow()
        return now >= self.expires_at

    def to_dict(self) -> dict:
        return {
            'session_id': self.session_id,
            'user_id': self.user_id,
            'username': self.username,
            'email': self.email,
            'full_name': self.full_name,
            'role': self.role,
            'login_time': self.login_time.isoformat(),
            'expires_at': self.expires_at.isoformat(),
            'remember': self.remember,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SessionRecord':
        return cls(
            session_id=data['session_id'],
            user_id=data['user_id'],
            username=data['username'],
            email=data['email'],
            full_name=data.get('full_name') or '',
            role=data.get('role', 'user'),
            login_time=datetime.fromisoformat(data['login_time']),
            expires_at=datetime.fromisoformat(data['expires_at']),
            remember=bool(data.get('remember')),
        )


class SessionManager:
    def __init__(self, lifetime: timedelta = DEFAULT_LIFETIME,
                 remember_lifetime: timedelta = DEFAULT_REMEMBER_LIFETIME):
        self.lifetime = lifetime
        self.remember_lifetime = remember_lifetime

    def init_app(self, app):
        self.lifetime = app.config.get('SESSION_LIFETIME', DEFAULT_LIFETIME)
        self.remember_lifetime = app.config.get('REMEMBER_ME_LIFETIME', DEFAULT_REMEMBER_LIFETIME)
        app.session_interface = RecordExpirySessionInterface()

    def lifetime_for(self, remember: bool) -> timedelta:
        return self.remember_lifetime if remember else self.lifetime

    def session_id(self, session) -> str:
        """Opaque identifier for the current browser session."""
        if SESSION_ID_KEY not in session:
            session[SESSION_ID_KEY] = uuid.uuid4().hex
        return session[SESSION_ID_KEY]

    def establish(self, session, user, remember: bool = False,
                  now: datetime = None) -> SessionRecord:
        """Start a fresh authenticated session for user."""
        now = now or datetime.utcnow()
        # Never carry pre-login state (or id) into the authenticated session
        session.clear()
        record = SessionRecord(
            session_id=uuid.uuid4().hex,
            user_id=user.id,
            username=user.username,
            email=user.email,
            full_name=user.full_name,
            role=user.role,
            login_time=now,
            expires_at=now + self.lifetime_for(remember),
            remember=remember,
        )
        session[SESSION_ID_KEY] = record.session_id
        session[RECORD_KEY] = record.to_dict()
        session.permanent = True
        return record

    def load(self, session, now: datetime = None) -> Optional[SessionRecord]:
        """Return the active record, or None. An expired record ends the session."""
        data = session.get(RECORD_KEY)
        if not data:
            return None
        try:
            record = SessionRecord.from_dict(data)
        except (KeyError, TypeError, ValueError):
            session.clear()
            return None
        if record.is_expired(now):
            session.clear()
            return None
        return record

    def update(self, session, record: SessionRecord):
        session[RECORD_KEY] = record.to_dict()

    def terminate(self, session):
        session.clear()

    def remember_return_to(self, session, path: str):
        if is_safe_return_path(path):
            session[RETURN_TO_KEY] = path

    def pop_return_to(self, session, default: str) -> str:
        """Recorded return-to target (consumed), else default."""
        target = session.pop(RETURN_TO_KEY, None)
        if target and is_safe_return_path(target):
            return target
        return default


def is_safe_return_path(path) -> bool:
    """Only same-site absolute paths are valid redirect targets."""
    return bool(path) and path.startswith('/') and not path.startswith('//') \
        and '\\' not in path


class RecordExpirySessionInterface(SecureCookieSessionInterface):
    """Cookie expiry follows the session record instead of one app-wide lifetime."""

    def get_expiration_time(self, app, session):
        data = session.get(RECORD_KEY)
        if session.permanent and data and data.get('expires_at'):
            try:
                return datetime.fromisoformat(data['expires_at'])
            except (TypeError, ValueError):
                return None
        return super().get_expiration_time(app, session)
