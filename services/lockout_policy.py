"""
Account lockout decisions.

Pure logic over a user's login-attempt counter and lock-until timestamp.
Persistence of the counter lives in services/auth_service.py.
"""
from datetime import datetime, timedelta
from typing import Optional

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_LOCK_DURATION = timedelta(hours=2)


class LockoutPolicy:
    """
    Counts consecutive failures and locks the account for a fixed duration
    once the threshold is reached. A lock whose timestamp is in the past is
    treated as no lock at all, and the next failure starts a fresh count.
    """

    def __init__(self, max_attempts: int = DEFAULT_MAX_ATTEMPTS,
                 lock_duration: timedelta = DEFAULT_LOCK_DURATION):
        self.max_attempts = max_attempts
        self.lock_duration = lock_duration

    def init_app(self, app):
        self.max_attempts = app.config.get('LOGIN_MAX_ATTEMPTS', DEFAULT_MAX_ATTEMPTS)
        self.lock_duration = app.config.get('LOGIN_LOCK_DURATION', DEFAULT_LOCK_DURATION)

    def is_locked(self, lock_until: Optional[datetime], now: datetime = None) -> bool:
        now = now or datetime.utcnow()
        return lock_until is not None and lock_until > now

    def lock_expired(self, lock_until: Optional[datetime], now: datetime = None) -> bool:
        """True when a lock was set but has already elapsed."""
        now = now or datetime.utcnow()
        return lock_until is not None and lock_until <= now

    def should_lock(self, attempts: int, lock_until: Optional[datetime],
                    now: datetime = None) -> bool:
        return attempts >= self.max_attempts and not self.is_locked(lock_until, now)

    def lock_until_from(self, now: datetime = None) -> datetime:
        now = now or datetime.utcnow()
        return now + self.lock_duration

    def remaining_attempts(self, attempts: int) -> int:
        return max(0, self.max_attempts - attempts)
