"""
Registration, authentication and profile updates.

Authentication runs lookup -> lock check -> active check -> password check,
so a locked account is rejected even when the password is correct.
"""
import logging
import re
from datetime import datetime

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from extensions import db, lockout_policy
from errors import (
    ValidationError, NotFound, InvalidCredentials, LockedAccount, InactiveAccount
)
from models.user import User, ROLES
from services.password_store import hash_password, verify_password, check_new_password

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r'^[A-Za-z0-9_]{3,30}$')
EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def _clean(value):
    return (value or '').strip()


def _check_email(email, errors):
    if not EMAIL_PATTERN.match(email):
        errors.append('Please enter a valid email address')


def register_user(username, email, password, confirm_password, full_name, role='user'):
    """Create a User. Raises ValidationError; no row is written on failure."""
    username = _clean(username)
    email = _clean(email).lower()
    full_name = _clean(full_name)

    if not username or not email or not password or not confirm_password or not full_name:
        raise ValidationError('All fields are required')

    errors = []
    if not USERNAME_PATTERN.match(username):
        errors.append('Username must be 3-30 letters, digits or underscores')
    _check_email(email, errors)
    if role not in ROLES:
        errors.append('Invalid role')
    if errors:
        raise ValidationError(errors)

    check_new_password(password, confirm_password,
                       current_app.config.get('MIN_PASSWORD_LENGTH', 6))

    existing = User.query.filter(
        or_(User.username == username, User.email == email)
    ).first()
    if existing:
        raise ValidationError('Username or email already exists')

    user = User(
        username=username,
        email=email,
        password=hash_password(password),
        full_name=full_name,
        role=role,
        is_active=True,
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration
        db.session.rollback()
        raise ValidationError('Username or email already exists')

    logger.info("Registered user %s", user.username)
    return user


def find_by_identifier(identifier):
    identifier = _clean(identifier)
    if not identifier:
        return None
    return User.query.filter(
        or_(User.username == identifier, User.email == identifier.lower())
    ).first()


def record_failed_login(user, now=None):
    """Persist a failed attempt immediately and lock once the threshold is hit."""
    now = now or datetime.utcnow()
    if lockout_policy.lock_expired(user.lock_until, now):
        # The old lock ran out, start counting again
        User.query.filter_by(id=user.id).update(
            {User.login_attempts: 1, User.lock_until: None},
            synchronize_session=False
        )
    else:
        # Increment in SQL so concurrent failures are all counted
        User.query.filter_by(id=user.id).update(
            {User.login_attempts: User.login_attempts + 1},
            synchronize_session=False
        )
    db.session.commit()
    db.session.refresh(user)

    if lockout_policy.should_lock(user.login_attempts, user.lock_until, now):
        user.lock_until = lockout_policy.lock_until_from(now)
        db.session.commit()
        logger.warning("Locked account %s until %s after %d failed attempts",
                       user.username, user.lock_until.isoformat(), user.login_attempts)
    else:
        logger.info("Failed login for %s (%d attempt(s) left before lock)",
                    user.username, lockout_policy.remaining_attempts(user.login_attempts))


def record_successful_login(user, now=None):
    now = now or datetime.utcnow()
    user.login_attempts = 0
    user.lock_until = None
    user.last_login = now
    db.session.commit()


def authenticate(identifier, password, now=None):
    """Return the User for valid credentials, else raise a taxonomy error."""
    now = now or datetime.utcnow()
    if not _clean(identifier) or not password:
        raise ValidationError('Username/Email and password are required')

    user = find_by_identifier(identifier)
    if user is None:
        raise InvalidCredentials()

    if lockout_policy.is_locked(user.lock_until, now):
        logger.warning("Login rejected for locked account %s", user.username)
        raise LockedAccount(user.lock_until)

    if not user.is_active:
        raise InactiveAccount()

    if not verify_password(password, user.password):
        record_failed_login(user, now)
        raise InvalidCredentials()

    record_successful_login(user, now)
    logger.info("User %s logged in", user.username)
    return user


def update_profile(user_id, full_name, email):
    """Update own full name and email; email stays unique."""
    full_name = _clean(full_name)
    email = _clean(email).lower()
    if not full_name or not email:
        raise ValidationError('Full name and email are required')

    errors = []
    _check_email(email, errors)
    if errors:
        raise ValidationError(errors)

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound('User', user_id)

    taken = User.query.filter(User.email == email, User.id != user.id).first()
    if taken:
        raise ValidationError('Email is already taken by another user')

    user.full_name = full_name
    user.email = email
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError('Email is already taken by another user')

    logger.info("Profile updated for %s", user.username)
    return user


def ensure_default_admin(app):
    """Create the configured admin account when no admin exists yet."""
    if User.query.filter_by(role='admin').count() > 0:
        return None
    try:
        admin_user = User(
            username=app.config['DEFAULT_ADMIN_USERNAME'],
            email=app.config['DEFAULT_ADMIN_EMAIL'],
            password=hash_password(app.config['DEFAULT_ADMIN_PASSWORD']),
            full_name='Administrator',
            role='admin',
            is_active=True
        )
        db.session.add(admin_user)
        db.session.commit()
        logger.info("Default admin user created.")
        return admin_user
    except IntegrityError:
        db.session.rollback()
        logger.warning("Admin user already exists. Skipping creation.")
        return None
