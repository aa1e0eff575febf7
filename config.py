import os
from datetime import timedelta

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'change-this-secret-key-in-production'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///inventory.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session cookie
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SECURE = False  # Set to True in production with HTTPS
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_REFRESH_EACH_REQUEST = True

    # Session lifetimes (absolute from login)
    SESSION_LIFETIME = timedelta(days=1)
    REMEMBER_ME_LIFETIME = timedelta(days=30)
    # Upper bound on the signed cookie age, must cover the longest lifetime
    PERMANENT_SESSION_LIFETIME = REMEMBER_ME_LIFETIME

    # Auxiliary cookies
    LAST_LOGIN_COOKIE_MAX_AGE = int(timedelta(days=30).total_seconds())
    PREFERENCE_COOKIE_MAX_AGE = int(timedelta(days=365).total_seconds())

    # Account lockout
    LOGIN_MAX_ATTEMPTS = int(os.environ.get('LOGIN_MAX_ATTEMPTS', 5))
    LOGIN_LOCK_DURATION = timedelta(hours=int(os.environ.get('LOGIN_LOCK_HOURS', 2)))

    # Passwords
    MIN_PASSWORD_LENGTH = 6
    BCRYPT_LOG_ROUNDS = int(os.environ.get('BCRYPT_LOG_ROUNDS', 12))

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Startup
    SEED_DEFAULT_ADMIN = True
    DEFAULT_ADMIN_USERNAME = os.environ.get('DEFAULT_ADMIN_USERNAME', 'admin')
    DEFAULT_ADMIN_EMAIL = os.environ.get('DEFAULT_ADMIN_EMAIL', 'admin@inventory.local')
    DEFAULT_ADMIN_PASSWORD = os.environ.get('DEFAULT_ADMIN_PASSWORD', 'admin123')
