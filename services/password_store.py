"""
Password hashing with bcrypt (salted per hash, work factor from BCRYPT_LOG_ROUNDS).
Only hashes are ever stored on the User row.
"""
from extensions import bcrypt
from errors import ValidationError

DEFAULT_MIN_LENGTH = 6


def hash_password(plaintext: str) -> str:
    return bcrypt.generate_password_hash(plaintext).decode('utf-8')


def verify_password(plaintext: str, password_hash: str) -> bool:
    """Constant-time comparison of a candidate against a stored hash."""
    if not plaintext or not password_hash:
        return False
    try:
        return bcrypt.check_password_hash(password_hash, plaintext)
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def check_new_password(password: str, confirm_password: str,
                       min_length: int = DEFAULT_MIN_LENGTH):
    """Raise ValidationError unless password is long enough and confirmed."""
    errors = []
    if password != confirm_password:
        errors.append('Passwords do not match')
    if len(password or '') < min_length:
        errors.append(f'Password must be at least {min_length} characters long')
    if errors:
        raise ValidationError(errors)
