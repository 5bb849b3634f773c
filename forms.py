# Input validation helpers
import re

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
USERNAME_PATTERN = re.compile(r'^[A-Za-z0-9_.]{3,30}$')
MIN_PASSWORD_LENGTH = 6


def clean_text(value):
    """Return the stripped string, or an empty string for missing/non-string input."""
    if not isinstance(value, str):
        return ''
    return value.strip()


def validate_email(email):
    return isinstance(email, str) and bool(EMAIL_PATTERN.match(email))


def validate_username(username):
    return isinstance(username, str) and bool(USERNAME_PATTERN.match(username))


def validate_password(password):
    return isinstance(password, str) and len(password) >= MIN_PASSWORD_LENGTH


def signup_errors(data):
    """Collect every problem with a signup payload instead of stopping at the first."""
    errors = []
    username = clean_text(data.get('username'))
    email = clean_text(data.get('email'))
    password = data.get('password')

    if not username:
        errors.append('"username" is required')
    elif not validate_username(username):
        errors.append('"username" must be 3-30 letters, digits, "_" or "."')

    if not email:
        errors.append('"email" is required')
    elif not validate_email(email):
        errors.append('"email" must be a valid email')

    if not password:
        errors.append('"password" is required')
    elif not validate_password(password):
        errors.append(f'"password" must be at least {MIN_PASSWORD_LENGTH} characters long')

    return errors
