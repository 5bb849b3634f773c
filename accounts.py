# Account operations: signup, login, password and profile fields
import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from credentials import issue_session_pair, revoke_session
from errors import Conflict, Unauthorized, ValidationError
from forms import MIN_PASSWORD_LENGTH, clean_text, signup_errors, validate_password
from models import db, User

logger = logging.getLogger(__name__)


def check_signup(data):
    """Validate a signup payload and make sure nobody holds its username or email.

    Returns the normalised (username, email).
    """
    errors = signup_errors(data)
    if errors:
        raise ValidationError('Validation Error', errors)

    username = clean_text(data['username'])
    email = clean_text(data['email']).lower()

    existing_user = User.query.filter(
        or_(User.username == username, User.email == email)
    ).first()
    if existing_user:
        raise Conflict('User with this email or username already exists')
    return username, email


def register_user(data, profile_image_url=None):
    """Create a user and open its first session. Returns (user, access, refresh)."""
    username, email = check_signup(data)

    user = User(
        username=username,
        email=email,
        password=data['password'],
        profile_image=profile_image_url
    )
    try:
        db.session.add(user)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict('User with this email or username already exists')

    access_token, refresh_token = issue_session_pair(user)
    logger.info("Registered user %s (%s)", user.id, user.username)
    return user, access_token, refresh_token


def authenticate(data):
    """Check credentials and open a new session. Returns (user, access, refresh)."""
    identifier = clean_text(data.get('username')) or clean_text(data.get('email')).lower()
    password = data.get('password')
    if not identifier or not password:
        raise ValidationError('Missing username or password')

    user = User.query.filter(
        or_(User.username == identifier, User.email == identifier)
    ).first()
    if not user or not user.is_password_correct(password):
        raise Unauthorized('Invalid credentials')

    access_token, refresh_token = issue_session_pair(user)
    logger.info("User %s logged in", user.id)
    return user, access_token, refresh_token


def logout(user):
    revoke_session(user)
    logger.info("User %s logged out", user.id)


def change_password(user, old_password, new_password):
    if not old_password or not new_password:
        raise ValidationError('Old and new password are required')
    if not user.is_password_correct(old_password):
        raise ValidationError('Invalid old password')
    if not validate_password(new_password):
        raise ValidationError('Validation Error', [f'"newPassword" must be at least {MIN_PASSWORD_LENGTH} characters long'])

    user.password = new_password
    db.session.commit()


def set_bio(user, bio):
    bio = clean_text(bio)
    if not bio:
        raise ValidationError('bio is required')
    user.bio = bio
    db.session.commit()
    return user


def set_profile_image(user, image_url):
    """Store a new profile image URL and return the one it replaced."""
    previous = user.profile_image
    user.profile_image = image_url
    db.session.commit()
    return previous
