# Session tokens: issuing, rotating and resolving to users
import logging

from flask_jwt_extended import JWTManager, create_access_token, create_refresh_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from sqlalchemy.orm import defer

from errors import InvalidToken, Unauthorized, error_response
from models import db, User

logger = logging.getLogger(__name__)

jwt = JWTManager()


def issue_session_pair(user):
    """
    Sign a fresh access/refresh pair for ``user`` and remember the refresh
    token on the user row. Only the latest refresh token is ever accepted,
    so logging in again invalidates the previous session.
    """
    access_token = create_access_token(
        identity=str(user.id),
        additional_claims={"username": user.username, "email": user.email}
    )
    refresh_token = create_refresh_token(identity=str(user.id))

    user.refresh_token = refresh_token
    db.session.commit()
    return access_token, refresh_token


def rotate_session(refresh_token):
    if not refresh_token:
        raise Unauthorized('unauthorized request')

    try:
        claims = decode_token(refresh_token)
    except (JWTExtendedException, PyJWTError) as e:
        logger.info("Rejected refresh token: %s", e)
        raise InvalidToken('invalid refresh token')

    if claims.get('type') != 'refresh':
        raise InvalidToken('invalid refresh token')

    user = db.session.get(User, _user_id(claims))
    if user is None:
        raise InvalidToken('invalid refresh token')
    if user.refresh_token != refresh_token:
        logger.warning("Superseded refresh token presented for user %s", user.id)
        raise InvalidToken('refresh token is expired or used')

    logger.info("Rotated session for user %s", user.id)
    return issue_session_pair(user)


def lookup_identity(claims):
    """Load the user a token points at, without its secret columns."""
    user_id = _user_id(claims)
    if user_id is None:
        return None
    return db.session.get(
        User, user_id,
        options=[defer(User.password_hash), defer(User.refresh_token)]
    )


def revoke_session(user):
    user.refresh_token = None
    db.session.commit()


def _user_id(claims):
    try:
        return int(claims.get('sub'))
    except (TypeError, ValueError):
        return None


@jwt.user_lookup_loader
def _load_user(_jwt_header, jwt_data):
    return lookup_identity(jwt_data)


@jwt.user_lookup_error_loader
def _user_not_found(_jwt_header, _jwt_data):
    return error_response(401, 'invalid access token')


@jwt.unauthorized_loader
def _missing_token(reason):
    return error_response(401, 'unauthorized request', [reason])


@jwt.invalid_token_loader
def _invalid_token(reason):
    return error_response(401, 'invalid access token', [reason])


@jwt.expired_token_loader
def _expired_token(_jwt_header, _jwt_data):
    return error_response(401, 'access token expired')
