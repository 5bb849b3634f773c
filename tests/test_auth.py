"""Tests for signup, login, sessions and profile fields."""
from io import BytesIO

import pytest
from conftest import auth_headers

import accounts
import credentials
from errors import Conflict, InvalidToken
from media import media
from models import db, User


def set_cookies(response):
    return response.headers.getlist('Set-Cookie')


def test_signup_returns_user_without_secrets(client):
    response = client.post('/api/auth/signup', json={
        "username": "ana",
        "email": "ana@x.com",
        "password": "secret123"
    })

    assert response.status_code == 201
    body = response.get_json()
    assert body["success"] is True
    user = body["data"]["user"]
    assert user["username"] == "ana"
    assert "password" not in user
    assert "passwordHash" not in user
    assert "refreshToken" not in user

    cookies = set_cookies(response)
    assert any(c.startswith('accessToken=') for c in cookies)
    assert any(c.startswith('refreshToken=') for c in cookies)
    for cookie in cookies:
        assert 'HttpOnly' in cookie
        assert 'Secure' in cookie


def test_signup_hashes_password(app, signup):
    signup('ana')
    with app.app_context():
        user = User.query.filter_by(username='ana').first()
        assert user.password_hash != 'secret123'
        assert user.is_password_correct('secret123')
        assert not user.is_password_correct('wrong')


def test_signup_collects_validation_errors(client):
    response = client.post('/api/auth/signup', json={"username": "a", "email": "nope"})

    assert response.status_code == 400
    body = response.get_json()
    assert body["success"] is False
    assert body["message"] == 'Validation Error'
    assert len(body["errors"]) == 3


def test_signup_duplicate_username_or_email_conflicts(client, signup):
    signup('ana')

    same_name = client.post('/api/auth/signup', json={
        "username": "ana", "email": "other@x.com", "password": "secret123"
    })
    same_email = client.post('/api/auth/signup', json={
        "username": "other", "email": "ana@x.com", "password": "secret123"
    })

    assert same_name.status_code == 409
    assert same_email.status_code == 409
    assert same_name.get_json()["errors"] == []


def signup_form(username, email):
    return {
        "username": username,
        "email": email,
        "password": "secret123",
        "profileImage": (BytesIO(b'img'), 'me.png')
    }


def test_signup_with_profile_image(client, monkeypatch):
    url = "https://res.cloudinary.com/demo/image/upload/v1/me.png"
    monkeypatch.setattr(media, 'upload', lambda path: {"url": url, "publicId": "me"})

    response = client.post('/api/auth/signup', data=signup_form('ana', 'ana@x.com'),
                           content_type='multipart/form-data')

    assert response.status_code == 201
    assert response.get_json()["data"]["user"]["profileImage"] == url


def test_signup_conflict_does_not_upload(client, signup, monkeypatch):
    signup('ana')
    uploaded = []
    monkeypatch.setattr(media, 'upload', lambda path: uploaded.append(path))

    response = client.post('/api/auth/signup', data=signup_form('ana', 'other@x.com'),
                           content_type='multipart/form-data')

    assert response.status_code == 409
    assert uploaded == []


def test_signup_invalid_payload_does_not_upload(client, monkeypatch):
    uploaded = []
    monkeypatch.setattr(media, 'upload', lambda path: uploaded.append(path))

    response = client.post('/api/auth/signup', data=signup_form('a', 'nope'),
                           content_type='multipart/form-data')

    assert response.status_code == 400
    assert uploaded == []


def test_signup_removes_image_when_write_fails(client, monkeypatch):
    url = "https://res.cloudinary.com/demo/image/upload/v1/me.png"
    removed = []
    monkeypatch.setattr(media, 'upload', lambda path: {"url": url, "publicId": "me"})
    monkeypatch.setattr(media, 'remove', removed.append)

    def racing_register_user(data, profile_image_url=None):
        raise Conflict('User with this email or username already exists')

    monkeypatch.setattr(accounts, 'register_user', racing_register_user)

    response = client.post('/api/auth/signup', data=signup_form('ana', 'ana@x.com'),
                           content_type='multipart/form-data')

    assert response.status_code == 409
    assert removed == [url]


def test_login_issues_fresh_pair(client, signup):
    _, first_access, first_refresh = signup('ana')

    response = client.post('/api/auth/login', json={"username": "ana", "password": "secret123"})

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["accessToken"] != first_access
    assert data["refreshToken"] != first_refresh
    assert len(set_cookies(response)) == 2


def test_login_by_email(client, signup):
    signup('ana')
    response = client.post('/api/auth/login', json={"email": "ana@x.com", "password": "secret123"})
    assert response.status_code == 200


def test_login_wrong_password_sets_no_cookies(client, signup):
    signup('ana')

    response = client.post('/api/auth/login', json={"username": "ana", "password": "nope123"})

    assert response.status_code == 401
    assert response.get_json()["success"] is False
    assert set_cookies(response) == []


def test_protected_route_requires_token(client):
    response = client.get('/api/auth/getCurrentUser')
    assert response.status_code == 401
    assert response.get_json()["message"] == 'unauthorized request'


def test_protected_route_rejects_garbage_token(client):
    response = client.get('/api/auth/getCurrentUser', headers=auth_headers('not-a-token'))
    assert response.status_code == 401
    assert response.get_json()["success"] is False


def test_protected_route_rejects_refresh_token(client, signup):
    _, _, refresh = signup('ana')

    response = client.get('/api/auth/getCurrentUser', headers=auth_headers(refresh))

    assert response.status_code == 401
    assert response.get_json()["message"] == 'invalid access token'


def test_get_current_user(client, signup):
    _, access, _ = signup('ana')

    response = client.get('/api/auth/getCurrentUser', headers=auth_headers(access))

    assert response.status_code == 200
    assert response.get_json()["data"]["email"] == 'ana@x.com'


def test_access_cookie_is_accepted(app, signup):
    _, access, _ = signup('ana')
    cookie_client = app.test_client()
    cookie_client.set_cookie('accessToken', access)

    response = cookie_client.get('/api/auth/getCurrentUser')

    assert response.status_code == 200


def test_deleted_user_token_is_rejected(app, client, signup):
    _, access, _ = signup('ana')
    with app.app_context():
        User.query.filter_by(username='ana').delete()
        db.session.commit()

    response = client.get('/api/auth/getCurrentUser', headers=auth_headers(access))

    assert response.status_code == 401


def test_refresh_rotates_and_rejects_superseded_token(client, signup):
    _, _, refresh = signup('ana')

    first = client.post('/api/auth/refreshToken', json={"refreshToken": refresh})
    assert first.status_code == 200
    rotated = first.get_json()["data"]["refreshToken"]
    assert rotated != refresh

    replay = client.post('/api/auth/refreshToken', json={"refreshToken": refresh})
    assert replay.status_code == 401

    second = client.post('/api/auth/refreshToken', json={"refreshToken": rotated})
    assert second.status_code == 200


def test_refresh_reads_cookie(app, signup):
    _, _, refresh = signup('ana')
    cookie_client = app.test_client()
    cookie_client.set_cookie('refreshToken', refresh)

    response = cookie_client.post('/api/auth/refreshToken')

    assert response.status_code == 200


def test_refresh_without_token_is_unauthorized(client):
    response = client.post('/api/auth/refreshToken')
    assert response.status_code == 401


def test_access_token_cannot_refresh(client, signup):
    _, access, _ = signup('ana')
    response = client.post('/api/auth/refreshToken', json={"refreshToken": access})
    assert response.status_code == 401


def test_new_login_invalidates_previous_refresh_token(client, signup):
    _, _, refresh = signup('ana')
    client.post('/api/auth/login', json={"username": "ana", "password": "secret123"})

    response = client.post('/api/auth/refreshToken', json={"refreshToken": refresh})

    assert response.status_code == 401


def test_logout_clears_session(app, client, signup):
    _, access, refresh = signup('ana')

    response = client.post('/api/auth/logout', headers=auth_headers(access))

    assert response.status_code == 200
    cookies = set_cookies(response)
    assert any(c.startswith('accessToken=;') for c in cookies)
    assert any(c.startswith('refreshToken=;') for c in cookies)
    with app.app_context():
        assert User.query.filter_by(username='ana').first().refresh_token is None

    replay = client.post('/api/auth/refreshToken', json={"refreshToken": refresh})
    assert replay.status_code == 401


def test_change_password(client, signup):
    _, access, _ = signup('ana')

    wrong = client.post('/api/auth/changePassword', headers=auth_headers(access),
                        json={"oldPassword": "nope123", "newPassword": "brandnew1"})
    assert wrong.status_code == 400

    ok = client.post('/api/auth/changePassword', headers=auth_headers(access),
                     json={"oldPassword": "secret123", "newPassword": "brandnew1"})
    assert ok.status_code == 200

    old_login = client.post('/api/auth/login', json={"username": "ana", "password": "secret123"})
    new_login = client.post('/api/auth/login', json={"username": "ana", "password": "brandnew1"})
    assert old_login.status_code == 401
    assert new_login.status_code == 200


def test_add_and_update_bio(client, signup):
    _, access, _ = signup('ana')

    added = client.post('/api/auth/addBio', headers=auth_headers(access), json={"bio": "hi there"})
    assert added.status_code == 201
    assert added.get_json()["data"]["bio"] == 'hi there'

    updated = client.patch('/api/auth/updateBio', headers=auth_headers(access), json={"bio": "  new  "})
    assert updated.status_code == 200
    assert updated.get_json()["data"]["bio"] == 'new'

    empty = client.patch('/api/auth/updateBio', headers=auth_headers(access), json={"bio": "   "})
    assert empty.status_code == 400


def test_unknown_route_keeps_envelope(client):
    response = client.get('/api/does-not-exist')
    assert response.status_code == 404
    assert response.get_json()["success"] is False


class TestCredentialService:
    def test_lookup_identity_returns_user_without_secrets(self, app, signup):
        user, _, _ = signup('ana')
        with app.app_context():
            found = credentials.lookup_identity({"sub": str(user["id"])})
            assert found.username == 'ana'
            assert 'password_hash' not in found.__dict__
            assert 'refresh_token' not in found.__dict__

    @pytest.mark.parametrize("sub", ["999", "not-a-number", None])
    def test_lookup_identity_unknown_subject(self, app, signup, sub):
        signup('ana')
        with app.app_context():
            assert credentials.lookup_identity({"sub": sub}) is None

    def test_rotate_session_rejects_superseded_token(self, app, signup):
        _, _, refresh = signup('ana')
        with app.app_context():
            credentials.rotate_session(refresh)
            with pytest.raises(InvalidToken) as excinfo:
                credentials.rotate_session(refresh)
            assert excinfo.value.status_code == 401
