import pytest

from app import create_app
from models import db


@pytest.fixture
def app(tmp_path):
    app = create_app('testing')
    app.config['UPLOAD_FOLDER'] = str(tmp_path / 'uploads')
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    # Tokens are sent explicitly as Bearer headers
    return app.test_client(use_cookies=False)


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def signup(client):
    """Register a user and return (user, access_token, refresh_token)."""
    def _signup(username, password='secret123'):
        response = client.post('/api/auth/signup', json={
            "username": username,
            "email": f"{username}@x.com",
            "password": password
        })
        assert response.status_code == 201, response.get_json()
        data = response.get_json()["data"]
        return data["user"], data["accessToken"], data["refreshToken"]
    return _signup


@pytest.fixture
def create_post(client):
    def _create_post(token, content='hello world'):
        response = client.post('/api/post/create-post', json={"content": content},
                               headers=auth_headers(token))
        assert response.status_code == 201, response.get_json()
        return response.get_json()["data"]
    return _create_post
