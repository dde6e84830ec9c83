import pytest

from app import create_app
from app.extensions import db


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_service(app):
    return app.extensions['auth_service']


@pytest.fixture
def database(app):
    return app.extensions['database']


def register_user(client, username='alice', email='alice@example.com', password='secret123'):
    res = client.post('/auth/register', json={'username': username, 'email': email, 'password': password})
    assert res.status_code == 201, res.get_data(as_text=True)
    return res.get_json()['data']['user_id']


def login(client, identifier='alice', password='secret123'):
    res = client.post('/auth/login', json={'identifier': identifier, 'password': password})
    assert res.status_code == 200, res.get_data(as_text=True)
    return res.get_json()['data']['token']


def bearer(token):
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def user_headers(client):
    register_user(client)
    return bearer(login(client))


@pytest.fixture
def admin_headers(app, client, auth_service):
    with app.app_context():
        auth_service.register({
            'username': 'root',
            'email': 'root@example.com',
            'password': 'rootpass1',
            'permission_level': 1,
        })
    return bearer(login(client, 'root', 'rootpass1'))
