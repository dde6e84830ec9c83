from app.models import Notification, Session
from app.models.mixins import utcnow
from tests.conftest import bearer, login, register_user


def notify(app, user_id, title, type='system', read=False):
    with app.app_context():
        notification = app.extensions['database'].insert(Notification, {
            'user_id': user_id,
            'type': type,
            'title': title,
            'message': f'{title} body',
            'read_at': utcnow() if read else None,
        })
        return notification.id


def current_user_id(client, headers):
    return client.get('/auth/me', headers=headers).get_json()['data']['id']


# ==================== Notifications ====================

def test_notifications_are_private(client):
    assert client.get('/notifications').status_code == 401


def test_notification_listing_is_scoped_to_caller(app, client, user_headers):
    me = current_user_id(client, user_headers)
    other = register_user(client, 'bob', 'bob@example.com')
    notify(app, me, 'Welcome')
    notify(app, me, 'Seen', read=True)
    notify(app, me, 'Comment', type='comment')
    foreign = notify(app, other, 'Not yours')

    data = client.get('/notifications', headers=user_headers).get_json()['data']
    assert sorted(n['title'] for n in data['notifications']) == ['Comment', 'Seen', 'Welcome']
    assert data['unread_count'] == 2

    data = client.get('/notifications?unread=true', headers=user_headers).get_json()['data']
    assert sorted(n['title'] for n in data['notifications']) == ['Comment', 'Welcome']

    data = client.get('/notifications?type=comment', headers=user_headers).get_json()['data']
    assert [n['title'] for n in data['notifications']] == ['Comment']

    assert client.get(f'/notifications/{foreign}', headers=user_headers).status_code == 404
    assert client.put(f'/notifications/{foreign}/read', headers=user_headers).status_code == 404
    assert client.delete(f'/notifications/{foreign}', headers=user_headers).status_code == 404


def test_mark_as_read_and_delete(app, client, user_headers):
    me = current_user_id(client, user_headers)
    first = notify(app, me, 'First')
    notify(app, me, 'Second')
    notify(app, me, 'Third')

    res = client.put(f'/notifications/{first}/read', headers=user_headers)
    assert res.status_code == 200
    assert res.get_json()['data']['is_read'] is True

    res = client.put('/notifications/read-all', headers=user_headers)
    assert res.get_json()['data'] == {'updated': 2}
    data = client.get('/notifications', headers=user_headers).get_json()['data']
    assert data['unread_count'] == 0

    assert client.delete(f'/notifications/{first}', headers=user_headers).status_code == 200
    assert client.get(f'/notifications/{first}', headers=user_headers).status_code == 404


# ==================== Users ====================

def test_user_listing_requires_admin(client, user_headers, admin_headers):
    assert client.get('/users').status_code == 401
    assert client.get('/users', headers=user_headers).status_code == 403

    data = client.get('/users', headers=admin_headers).get_json()['data']
    assert sorted(u['username'] for u in data['users']) == ['alice', 'root']
    assert all('password_hash' not in u for u in data['users'])


def test_self_or_admin_can_view(client, user_headers, admin_headers):
    me = current_user_id(client, user_headers)
    other = register_user(client, 'bob', 'bob@example.com')

    assert client.get(f'/users/{me}', headers=user_headers).status_code == 200
    assert client.get(f'/users/{other}', headers=user_headers).status_code == 403
    assert client.get(f'/users/{other}', headers=admin_headers).status_code == 200
    assert client.get('/users/9999', headers=admin_headers).status_code == 404


def test_user_update_permissions(client, user_headers, admin_headers):
    me = current_user_id(client, user_headers)
    register_user(client, 'bob', 'bob@example.com')

    res = client.put(f'/users/{me}', headers=user_headers, json={'bio': 'Hi there'})
    assert res.status_code == 200
    assert res.get_json()['data']['bio'] == 'Hi there'

    res = client.put(f'/users/{me}', headers=user_headers, json={'permission_level': 1})
    assert res.status_code == 403

    res = client.put(f'/users/{me}', headers=user_headers, json={'username': 'bob'})
    assert res.status_code == 400

    res = client.put(f'/users/{me}', headers=admin_headers, json={'permission_level': 1})
    assert res.status_code == 200
    assert res.get_json()['data']['permission_level'] == 1


def test_deactivation_revokes_sessions(app, client, user_headers, admin_headers):
    me = current_user_id(client, user_headers)

    res = client.put(f'/users/{me}/deactivate', headers=user_headers)
    assert res.status_code == 403

    res = client.put(f'/users/{me}/deactivate', headers=admin_headers)
    assert res.status_code == 200
    assert res.get_json()['data']['is_active'] is False
    with app.app_context():
        assert app.extensions['database'].count(Session, user_id=me) == 0
    assert client.get('/auth/me', headers=user_headers).status_code == 401

    res = client.post('/auth/login', json={'identifier': 'alice', 'password': 'secret123'})
    assert res.status_code == 401

    res = client.put(f'/users/{me}/activate', headers=admin_headers)
    assert res.get_json()['data']['is_active'] is True
    login(client)


def test_delete_is_a_soft_deactivation(app, client, admin_headers):
    user_id = register_user(client)
    headers = bearer(login(client))

    assert client.delete(f'/users/{user_id}', headers=headers).status_code == 403
    assert client.delete(f'/users/{user_id}', headers=admin_headers).status_code == 200

    data = client.get(f'/users/{user_id}', headers=admin_headers).get_json()['data']
    assert data['is_active'] is False


def test_admin_cannot_deactivate_self(client, admin_headers):
    me = current_user_id(client, admin_headers)
    res = client.put(f'/users/{me}/deactivate', headers=admin_headers)
    assert res.status_code == 400


def test_non_admin_gets_403_for_any_other_user_id(client, user_headers):
    other = register_user(client, 'bob', 'bob@example.com')
    for user_id in (other, 9999):
        assert client.get(f'/users/{user_id}', headers=user_headers).status_code == 403
        res = client.put(f'/users/{user_id}', headers=user_headers, json={'bio': 'x'})
        assert res.status_code == 403
