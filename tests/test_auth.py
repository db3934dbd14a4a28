import pytest
from flask_jwt_extended import decode_token

from models import db, User, APPROVED, REJECTED


def _login(client, email='ana@example.com', password='s3cret', url='/api/login'):
    return client.post(url, json={'email': email, 'password': password})


def test_approved_user_gets_token(app, client, make_user):
    user_id = make_user(status=APPROVED, is_verified=True)

    resp = _login(client)

    assert resp.status_code == 200
    body = resp.get_json()
    assert body['user']['id'] == user_id
    assert body['user']['role'] == 'user'
    with app.app_context():
        claims = decode_token(body['token'])
    assert claims['sub'] == str(user_id)
    assert claims['role'] == 'user'


def test_login_email_is_case_insensitive(client, make_user):
    make_user(status=APPROVED, is_verified=True)

    assert _login(client, email='  Ana@Example.com ').status_code == 200


@pytest.mark.parametrize('status,message', [
    ('pending', 'Your account is pending approval. Please wait for administrator approval.'),
    (REJECTED, 'Your account has been rejected. Please contact administrator.'),
])
def test_undecided_or_rejected_user_cannot_log_in(client, make_user, status, message):
    make_user(status=status)

    resp = _login(client)

    assert resp.status_code == 401
    assert resp.get_json()['message'] == message


def test_wrong_password_does_not_reveal_status(client, make_user):
    make_user(status=REJECTED)

    resp = _login(client, password='nope')

    assert resp.status_code == 401
    assert resp.get_json()['message'] == 'Invalid credentials'


def test_admin_cannot_use_user_login(client, make_user):
    make_user(email='root@example.com', is_admin=True, status=APPROVED, is_verified=True)

    resp = _login(client, email='root@example.com')

    assert resp.status_code == 401


def test_admin_login(app, client, make_user):
    make_user(email='root@example.com', is_admin=True, status=APPROVED, is_verified=True)

    resp = _login(client, email='root@example.com', url='/api/admin/login')

    assert resp.status_code == 200
    with app.app_context():
        assert decode_token(resp.get_json()['token'])['role'] == 'admin'


def test_admin_login_rejects_unapproved_admin(client, make_user):
    make_user(email='root@example.com', is_admin=True)

    resp = _login(client, email='root@example.com', url='/api/admin/login')

    assert resp.status_code == 401
    assert resp.get_json()['message'] == 'Admin account not approved yet'


def test_admin_login_rejects_regular_user(client, make_user):
    make_user(status=APPROVED, is_verified=True)

    resp = _login(client, url='/api/admin/login')

    assert resp.status_code == 401
    assert resp.get_json()['message'] == 'Invalid admin credentials'


def test_admin_route_without_token(client):
    resp = client.get('/api/admin/users')

    assert resp.status_code == 401
    assert resp.get_json()['success'] is False


def test_admin_route_with_garbage_token(client):
    resp = client.get('/api/admin/users', headers={'Authorization': 'Bearer not-a-jwt'})

    assert resp.status_code == 401


def test_admin_route_with_user_token_is_forbidden(client, make_user):
    make_user(status=APPROVED, is_verified=True)
    token = _login(client).get_json()['token']

    resp = client.get('/api/admin/users', headers={'Authorization': f'Bearer {token}'})

    assert resp.status_code == 403
    assert resp.get_json() == {'success': False, 'message': 'Unauthorized'}


def test_demoted_admin_token_stops_working(app, client, admin_headers):
    with app.app_context():
        admin = User.query.filter_by(email='root@example.com').one()
        admin.status = REJECTED
        db.session.commit()

    assert client.get('/api/admin/users', headers=admin_headers).status_code == 403


def test_direct_account_creation_requires_admin(app, client, admin_headers):
    payload = {'name': 'Cleo', 'email': 'cleo@example.com', 'password': 'pw'}

    assert client.post('/api/create-user', json=payload).status_code == 401

    resp = client.post('/api/create-user', json=payload, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.get_json()['user']['status'] == APPROVED
    assert _login(client, email='cleo@example.com', password='pw').status_code == 200

    resp = client.post('/api/create-admin', json=dict(payload, email='dora@example.com'), headers=admin_headers)
    assert resp.get_json()['admin']['isAdmin'] is True


def test_api_test_route(client):
    assert client.get('/api/test').get_json() == {'success': True, 'message': 'API is working'}


def test_login_with_mistyped_credentials_is_unauthorized(client, make_user):
    make_user(status=APPROVED, is_verified=True)

    assert client.post('/api/login', json={'email': ['ana@example.com'], 'password': 's3cret'}).status_code == 401
    assert client.post('/api/login', json={'email': 'ana@example.com', 'password': 123}).status_code == 401
    assert client.post('/api/admin/login', json={'email': 5, 'password': None}).status_code == 401
