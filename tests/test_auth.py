from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, bearer, login

from clinic_service.config import get_settings
from clinic_service.tokens import verify_token


def test_login_returns_verifiable_token(client):
    res = client.post('/api/auth/login', json={'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD})
    assert res.status_code == 200
    body = res.json()
    assert body['token_type'] == 'bearer'
    assert body['user']['email'] == ADMIN_EMAIL
    assert body['user']['role'] == 'admin'
    assert 'password_hash' not in body['user']
    assert verify_token(body['token'], get_settings()) == body['user']['id']


def test_login_email_is_case_insensitive(client):
    token = login(client, ADMIN_EMAIL.upper(), ADMIN_PASSWORD)
    assert token


def test_wrong_password_and_unknown_email_look_the_same(client):
    wrong_pw = client.post('/api/auth/login', json={'email': ADMIN_EMAIL, 'password': 'nope'})
    unknown = client.post('/api/auth/login', json={'email': 'ghost@clinica.com', 'password': 'nope'})
    assert wrong_pw.status_code == unknown.status_code == 401
    assert wrong_pw.json() == unknown.json() == {'detail': 'Invalid credentials'}


def test_deactivated_user_gets_distinct_message(client, admin_headers, make_user):
    user_id, _ = make_user('doctor', email='doc@clinica.com')
    assert client.delete(f'/api/users/{user_id}', headers=admin_headers).status_code == 200

    res = client.post('/api/auth/login', json={'email': 'doc@clinica.com', 'password': 'secret123'})
    assert res.status_code == 401
    assert res.json() == {'detail': 'User deactivated'}


def test_login_validates_payload(client):
    res = client.post('/api/auth/login', json={'email': 'not-an-email', 'password': ''})
    assert res.status_code == 400
    fields = {e['field'] for e in res.json()['errors']}
    assert {'email', 'password'} <= fields


def test_verify_returns_user_summary(client, admin_headers):
    res = client.get('/api/auth/verify', headers=admin_headers)
    assert res.status_code == 200
    assert res.json()['user']['email'] == ADMIN_EMAIL


def test_verify_requires_token(client):
    res = client.get('/api/auth/verify')
    assert res.status_code == 401
    assert res.json() == {'detail': 'Token required'}


def test_invalid_token_does_not_leak_reason(client):
    res = client.get('/api/auth/verify', headers=bearer('garbage'))
    assert res.status_code == 401
    assert res.json() == {'detail': 'Invalid token'}


def test_deactivated_users_token_still_authenticates_until_expiry(client, admin_headers, make_user):
    user_id, headers = make_user('doctor')
    client.delete(f'/api/users/{user_id}', headers=admin_headers)
    # authentication does not look at the active flag
    assert client.get('/api/auth/verify', headers=headers).status_code == 200
    assert client.get('/api/patients', headers=headers).status_code == 200
