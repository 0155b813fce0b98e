import pytest
from conftest import bearer, login
from sqlalchemy import func, select

from clinic_service import users_repository
from clinic_service.db import SessionLocal
from clinic_service.errors import Conflict
from clinic_service.models import User
from clinic_service.schemas import UserCreate


def signup(client, role, email, password='secret123'):
    return client.post('/api/users/create-initial', json={
        'name': 'New User', 'email': email, 'password': password, 'role': role,
    })


@pytest.mark.parametrize('role', ['admin', 'doctor', 'nurse', 'recepcionista'])
def test_public_signup_accepts_signup_roles(client, role):
    res = signup(client, role, f'{role}@clinica.com')
    assert res.status_code == 201
    assert isinstance(res.json()['userId'], int)


def test_public_signup_rejects_unknown_role(client):
    res = signup(client, 'janitor', 'janitor@clinica.com')
    assert res.status_code == 400
    assert res.json()['errors'][0]['field'] == 'role'


def test_public_admin_signup_can_be_disabled(client, settings_override):
    settings_override(allow_public_admin_signup=False)
    assert signup(client, 'admin', 'boss@clinica.com').status_code == 403
    assert signup(client, 'doctor', 'doc@clinica.com').status_code == 201


def test_signup_role_set_is_configurable(client, settings_override):
    settings_override(signup_roles=['doctor'])
    assert signup(client, 'nurse', 'nurse@clinica.com').status_code == 400


def test_password_is_hashed(client):
    signup(client, 'doctor', 'hash@clinica.com', password='plaintext1')
    with SessionLocal() as db:
        user = db.scalar(select(User).where(User.email == 'hash@clinica.com'))
        assert user.password_hash != 'plaintext1'
        assert user.password_hash.startswith('$2')


def test_short_password_rejected(client):
    assert signup(client, 'doctor', 'short@clinica.com', password='123').status_code == 400


def test_duplicate_email_conflicts(client):
    assert signup(client, 'doctor', 'dup@clinica.com').status_code == 201
    res = signup(client, 'doctor', 'DUP@clinica.com')
    assert res.status_code == 409
    with SessionLocal() as db:
        count = db.scalar(select(func.count()).select_from(User).where(User.email == 'dup@clinica.com'))
    assert count == 1


def test_store_constraint_conflict_is_translated(client, monkeypatch):
    # a concurrent signup slipping past the pre-check
    assert signup(client, 'doctor', 'race@clinica.com').status_code == 201
    monkeypatch.setattr(users_repository, 'get_by_email', lambda *a, **kw: None)
    data = UserCreate(name='Racer', email='race@clinica.com', password='secret123', role='doctor')
    with SessionLocal() as db:
        with pytest.raises(Conflict):
            users_repository.create(db, data, allowed_roles=['doctor'])


def test_admin_create_rejects_nurse(client, admin_headers):
    res = client.post('/api/users', headers=admin_headers, json={
        'name': 'Nurse', 'email': 'nurse@clinica.com', 'password': 'secret123', 'role': 'nurse',
    })
    assert res.status_code == 400


def test_list_users_admin_only(client, admin_headers, make_user):
    _, recep_headers = make_user('recepcionista')
    assert client.get('/api/users', headers=recep_headers).status_code == 403

    res = client.get('/api/users', headers=admin_headers)
    assert res.status_code == 200
    users = res.json()
    assert {u['role'] for u in users} == {'admin', 'recepcionista'}
    assert all('password_hash' not in u for u in users)


def test_user_endpoints_require_token(client):
    assert client.get('/api/users').status_code == 401
    assert client.post('/api/users', json={}).status_code == 401


def test_partial_update(client, admin_headers, make_user):
    user_id, _ = make_user('doctor', name='Old Name')
    res = client.put(f'/api/users/{user_id}', headers=admin_headers, json={'name': 'New Name'})
    assert res.status_code == 200
    user = next(u for u in client.get('/api/users', headers=admin_headers).json() if u['id'] == user_id)
    assert user['name'] == 'New Name'
    assert user['role'] == 'doctor'


def test_empty_update_is_bad_request_and_changes_nothing(client, admin_headers, make_user):
    user_id, _ = make_user('doctor', name='Same Name')
    res = client.put(f'/api/users/{user_id}', headers=admin_headers, json={})
    assert res.status_code == 400
    user = next(u for u in client.get('/api/users', headers=admin_headers).json() if u['id'] == user_id)
    assert user['name'] == 'Same Name'


def test_update_rejects_nurse_role(client, admin_headers, make_user):
    user_id, _ = make_user('doctor')
    res = client.put(f'/api/users/{user_id}', headers=admin_headers, json={'role': 'nurse'})
    assert res.status_code == 400


def test_update_unknown_user(client, admin_headers):
    res = client.put('/api/users/9999', headers=admin_headers, json={'name': 'X'})
    assert res.status_code == 404


def test_update_to_taken_email_conflicts(client, admin_headers, make_user):
    make_user('doctor', email='taken@clinica.com')
    user_id, _ = make_user('doctor')
    res = client.put(f'/api/users/{user_id}', headers=admin_headers, json={'email': 'taken@clinica.com'})
    assert res.status_code == 409


def test_role_change_takes_effect_without_relogin(client, admin_headers, make_user):
    user_id, headers = make_user('recepcionista')
    assert client.get('/api/users', headers=headers).status_code == 403

    client.put(f'/api/users/{user_id}', headers=admin_headers, json={'role': 'admin'})
    assert client.get('/api/users', headers=headers).status_code == 200

    client.put(f'/api/users/{user_id}', headers=admin_headers, json={'role': 'doctor'})
    assert client.get('/api/users', headers=headers).status_code == 403


def test_soft_delete_keeps_row(client, admin_headers, make_user):
    user_id, _ = make_user('doctor')
    res = client.delete(f'/api/users/{user_id}', headers=admin_headers)
    assert res.status_code == 200
    user = next(u for u in client.get('/api/users', headers=admin_headers).json() if u['id'] == user_id)
    assert user['is_active'] is False


def test_reactivation_restores_login(client, admin_headers, make_user):
    user_id, _ = make_user('doctor', email='back@clinica.com')
    client.delete(f'/api/users/{user_id}', headers=admin_headers)
    client.put(f'/api/users/{user_id}', headers=admin_headers, json={'is_active': True})
    assert login(client, 'back@clinica.com', 'secret123')


def test_soft_delete_unknown_user(client, admin_headers):
    assert client.delete('/api/users/9999', headers=admin_headers).status_code == 404


def test_vanished_user_gets_not_found_on_guarded_route(client, admin_headers, make_user):
    user_id, headers = make_user('doctor')
    with SessionLocal() as db:
        db.delete(db.get(User, user_id))
        db.commit()
    assert client.get('/api/patients', headers=headers).status_code == 404


def test_role_lookup_failure_is_internal_error(client, admin_headers, monkeypatch):
    from sqlalchemy.exc import OperationalError

    def broken(db, user_id):
        raise OperationalError('SELECT role', {}, Exception('connection lost'))

    monkeypatch.setattr(users_repository, 'get_role', broken)
    res = client.get('/api/users', headers=admin_headers)
    assert res.status_code == 500
    assert res.json()['detail'] == 'Error verifying permissions'
