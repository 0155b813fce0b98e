import os
import sys

# Use in-memory SQLite for tests
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['JWT_SECRET'] = 'test-secret'
os.environ['ENVIRONMENT'] = 'development'

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import itertools

import pytest
from fastapi.testclient import TestClient

from clinic_service.config import get_settings
from clinic_service.db import Base, engine
from clinic_service.main import app

ADMIN_EMAIL = 'admin@ipsfulano.com'
ADMIN_PASSWORD = 'admin123'

_seq = itertools.count(1)


@pytest.fixture
def client():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def login(client, email, password):
    res = client.post('/api/auth/login', json={'email': email, 'password': password})
    assert res.status_code == 200, res.text
    return res.json()['token']


def bearer(token):
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def admin_headers(client):
    return bearer(login(client, ADMIN_EMAIL, ADMIN_PASSWORD))


@pytest.fixture
def make_user(client, admin_headers):
    """Create a staff user through the admin endpoint and return (id, headers)."""
    def _make(role='doctor', email=None, password='secret123', name='Staff User'):
        email = email or f"{role}{next(_seq)}@clinica.com"
        res = client.post('/api/users', headers=admin_headers, json={
            'name': name, 'email': email, 'password': password, 'role': role,
        })
        assert res.status_code == 201, res.text
        return res.json()['userId'], bearer(login(client, email, password))
    return _make


PATIENT = {
    'identification': '1020304050',
    'document_type': 'CC',
    'first_name': 'Ana',
    'last_name': 'Garcia',
    'date_of_birth': '1990-05-17',
    'gender': 'F',
    'phone': '3001234567',
    'blood_type': 'O+',
    'allergies': 'Penicilina',
}


@pytest.fixture
def make_patient(client, admin_headers):
    def _make(headers=None, **overrides):
        res = client.post('/api/patients', headers=headers or admin_headers, json={**PATIENT, **overrides})
        assert res.status_code == 201, res.text
        return res.json()['patientId']
    return _make


@pytest.fixture
def settings_override():
    """Swap the injected settings for a modified copy."""
    def _override(**changes):
        app.dependency_overrides[get_settings] = lambda: get_settings().model_copy(update=changes)
    return _override
