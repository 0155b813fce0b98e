def test_health(client):
    res = client.get('/api/health')
    assert res.status_code == 200
    assert res.json()['status'] == 'ok'


def test_health_reports_injected_environment(client, settings_override):
    settings_override(environment='staging')
    assert client.get('/api/health').json()['environment'] == 'staging'


def test_db_probe(client):
    res = client.get('/api/test-db')
    assert res.status_code == 200
    assert res.json()['database'] == 'connected'


def test_reset_admin_password(client):
    res = client.post('/api/reset-admin-password')
    assert res.status_code == 200
    assert 'password' not in res.json()


def test_reset_admin_password_disabled_in_production(client, settings_override):
    settings_override(environment='production')
    assert client.post('/api/reset-admin-password').status_code == 403


def test_unknown_route(client):
    assert client.get('/api/nothing-here').status_code == 404
