import json

import pytest

from conftest import fixed_clock

from inventory_pos.app_container import AppContainer
from inventory_pos.config import Settings
from inventory_pos.main import create_app
from inventory_pos.state import Store


@pytest.fixture
def container(data_dir, json_gateway):
    return AppContainer(Settings(data_dir=data_dir), gateway=json_gateway, store=Store(clock=fixed_clock))


@pytest.fixture
def client(container):
    app = create_app(container)
    app.config['TESTING'] = True
    with app.test_client() as c:
        yield c


def login(client, username='admin', password='demo123'):
    r = client.post('/api/login', json={'username': username, 'password': password})
    return r


def test_login_and_state(client):
    r = login(client)
    assert r.status_code == 200
    assert r.get_json()['user']['username'] == 'admin'
    assert 'password' not in r.get_json()['user']

    state = client.get('/api/state').get_json()['state']
    assert state['current_user']['role'] == 'admin'


@pytest.mark.parametrize('username, password, reason', [
    ('admin', 'wrong', 'bad_credential'),
    ('ghost', 'demo123', 'not_found'),
    ('inactivo', 'demo123', 'inactive'),
])
def test_login_failures(client, username, password, reason):
    r = login(client, username, password)
    body = r.get_json()
    assert r.status_code == 401
    assert body['ok'] is False
    assert body['reason'] == reason
    assert body['error']


def test_login_requires_fields(client):
    r = client.post('/api/login', json={'username': 'admin'})
    assert r.status_code == 400


def test_demo_login_and_logout(client):
    r = client.post('/api/login/demo/supervisor')
    assert r.status_code == 200
    assert r.get_json()['user']['role'] == 'supervisor'

    client.post('/api/logout')
    assert client.get('/api/state').get_json()['state']['current_user'] is None


def test_protected_routes_require_login(client):
    assert client.post('/api/sales', json={'items': []}).status_code == 401
    assert client.get('/api/users').status_code == 401


def test_sale_is_recorded_and_persisted(client, data_dir):
    login(client)
    client.post('/api/cash-sessions', json={'initial_amount': 100})

    r = client.post('/api/sales', json={
        'items': [{'product_id': 'p1', 'quantity': 2, 'unit_price': 3.5}],
        'payment_method': 'tarjeta',
    })

    assert r.status_code == 201
    sale = r.get_json()['sale']
    assert sale['total'] == 7.0
    assert sale['user_id'] == 'u-admin'
    assert sale['cash_session_id']
    with open(f'{data_dir}/inventorySystem.json', encoding='utf-8') as f:
        saved = json.load(f)
    assert saved['sales'][0]['id'] == sale['id']


def test_invalid_sale_is_rejected(client):
    login(client)
    r = client.post('/api/sales', json={'items': [{'product_id': 'p1'}]})
    assert r.status_code == 400


def test_kardex_entry(client):
    login(client)
    r = client.post('/api/kardex', json={
        'product_id': 'p1', 'type': 'entrada', 'quantity': 5,
        'previous_stock': 0, 'new_stock': 5, 'reason': 'compra',
    })
    assert r.status_code == 201
    assert r.get_json()['entry']['type'] == 'entrada'


def test_cash_session_lifecycle(client):
    login(client, 'vendedor')
    assert client.post('/api/cash-sessions/end').status_code == 409

    opened = client.post('/api/cash-sessions', json={'initial_amount': 50}).get_json()['session']
    assert client.post('/api/cash-sessions', json={}).status_code == 409

    closed = client.post('/api/cash-sessions/end').get_json()['session']
    assert closed['id'] == opened['id']
    assert closed['status'] == 'closed'
    assert closed['end_time'] == '2024-01-01T12:00:00+00:00'

    r = client.put(f"/api/cash-sessions/{opened['id']}", json={'final_amount': 80})
    assert r.get_json()['session']['final_amount'] == 80.0
    assert client.put('/api/cash-sessions/no-existe', json={}).status_code == 404


def test_alerts(client):
    assert client.post('/api/alerts', json={'message': 'x'}).status_code == 401
    login(client)
    r = client.post('/api/alerts', json={'message': 'Stock bajo: cola', 'type': 'stock_bajo'})
    alert_id = r.get_json()['alert']['id']

    assert client.post(f'/api/alerts/{alert_id}/read').status_code == 200
    assert client.post('/api/alerts/no-existe/read').status_code == 404
    state = client.get('/api/state').get_json()['state']
    assert state['alerts'][0]['is_read'] is True


def test_cashier_cannot_manage_users(client):
    login(client, 'vendedor')
    assert client.get('/api/users').status_code == 403


def test_user_management(client):
    login(client)

    r = client.post('/api/users', json={'username': 'cajero2', 'password': 'secreta', 'role': 'cashier'})
    assert r.status_code == 201
    created = r.get_json()['user']

    users = client.get('/api/users').get_json()['users']
    assert users[0]['username'] == 'cajero2'

    r = client.put(f"/api/users/{created['id']}", json={'email': 'c2@empresa.com', 'role': 'supervisor'})
    assert r.get_json()['user']['role'] == 'supervisor'

    assert client.post('/api/users', json={'username': 'admin', 'password': 'x1234'}).status_code == 400
    assert client.post('/api/users', json={'username': 'x', 'password': 'x', 'role': 'jefe'}).status_code == 400

    assert client.delete(f"/api/users/{created['id']}").status_code == 200
    assert client.delete('/api/users/u-admin').status_code == 400


def test_security_headers(client):
    r = client.get('/api/state')
    assert r.headers['X-Frame-Options'] == 'DENY'
    assert r.headers['X-Content-Type-Options'] == 'nosniff'


def test_unknown_route_is_json_404(client):
    r = client.get('/api/no-existe')
    assert r.status_code == 404
    assert r.get_json()['ok'] is False


def test_snapshot_is_restored_on_start(data_dir, json_gateway):
    first = AppContainer(Settings(data_dir=data_dir), gateway=json_gateway)
    app = create_app(first, prepare_directory=False)
    with app.test_client() as c:
        login(c)
        c.post('/api/alerts', json={'message': 'Aviso'})

    second = AppContainer(Settings(data_dir=data_dir), gateway=json_gateway)
    second.start()
    assert [a.message for a in second.store.state.alerts] == ['Aviso']
    assert second.store.state.current_user is None


def test_perf_report_for_managers(client):
    login(client)
    client.get('/api/state')

    body = client.get('/api/perf').get_json()

    assert body['ok'] is True
    assert 'GET /api/state' in body['stats']


def test_server_fields_cannot_be_overridden(client):
    login(client, 'vendedor')
    r = client.post('/api/sales', json={
        'items': [{'product_id': 'p1', 'quantity': 1, 'unit_price': 2.0}],
        'user_id': 'u-admin',
        'created_at': '1999-01-01T00:00:00+00:00',
    })

    sale = r.get_json()['sale']
    assert sale['user_id'] == 'u-vend'
    assert sale['created_at'] != '1999-01-01T00:00:00+00:00'

    r = client.post('/api/kardex', json={
        'product_id': 'p1', 'type': 'salida', 'quantity': 1, 'user_id': 'u-admin',
    })
    assert r.get_json()['entry']['user_id'] == 'u-vend'
