import asyncio
import os
import sys

import pytest
from werkzeug.security import generate_password_hash

# ensure project root is on sys.path when running from tests/ folder
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from inventory_pos.models import CashSession, Sale, SaleItem, User, UserRole
from inventory_pos.repositories import GatewayError, JsonCollectionGateway, JsonLocalStorage, NoRowsError
from inventory_pos.services import UserDirectory
from inventory_pos.state import Store

FIXED_NOW = '2024-01-01T12:00:00+00:00'


def fixed_clock():
    return FIXED_NOW


def make_sale(sale_id='s1', total=10.0):
    return Sale(
        id=sale_id,
        items=(SaleItem('p1', 2, total / 2, total),),
        total=total,
        created_at='2024-01-01T10:00:00+00:00',
    )


def make_session(session_id='c1', initial=100.0):
    return CashSession(id=session_id, user_id='u1', start_time='2024-01-01T08:00:00+00:00',
                       initial_amount=initial)


def user_row(user_id, username, password='demo123', role='cashier', is_active=True,
             created_at='2024-01-01T00:00:00+00:00', hashed=True):
    return {
        'id': user_id,
        'username': username,
        'email': f'{username}@empresa.com',
        'role': role,
        'is_active': is_active,
        'password': generate_password_hash(password) if hashed else password,
        'created_at': created_at,
    }


class FakeGateway:
    """Gateway en memoria; permite forzar fallas y demoras."""

    def __init__(self, rows=None):
        self.rows = [dict(r) for r in (rows or [])]
        self.fail_with = None
        self.delay = 0
        self.calls = []

    async def _enter(self, name):
        self.calls.append(name)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with

    async def list_all(self, order_by='created_at', descending=True):
        await self._enter('list_all')
        return sorted((dict(r) for r in self.rows), key=lambda r: r.get(order_by) or '', reverse=descending)

    async def insert_one(self, record):
        await self._enter('insert_one')
        row = dict(record)
        row.setdefault('created_at', '2024-02-01T00:00:00+00:00')
        self.rows.append(row)
        return dict(row)

    async def update_by_id(self, record_id, fields):
        await self._enter('update_by_id')
        for row in self.rows:
            if row['id'] == record_id:
                row.update(fields)
                return dict(row)
        raise NoRowsError()

    async def delete_by_id(self, record_id):
        await self._enter('delete_by_id')
        self.rows = [r for r in self.rows if r['id'] != record_id]

    async def find_one(self, filters):
        await self._enter('find_one')
        matches = [r for r in self.rows if all(r.get(k) == v for k, v in filters.items())]
        if not matches:
            raise NoRowsError()
        if len(matches) > 1:
            raise GatewayError('varias filas')
        return dict(matches[0])


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / 'data'
    path.mkdir()
    return str(path)


@pytest.fixture
def store():
    return Store(clock=fixed_clock)


@pytest.fixture
def storage(data_dir):
    return JsonLocalStorage(data_dir)


@pytest.fixture
def seeded_rows():
    return [
        user_row('u-admin', 'admin', role='admin', created_at='2024-01-01T00:00:00+00:00'),
        user_row('u-sup', 'supervisor', role='supervisor', created_at='2024-01-02T00:00:00+00:00'),
        user_row('u-vend', 'vendedor', created_at='2024-01-03T00:00:00+00:00'),
        user_row('u-off', 'inactivo', is_active=False, created_at='2024-01-04T00:00:00+00:00'),
    ]


@pytest.fixture
def json_gateway(data_dir, seeded_rows):
    gateway = JsonCollectionGateway(data_dir, 'users')
    gateway.save_all(seeded_rows)
    return gateway


@pytest.fixture
def fake_gateway(seeded_rows):
    return FakeGateway(seeded_rows)


@pytest.fixture
def directory(fake_gateway):
    return UserDirectory(fake_gateway, timeout=1.0)


@pytest.fixture
def admin_user():
    return User(id='u-admin', username='admin', role=UserRole.ADMIN)
