import asyncio

import pytest

from inventory_pos.repositories import (
    ConflictError,
    GatewayError,
    IUserGateway,
    JsonCollectionGateway,
    JsonLocalStorage,
    NoRowsError,
)


def test_json_gateway_implements_interface(json_gateway):
    assert isinstance(json_gateway, IUserGateway)


def test_list_all_newest_first(json_gateway):
    rows = asyncio.run(json_gateway.list_all())
    assert [r['username'] for r in rows] == ['inactivo', 'vendedor', 'supervisor', 'admin']

    ascending = asyncio.run(json_gateway.list_all('username', descending=False))
    assert ascending[0]['username'] == 'admin'


def test_insert_assigns_created_at_and_rejects_duplicates(json_gateway):
    row = asyncio.run(json_gateway.insert_one({'id': 'n1', 'username': 'nuevo', 'is_active': True}))
    assert row['created_at']

    with pytest.raises(ConflictError):
        asyncio.run(json_gateway.insert_one({'id': 'n2', 'username': 'nuevo'}))
    with pytest.raises(ConflictError):
        asyncio.run(json_gateway.insert_one({'id': 'n1', 'username': 'otro'}))


def test_update_by_id(json_gateway):
    row = asyncio.run(json_gateway.update_by_id('u-vend', {'email': 'caja@empresa.com'}))
    assert row['email'] == 'caja@empresa.com'
    assert row['username'] == 'vendedor'

    with pytest.raises(NoRowsError):
        asyncio.run(json_gateway.update_by_id('no-existe', {'email': 'x'}))
    with pytest.raises(ConflictError):
        asyncio.run(json_gateway.update_by_id('u-vend', {'username': 'admin'}))


def test_delete_by_id(json_gateway):
    asyncio.run(json_gateway.delete_by_id('u-vend'))
    asyncio.run(json_gateway.delete_by_id('u-vend'))
    usernames = [r['username'] for r in asyncio.run(json_gateway.list_all())]
    assert 'vendedor' not in usernames


def test_find_one_by_filters(json_gateway):
    row = asyncio.run(json_gateway.find_one({'username': 'admin', 'is_active': True}))
    assert row['id'] == 'u-admin'

    with pytest.raises(NoRowsError):
        asyncio.run(json_gateway.find_one({'username': 'inactivo', 'is_active': True}))
    with pytest.raises(GatewayError):
        asyncio.run(json_gateway.find_one({'is_active': True}))


def test_corrupt_file_is_a_gateway_error(data_dir):
    gateway = JsonCollectionGateway(data_dir, 'users')
    with open(gateway.file_path, 'w', encoding='utf-8') as f:
        f.write('{"no": "es una lista"}')

    with pytest.raises(GatewayError):
        asyncio.run(gateway.list_all())


def test_local_storage_round_trip(data_dir):
    storage = JsonLocalStorage(data_dir)
    assert storage.get_item('inventorySystem') is None

    storage.set_item('inventorySystem', '{"sales": []}')
    assert storage.get_item('inventorySystem') == '{"sales": []}'

    storage.remove_item('inventorySystem')
    storage.remove_item('inventorySystem')
    assert storage.get_item('inventorySystem') is None


def test_local_storage_rejects_path_like_keys(data_dir):
    storage = JsonLocalStorage(data_dir)
    with pytest.raises(ValueError):
        storage.set_item('../fuera', 'x')


def test_non_object_rows_are_a_gateway_error(data_dir):
    gateway = JsonCollectionGateway(data_dir, 'users')
    with open(gateway.file_path, 'w', encoding='utf-8') as f:
        f.write('["x", {"id": "1"}]')

    with pytest.raises(GatewayError):
        asyncio.run(gateway.list_all())
    with pytest.raises(GatewayError):
        asyncio.run(gateway.find_one({'id': '1'}))
