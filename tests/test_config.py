import logging
import logging.handlers
import os

import pytest

from inventory_pos.app_container import AppContainer
from inventory_pos.config import Settings
from inventory_pos.logging_config import configure_logging
from inventory_pos.repositories import JsonCollectionGateway, RestCollectionGateway


def test_defaults_from_empty_environment():
    settings = Settings.from_env({})
    assert settings.data_dir == 'data'
    assert settings.snapshot_key == 'inventorySystem'
    assert settings.gateway == 'json'
    assert settings.directory_timeout == 10.0
    assert settings.demo_mode is True


def test_values_from_environment():
    settings = Settings.from_env({
        'POS_DATA_DIR': '/tmp/pos',
        'POS_GATEWAY': 'REST',
        'POS_REMOTE_URL': 'https://demo.example.co',
        'POS_DIRECTORY_TIMEOUT': '2.5',
        'POS_PORT': '8080',
        'POS_LOG_LEVEL': 'debug',
    })
    assert settings.gateway == 'rest'
    assert settings.directory_timeout == 2.5
    assert settings.port == 8080
    assert settings.log_level == 'DEBUG'


def test_production_disables_demo_users_unless_requested():
    assert Settings.from_env({'POS_PRODUCTION_MODE': 'true'}).demo_mode is False
    assert Settings.from_env({'POS_PRODUCTION_MODE': '1', 'POS_DEMO_MODE': 'si'}).demo_mode is True


def test_invalid_gateway_is_rejected():
    with pytest.raises(ValueError):
        Settings.from_env({'POS_GATEWAY': 'ftp'})


def test_container_picks_gateway(data_dir):
    assert isinstance(AppContainer(Settings(data_dir=data_dir)).gateway, JsonCollectionGateway)

    rest = AppContainer(Settings(data_dir=data_dir, gateway='rest', remote_url='https://demo.example.co'))
    assert isinstance(rest.gateway, RestCollectionGateway)

    with pytest.raises(ValueError):
        AppContainer(Settings(data_dir=data_dir, gateway='rest')).gateway


def test_configure_logging_installs_rotating_file(tmp_path):
    root = logging.getLogger()
    previous = list(root.handlers)
    previous_level = root.level
    try:
        configure_logging(str(tmp_path / 'logs'), 'INFO')
        assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in root.handlers)
        logging.getLogger('inventory_pos.test').info('hola')
        assert os.path.exists(tmp_path / 'logs' / 'inventory_pos.log')
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        root.setLevel(previous_level)
        for handler in previous:
            root.addHandler(handler)
