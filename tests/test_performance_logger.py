import asyncio

import pytest

from inventory_pos import performance_logger
from inventory_pos.performance_logger import get_function_stats, get_slow_calls, profile_function, reset_stats


@pytest.fixture(autouse=True)
def clean_stats():
    reset_stats()
    yield
    reset_stats()


def test_profiles_sync_and_async_functions():
    @profile_function
    def suma(a, b):
        return a + b

    @profile_function(name="Espera corta")
    async def espera():
        await asyncio.sleep(0)
        return 'ok'

    assert suma(1, 2) == 3
    assert suma(2, 2) == 4
    assert asyncio.run(espera()) == 'ok'

    stats = get_function_stats()
    assert stats['suma']['calls'] == 2
    assert stats['Espera corta']['calls'] == 1


def test_slow_call_is_logged(monkeypatch, caplog):
    monkeypatch.setattr(performance_logger, 'THRESHOLD_WARNING', 0)

    @profile_function(name="Lenta")
    def lenta():
        return None

    lenta()

    assert '[LENTO] Lenta' in caplog.text or '[CRÍTICO] Lenta' in caplog.text


def test_slow_calls_are_kept_for_report(monkeypatch):
    monkeypatch.setattr(performance_logger, 'THRESHOLD_WARNING', 0)

    @profile_function(name="Reporte")
    def reporte():
        return None

    reporte()

    slow = get_slow_calls()
    assert slow[-1]['name'] == 'Reporte'
    reset_stats()
    assert get_slow_calls() == []
