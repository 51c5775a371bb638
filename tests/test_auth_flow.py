import asyncio

import pytest

from inventory_pos.repositories import GatewayError
from inventory_pos.services import (
    DEMO_PASSWORD,
    AuthenticationFlow,
    AuthState,
    LoginFailure,
    LoginInProgressError,
)


@pytest.fixture
def flow(directory, store):
    return AuthenticationFlow(directory, store)


def test_starts_idle(flow):
    assert flow.state == AuthState.IDLE
    assert flow.failure is None


def test_valid_credentials_authenticate(flow, store):
    result = asyncio.run(flow.submit('admin', 'demo123'))

    assert result.ok
    assert flow.state == AuthState.AUTHENTICATED
    assert store.state.current_user.username == 'admin'
    assert result.user == store.state.current_user


def test_wrong_password_fails_without_login(flow, store):
    result = asyncio.run(flow.submit('admin', 'wrong'))

    assert result.state == AuthState.FAILED
    assert result.failure == LoginFailure.BAD_CREDENTIAL
    assert result.message == 'Contraseña incorrecta'
    assert store.state.current_user is None


def test_unknown_user_fails_not_found(flow, store):
    result = asyncio.run(flow.submit('ghost', 'demo123'))

    assert result.failure == LoginFailure.NOT_FOUND
    assert store.state.current_user is None


@pytest.mark.parametrize('password', ['demo123', 'wrong'])
def test_inactive_user_fails_regardless_of_password(flow, store, password):
    result = asyncio.run(flow.submit('inactivo', password))

    assert result.failure == LoginFailure.INACTIVE
    assert store.state.current_user is None


def test_directory_failure_is_generic_error(flow, fake_gateway, store, caplog):
    fake_gateway.fail_with = GatewayError('sin red')

    result = asyncio.run(flow.submit('admin', 'demo123'))

    assert result.failure == LoginFailure.ERROR
    assert result.message == 'Error al iniciar sesión. Intente nuevamente.'
    assert store.state.current_user is None
    assert 'sin red' in caplog.text


def test_failed_flow_can_retry(flow):
    asyncio.run(flow.submit('admin', 'wrong'))
    result = asyncio.run(flow.submit(password='demo123'))

    assert result.ok
    assert flow.username == 'admin'


def test_quick_demo_login_uses_demo_password(flow, store):
    result = asyncio.run(flow.quick_demo_login('vendedor'))

    assert DEMO_PASSWORD == 'demo123'
    assert result.ok
    assert flow.username == 'vendedor'
    assert store.state.current_user.username == 'vendedor'


def test_submit_while_checking_is_rejected(flow, fake_gateway):
    fake_gateway.delay = 0.2

    async def scenario():
        first = asyncio.ensure_future(flow.submit('admin', 'demo123'))
        await asyncio.sleep(0.01)
        assert flow.state == AuthState.CHECKING
        with pytest.raises(LoginInProgressError):
            await flow.submit('vendedor', 'demo123')
        with pytest.raises(LoginInProgressError):
            await flow.quick_demo_login('vendedor')
        return await first

    result = asyncio.run(scenario())
    assert result.ok
    assert result.user.username == 'admin'


def test_cancel_returns_to_idle(flow, fake_gateway, store):
    fake_gateway.delay = 0.5

    async def scenario():
        pending = asyncio.ensure_future(flow.submit('admin', 'demo123'))
        await asyncio.sleep(0.01)
        assert flow.cancel() is True
        return await pending

    result = asyncio.run(scenario())

    assert result.state == AuthState.IDLE
    assert flow.state == AuthState.IDLE
    assert store.state.current_user is None
    assert flow.cancel() is False


def test_logout_clears_user_and_form(flow, store):
    asyncio.run(flow.submit('admin', 'demo123'))

    flow.logout()

    assert store.state.current_user is None
    assert flow.state == AuthState.IDLE
    assert flow.username == ''
    assert flow.password == ''
