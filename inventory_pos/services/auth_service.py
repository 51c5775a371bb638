# ==============================================================================
# FLUJO DE AUTENTICACIÓN
# ==============================================================================
# Máquina de estados: IDLE → CHECKING → AUTHENTICATED | FAILED
#
# - Busca al usuario en el directorio y verifica la contraseña (hash)
# - Si es válido emite Login(user) en el store
# - Las credenciales incorrectas NO son excepciones: quedan como FAILED con
#   un motivo (no existe, inactivo, contraseña incorrecta)
# - Cualquier falla del directorio termina en FAILED con motivo genérico
# ==============================================================================

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from inventory_pos.models import User
from inventory_pos.services.user_directory import UserDirectory
from inventory_pos.state import Login, Logout, Store

logger = logging.getLogger(__name__)

# Contraseña fija de los usuarios de demostración
DEMO_PASSWORD = 'demo123'


class AuthState(str, Enum):
    IDLE = 'idle'
    CHECKING = 'checking'
    AUTHENTICATED = 'authenticated'
    FAILED = 'failed'


class LoginFailure(str, Enum):
    """Motivos de rechazo, mutuamente excluyentes."""
    NOT_FOUND = 'not_found'
    INACTIVE = 'inactive'
    BAD_CREDENTIAL = 'bad_credential'
    ERROR = 'error'

    @property
    def message(self) -> str:
        return _FAILURE_MESSAGES[self]


_FAILURE_MESSAGES = {
    LoginFailure.NOT_FOUND: 'Usuario no encontrado',
    LoginFailure.INACTIVE: 'Usuario inactivo. Contacte al administrador.',
    LoginFailure.BAD_CREDENTIAL: 'Contraseña incorrecta',
    LoginFailure.ERROR: 'Error al iniciar sesión. Intente nuevamente.',
}


class LoginInProgressError(Exception):
    """Se intentó enviar credenciales mientras otra verificación sigue en curso."""
    pass


@dataclass(frozen=True)
class AuthResult:
    """Resultado visible del flujo."""
    state: AuthState
    failure: Optional[LoginFailure] = None
    user: Optional[User] = None

    @property
    def ok(self) -> bool:
        return self.state == AuthState.AUTHENTICATED

    @property
    def message(self) -> str:
        return self.failure.message if self.failure else ''


class AuthenticationFlow:
    """
    Valida credenciales contra el directorio y emite LOGIN.

    Uso:
        flow = AuthenticationFlow(directory, store)
        result = await flow.submit('admin', 'demo123')
        if not result.ok:
            mostrar(result.message)
    """

    def __init__(self, directory: UserDirectory, store: Store):
        self.directory = directory
        self.store = store
        self.result = AuthResult(AuthState.IDLE)
        self.username = ''
        self.password = ''
        self._pending: Optional[asyncio.Task] = None

    @property
    def state(self) -> AuthState:
        return self.result.state

    @property
    def failure(self) -> Optional[LoginFailure]:
        return self.result.failure

    # =========================================================================
    # ENVÍO DE CREDENCIALES
    # =========================================================================

    async def submit(self, username: Optional[str] = None, password: Optional[str] = None) -> AuthResult:
        """
        Verifica credenciales.

        Args:
            username: Usuario (por defecto, el último cargado en el formulario)
            password: Contraseña (idem)

        Returns:
            Resultado final (AUTHENTICATED, FAILED o IDLE si se canceló)

        Raises:
            LoginInProgressError: Si ya hay una verificación en curso
        """
        if self.state == AuthState.CHECKING:
            raise LoginInProgressError('Ya hay un inicio de sesión en curso')

        if username is not None:
            self.username = username
        if password is not None:
            self.password = password

        self.result = AuthResult(AuthState.CHECKING)
        task = asyncio.ensure_future(self._verify(self.username, self.password))
        self._pending = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            self.result = AuthResult(AuthState.IDLE)
            raise
        finally:
            self._pending = None

        if task.cancelled():
            logger.info("Inicio de sesión de '%s' cancelado", self.username)
            self.result = AuthResult(AuthState.IDLE)
        else:
            self.result = task.result()
        return self.result

    async def _verify(self, username: str, password: str) -> AuthResult:
        try:
            user = await self.directory.find_by_username(username, include_inactive=True)
        except Exception:
            # DirectoryError o falla inesperada: motivo genérico
            logger.exception("Error al iniciar sesión de '%s'", username)
            return AuthResult(AuthState.FAILED, LoginFailure.ERROR)

        if user is None:
            return self._fail(username, LoginFailure.NOT_FOUND)
        if not user.is_active:
            return self._fail(username, LoginFailure.INACTIVE)
        if not self.directory.verify_credential(user, password):
            return self._fail(username, LoginFailure.BAD_CREDENTIAL)

        self.store.dispatch(Login(user))
        logger.info("Inicio de sesión: %s (%s)", user.username, user.role.value)
        return AuthResult(AuthState.AUTHENTICATED, user=user)

    def _fail(self, username: str, reason: LoginFailure) -> AuthResult:
        logger.info("Inicio de sesión rechazado para '%s': %s", username, reason.value)
        return AuthResult(AuthState.FAILED, reason)

    async def quick_demo_login(self, username: str, password: str = DEMO_PASSWORD) -> AuthResult:
        """
        Acceso rápido de demostración: carga las credenciales y las envía
        por el mismo camino que el formulario.
        """
        if self.state == AuthState.CHECKING:
            raise LoginInProgressError('Ya hay un inicio de sesión en curso')
        self.username = username
        self.password = password
        return await self.submit()

    # =========================================================================
    # CANCELACIÓN Y CIERRE DE SESIÓN
    # =========================================================================

    def cancel(self) -> bool:
        """
        Cancela la verificación en curso; el flujo vuelve a IDLE.

        Returns:
            True si había algo que cancelar
        """
        if self._pending is None or self._pending.done():
            return False
        self._pending.cancel()
        return True

    def logout(self) -> None:
        """Cierra la sesión actual y limpia el formulario."""
        self.store.dispatch(Logout())
        self.result = AuthResult(AuthState.IDLE)
        self.username = ''
        self.password = ''
