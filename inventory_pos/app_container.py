# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Este módulo arma en un solo lugar el store, el gateway, el directorio, el
# puente de persistencia y el flujo de autenticación. Facilita:
#   - Inyección de dependencias (cada componente recibe lo que usa)
#   - Testing (se puede pasar otro gateway u otro almacenamiento)
#   - Cambiar de almacén (JSON ↔ REST) sin tocar los servicios
#
# NO es un singleton: quien lo crea lo pasa explícitamente (create_app).
# ==============================================================================

import logging
import os
from typing import Optional

from inventory_pos.config import Settings
from inventory_pos.repositories import (
    ILocalStorage,
    IUserGateway,
    JsonCollectionGateway,
    JsonLocalStorage,
    RestCollectionGateway,
)
from inventory_pos.services import (
    DEMO_PASSWORD,
    AuthenticationFlow,
    PersistenceBridge,
    UserDirectory,
)
from inventory_pos.state import Store

logger = logging.getLogger(__name__)


class AppContainer:
    """
    Contenedor de dependencias de la aplicación.

    Uso:
        container = AppContainer(Settings.from_env())
        container.start()
        container.store.dispatch(...)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        gateway: Optional[IUserGateway] = None,
        storage: Optional[ILocalStorage] = None,
        store: Optional[Store] = None
    ):
        """
        Args:
            settings: Configuración (por defecto, desde el entorno)
            gateway: Gateway de usuarios ya construido (tests)
            storage: Almacenamiento local ya construido (tests)
            store: Store ya construido (p.ej. con reloj fijo)
        """
        self.settings = settings or Settings.from_env()
        self._gateway = gateway
        self._storage = storage
        self._store = store
        self._directory: Optional[UserDirectory] = None
        self._bridge: Optional[PersistenceBridge] = None
        self._auth_flow: Optional[AuthenticationFlow] = None
        self.started = False

    # =========================================================================
    # REPOSITORIOS
    # =========================================================================

    @property
    def gateway(self) -> IUserGateway:
        """Gateway de usuarios según POS_GATEWAY."""
        if self._gateway is None:
            if self.settings.gateway == 'rest':
                if not self.settings.remote_url:
                    raise ValueError('POS_REMOTE_URL es obligatorio con POS_GATEWAY=rest')
                self._gateway = RestCollectionGateway(
                    self.settings.remote_url,
                    self.settings.remote_key,
                    'users',
                    timeout=self.settings.directory_timeout,
                )
            else:
                self._gateway = JsonCollectionGateway(self.settings.data_dir, 'users')
        return self._gateway

    @property
    def storage(self) -> ILocalStorage:
        """Almacenamiento local del snapshot."""
        if self._storage is None:
            self._storage = JsonLocalStorage(self.settings.data_dir)
        return self._storage

    # =========================================================================
    # ESTADO Y SERVICIOS
    # =========================================================================

    @property
    def store(self) -> Store:
        if self._store is None:
            self._store = Store()
        return self._store

    @property
    def directory(self) -> UserDirectory:
        if self._directory is None:
            self._directory = UserDirectory(self.gateway, timeout=self.settings.directory_timeout)
        return self._directory

    @property
    def bridge(self) -> PersistenceBridge:
        if self._bridge is None:
            self._bridge = PersistenceBridge(self.store, self.storage, self.settings.snapshot_key)
        return self._bridge

    @property
    def auth_flow(self) -> AuthenticationFlow:
        if self._auth_flow is None:
            self._auth_flow = AuthenticationFlow(self.directory, self.store)
        return self._auth_flow

    # =========================================================================
    # ARRANQUE
    # =========================================================================

    def start(self) -> None:
        """
        Restaura el snapshot y empieza a persistir cambios.
        Idempotente.
        """
        if self.started:
            return
        os.makedirs(self.settings.data_dir, exist_ok=True)
        self.bridge.restore()
        self.bridge.attach()
        self.started = True

    async def prepare_directory(self) -> None:
        """
        Deja el directorio listo para iniciar sesión: migra contraseñas en
        texto plano, siembra usuarios demo (si corresponde) y carga el espejo.
        """
        await self.directory.migrate_plaintext_credentials()
        if self.settings.demo_mode:
            await self.directory.ensure_demo_users(DEMO_PASSWORD)
        await self.directory.list_users()
        logger.info("Directorio listo: %d usuario(s)", len(self.directory.users))
