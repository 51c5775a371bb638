# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# PRINCIPIOS:
# 1. Los servicios orquestan operaciones entre repositorios y el store
# 2. Aplican reglas de negocio y validaciones
# 3. Las rutas (controllers) solo llaman a servicios
# 4. Los servicios NO conocen el tipo de almacenamiento (JSON/REST)
#
# ESTRUCTURA:
# ├── user_directory.py     → Usuarios: CRUD, búsqueda, credenciales
# ├── persistence_bridge.py → Snapshot local del estado
# └── auth_service.py       → Flujo de inicio de sesión
# ==============================================================================

from inventory_pos.services.user_directory import DEMO_USERS, DirectoryError, UserDirectory
from inventory_pos.services.persistence_bridge import DEFAULT_SNAPSHOT_KEY, PersistenceBridge
from inventory_pos.services.auth_service import (
    DEMO_PASSWORD,
    AuthenticationFlow,
    AuthResult,
    AuthState,
    LoginFailure,
    LoginInProgressError,
)

__all__ = [
    'DEMO_USERS',
    'DirectoryError',
    'UserDirectory',
    'DEFAULT_SNAPSHOT_KEY',
    'PersistenceBridge',
    'DEMO_PASSWORD',
    'AuthenticationFlow',
    'AuthResult',
    'AuthState',
    'LoginFailure',
    'LoginInProgressError',
]
