# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Esta capa encapsula todo el acceso a la persistencia:
#   - Almacén remoto de usuarios (gateway asíncrono)
#   - Almacenamiento local del snapshot del estado
#
# ESTRUCTURA:
# ├── interfaces.py     → Protocolos (IUserGateway, ILocalStorage)
# ├── errors.py         → GatewayError, NoRowsError, ConflictError
# ├── base.py           → Escritura atómica y repositorio JSON base
# ├── local_storage.py  → Registros con nombre en disco
# ├── json_gateway.py   → Colección remota respaldada por archivo JSON
# └── rest_gateway.py   → Colección remota estilo PostgREST (requests)
#
# Los services NO conocen qué gateway está detrás; solo usan la interfaz.
# ==============================================================================

from inventory_pos.repositories.interfaces import ILocalStorage, IUserGateway
from inventory_pos.repositories.errors import ConflictError, GatewayError, NoRowsError
from inventory_pos.repositories.base import BaseRepository, ListRepository
from inventory_pos.repositories.local_storage import JsonLocalStorage
from inventory_pos.repositories.json_gateway import JsonCollectionGateway
from inventory_pos.repositories.rest_gateway import RestCollectionGateway

__all__ = [
    # Interfaces
    'ILocalStorage',
    'IUserGateway',

    # Errores
    'ConflictError',
    'GatewayError',
    'NoRowsError',

    # Clases base
    'BaseRepository',
    'ListRepository',

    # Implementaciones
    'JsonLocalStorage',
    'JsonCollectionGateway',
    'RestCollectionGateway',
]
