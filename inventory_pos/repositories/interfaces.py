# ==============================================================================
# INTERFACES DE REPOSITORIOS
# ==============================================================================
#
# Contratos que deben cumplir el almacén remoto de usuarios y el almacenamiento
# local del snapshot. Esto permite:
#
# 1. INDEPENDENCIA DE ALMACENAMIENTO
#    - Los servicios dependen de interfaces, NO de implementaciones concretas
#    - Cambiar archivo JSON → servidor REST solo requiere otra implementación
#
# 2. TESTING
#    - Fácil crear dobles que implementen estas interfaces
#
# ==============================================================================

from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable


@runtime_checkable
class IUserGateway(Protocol):
    """
    Acceso asíncrono a una colección del almacén remoto.

    Trabaja con filas en formato de cable (is_active, created_at, ...).
    Cualquier falla se reporta como GatewayError; NoRowsError distingue
    "ninguna fila coincide" del resto.
    """

    async def list_all(self, order_by: str = 'created_at', descending: bool = True) -> List[Dict[str, Any]]:
        """Todas las filas ordenadas."""
        ...

    async def insert_one(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        """Inserta una fila y devuelve la fila guardada."""
        ...

    async def update_by_id(self, record_id: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """Actualiza una fila por id y devuelve la fila guardada."""
        ...

    async def delete_by_id(self, record_id: str) -> None:
        """Elimina una fila por id."""
        ...

    async def find_one(self, filters: Mapping[str, Any]) -> Dict[str, Any]:
        """Única fila que cumple los filtros de igualdad (NoRowsError si no hay)."""
        ...


@runtime_checkable
class ILocalStorage(Protocol):
    """
    Almacenamiento local durable de registros con nombre (clave → texto).
    """

    def get_item(self, key: str) -> Optional[str]:
        """Texto guardado bajo la clave, o None."""
        ...

    def set_item(self, key: str, value: str) -> None:
        """Guarda el texto (último en escribir gana)."""
        ...

    def remove_item(self, key: str) -> None:
        """Elimina el registro si existe."""
        ...
