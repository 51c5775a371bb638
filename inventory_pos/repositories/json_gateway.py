# ==============================================================================
# GATEWAY JSON - Colección remota respaldada por un archivo local
# ==============================================================================
# Implementa IUserGateway sobre <colección>.json. Se usa en terminales sin
# servidor y en tests. Se comporta como el almacén remoto:
#   - created_at lo asigna el almacén
#   - la unicidad (username) la valida el almacén, no el cliente
#   - la búsqueda de una sola fila sin coincidencias lanza NoRowsError
# El I/O de archivo corre en un hilo para no bloquear el event loop.
# ==============================================================================

import asyncio
import logging
import os
import threading
import uuid
from typing import Any, Dict, List, Mapping, Sequence

from inventory_pos.models import utc_now
from inventory_pos.repositories.base import ListRepository
from inventory_pos.repositories.errors import ConflictError, GatewayError, NoRowsError

logger = logging.getLogger(__name__)


class JsonCollectionGateway(ListRepository):
    """
    Colección de filas en un archivo JSON.

    Formato de datos en users.json:
    [
        {"id": "...", "username": "admin", "is_active": true, "created_at": "..."},
        ...
    ]
    """

    def __init__(
        self,
        base_path: str,
        collection: str = 'users',
        unique_fields: Sequence[str] = ('username',)
    ):
        """
        Args:
            base_path: Directorio de datos
            collection: Nombre de la colección (y del archivo)
            unique_fields: Campos que no pueden repetirse entre filas
        """
        self.collection = collection
        self.unique_fields = tuple(unique_fields)
        self._lock = threading.Lock()
        super().__init__(os.path.join(base_path, f'{collection}.json'))

    # =========================================================================
    # OPERACIONES SÍNCRONAS (corren en un hilo)
    # =========================================================================

    def _load_rows(self) -> List[Dict[str, Any]]:
        try:
            rows = self.get_all()
        except (OSError, ValueError) as e:
            raise GatewayError(f'No se pudo leer {self.collection}: {e}') from e
        if not all(isinstance(r, dict) for r in rows):
            raise GatewayError(f'{self.collection}: el archivo contiene filas inválidas')
        return rows

    def _save_rows(self, rows: List[Dict[str, Any]]) -> None:
        try:
            self.save_all(rows)
        except (OSError, TypeError, ValueError) as e:
            raise GatewayError(f'No se pudo escribir {self.collection}: {e}') from e

    def _check_unique(self, rows: List[Dict[str, Any]], candidate: Mapping[str, Any]) -> None:
        for row in rows:
            if row.get('id') == candidate.get('id'):
                continue
            for name in self.unique_fields:
                if name in candidate and row.get(name) == candidate[name]:
                    raise ConflictError(f'{self.collection}.{name} duplicado: {candidate[name]!r}')

    def _list_all(self, order_by: str, descending: bool) -> List[Dict[str, Any]]:
        rows = self._load_rows()
        return sorted(rows, key=lambda r: r.get(order_by) or '', reverse=descending)

    def _insert_one(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        with self._lock:
            rows = self._load_rows()
            row = dict(record)
            row.setdefault('id', str(uuid.uuid4()))
            row.setdefault('created_at', utc_now())
            if any(r.get('id') == row['id'] for r in rows):
                raise ConflictError(f'{self.collection}.id duplicado: {row["id"]!r}')
            self._check_unique(rows, row)
            rows.append(row)
            self._save_rows(rows)
            logger.debug("%s: fila %s insertada", self.collection, row['id'])
            return dict(row)

    def _update_by_id(self, record_id: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        with self._lock:
            rows = self._load_rows()
            for row in rows:
                if row.get('id') == record_id:
                    updated = dict(row)
                    updated.update(fields)
                    updated['id'] = record_id
                    self._check_unique(rows, updated)
                    row.clear()
                    row.update(updated)
                    self._save_rows(rows)
                    return dict(updated)
            raise NoRowsError(f'{self.collection}: no existe id {record_id!r}')

    def _delete_by_id(self, record_id: str) -> None:
        with self._lock:
            rows = self._load_rows()
            remaining = [r for r in rows if r.get('id') != record_id]
            if len(remaining) != len(rows):
                self._save_rows(remaining)

    def _find_one(self, filters: Mapping[str, Any]) -> Dict[str, Any]:
        matches = [
            r for r in self._load_rows()
            if all(r.get(k) == v for k, v in filters.items())
        ]
        if not matches:
            raise NoRowsError()
        if len(matches) > 1:
            raise GatewayError(f'{self.collection}: {len(matches)} filas coinciden con {dict(filters)}')
        return dict(matches[0])

    # =========================================================================
    # INTERFAZ ASÍNCRONA (IUserGateway)
    # =========================================================================

    async def list_all(self, order_by: str = 'created_at', descending: bool = True) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._list_all, order_by, descending)

    async def insert_one(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        return await asyncio.to_thread(self._insert_one, record)

    async def update_by_id(self, record_id: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        return await asyncio.to_thread(self._update_by_id, record_id, fields)

    async def delete_by_id(self, record_id: str) -> None:
        await asyncio.to_thread(self._delete_by_id, record_id)

    async def find_one(self, filters: Mapping[str, Any]) -> Dict[str, Any]:
        return await asyncio.to_thread(self._find_one, filters)
