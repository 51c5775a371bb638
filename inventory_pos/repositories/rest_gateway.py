# ==============================================================================
# GATEWAY REST - Colección remota estilo PostgREST
# ==============================================================================
# Es el almacén alojado con el que hablan las terminales en modo servidor.
# Las filas viajan en formato de cable; la traducción a entidades se hace en
# el directorio de usuarios.
#
# find_one pide un solo objeto. PostgREST responde 406 con código PGRST116
# cuando no coincide ninguna fila (o varias): eso se reporta como
# NoRowsError para distinguir "no existe" de una falla del almacén.
#
# requests es bloqueante: cada operación corre en un hilo (asyncio.to_thread).
# ==============================================================================

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from inventory_pos.repositories.errors import ConflictError, GatewayError, NoRowsError

logger = logging.getLogger(__name__)

SINGLE_OBJECT = 'application/vnd.pgrst.object+json'


def _filter_value(value: Any) -> str:
    """Filtro de igualdad en sintaxis PostgREST."""
    if isinstance(value, bool):
        return 'eq.true' if value else 'eq.false'
    if value is None:
        return 'is.null'
    return f'eq.{value}'


class RestCollectionGateway:
    """
    CRUD asíncrono sobre un endpoint REST de colección.

    Uso:
        gateway = RestCollectionGateway('https://x.supabase.co', clave, 'users')
        filas = await gateway.list_all()
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        collection: str = 'users',
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0
    ):
        """
        Args:
            base_url: URL base del almacén
            api_key: Clave de API (también se envía como Bearer)
            collection: Nombre de la tabla
            session: Sesión HTTP ya construida (tests)
            timeout: Segundos máximos por request
        """
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.collection = collection
        self.timeout = timeout
        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(max_retries=Retry(total=2, backoff_factor=0.2))
            session.mount('http://', adapter)
            session.mount('https://', adapter)
        self.session = session

    @property
    def url(self) -> str:
        return f'{self.base_url}/rest/v1/{self.collection}'

    def _headers(self, single: bool = False) -> Dict[str, str]:
        headers = {
            'apikey': self.api_key,
            'Authorization': f'Bearer {self.api_key}',
            'Content-Type': 'application/json',
            'Prefer': 'return=representation',
        }
        if single:
            headers['Accept'] = SINGLE_OBJECT
        return headers

    # =========================================================================
    # HTTP
    # =========================================================================

    def _request(
        self,
        method: str,
        params: Optional[Dict[str, str]] = None,
        payload: Any = None,
        single: bool = False
    ) -> Any:
        """
        Ejecuta un request contra la colección.

        Returns:
            Cuerpo JSON, o None si la respuesta viene vacía

        Raises:
            NoRowsError, ConflictError, GatewayError
        """
        try:
            resp = self.session.request(
                method,
                self.url,
                params=params or {},
                json=payload,
                headers=self._headers(single),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise GatewayError(f'{method} {self.collection}: {e}') from e

        if resp.status_code >= 400:
            self._raise_for_error(method, resp)
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise GatewayError(f'{method} {self.collection}: respuesta no es JSON') from e

    def _raise_for_error(self, method: str, resp) -> None:
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        code = body.get('code')
        message = body.get('message') or resp.text
        logger.debug("%s %s -> %s %s", method, self.collection, resp.status_code, code)
        if code == 'PGRST116':
            raise NoRowsError(message)
        if code == '23505' or resp.status_code == 409:
            raise ConflictError(message)
        raise GatewayError(f'{method} {self.collection}: HTTP {resp.status_code} {message}', code=code)

    def _expect_row(self, method: str, row: Any) -> Dict[str, Any]:
        if not isinstance(row, dict):
            raise GatewayError(f'{method} {self.collection}: se esperaba un objeto')
        return row

    # =========================================================================
    # OPERACIONES SÍNCRONAS (corren en un hilo)
    # =========================================================================

    def _list_all(self, order_by: str, descending: bool) -> List[Dict[str, Any]]:
        direction = 'desc' if descending else 'asc'
        rows = self._request('GET', {'select': '*', 'order': f'{order_by}.{direction}'})
        if not isinstance(rows, list):
            raise GatewayError(f'GET {self.collection}: se esperaba una lista')
        return [self._expect_row('GET', row) for row in rows]

    def _insert_one(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        return self._expect_row('POST', self._request('POST', payload=dict(record), single=True))

    def _update_by_id(self, record_id: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        row = self._request('PATCH', {'id': _filter_value(record_id)}, payload=dict(fields), single=True)
        return self._expect_row('PATCH', row)

    def _delete_by_id(self, record_id: str) -> None:
        self._request('DELETE', {'id': _filter_value(record_id)})

    def _find_one(self, filters: Mapping[str, Any]) -> Dict[str, Any]:
        params = {'select': '*'}
        params.update({name: _filter_value(value) for name, value in filters.items()})
        return self._expect_row('GET', self._request('GET', params, single=True))

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
