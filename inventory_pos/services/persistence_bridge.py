# ==============================================================================
# PUENTE DE PERSISTENCIA - Estado en memoria ↔ snapshot local
# ==============================================================================
# Mantiene en disco una copia de {sales, kardex_entries, cash_sessions,
# alerts}. current_user y current_cash_session NO se guardan.
#
# - Al iniciar: restore() lee el snapshot y emite UN LoadData
# - En cada cambio de alguno de los cuatro campos: se reescribe el snapshot
# - Las fallas de lectura/escritura se registran y se ignoran; nunca
#   interrumpen la transición que las disparó
# ==============================================================================

import json
import logging
from typing import Any, Callable, Dict, Optional

from inventory_pos.models import Alert, CashSession, KardexEntry, Sale
from inventory_pos.repositories.interfaces import ILocalStorage
from inventory_pos.state import PERSISTED_FIELDS, AppState, LoadData, Store

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_KEY = 'inventorySystem'

_ENTITY_BY_FIELD = {
    'sales': Sale,
    'kardex_entries': KardexEntry,
    'cash_sessions': CashSession,
    'alerts': Alert,
}


def snapshot_of(state: AppState) -> Dict[str, Any]:
    """Subconjunto persistible del estado."""
    return {
        name: [item.to_dict() for item in getattr(state, name)]
        for name in PERSISTED_FIELDS
    }


def parse_snapshot(text: str) -> Dict[str, Any]:
    """
    Convierte el texto guardado en el payload de LoadData.

    Los campos ausentes no se incluyen (no pisan el estado).

    Raises:
        ValueError, KeyError, TypeError: Si el snapshot está mal formado
    """
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError('El snapshot no es un objeto JSON')
    partial = {}
    for name, entity in _ENTITY_BY_FIELD.items():
        if name not in data:
            continue
        items = data[name]
        if not isinstance(items, list):
            raise ValueError(f'{name} no es una lista')
        if not all(isinstance(item, dict) for item in items):
            raise ValueError(f'{name} contiene un elemento inválido')
        partial[name] = tuple(entity.from_dict(item) for item in items)
    return partial


class PersistenceBridge:
    """
    Sincroniza el store con el almacenamiento local.

    Uso:
        bridge = PersistenceBridge(store, JsonLocalStorage(data_dir))
        bridge.restore()
        bridge.attach()
    """

    def __init__(self, store: Store, storage: ILocalStorage, key: str = DEFAULT_SNAPSHOT_KEY):
        """
        Args:
            store: Store de la aplicación
            storage: Almacenamiento local durable
            key: Nombre del registro del snapshot
        """
        self.store = store
        self.storage = storage
        self.key = key
        self._unsubscribe: Optional[Callable[[], None]] = None

    def snapshot(self) -> Dict[str, Any]:
        return snapshot_of(self.store.get_state())

    def restore(self) -> bool:
        """
        Carga el snapshot guardado en el store.

        Returns:
            True si se emitió LoadData, False si no había snapshot válido
        """
        try:
            text = self.storage.get_item(self.key)
        except (OSError, ValueError) as e:
            logger.error("Error al leer el snapshot '%s': %s", self.key, e)
            return False

        if text is None:
            logger.info("Sin snapshot '%s', se inicia con estado vacío", self.key)
            return False

        try:
            partial = parse_snapshot(text)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error("Snapshot '%s' mal formado, se ignora: %s", self.key, e)
            return False

        self.store.dispatch(LoadData(partial))
        logger.info(
            "Snapshot restaurado: %s",
            ', '.join(f'{name}={len(items)}' for name, items in partial.items())
        )
        return True

    def save(self) -> bool:
        """
        Escribe el snapshot actual (el último en escribir gana).

        Returns:
            True si se guardó
        """
        try:
            self.storage.set_item(self.key, json.dumps(self.snapshot(), ensure_ascii=False))
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error("Error al guardar el snapshot '%s': %s", self.key, e)
            return False

    def _on_change(self, previous: AppState, current: AppState) -> None:
        if any(getattr(previous, name) is not getattr(current, name) for name in PERSISTED_FIELDS):
            self.save()

    def attach(self) -> Callable[[], None]:
        """
        Empieza a observar el store.

        Returns:
            Función para dejar de observar
        """
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self._on_change)
        return self.detach

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def clear(self) -> None:
        """Elimina el snapshot guardado (reinicio de terminal)."""
        try:
            self.storage.remove_item(self.key)
        except OSError as e:
            logger.error("Error al eliminar el snapshot '%s': %s", self.key, e)
