# ==============================================================================
# ALMACENAMIENTO LOCAL - Registros con nombre en disco
# ==============================================================================
# Cada clave es un archivo <clave>.json dentro del directorio de datos.
# El contenido se guarda tal cual; el formato lo decide quien escribe.
# ==============================================================================

import os
import re
from typing import Optional

from inventory_pos.repositories.base import atomic_write_text, read_text

_VALID_KEY = re.compile(r'^[A-Za-z0-9_.-]+$')


class JsonLocalStorage:
    """
    Almacenamiento local durable clave → texto.

    Formato en disco:
        data/inventorySystem.json  →  '{"sales": [...], ...}'
    """

    def __init__(self, base_path: str):
        """
        Args:
            base_path: Directorio donde se guardan los registros
        """
        self.base_path = base_path
        os.makedirs(base_path, exist_ok=True)

    def _path(self, key: str) -> str:
        if not _VALID_KEY.match(key):
            raise ValueError(f'Clave de almacenamiento inválida: {key!r}')
        return os.path.join(self.base_path, f'{key}.json')

    def get_item(self, key: str) -> Optional[str]:
        return read_text(self._path(key))

    def set_item(self, key: str, value: str) -> None:
        atomic_write_text(self._path(key), value)

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        if os.path.exists(path):
            os.remove(path)
