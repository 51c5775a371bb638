# ==============================================================================
# REPOSITORIO BASE - Funcionalidad común para acceso a archivos JSON
# ==============================================================================

import json
import os
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


# Lock global para evitar escrituras concurrentes a archivos
_file_lock = threading.RLock()


def atomic_write_text(file_path: str, text: str) -> None:
    """
    Escribe texto a un archivo de forma atómica.

    Escribe a un archivo temporal y luego lo reemplaza, de modo que un
    lector nunca ve un archivo a medio escribir.

    Raises:
        OSError: Si hay error de escritura (disco lleno, permisos...)
    """
    with _file_lock:
        temp_path = file_path + '.tmp'
        try:
            with open(temp_path, 'w', encoding='utf-8') as f:
                f.write(text)
            os.replace(temp_path, file_path)
        except Exception:
            # Limpiar archivo temporal si algo falla
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise


def read_text(file_path: str) -> Optional[str]:
    """Lee un archivo completo; None si no existe."""
    with _file_lock:
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return f.read()
        except FileNotFoundError:
            return None


class BaseRepository(ABC):
    """
    Clase base abstracta para repositorios respaldados por un archivo JSON.

    Proporciona lectura/escritura con manejo de concurrencia básico
    mediante locks y escritura atómica.
    """

    def __init__(self, file_path: str):
        """
        Inicializa el repositorio con la ruta al archivo JSON.

        Args:
            file_path: Ruta absoluta al archivo JSON de datos
        """
        self.file_path = file_path
        self._ensure_file_exists()

    def _ensure_file_exists(self) -> None:
        """Crea el archivo con datos vacíos si no existe."""
        directory = os.path.dirname(self.file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        if not os.path.exists(self.file_path):
            self._write_raw(self._empty_data())

    @abstractmethod
    def _empty_data(self) -> Any:
        """
        Retorna la estructura de datos vacía para este repositorio.

        Returns:
            Estructura vacía (dict, list, etc.) según el repositorio
        """
        pass

    def _read_raw(self) -> Any:
        """
        Lee los datos crudos del archivo JSON.

        Returns:
            Datos parseados del JSON

        Raises:
            json.JSONDecodeError: Si el archivo tiene JSON inválido
        """
        text = read_text(self.file_path)
        if text is None:
            return self._empty_data()
        return json.loads(text)

    def _write_raw(self, data: Any) -> None:
        """
        Escribe datos al archivo JSON.

        Raises:
            OSError: Si hay error de escritura
        """
        atomic_write_text(self.file_path, json.dumps(data, indent=2, ensure_ascii=False))


class ListRepository(BaseRepository):
    """
    Repositorio base para datos almacenados como lista de filas.

    Ejemplo: users.json -> [{...}, {...}]
    """

    def _empty_data(self) -> List:
        """Retorna lista vacía."""
        return []

    def get_all(self) -> List[Dict[str, Any]]:
        """
        Obtiene todos los registros.

        Raises:
            ValueError: Si el archivo no contiene una lista
        """
        data = self._read_raw()
        if not isinstance(data, list):
            raise ValueError(f'{self.file_path} no contiene una lista')
        return data

    def save_all(self, data: List[Dict[str, Any]]) -> None:
        """Guarda todos los registros (reemplazo completo)."""
        self._write_raw(data)
