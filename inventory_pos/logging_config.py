# ==============================================================================
# LOGGING - Configuración del logger raíz
# ==============================================================================
# Consola + archivo rotativo en <log_dir>/inventory_pos.log.
# Cada módulo usa logging.getLogger(__name__); aquí solo se instalan handlers.
# ==============================================================================

import logging
import logging.handlers
import os
from typing import Union

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def configure_logging(log_dir: str = 'logs', level: Union[int, str] = logging.INFO) -> None:
    """
    Configura el logger raíz con salida a consola y archivo rotativo.

    Args:
        log_dir: Directorio de logs (se crea si no existe)
        level: Nivel de logging (número o nombre: 'INFO', 'DEBUG'...)
    """
    os.makedirs(log_dir, exist_ok=True)
    root = logging.getLogger()
    root.setLevel(level)

    # Quitar handlers previos (p.ej. de basicConfig) para no duplicar líneas
    for handler in list(root.handlers):
        root.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    file_handler = logging.handlers.RotatingFileHandler(
        filename=os.path.join(log_dir, 'inventory_pos.log'),
        maxBytes=5 * 1024 * 1024,  # 5 MB por archivo
        backupCount=3,
        encoding='utf-8',
    )
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)
