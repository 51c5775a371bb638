# ==============================================================================
# CONFIGURACIÓN - Variables de entorno
# ==============================================================================
# Todas las opciones se leen del entorno con prefijo POS_.
#
#   POS_DATA_DIR            Directorio de datos locales (snapshot, users.json)
#   POS_SNAPSHOT_KEY        Nombre del registro del snapshot
#   POS_GATEWAY             'json' (archivo local) o 'rest' (servidor remoto)
#   POS_REMOTE_URL          URL base del almacén REST
#   POS_REMOTE_KEY          Clave de API del almacén REST
#   POS_DIRECTORY_TIMEOUT   Segundos máximos por llamada al almacén
#   POS_HOST / POS_PORT     Dirección de la API local (Flask)
#   POS_PRODUCTION_MODE     Sin usuarios demo por defecto
#   POS_DEMO_MODE           Crea admin/supervisor/vendedor con contraseña demo
#   POS_LOG_LEVEL / POS_LOG_DIR
# ==============================================================================

import os
from dataclasses import dataclass
from typing import Mapping, Optional


def _flag(value: Optional[str], default: bool) -> bool:
    if value is None or value == '':
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'si', 'sí', 'on')


@dataclass(frozen=True)
class Settings:
    data_dir: str = 'data'
    snapshot_key: str = 'inventorySystem'
    gateway: str = 'json'
    remote_url: str = ''
    remote_key: str = ''
    directory_timeout: float = 10.0
    host: str = '127.0.0.1'
    port: int = 5000
    production_mode: bool = False
    demo_mode: bool = True
    log_level: str = 'INFO'
    log_dir: str = 'logs'

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = None) -> 'Settings':
        """
        Construye la configuración desde variables de entorno.

        Raises:
            ValueError: Si POS_GATEWAY, POS_DIRECTORY_TIMEOUT o POS_PORT no son válidos
        """
        env = os.environ if environ is None else environ
        production = _flag(env.get('POS_PRODUCTION_MODE'), False)
        gateway = env.get('POS_GATEWAY', 'json').strip().lower()
        if gateway not in ('json', 'rest'):
            raise ValueError(f'POS_GATEWAY inválido: {gateway!r} (use json o rest)')
        return cls(
            data_dir=env.get('POS_DATA_DIR', 'data'),
            snapshot_key=env.get('POS_SNAPSHOT_KEY', 'inventorySystem'),
            gateway=gateway,
            remote_url=env.get('POS_REMOTE_URL', ''),
            remote_key=env.get('POS_REMOTE_KEY', ''),
            directory_timeout=float(env.get('POS_DIRECTORY_TIMEOUT', '10')),
            host=env.get('POS_HOST', '127.0.0.1'),
            port=int(env.get('POS_PORT', '5000')),
            production_mode=production,
            # En producción no se siembran usuarios demo salvo que se pida
            demo_mode=_flag(env.get('POS_DEMO_MODE'), not production),
            log_level=env.get('POS_LOG_LEVEL', 'INFO').upper(),
            log_dir=env.get('POS_LOG_DIR', 'logs'),
        )
