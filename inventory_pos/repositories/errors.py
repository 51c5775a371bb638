# ==============================================================================
# ERRORES DEL GATEWAY
# ==============================================================================
# Fallos propios del almacén remoto. NUNCA salen de la capa de servicios:
# el directorio de usuarios los convierte en DirectoryError.
# ==============================================================================


class GatewayError(Exception):
    """Falla del almacén (red, formato, permisos...)."""

    def __init__(self, message: str, code: str = None):
        super().__init__(message)
        self.code = code


class NoRowsError(GatewayError):
    """La consulta de una sola fila no encontró coincidencias."""

    def __init__(self, message: str = 'No se encontró ninguna fila'):
        super().__init__(message, code='PGRST116')


class ConflictError(GatewayError):
    """Violación de unicidad (p.ej. username repetido)."""

    def __init__(self, message: str):
        super().__init__(message, code='23505')
