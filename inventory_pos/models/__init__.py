# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Este módulo define todas las entidades del dominio usando dataclasses.
# Son independientes del mecanismo de persistencia (snapshot local JSON o
# almacén remoto de usuarios).
# ==============================================================================

from .entities import (
    # Usuarios
    User,
    UserRole,

    # Ventas
    Sale,
    SaleItem,

    # Inventario
    KardexEntry,
    KardexType,

    # Caja
    CashSession,
    CashSessionStatus,

    # Alertas
    Alert,
    AlertType,

    utc_now,
)

__all__ = [
    'User',
    'UserRole',
    'Sale',
    'SaleItem',
    'KardexEntry',
    'KardexType',
    'CashSession',
    'CashSessionStatus',
    'Alert',
    'AlertType',
    'utc_now',
]
