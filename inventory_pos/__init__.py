# ==============================================================================
# INVENTORY POS - Núcleo de estado del punto de venta
# ==============================================================================
# Paquete principal. Capas:
#   models/        → Entidades (dataclasses inmutables)
#   state/         → Acciones, transition() y Store
#   repositories/  → Gateways del almacén de usuarios y almacenamiento local
#   services/      → Directorio de usuarios, persistencia y autenticación
#   main.py        → API local (Flask)
# ==============================================================================

__version__ = '1.0.0'
