# ==============================================================================
# CAPA DE ESTADO - Árbol único, transiciones tipadas y store
# ==============================================================================
# ESTRUCTURA:
# ├── actions.py    → Conjunto cerrado de acciones
# ├── transition.py → AppState y la función pura transition()
# └── store.py      → Store: dispatch / subscribe
# ==============================================================================

from inventory_pos.state.actions import (
    Action,
    AddAlert,
    AddCashSessionHistory,
    AddKardexEntry,
    AddSale,
    EndCashSession,
    LoadData,
    Login,
    Logout,
    MarkAlertRead,
    StartCashSession,
)
from inventory_pos.state.transition import PERSISTED_FIELDS, AppState, transition
from inventory_pos.state.store import Store

__all__ = [
    'Action',
    'AddAlert',
    'AddCashSessionHistory',
    'AddKardexEntry',
    'AddSale',
    'EndCashSession',
    'LoadData',
    'Login',
    'Logout',
    'MarkAlertRead',
    'StartCashSession',
    'PERSISTED_FIELDS',
    'AppState',
    'transition',
    'Store',
]
