# ==============================================================================
# ACCIONES - Conjunto cerrado de transiciones del estado
# ==============================================================================
# Cada acción es un registro inmutable con un 'type' fijo. transition() solo
# reconoce estas clases; cualquier otro objeto es un no-op.
# ==============================================================================

from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping

from inventory_pos.models import Alert, CashSession, KardexEntry, Sale, User


@dataclass(frozen=True)
class Action:
    """Base de todas las acciones."""
    type: ClassVar[str] = ''


@dataclass(frozen=True)
class AddSale(Action):
    type: ClassVar[str] = 'ADD_SALE'
    sale: Sale


@dataclass(frozen=True)
class AddKardexEntry(Action):
    type: ClassVar[str] = 'ADD_KARDEX_ENTRY'
    entry: KardexEntry


@dataclass(frozen=True)
class Login(Action):
    type: ClassVar[str] = 'LOGIN'
    user: User


@dataclass(frozen=True)
class Logout(Action):
    type: ClassVar[str] = 'LOGOUT'


@dataclass(frozen=True)
class StartCashSession(Action):
    type: ClassVar[str] = 'START_CASH_SESSION'
    session: CashSession


@dataclass(frozen=True)
class EndCashSession(Action):
    type: ClassVar[str] = 'END_CASH_SESSION'


@dataclass(frozen=True)
class AddCashSessionHistory(Action):
    """Reemplaza en el historial el turno con el mismo id."""
    type: ClassVar[str] = 'ADD_CASH_SESSION_HISTORY'
    session: CashSession


@dataclass(frozen=True)
class AddAlert(Action):
    type: ClassVar[str] = 'ADD_ALERT'
    alert: Alert


@dataclass(frozen=True)
class MarkAlertRead(Action):
    type: ClassVar[str] = 'MARK_ALERT_READ'
    alert_id: str


@dataclass(frozen=True)
class LoadData(Action):
    """Restauración masiva: mezcla superficial de campos del estado."""
    type: ClassVar[str] = 'LOAD_DATA'
    partial: Mapping[str, Any] = field(default_factory=dict)
