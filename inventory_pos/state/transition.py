# ==============================================================================
# FUNCIÓN DE TRANSICIÓN - (estado, acción) → estado nuevo
# ==============================================================================
# transition() es pura y total:
#   - No hace I/O ni guarda estado oculto
#   - Nunca modifica el estado recibido, siempre devuelve uno nuevo
#   - Acciones desconocidas devuelven el mismo estado
# El único reloj que se lee es el inyectado, y solo en END_CASH_SESSION.
# ==============================================================================

from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Dict, Optional, Tuple

from inventory_pos.models import Alert, CashSession, KardexEntry, Sale, User, utc_now
from inventory_pos.state.actions import (
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

Clock = Callable[[], str]

# Campos que se guardan en el snapshot local
PERSISTED_FIELDS = ('sales', 'kardex_entries', 'cash_sessions', 'alerts')


@dataclass(frozen=True)
class AppState:
    """
    Árbol de estado de la aplicación.

    Las secuencias son tuplas para que ningún consumidor pueda mutarlas.
    current_user y current_cash_session son copias por valor, no dueños.
    """
    sales: Tuple[Sale, ...] = ()
    kardex_entries: Tuple[KardexEntry, ...] = ()
    cash_sessions: Tuple[CashSession, ...] = ()
    alerts: Tuple[Alert, ...] = ()
    current_user: Optional[User] = None
    current_cash_session: Optional[CashSession] = None

    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @property
    def unread_alerts(self) -> Tuple[Alert, ...]:
        return tuple(a for a in self.alerts if not a.is_read)

    def to_dict(self) -> Dict[str, Any]:
        """Serializa todo el árbol (el usuario sin hash de contraseña)."""
        return {
            'sales': [s.to_dict() for s in self.sales],
            'kardex_entries': [k.to_dict() for k in self.kardex_entries],
            'cash_sessions': [c.to_dict() for c in self.cash_sessions],
            'alerts': [a.to_dict() for a in self.alerts],
            'current_user': self.current_user.public_dict() if self.current_user else None,
            'current_cash_session': (
                self.current_cash_session.to_dict() if self.current_cash_session else None
            ),
        }


# ==============================================================================
# MANEJADORES POR ACCIÓN
# ==============================================================================

def _add_sale(state: AppState, action: AddSale, clock: Clock) -> AppState:
    return replace(state, sales=state.sales + (action.sale,))


def _add_kardex_entry(state: AppState, action: AddKardexEntry, clock: Clock) -> AppState:
    return replace(state, kardex_entries=state.kardex_entries + (action.entry,))


def _login(state: AppState, action: Login, clock: Clock) -> AppState:
    return replace(state, current_user=action.user)


def _logout(state: AppState, action: Logout, clock: Clock) -> AppState:
    return replace(state, current_user=None, current_cash_session=None)


def _start_cash_session(state: AppState, action: StartCashSession, clock: Clock) -> AppState:
    return replace(
        state,
        current_cash_session=action.session,
        cash_sessions=state.cash_sessions + (action.session,),
    )


def _replace_session(sessions: Tuple[CashSession, ...], session: CashSession) -> Tuple[CashSession, ...]:
    return tuple(session if s.id == session.id else s for s in sessions)


def _end_cash_session(state: AppState, action: EndCashSession, clock: Clock) -> AppState:
    if state.current_cash_session is None:
        return state
    closed = state.current_cash_session.close(clock())
    return replace(
        state,
        current_cash_session=None,
        cash_sessions=_replace_session(state.cash_sessions, closed),
    )


def _add_cash_session_history(state: AppState, action: AddCashSessionHistory, clock: Clock) -> AppState:
    if not any(s.id == action.session.id for s in state.cash_sessions):
        return state
    return replace(state, cash_sessions=_replace_session(state.cash_sessions, action.session))


def _add_alert(state: AppState, action: AddAlert, clock: Clock) -> AppState:
    return replace(state, alerts=state.alerts + (action.alert,))


def _mark_alert_read(state: AppState, action: MarkAlertRead, clock: Clock) -> AppState:
    if not any(a.id == action.alert_id and not a.is_read for a in state.alerts):
        return state
    return replace(state, alerts=tuple(
        replace(a, is_read=True) if a.id == action.alert_id else a
        for a in state.alerts
    ))


def _load_data(state: AppState, action: LoadData, clock: Clock) -> AppState:
    known = AppState.field_names()
    changes = {}
    for name, value in action.partial.items():
        if name not in known:
            continue
        if name in PERSISTED_FIELDS:
            value = tuple(value)
        changes[name] = value
    if not changes:
        return state
    return replace(state, **changes)


_HANDLERS = {
    AddSale: _add_sale,
    AddKardexEntry: _add_kardex_entry,
    Login: _login,
    Logout: _logout,
    StartCashSession: _start_cash_session,
    EndCashSession: _end_cash_session,
    AddCashSessionHistory: _add_cash_session_history,
    AddAlert: _add_alert,
    MarkAlertRead: _mark_alert_read,
    LoadData: _load_data,
}


def transition(state: AppState, action: Any, clock: Clock = utc_now) -> AppState:
    """
    Calcula el siguiente estado.

    Args:
        state: Estado actual (no se modifica)
        action: Una de las acciones de state.actions
        clock: Reloj para el cierre de caja (inyectable en tests)

    Returns:
        Estado nuevo, o el mismo objeto si la acción no cambia nada
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        return state
    return handler(state, action, clock)
