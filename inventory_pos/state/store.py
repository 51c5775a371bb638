# ==============================================================================
# STORE - Única instancia del estado de la aplicación
# ==============================================================================
# dispatch() es la ÚNICA forma legal de cambiar el estado.
# Los suscriptores (p.ej. el puente de persistencia) se notifican después de
# que el estado nuevo quedó instalado, nunca a mitad de una transición.
# ==============================================================================

import logging
import threading
from collections import deque
from typing import Callable, List, Optional

from inventory_pos.models import utc_now
from inventory_pos.state.transition import AppState, Clock, transition

logger = logging.getLogger(__name__)

Listener = Callable[[AppState, AppState], None]


class Store:
    """
    Contenedor del árbol de estado.

    Uso:
        store = Store()
        unsubscribe = store.subscribe(lambda prev, curr: ...)
        store.dispatch(Login(user))

    Un dispatch emitido por un suscriptor mientras otro está en curso se
    encola y se aplica cuando el actual termina.
    """

    def __init__(self, initial: Optional[AppState] = None, clock: Clock = utc_now):
        self._state = initial if initial is not None else AppState()
        self._clock = clock
        self._listeners: List[Listener] = []
        self._lock = threading.RLock()
        self._pending = deque()
        self._dispatching = False

    @property
    def state(self) -> AppState:
        return self._state

    def get_state(self) -> AppState:
        """Estado actual (solo lectura)."""
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Registra un observador de cambios.

        Returns:
            Función que cancela la suscripción
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action) -> AppState:
        """
        Aplica una acción al estado.

        Args:
            action: Acción de state.actions

        Returns:
            Estado resultante cuando la acción ya fue aplicada; si quedó
            encolada (dispatch reentrante), el estado vigente en ese momento
        """
        with self._lock:
            self._pending.append(action)
            if self._dispatching:
                return self._state
            self._dispatching = True
            try:
                while self._pending:
                    self._apply(self._pending.popleft())
            finally:
                self._dispatching = False
            return self._state

    def _apply(self, action) -> None:
        previous = self._state
        current = transition(previous, action, self._clock)
        logger.debug("dispatch %s", getattr(action, 'type', type(action).__name__))
        if current is previous:
            return
        self._state = current
        for listener in list(self._listeners):
            try:
                listener(previous, current)
            except Exception:
                logger.exception("Error en suscriptor del store tras %s",
                                 getattr(action, 'type', type(action).__name__))
