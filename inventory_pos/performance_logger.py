# ==============================================================================
# PROFILING - Tiempos de rutas y llamadas al directorio
# ==============================================================================
# Cada llamada medida suma a un acumulado por nombre. Las que pasan los
# umbrales se reportan en el logger 'inventory_pos.perf' y quedan en una
# lista corta de "últimas lentas" que expone GET /api/perf.
#
# Se desactiva con POS_PROFILING=0.
# ==============================================================================

import inspect
import logging
import os
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from functools import wraps
from typing import Deque, Dict, List, Tuple

logger = logging.getLogger('inventory_pos.perf')

ENABLE_PROFILING = os.environ.get('POS_PROFILING', '1') not in ('0', 'false', 'no')

# Milisegundos
THRESHOLD_WARNING = 300
THRESHOLD_CRITICAL = 700

MAX_SLOW_CALLS = 20


@dataclass
class CallStats:
    """Acumulado de una ruta o función medida."""
    calls: int = 0
    total_ms: float = 0.0
    max_ms: float = 0.0

    @property
    def avg_ms(self) -> float:
        return self.total_ms / self.calls if self.calls else 0.0

    def add(self, elapsed_ms: float) -> None:
        self.calls += 1
        self.total_ms += elapsed_ms
        self.max_ms = max(self.max_ms, elapsed_ms)


@dataclass
class _Registry:
    stats: Dict[str, CallStats] = field(default_factory=dict)
    slow: Deque[Tuple[str, float]] = field(default_factory=lambda: deque(maxlen=MAX_SLOW_CALLS))
    lock: threading.Lock = field(default_factory=threading.Lock)


_registry = _Registry()


def _record(label: str, elapsed_ms: float) -> None:
    with _registry.lock:
        _registry.stats.setdefault(label, CallStats()).add(elapsed_ms)
        if elapsed_ms >= THRESHOLD_WARNING:
            _registry.slow.append((label, round(elapsed_ms, 1)))

    if elapsed_ms >= THRESHOLD_CRITICAL:
        logger.error("[CRÍTICO] %s tardó %.0f ms", label, elapsed_ms)
    elif elapsed_ms >= THRESHOLD_WARNING:
        logger.warning("[LENTO] %s tardó %.0f ms", label, elapsed_ms)


# ==============================================================================
# FLASK
# ==============================================================================

def init_profiling(app) -> None:
    """Mide cada request de la app (método + regla de la ruta)."""
    if not ENABLE_PROFILING:
        return

    from flask import g, request

    @app.before_request
    def _perf_start():
        g.perf_started = time.perf_counter()

    @app.after_request
    def _perf_stop(response):
        started = g.pop('perf_started', None)
        if started is not None:
            rule = request.url_rule.rule if request.url_rule else request.path
            _record(f'{request.method} {rule}', (time.perf_counter() - started) * 1000)
        return response


# ==============================================================================
# DECORADOR
# ==============================================================================

def profile_function(func=None, name=None):
    """
    Mide una función o corrutina.

    Uso:
        @profile_function
        def calcular(): ...

        @profile_function(name="Buscar usuario")
        async def find_by_username(...): ...
    """
    def decorate(fn):
        if not ENABLE_PROFILING:
            return fn
        label = name or fn.__name__

        if inspect.iscoroutinefunction(fn):
            @wraps(fn)
            async def timed_async(*args, **kwargs):
                started = time.perf_counter()
                try:
                    return await fn(*args, **kwargs)
                finally:
                    _record(label, (time.perf_counter() - started) * 1000)
            return timed_async

        @wraps(fn)
        def timed(*args, **kwargs):
            started = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                _record(label, (time.perf_counter() - started) * 1000)
        return timed

    return decorate(func) if func is not None else decorate


# ==============================================================================
# REPORTE
# ==============================================================================

def get_function_stats() -> Dict[str, Dict[str, float]]:
    """
    Returns:
        {nombre: {calls, avg_time, max_time}} con tiempos en ms
    """
    with _registry.lock:
        return {
            label: {
                'calls': s.calls,
                'avg_time': round(s.avg_ms, 2),
                'max_time': round(s.max_ms, 2),
            }
            for label, s in _registry.stats.items()
        }


def get_slow_calls() -> List[Dict[str, float]]:
    """Últimas llamadas que superaron THRESHOLD_WARNING (más reciente al final)."""
    with _registry.lock:
        return [{'name': label, 'ms': ms} for label, ms in _registry.slow]


def reset_stats() -> None:
    with _registry.lock:
        _registry.stats.clear()
        _registry.slow.clear()
