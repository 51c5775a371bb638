# ==============================================================================
# API LOCAL (Flask) - Adaptador JSON sobre el núcleo de estado
# ==============================================================================
# Las pantallas (login, ventas, caja) viven fuera de este paquete y hablan
# con estas rutas. Las rutas solo orquestan request → servicio/store →
# response; la lógica está en services/ y state/.
#
# Todas las respuestas son JSON: {'ok': bool, ...} y, si falla, 'error' con
# un mensaje corto. Nunca se devuelven trazas ni errores crudos.
# ==============================================================================

import asyncio
import logging
import uuid
from dataclasses import replace
from functools import wraps

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from inventory_pos.app_container import AppContainer
from inventory_pos.config import Settings
from inventory_pos.logging_config import configure_logging
from inventory_pos.models import Alert, CashSession, KardexEntry, Sale, UserRole, utc_now
from inventory_pos.performance_logger import get_function_stats, get_slow_calls, init_profiling
from inventory_pos.services import DirectoryError, LoginInProgressError
from inventory_pos.state import (
    AddAlert,
    AddCashSessionHistory,
    AddKardexEntry,
    AddSale,
    EndCashSession,
    MarkAlertRead,
    StartCashSession,
)

logger = logging.getLogger(__name__)


def _payload():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _error(message, status):
    return jsonify({'ok': False, 'error': message}), status


def _with_server_fields(data, **owned):
    """Copia del payload con id; los campos del servidor pisan lo que mande el cliente."""
    record = {k: v for k, v in data.items() if v is not None}
    record.update(owned)
    record.setdefault('id', str(uuid.uuid4()))
    return record


def create_app(container=None, prepare_directory=True):
    """
    Crea la app Flask.

    Args:
        container: AppContainer ya armado (por defecto, desde el entorno)
        prepare_directory: Migrar contraseñas / sembrar demo / cargar usuarios
    """
    if container is None:
        settings = Settings.from_env()
        configure_logging(settings.log_dir, settings.log_level)
        container = AppContainer(settings)

    container.start()
    if prepare_directory:
        try:
            asyncio.run(container.prepare_directory())
        except DirectoryError as e:
            # La terminal arranca igual; el login mostrará el error genérico
            logger.error("No se pudo preparar el directorio de usuarios: %s", e)

    app = Flask(__name__)
    app.config['CONTAINER'] = container
    app.json.sort_keys = False
    init_profiling(app)

    store = container.store
    directory = container.directory
    flow = container.auth_flow

    # ═══════════════════════════════════════════════════════════════════════
    # DECORADORES
    # ═══════════════════════════════════════════════════════════════════════

    def login_required(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            if store.state.current_user is None:
                return _error('Debe iniciar sesión', 401)
            return f(*args, **kwargs)
        return decorated

    def manager_required(f):
        @wraps(f)
        @login_required
        def decorated(*args, **kwargs):
            if not store.state.current_user.can_manage_users():
                return _error('Acceso denegado', 403)
            return f(*args, **kwargs)
        return decorated

    @app.after_request
    def set_security_headers(response):
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
        response.headers['Cache-Control'] = 'no-store'
        return response

    @app.errorhandler(Exception)
    def handle_error(e):
        if isinstance(e, HTTPException):
            return _error(e.description or e.name, e.code)
        logger.exception("Error no controlado en %s %s", request.method, request.path)
        return _error('Error interno. Por favor intenta de nuevo.', 500)

    # ═══════════════════════════════════════════════════════════════════════
    # SESIÓN
    # ═══════════════════════════════════════════════════════════════════════

    def _auth_response(result):
        if result.ok:
            return jsonify({'ok': True, 'user': result.user.public_dict()})
        status = 401 if result.failure is not None else 409
        body = {'ok': False, 'error': result.message or 'Inicio de sesión cancelado'}
        if result.failure is not None:
            body['reason'] = result.failure.value
        return jsonify(body), status

    @app.route('/api/login', methods=['POST'])
    def login():
        data = _payload()
        username = (data.get('username') or '').strip()
        password = data.get('password') or ''
        if not username or not password:
            return _error('Usuario y contraseña requeridos.', 400)
        try:
            result = asyncio.run(flow.submit(username, password))
        except LoginInProgressError as e:
            return _error(str(e), 409)
        return _auth_response(result)

    @app.route('/api/login/demo/<username>', methods=['POST'])
    def demo_login(username):
        try:
            result = asyncio.run(flow.quick_demo_login(username))
        except LoginInProgressError as e:
            return _error(str(e), 409)
        return _auth_response(result)

    @app.route('/api/logout', methods=['POST'])
    def logout():
        flow.logout()
        return jsonify({'ok': True})

    @app.route('/api/state', methods=['GET'])
    def get_state():
        return jsonify({'ok': True, 'state': store.state.to_dict()})

    # ═══════════════════════════════════════════════════════════════════════
    # VENTAS E INVENTARIO
    # ═══════════════════════════════════════════════════════════════════════

    @app.route('/api/sales', methods=['POST'])
    @login_required
    def add_sale():
        state = store.state
        current_session = state.current_cash_session
        try:
            sale = Sale.from_dict(_with_server_fields(
                _payload(),
                user_id=state.current_user.id,
                cash_session_id=current_session.id if current_session else None,
                created_at=utc_now(),
            ))
        except (KeyError, TypeError, ValueError) as e:
            return _error(f'Venta inválida: {e}', 400)
        store.dispatch(AddSale(sale))
        return jsonify({'ok': True, 'sale': sale.to_dict()}), 201

    @app.route('/api/kardex', methods=['POST'])
    @login_required
    def add_kardex_entry():
        try:
            entry = KardexEntry.from_dict(_with_server_fields(
                _payload(),
                user_id=store.state.current_user.id,
                created_at=utc_now(),
            ))
        except (KeyError, TypeError, ValueError) as e:
            return _error(f'Movimiento inválido: {e}', 400)
        store.dispatch(AddKardexEntry(entry))
        return jsonify({'ok': True, 'entry': entry.to_dict()}), 201

    # ═══════════════════════════════════════════════════════════════════════
    # CAJA
    # ═══════════════════════════════════════════════════════════════════════

    @app.route('/api/cash-sessions', methods=['POST'])
    @login_required
    def start_cash_session():
        if store.state.current_cash_session is not None:
            return _error('Ya hay una caja abierta', 409)
        data = _payload()
        data.pop('status', None)
        data.pop('end_time', None)
        try:
            session = CashSession.from_dict(_with_server_fields(
                data,
                user_id=store.state.current_user.id,
                start_time=utc_now(),
            ))
        except (KeyError, TypeError, ValueError) as e:
            return _error(f'Turno inválido: {e}', 400)
        store.dispatch(StartCashSession(session))
        return jsonify({'ok': True, 'session': session.to_dict()}), 201

    @app.route('/api/cash-sessions/end', methods=['POST'])
    @login_required
    def end_cash_session():
        current = store.state.current_cash_session
        if current is None:
            return _error('No hay caja abierta', 409)
        store.dispatch(EndCashSession())
        closed = next((s for s in store.state.cash_sessions if s.id == current.id), None)
        return jsonify({'ok': True, 'session': closed.to_dict() if closed else None})

    @app.route('/api/cash-sessions/<session_id>', methods=['PUT'])
    @login_required
    def update_cash_session(session_id):
        existing = next((s for s in store.state.cash_sessions if s.id == session_id), None)
        if existing is None:
            return _error('Turno no encontrado', 404)
        record = existing.to_dict()
        record.update(_payload())
        record['id'] = session_id
        try:
            session = CashSession.from_dict(record)
        except (KeyError, TypeError, ValueError) as e:
            return _error(f'Turno inválido: {e}', 400)
        store.dispatch(AddCashSessionHistory(session))
        return jsonify({'ok': True, 'session': session.to_dict()})

    # ═══════════════════════════════════════════════════════════════════════
    # ALERTAS
    # ═══════════════════════════════════════════════════════════════════════

    @app.route('/api/alerts', methods=['POST'])
    @login_required
    def add_alert():
        try:
            alert = Alert.from_dict(_with_server_fields(_payload(), created_at=utc_now(), is_read=False))
        except (KeyError, TypeError, ValueError) as e:
            return _error(f'Alerta inválida: {e}', 400)
        store.dispatch(AddAlert(alert))
        return jsonify({'ok': True, 'alert': alert.to_dict()}), 201

    @app.route('/api/alerts/<alert_id>/read', methods=['POST'])
    @login_required
    def mark_alert_read(alert_id):
        if not any(a.id == alert_id for a in store.state.alerts):
            return _error('Alerta no encontrada', 404)
        store.dispatch(MarkAlertRead(alert_id))
        return jsonify({'ok': True})

    # ═══════════════════════════════════════════════════════════════════════
    # USUARIOS
    # ═══════════════════════════════════════════════════════════════════════

    @app.route('/api/users', methods=['GET'])
    @manager_required
    def list_users():
        users = asyncio.run(directory.list_users())
        body = {'ok': directory.error is None, 'users': [u.public_dict() for u in users]}
        if directory.error:
            body['error'] = directory.error
        return jsonify(body)

    @app.route('/api/users', methods=['POST'])
    @manager_required
    def create_user():
        data = _payload()
        try:
            user = asyncio.run(directory.add_user(
                data.get('username') or '',
                data.get('password') or '',
                email=data.get('email') or '',
                role=UserRole(data.get('role', UserRole.CASHIER.value)),
                is_active=bool(data.get('is_active', True)),
            ))
        except ValueError:
            return _error('Rol inválido', 400)
        except DirectoryError as e:
            return _error(str(e), 400)
        return jsonify({'ok': True, 'user': user.public_dict()}), 201

    @app.route('/api/users/<user_id>', methods=['PUT'])
    @manager_required
    def update_user(user_id):
        existing = directory.get_cached(user_id)
        if existing is None:
            return _error('Usuario no encontrado', 404)
        data = _payload()
        try:
            changes = {}
            for name in ('username', 'email', 'is_active'):
                if name in data:
                    changes[name] = data[name]
            if 'role' in data:
                changes['role'] = UserRole(data['role'])
            user = asyncio.run(directory.update_user(replace(existing, **changes)))
            if data.get('password'):
                user = asyncio.run(directory.change_password(user_id, data['password']))
        except ValueError:
            return _error('Rol inválido', 400)
        except DirectoryError as e:
            return _error(str(e), 400)
        return jsonify({'ok': True, 'user': user.public_dict()})

    @app.route('/api/users/<user_id>', methods=['DELETE'])
    @manager_required
    def delete_user(user_id):
        if store.state.current_user.id == user_id:
            return _error('No puedes eliminar tu propia cuenta', 400)
        try:
            asyncio.run(directory.delete_user(user_id))
        except DirectoryError as e:
            return _error(str(e), 400)
        return jsonify({'ok': True})

    # ═══════════════════════════════════════════════════════════════════════
    # RENDIMIENTO
    # ═══════════════════════════════════════════════════════════════════════

    @app.route('/api/perf', methods=['GET'])
    @manager_required
    def perf_stats():
        return jsonify({'ok': True, 'stats': get_function_stats(), 'slow': get_slow_calls()})

    return app


def run():
    """Punto de entrada: `inventory-pos`."""
    settings = Settings.from_env()
    configure_logging(settings.log_dir, settings.log_level)
    app = create_app(AppContainer(settings))
    logger.info("API local iniciada en http://%s:%s", settings.host, settings.port)
    app.run(host=settings.host, port=settings.port)


if __name__ == '__main__':
    run()
