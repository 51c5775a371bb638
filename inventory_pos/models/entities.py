# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio del punto de venta.
# Son inmutables: el árbol de estado solo cambia creando registros nuevos.
#
# Dos representaciones:
#   - to_dict()/from_dict()     → snapshot local (JSON)
#   - to_record()/from_record() → fila del almacén remoto (solo User)
# ==============================================================================

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple


def utc_now() -> str:
    """Marca de tiempo ISO-8601 en UTC."""
    return datetime.now(timezone.utc).isoformat()


# ==============================================================================
# ENUMERACIONES - Estados y tipos válidos
# ==============================================================================

class UserRole(str, Enum):
    """Roles de usuario disponibles en el sistema."""
    ADMIN = "admin"
    SUPERVISOR = "supervisor"
    CASHIER = "cashier"


class CashSessionStatus(str, Enum):
    """Estado de un turno de caja."""
    OPEN = "open"
    CLOSED = "closed"


class KardexType(str, Enum):
    """Tipo de movimiento de inventario."""
    ENTRADA = "entrada"
    SALIDA = "salida"
    AJUSTE = "ajuste"


class AlertType(str, Enum):
    """Tipos de alerta mostradas al operador."""
    STOCK_BAJO = "stock_bajo"
    SIN_STOCK = "sin_stock"
    SISTEMA = "sistema"


def _enum_or_default(enum_cls, value, default):
    try:
        return enum_cls(value)
    except ValueError:
        return default


# ==============================================================================
# ENTIDADES DE USUARIO
# ==============================================================================

@dataclass(frozen=True)
class User:
    """
    Representa un usuario del sistema.

    Attributes:
        id: Identificador opaco (lo genera el directorio, no el almacén)
        username: Nombre único (sensible a mayúsculas)
        email: Correo de contacto
        role: Rol del usuario que define sus permisos
        is_active: Si puede iniciar sesión
        password_hash: Hash de la contraseña (nunca almacenar en texto plano)
        created_at: Fecha de creación ISO-8601
        extra: Campos del almacén sin contraparte en la aplicación
    """
    id: str
    username: str
    email: str = ''
    role: UserRole = UserRole.CASHIER
    is_active: bool = True
    password_hash: str = ''
    created_at: str = ''
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    # Campos que tienen nombre propio en la fila del almacén
    RECORD_FIELDS = ('id', 'username', 'email', 'role', 'is_active', 'password', 'created_at')

    def is_admin(self) -> bool:
        """Verifica si el usuario tiene permisos de administrador."""
        return self.role == UserRole.ADMIN

    def can_manage_users(self) -> bool:
        """Administradores y supervisores gestionan usuarios."""
        return self.role in (UserRole.ADMIN, UserRole.SUPERVISOR)

    def public_dict(self) -> Dict[str, Any]:
        """Datos del usuario sin el hash de la contraseña."""
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'role': self.role.value,
            'is_active': self.is_active,
            'created_at': self.created_at,
        }

    def to_record(self) -> Dict[str, Any]:
        """Convierte a fila del almacén remoto."""
        record = dict(self.extra)
        record.update({
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'role': self.role.value,
            'is_active': self.is_active,
            'password': self.password_hash,
        })
        if self.created_at:
            record['created_at'] = self.created_at
        return record

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'User':
        """
        Crea instancia desde una fila del almacén remoto.

        Raises:
            KeyError: si la fila no trae id o username
            TypeError: si la fila no es un objeto
        """
        if not isinstance(record, dict):
            raise TypeError(f'Fila de usuario inválida: {record!r}')
        extra = {k: v for k, v in record.items() if k not in cls.RECORD_FIELDS}
        return cls(
            id=str(record['id']),
            username=record['username'],
            email=record.get('email') or '',
            role=_enum_or_default(UserRole, record.get('role'), UserRole.CASHIER),
            is_active=bool(record.get('is_active', True)),
            password_hash=record.get('password') or '',
            created_at=record.get('created_at') or '',
            extra=extra,
        )


# ==============================================================================
# ENTIDADES DE VENTAS
# ==============================================================================

@dataclass(frozen=True)
class SaleItem:
    """Línea de una venta. El producto vive fuera de este núcleo."""
    product_id: str
    quantity: int
    unit_price: float
    subtotal: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'quantity': self.quantity,
            'unit_price': self.unit_price,
            'subtotal': self.subtotal,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SaleItem':
        quantity = int(data['quantity'])
        unit_price = float(data['unit_price'])
        return cls(
            product_id=str(data['product_id']),
            quantity=quantity,
            unit_price=unit_price,
            subtotal=float(data.get('subtotal', quantity * unit_price)),
        )


@dataclass(frozen=True)
class Sale:
    """
    Venta registrada en caja. Inmutable una vez agregada al estado.

    Attributes:
        id: Identificador de la venta
        items: Líneas vendidas
        total: Importe total cobrado
        payment_method: Medio de pago (efectivo, tarjeta, ...)
        user_id: Cajero que registró la venta
        cash_session_id: Turno de caja en el que se cobró
        created_at: Fecha ISO-8601
    """
    id: str
    items: Tuple[SaleItem, ...] = ()
    total: float = 0.0
    payment_method: str = 'efectivo'
    user_id: Optional[str] = None
    cash_session_id: Optional[str] = None
    created_at: str = ''

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        return {
            'id': self.id,
            'items': [item.to_dict() for item in self.items],
            'total': self.total,
            'payment_method': self.payment_method,
            'user_id': self.user_id,
            'cash_session_id': self.cash_session_id,
            'created_at': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Sale':
        """Crea instancia desde diccionario."""
        items = tuple(SaleItem.from_dict(i) for i in data.get('items', []))
        return cls(
            id=str(data['id']),
            items=items,
            total=float(data.get('total', sum(i.subtotal for i in items))),
            payment_method=data.get('payment_method', 'efectivo'),
            user_id=data.get('user_id'),
            cash_session_id=data.get('cash_session_id'),
            created_at=data.get('created_at', ''),
        )


# ==============================================================================
# ENTIDADES DE INVENTARIO
# ==============================================================================

@dataclass(frozen=True)
class KardexEntry:
    """
    Movimiento del kardex (libro de inventario).

    Attributes:
        id: Identificador del movimiento
        product_id: Producto afectado
        type: entrada, salida o ajuste
        quantity: Unidades movidas
        previous_stock: Stock antes del movimiento
        new_stock: Stock después del movimiento
        reason: Motivo legible (venta, compra, merma...)
        user_id: Usuario que registró el movimiento
        created_at: Fecha ISO-8601
    """
    id: str
    product_id: str
    type: KardexType
    quantity: int
    previous_stock: int = 0
    new_stock: int = 0
    reason: str = ''
    user_id: Optional[str] = None
    created_at: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'product_id': self.product_id,
            'type': self.type.value,
            'quantity': self.quantity,
            'previous_stock': self.previous_stock,
            'new_stock': self.new_stock,
            'reason': self.reason,
            'user_id': self.user_id,
            'created_at': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'KardexEntry':
        return cls(
            id=str(data['id']),
            product_id=str(data['product_id']),
            type=KardexType(data['type']),
            quantity=int(data['quantity']),
            previous_stock=int(data.get('previous_stock', 0)),
            new_stock=int(data.get('new_stock', 0)),
            reason=data.get('reason', ''),
            user_id=data.get('user_id'),
            created_at=data.get('created_at', ''),
        )


# ==============================================================================
# CAJA Y ALERTAS
# ==============================================================================

@dataclass(frozen=True)
class CashSession:
    """
    Turno de caja. El turno "actual" es un selector sobre el historial,
    no un registro aparte.
    """
    id: str
    user_id: Optional[str] = None
    start_time: str = ''
    end_time: Optional[str] = None
    initial_amount: float = 0.0
    final_amount: Optional[float] = None
    status: CashSessionStatus = CashSessionStatus.OPEN

    @property
    def is_open(self) -> bool:
        return self.status == CashSessionStatus.OPEN

    def close(self, end_time: str) -> 'CashSession':
        """Copia del turno cerrado en end_time."""
        return replace(self, end_time=end_time, status=CashSessionStatus.CLOSED)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'initial_amount': self.initial_amount,
            'final_amount': self.final_amount,
            'status': self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CashSession':
        final_amount = data.get('final_amount')
        return cls(
            id=str(data['id']),
            user_id=data.get('user_id'),
            start_time=data.get('start_time', ''),
            end_time=data.get('end_time'),
            initial_amount=float(data.get('initial_amount', 0.0)),
            final_amount=float(final_amount) if final_amount is not None else None,
            status=CashSessionStatus(data.get('status', 'open')),
        )


@dataclass(frozen=True)
class Alert:
    """Alerta para el operador (stock bajo, avisos del sistema)."""
    id: str
    message: str
    type: AlertType = AlertType.SISTEMA
    is_read: bool = False
    created_at: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'message': self.message,
            'type': self.type.value,
            'is_read': self.is_read,
            'created_at': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Alert':
        return cls(
            id=str(data['id']),
            message=data['message'],
            type=_enum_or_default(AlertType, data.get('type'), AlertType.SISTEMA),
            is_read=bool(data.get('is_read', False)),
            created_at=data.get('created_at', ''),
        )
