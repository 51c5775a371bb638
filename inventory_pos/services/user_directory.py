# ==============================================================================
# DIRECTORIO DE USUARIOS
# ==============================================================================
# Centraliza todo el acceso a usuarios: listado, alta, edición, baja y
# búsqueda por username para el inicio de sesión.
#
# - Este servicio NO depende del tipo de almacén (archivo JSON / REST)
# - Solo interactúa con el gateway a través de IUserGateway
# - Mantiene un espejo en memoria (users) que NO es autoritativo: puede
#   diferir del almacén entre llamadas. Quien necesite datos frescos debe
#   llamar a list_users().
#
# ERRORES:
# Las fallas del gateway NUNCA salen tal cual. Se registran en el log y se
# relanzan como DirectoryError con un mensaje corto para el usuario.
# "No existe" (find_by_username → None) no es un error.
# ==============================================================================

import asyncio
import logging
import uuid
from dataclasses import replace
from typing import Any, Dict, List, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from inventory_pos.models import User, UserRole
from inventory_pos.performance_logger import profile_function
from inventory_pos.repositories.errors import GatewayError, NoRowsError
from inventory_pos.repositories.interfaces import IUserGateway

logger = logging.getLogger(__name__)

# Usuarios de demostración: (username, email, rol)
DEMO_USERS = (
    ('admin', 'admin@empresa.com', UserRole.ADMIN),
    ('supervisor', 'supervisor@empresa.com', UserRole.SUPERVISOR),
    ('vendedor', 'vendedor@empresa.com', UserRole.CASHIER),
)


class DirectoryError(Exception):
    """Falla del directorio de usuarios con mensaje apto para mostrar."""
    pass


def is_password_hashed(password_value: str) -> bool:
    """
    Verifica si una contraseña ya está hasheada.

    Returns:
        True si está hasheado (pbkdf2: o scrypt:)
    """
    if not password_value:
        return False
    return password_value.startswith('pbkdf2:') or password_value.startswith('scrypt:')


class UserDirectory:
    """
    Directorio de usuarios sobre el almacén remoto.

    Atributos públicos (solo lectura para los demás componentes):
        users: Espejo en memoria, más recientes primero
        loading: True mientras list_users() está en curso
        error: Último error de carga, o None
    """

    MIN_PASSWORD_LENGTH = 4

    def __init__(self, gateway: IUserGateway, timeout: float = 10.0):
        """
        Args:
            gateway: Acceso al almacén remoto (JSON o REST)
            timeout: Segundos máximos por llamada al almacén
        """
        self.gateway = gateway
        self.timeout = timeout
        self.users: List[User] = []
        self.loading = False
        self.error: Optional[str] = None

    async def _call(self, awaitable):
        """Ejecuta una llamada al gateway con tiempo límite."""
        try:
            return await asyncio.wait_for(awaitable, self.timeout)
        except asyncio.TimeoutError as e:
            raise GatewayError(f'El almacén no respondió en {self.timeout} s') from e

    # =========================================================================
    # LECTURA
    # =========================================================================

    @profile_function(name="Cargar usuarios")
    async def list_users(self) -> List[User]:
        """
        Recarga el espejo con todos los usuarios (más recientes primero).

        Si falla, el espejo queda como estaba y se registra el error.

        Returns:
            El espejo actual
        """
        self.loading = True
        try:
            rows = await self._call(self.gateway.list_all('created_at', descending=True))
            self.users = [User.from_record(row) for row in rows]
            self.error = None
        except (GatewayError, KeyError, TypeError, ValueError) as e:
            logger.error("Error al cargar usuarios: %s", e)
            self.error = 'Error al cargar usuarios'
        finally:
            self.loading = False
        return self.users

    @profile_function(name="Buscar usuario")
    async def find_by_username(self, username: str, include_inactive: bool = False) -> Optional[User]:
        """
        Busca un usuario por username.

        Args:
            username: Nombre exacto (sensible a mayúsculas)
            include_inactive: Si True también devuelve usuarios inactivos

        Returns:
            El usuario, o None si ninguna fila coincide

        Raises:
            DirectoryError: Si la búsqueda falló (red, formato...)
        """
        filters: Dict[str, Any] = {'username': username}
        if not include_inactive:
            filters['is_active'] = True
        try:
            row = await self._call(self.gateway.find_one(filters))
            return User.from_record(row)
        except NoRowsError:
            return None
        except (GatewayError, KeyError, TypeError, ValueError) as e:
            logger.error("Error al buscar usuario %r: %s", username, e)
            raise DirectoryError('Error al buscar usuario') from e

    def get_cached(self, user_id: str) -> Optional[User]:
        """Usuario del espejo por id (sin ir al almacén)."""
        for user in self.users:
            if user.id == user_id:
                return user
        return None

    # =========================================================================
    # ESCRITURA
    # =========================================================================

    @profile_function(name="Agregar usuario")
    async def add_user(
        self,
        username: str,
        password: str,
        email: str = '',
        role: UserRole = UserRole.CASHIER,
        is_active: bool = True
    ) -> User:
        """
        Crea un usuario nuevo. El id lo genera el directorio.

        Args:
            username: Nombre de usuario (la unicidad la valida el almacén)
            password: Contraseña en texto plano (se guarda solo el hash)
            email: Correo
            role: Rol del usuario
            is_active: Si puede iniciar sesión

        Returns:
            El usuario tal como quedó guardado

        Raises:
            DirectoryError: Datos inválidos o falla del almacén
        """
        if not username or not username.strip():
            raise DirectoryError('Nombre de usuario requerido')
        if not password:
            raise DirectoryError('Contraseña requerida')

        user = User(
            id=str(uuid.uuid4()),
            username=username.strip(),
            email=email,
            role=UserRole(role),
            is_active=is_active,
            password_hash=generate_password_hash(password),
        )
        try:
            row = await self._call(self.gateway.insert_one(user.to_record()))
            created = User.from_record(row)
        except (GatewayError, KeyError, TypeError, ValueError) as e:
            logger.error("Error al agregar usuario %r: %s", username, e)
            raise DirectoryError('Error al agregar usuario') from e

        self.users = [created] + self.users
        logger.info("Usuario %s creado (%s)", created.username, created.role.value)
        return created

    @profile_function(name="Actualizar usuario")
    async def update_user(self, user: User) -> User:
        """
        Actualiza todos los campos de un usuario (clave: id).

        Returns:
            El usuario tal como quedó guardado

        Raises:
            DirectoryError: Si el almacén rechaza la actualización
        """
        fields = user.to_record()
        fields.pop('id', None)
        fields.pop('created_at', None)
        try:
            row = await self._call(self.gateway.update_by_id(user.id, fields))
            updated = User.from_record(row)
        except (GatewayError, KeyError, TypeError, ValueError) as e:
            logger.error("Error al actualizar usuario %s: %s", user.id, e)
            raise DirectoryError('Error al actualizar usuario') from e

        self.users = [updated if u.id == user.id else u for u in self.users]
        return updated

    async def change_password(self, user_id: str, new_password: str) -> User:
        """
        Cambia la contraseña de un usuario.

        Raises:
            DirectoryError: Contraseña muy corta o falla del almacén
        """
        if not new_password or len(new_password) < self.MIN_PASSWORD_LENGTH:
            raise DirectoryError(
                f'La contraseña debe tener al menos {self.MIN_PASSWORD_LENGTH} caracteres'
            )
        try:
            row = await self._call(self.gateway.update_by_id(
                user_id, {'password': generate_password_hash(new_password)}
            ))
            updated = User.from_record(row)
        except (GatewayError, KeyError, TypeError, ValueError) as e:
            logger.error("Error al cambiar contraseña de %s: %s", user_id, e)
            raise DirectoryError('Error al cambiar contraseña') from e

        self.users = [updated if u.id == user_id else u for u in self.users]
        return updated

    @profile_function(name="Eliminar usuario")
    async def delete_user(self, user_id: str) -> None:
        """
        Elimina un usuario del almacén y del espejo.

        Raises:
            DirectoryError: Si el almacén rechaza la eliminación
        """
        try:
            await self._call(self.gateway.delete_by_id(user_id))
        except GatewayError as e:
            logger.error("Error al eliminar usuario %s: %s", user_id, e)
            raise DirectoryError('Error al eliminar usuario') from e

        self.users = [u for u in self.users if u.id != user_id]

    # =========================================================================
    # CREDENCIALES
    # =========================================================================

    def verify_credential(self, user: User, password: str) -> bool:
        """
        Verifica si una contraseña es correcta para un usuario.

        SEGURIDAD: Solo acepta contraseñas hasheadas. Las contraseñas en
        texto plano deben migrarse con migrate_plaintext_credentials().
        """
        if not is_password_hashed(user.password_hash):
            logger.warning(
                "[SEGURIDAD] Usuario '%s' tiene contraseña sin hash. Ejecutar migración.",
                user.username
            )
            return False
        return check_password_hash(user.password_hash, password)

    async def migrate_plaintext_credentials(self) -> int:
        """
        Migra todas las contraseñas en texto plano a hash seguro.

        Las filas sembradas a mano en el almacén pueden traer la contraseña
        sin hashear; esta función se llama al iniciar la terminal.

        Returns:
            Cantidad de contraseñas migradas
        """
        await self.list_users()
        if self.error:
            raise DirectoryError(self.error)

        migrated = 0
        for user in list(self.users):
            if user.password_hash and not is_password_hashed(user.password_hash):
                logger.warning("[SEGURIDAD] Migrando contraseña de '%s' a hash seguro", user.username)
                await self.update_user(replace(user, password_hash=generate_password_hash(user.password_hash)))
                migrated += 1

        if migrated:
            logger.info("[SEGURIDAD] %d contraseña(s) migrada(s) a hash", migrated)
        return migrated

    async def ensure_demo_users(self, password: str) -> List[User]:
        """
        Crea los usuarios de demostración que falten.

        Returns:
            Usuarios creados en esta llamada
        """
        created = []
        for username, email, role in DEMO_USERS:
            if await self.find_by_username(username, include_inactive=True) is None:
                created.append(await self.add_user(username, password, email=email, role=role))
        if created:
            logger.info("Usuarios demo creados: %s", ', '.join(u.username for u in created))
        return created
