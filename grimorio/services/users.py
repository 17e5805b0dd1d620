# grimorio/services/users.py

from typing import List
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from grimorio.core.exceptions import Forbidden, InvalidOperation, NotFound
from grimorio.core.logging import get_logger
from grimorio.core.security import get_password_hash, verify_password
from grimorio.models.auth import RefreshToken, Role, User, UserRole
from grimorio.models.base import utcnow
from grimorio.schemas.auth import (
    AssignRolesRequest,
    ChangePasswordRequest,
    JwtUser,
    UserCreate,
    UserOut,
    UserUpdate,
)
from grimorio.services.common import flush_or_invalid

logger = get_logger(__name__)

USER_NOT_FOUND = "Usuario no encontrado."
EMAIL_TAKEN = "El email ya está registrado."


def _with_roles(stmt):
    return stmt.options(selectinload(User.user_roles).selectinload(UserRole.role))


async def _get_user_entity(db: AsyncSession, actor: JwtUser, user_id: UUID, refresh: bool = False) -> User:
    stmt = _with_roles(select(User)).where(User.id == user_id, User.branch_id == actor.branch_id)
    if refresh:
        stmt = stmt.execution_options(populate_existing=True)
    user = await db.scalar(stmt)
    if user is None:
        raise NotFound(USER_NOT_FOUND)
    return user


async def list_users(db: AsyncSession, actor: JwtUser) -> List[UserOut]:
    result = await db.execute(
        _with_roles(select(User)).where(User.branch_id == actor.branch_id).order_by(User.email)
    )
    return [UserOut.model_validate(u) for u in result.scalars().all()]


async def get_user(db: AsyncSession, actor: JwtUser, user_id: UUID) -> UserOut:
    return UserOut.model_validate(await _get_user_entity(db, actor, user_id))


async def create_user(db: AsyncSession, actor: JwtUser, data: UserCreate) -> UserOut:
    """Crea un usuario en la sucursal del actor. El email es único en todo el sistema."""
    # Incluye eliminados: el índice único también los cubre
    existing = await db.scalar(
        select(User.id).where(User.email == data.email).execution_options(include_deleted=True)
    )
    if existing is not None:
        raise InvalidOperation(EMAIL_TAKEN)

    user = User(
        branch_id=actor.branch_id,
        created_by=actor.user_id,
        email=data.email,
        first_name=data.first_name,
        last_name=data.last_name,
        password_hash=get_password_hash(data.password),
        is_active=True,
        user_roles=[],
    )
    db.add(user)
    await flush_or_invalid(db, EMAIL_TAKEN)

    logger.info("Usuario creado", extra={"extra_data": {"user_id": str(user.id)}})
    return UserOut.model_validate(user)


async def update_user(db: AsyncSession, actor: JwtUser, user_id: UUID, data: UserUpdate) -> UserOut:
    user = await _get_user_entity(db, actor, user_id)

    user.first_name = data.first_name
    user.last_name = data.last_name
    user.is_active = data.is_active
    user.touch(actor.user_id)

    await db.flush()
    return UserOut.model_validate(user)


async def delete_user(db: AsyncSession, actor: JwtUser, user_id: UUID) -> None:
    user = await _get_user_entity(db, actor, user_id)
    user.soft_delete(actor.user_id)
    await db.flush()


async def assign_roles_to_user(db: AsyncSession, actor: JwtUser, user_id: UUID, data: AssignRolesRequest) -> UserOut:
    """
    Reemplaza los roles del usuario en la sucursal del actor.
    Todos los roles se validan antes de tocar las asignaciones actuales, y el
    reemplazo ocurre en la transacción de la solicitud: o se aplica completo o nada.
    """
    user = await _get_user_entity(db, actor, user_id)

    role_ids = list(dict.fromkeys(data.role_ids))
    for role_id in role_ids:
        role = await db.scalar(select(Role.id).where(Role.id == role_id, Role.branch_id == actor.branch_id))
        if role is None:
            raise NotFound(f"Rol con ID {role_id} no encontrado.")

    await db.execute(
        delete(UserRole)
        .where(UserRole.user_id == user.id, UserRole.branch_id == actor.branch_id)
        .execution_options(synchronize_session=False)
    )
    for role_id in role_ids:
        db.add(UserRole(
            branch_id=actor.branch_id,
            created_by=actor.user_id,
            user_id=user.id,
            role_id=role_id,
        ))
    await flush_or_invalid(db, "No se pudieron asignar los roles.")

    return UserOut.model_validate(await _get_user_entity(db, actor, user_id, refresh=True))


async def change_password(db: AsyncSession, actor: JwtUser, user_id: UUID, data: ChangePasswordRequest) -> None:
    """Solo el propio usuario puede cambiar su contraseña; revoca sus refresh tokens."""
    if actor.user_id != user_id:
        raise Forbidden("No puedes cambiar la contraseña de otro usuario.")

    user = await _get_user_entity(db, actor, user_id)
    if not verify_password(data.current_password, user.password_hash):
        raise InvalidOperation("La contraseña actual es incorrecta.")

    user.password_hash = get_password_hash(data.new_password)
    user.touch(actor.user_id)

    now = utcnow()
    await db.execute(
        update(RefreshToken)
        .where(RefreshToken.user_id == user.id, RefreshToken.revoked_at.is_(None))
        .values(revoked_at=now, updated_at=now, updated_by=actor.user_id)
    )
    await db.flush()
