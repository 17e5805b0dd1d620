# grimorio/services/permissions.py

from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from grimorio.core.exceptions import InvalidOperation, NotFound
from grimorio.models.auth import Permission
from grimorio.schemas.auth import JwtUser, PermissionCreate, PermissionOut, PermissionUpdate
from grimorio.services.common import flush_or_invalid

PERMISSION_NOT_FOUND = "Permiso no encontrado."
PERMISSION_CODE_TAKEN = "Ya existe un permiso con ese código en esta sucursal."


async def _get_permission_entity(db: AsyncSession, actor: JwtUser, permission_id: UUID) -> Permission:
    permission = await db.scalar(
        select(Permission).where(Permission.id == permission_id, Permission.branch_id == actor.branch_id)
    )
    if permission is None:
        raise NotFound(PERMISSION_NOT_FOUND)
    return permission


async def list_permissions(db: AsyncSession, actor: JwtUser) -> List[PermissionOut]:
    result = await db.scalars(
        select(Permission)
        .where(Permission.branch_id == actor.branch_id)
        .order_by(Permission.category, Permission.code)
    )
    return [PermissionOut.model_validate(p) for p in result.all()]


async def get_permission(db: AsyncSession, actor: JwtUser, permission_id: UUID) -> PermissionOut:
    return PermissionOut.model_validate(await _get_permission_entity(db, actor, permission_id))


async def create_permission(db: AsyncSession, actor: JwtUser, data: PermissionCreate) -> PermissionOut:
    existing = await db.scalar(
        select(Permission.id)
        .where(Permission.branch_id == actor.branch_id, Permission.code == data.code)
        .execution_options(include_deleted=True)
    )
    if existing is not None:
        raise InvalidOperation(PERMISSION_CODE_TAKEN)

    permission = Permission(
        branch_id=actor.branch_id,
        created_by=actor.user_id,
        code=data.code,
        description=data.description,
        category=data.category,
        is_active=True,
    )
    db.add(permission)
    await flush_or_invalid(db, PERMISSION_CODE_TAKEN)
    return PermissionOut.model_validate(permission)


async def update_permission(
    db: AsyncSession, actor: JwtUser, permission_id: UUID, data: PermissionUpdate
) -> PermissionOut:
    """El código es inmutable; solo cambian descripción, categoría y estado."""
    permission = await _get_permission_entity(db, actor, permission_id)

    permission.description = data.description
    if data.category is not None:
        permission.category = data.category
    permission.is_active = data.is_active
    permission.touch(actor.user_id)

    await db.flush()
    return PermissionOut.model_validate(permission)


async def delete_permission(db: AsyncSession, actor: JwtUser, permission_id: UUID) -> None:
    permission = await _get_permission_entity(db, actor, permission_id)
    permission.soft_delete(actor.user_id)
    await db.flush()
