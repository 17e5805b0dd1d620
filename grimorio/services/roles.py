# grimorio/services/roles.py

from typing import List
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from grimorio.core.exceptions import InvalidOperation, NotFound
from grimorio.models.auth import Permission, Role, RolePermission
from grimorio.schemas.auth import AssignPermissionsRequest, JwtUser, RoleCreate, RoleOut, RoleUpdate
from grimorio.services.common import flush_or_invalid

ROLE_NOT_FOUND = "Rol no encontrado."
ROLE_NAME_TAKEN = "Ya existe un rol con ese nombre en esta sucursal."


def _with_permissions(stmt):
    return stmt.options(selectinload(Role.role_permissions).selectinload(RolePermission.permission))


async def _get_role_entity(db: AsyncSession, actor: JwtUser, role_id: UUID, refresh: bool = False) -> Role:
    stmt = _with_permissions(select(Role)).where(Role.id == role_id, Role.branch_id == actor.branch_id)
    if refresh:
        stmt = stmt.execution_options(populate_existing=True)
    role = await db.scalar(stmt)
    if role is None:
        raise NotFound(ROLE_NOT_FOUND)
    return role


async def _ensure_unique_name(db: AsyncSession, actor: JwtUser, name: str, exclude_id: UUID = None) -> None:
    stmt = (
        select(Role.id)
        .where(Role.branch_id == actor.branch_id, Role.name == name)
        .execution_options(include_deleted=True)
    )
    if exclude_id is not None:
        stmt = stmt.where(Role.id != exclude_id)
    if await db.scalar(stmt) is not None:
        raise InvalidOperation(ROLE_NAME_TAKEN)


async def list_roles(db: AsyncSession, actor: JwtUser) -> List[RoleOut]:
    result = await db.execute(
        _with_permissions(select(Role)).where(Role.branch_id == actor.branch_id).order_by(Role.name)
    )
    return [RoleOut.model_validate(r) for r in result.scalars().all()]


async def get_role(db: AsyncSession, actor: JwtUser, role_id: UUID) -> RoleOut:
    return RoleOut.model_validate(await _get_role_entity(db, actor, role_id))


async def create_role(db: AsyncSession, actor: JwtUser, data: RoleCreate) -> RoleOut:
    await _ensure_unique_name(db, actor, data.name)

    role = Role(
        branch_id=actor.branch_id,
        created_by=actor.user_id,
        name=data.name,
        description=data.description,
        is_active=True,
        role_permissions=[],
        user_roles=[],
    )
    db.add(role)
    await flush_or_invalid(db, ROLE_NAME_TAKEN)
    return RoleOut.model_validate(role)


async def update_role(db: AsyncSession, actor: JwtUser, role_id: UUID, data: RoleUpdate) -> RoleOut:
    role = await _get_role_entity(db, actor, role_id)
    if data.name != role.name:
        await _ensure_unique_name(db, actor, data.name, exclude_id=role.id)

    role.name = data.name
    role.description = data.description
    role.is_active = data.is_active
    role.touch(actor.user_id)

    await flush_or_invalid(db, ROLE_NAME_TAKEN)
    return RoleOut.model_validate(role)


async def delete_role(db: AsyncSession, actor: JwtUser, role_id: UUID) -> None:
    role = await _get_role_entity(db, actor, role_id)
    role.soft_delete(actor.user_id)
    await db.flush()


async def assign_permissions_to_role(
    db: AsyncSession, actor: JwtUser, role_id: UUID, data: AssignPermissionsRequest
) -> RoleOut:
    """
    Reemplaza el conjunto de permisos del rol. Cada permiso debe existir en la
    misma sucursal; si alguno falla, el conjunto anterior queda intacto.
    """
    role = await _get_role_entity(db, actor, role_id)

    permission_ids = list(dict.fromkeys(data.permission_ids))
    for permission_id in permission_ids:
        found = await db.scalar(
            select(Permission.id).where(Permission.id == permission_id, Permission.branch_id == actor.branch_id)
        )
        if found is None:
            raise NotFound(f"Permiso con ID {permission_id} no encontrado.")

    await db.execute(
        delete(RolePermission)
        .where(RolePermission.role_id == role.id)
        .execution_options(synchronize_session=False)
    )
    for permission_id in permission_ids:
        db.add(RolePermission(
            branch_id=actor.branch_id,
            created_by=actor.user_id,
            role_id=role.id,
            permission_id=permission_id,
        ))
    await flush_or_invalid(db, "No se pudieron asignar los permisos.")

    return RoleOut.model_validate(await _get_role_entity(db, actor, role_id, refresh=True))
