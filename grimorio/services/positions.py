# grimorio/services/positions.py

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from grimorio.core.exceptions import InvalidOperation, NotFound
from grimorio.models.organization import Branch, Employee, Position
from grimorio.schemas.auth import JwtUser
from grimorio.schemas.common import Page
from grimorio.schemas.organization import PositionCreate, PositionOut, PositionUpdate
from grimorio.services.common import flush_or_invalid, paginate

POSITION_NOT_FOUND = "Cargo no encontrado."
POSITION_NAME_TAKEN = "Ya existe un cargo con ese nombre en esta sucursal."


async def _get_position_entity(db: AsyncSession, actor: JwtUser, position_id: UUID) -> Position:
    position = await db.scalar(
        select(Position).where(Position.id == position_id, Position.branch_id == actor.branch_id)
    )
    if position is None:
        raise NotFound(POSITION_NOT_FOUND)
    return position


async def _ensure_unique_name(db: AsyncSession, actor: JwtUser, name: str, exclude_id: UUID = None) -> None:
    stmt = (
        select(Position.id)
        .where(Position.branch_id == actor.branch_id, Position.name == name)
        .execution_options(include_deleted=True)
    )
    if exclude_id is not None:
        stmt = stmt.where(Position.id != exclude_id)
    if await db.scalar(stmt) is not None:
        raise InvalidOperation(POSITION_NAME_TAKEN)


async def get_position(db: AsyncSession, actor: JwtUser, position_id: UUID) -> PositionOut:
    return PositionOut.model_validate(await _get_position_entity(db, actor, position_id))


async def list_positions(
    db: AsyncSession, actor: JwtUser, page_number: int = 1, page_size: int = 10, only_active: bool = False
) -> Page[PositionOut]:
    filters = [Position.branch_id == actor.branch_id]
    if only_active:
        filters.append(Position.is_active.is_(True))

    items, total = await paginate(
        db, Position, filters, [Position.name, Position.id], page_number, page_size
    )
    return Page[PositionOut].build(
        [PositionOut.model_validate(p) for p in items], page_number, page_size, total
    )


async def create_position(db: AsyncSession, actor: JwtUser, data: PositionCreate) -> PositionOut:
    branch = await db.scalar(select(Branch.id).where(Branch.id == actor.branch_id))
    if branch is None:
        raise InvalidOperation("La sucursal no existe.")
    await _ensure_unique_name(db, actor, data.name)

    position = Position(
        branch_id=actor.branch_id,
        created_by=actor.user_id,
        name=data.name,
        description=data.description,
        is_active=True,
    )
    db.add(position)
    await flush_or_invalid(db, POSITION_NAME_TAKEN)
    return PositionOut.model_validate(position)


async def update_position(db: AsyncSession, actor: JwtUser, position_id: UUID, data: PositionUpdate) -> PositionOut:
    position = await _get_position_entity(db, actor, position_id)
    if data.name != position.name:
        await _ensure_unique_name(db, actor, data.name, exclude_id=position.id)

    position.name = data.name
    position.description = data.description
    position.is_active = data.is_active
    position.touch(actor.user_id)

    await flush_or_invalid(db, POSITION_NAME_TAKEN)
    return PositionOut.model_validate(position)


async def delete_position(db: AsyncSession, actor: JwtUser, position_id: UUID) -> None:
    """Un cargo con empleados vigentes no se puede eliminar."""
    position = await _get_position_entity(db, actor, position_id)

    assigned = await db.scalar(select(func.count(Employee.id)).where(Employee.position_id == position.id))
    if assigned:
        raise InvalidOperation("No se puede eliminar un cargo con empleados asignados.")

    position.soft_delete(actor.user_id)
    await db.flush()
