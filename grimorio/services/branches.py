# grimorio/services/branches.py

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from grimorio.core.exceptions import InvalidOperation, NotFound
from grimorio.models.organization import Branch
from grimorio.schemas.auth import JwtUser
from grimorio.schemas.organization import BranchOut, BranchUpdate
from grimorio.services.common import flush_or_invalid

BRANCH_NOT_FOUND = "Sucursal no encontrada."
BRANCH_CODE_TAKEN = "Ya existe una sucursal con ese código."


async def _get_current_branch_entity(db: AsyncSession, actor: JwtUser) -> Branch:
    branch = await db.scalar(select(Branch).where(Branch.id == actor.branch_id))
    if branch is None:
        raise NotFound(BRANCH_NOT_FOUND)
    return branch


async def get_current_branch(db: AsyncSession, actor: JwtUser) -> BranchOut:
    return BranchOut.model_validate(await _get_current_branch_entity(db, actor))


async def update_current_branch(db: AsyncSession, actor: JwtUser, data: BranchUpdate) -> BranchOut:
    branch = await _get_current_branch_entity(db, actor)

    if data.code != branch.code:
        taken = await db.scalar(
            select(Branch.id)
            .where(Branch.code == data.code, Branch.id != branch.id)
            .execution_options(include_deleted=True)
        )
        if taken is not None:
            raise InvalidOperation(BRANCH_CODE_TAKEN)

    branch.name = data.name
    branch.code = data.code
    branch.address = data.address
    branch.phone = data.phone
    branch.email = data.email
    branch.is_active = data.is_active
    branch.latitude = data.latitude
    branch.longitude = data.longitude
    branch.touch(actor.user_id)

    await flush_or_invalid(db, BRANCH_CODE_TAKEN)
    return BranchOut.model_validate(branch)
