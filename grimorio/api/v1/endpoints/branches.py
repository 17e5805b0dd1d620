# grimorio/api/v1/endpoints/branches.py
# type: ignore

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from grimorio.api.v1.endpoints.auth import get_current_user, require_policy
from grimorio.core.authorization import ADMIN_ONLY
from grimorio.database import get_db
from grimorio.schemas.auth import JwtUser
from grimorio.schemas.organization import BranchOut, BranchUpdate
from grimorio.services import branches as branch_service

router = APIRouter()


# ***************************************************************
# Sucursal del usuario autenticado
# ***************************************************************
@router.get("/current", response_model=BranchOut, tags=["Branches"])
async def get_current_branch(actor: JwtUser = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    """Datos de la sucursal del token."""
    return await branch_service.get_current_branch(db, actor)


@router.put("/current", response_model=BranchOut, tags=["Branches"])
async def update_current_branch(
    data: BranchUpdate,
    actor: JwtUser = Depends(require_policy(ADMIN_ONLY)),
    db: AsyncSession = Depends(get_db),
):
    return await branch_service.update_current_branch(db, actor, data)
