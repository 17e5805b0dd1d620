# grimorio/api/v1/endpoints/positions.py
# type: ignore

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from grimorio.api.v1.endpoints.auth import get_current_user, require_policy
from grimorio.core.authorization import ADMIN_ONLY
from grimorio.database import get_db
from grimorio.schemas.auth import JwtUser
from grimorio.schemas.common import Page
from grimorio.schemas.organization import PositionCreate, PositionOut, PositionUpdate
from grimorio.services import positions as position_service

router = APIRouter()
admin_only = require_policy(ADMIN_ONLY)


# ***************************************************************
# 1. Consulta (cualquier usuario autenticado)
# ***************************************************************
@router.get("/", response_model=Page[PositionOut], tags=["Positions"])
async def list_positions(
    page_number: int = Query(1),
    page_size: int = Query(10),
    only_active: bool = Query(False),
    actor: JwtUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Lista paginada de cargos de la sucursal."""
    return await position_service.list_positions(db, actor, page_number, page_size, only_active)


@router.get("/{position_id}", response_model=PositionOut, tags=["Positions"])
async def get_position(
    position_id: UUID, actor: JwtUser = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    return await position_service.get_position(db, actor, position_id)


# ***************************************************************
# 2. Mantenimiento (solo administrador)
# ***************************************************************
@router.post("/", response_model=PositionOut, status_code=status.HTTP_201_CREATED, tags=["Positions"])
async def create_position(
    data: PositionCreate, actor: JwtUser = Depends(admin_only), db: AsyncSession = Depends(get_db)
):
    return await position_service.create_position(db, actor, data)


@router.put("/{position_id}", response_model=PositionOut, tags=["Positions"])
async def update_position(
    position_id: UUID, data: PositionUpdate, actor: JwtUser = Depends(admin_only), db: AsyncSession = Depends(get_db)
):
    return await position_service.update_position(db, actor, position_id, data)


@router.delete("/{position_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Positions"])
async def delete_position(
    position_id: UUID, actor: JwtUser = Depends(admin_only), db: AsyncSession = Depends(get_db)
):
    await position_service.delete_position(db, actor, position_id)
