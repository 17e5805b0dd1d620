# grimorio/api/v1/endpoints/users.py
# type: ignore

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from grimorio.api.v1.endpoints.auth import get_current_user, require_policy
from grimorio.core.authorization import ADMIN_ONLY
from grimorio.database import get_db
from grimorio.schemas.auth import (
    AssignRolesRequest,
    ChangePasswordRequest,
    JwtUser,
    UserCreate,
    UserOut,
    UserUpdate,
)
from grimorio.schemas.common import MessageResponse
from grimorio.services import users as user_service

router = APIRouter()
admin_only = require_policy(ADMIN_ONLY)


# ***************************************************************
# 1. Listar y consultar usuarios de la sucursal
# ***************************************************************
@router.get("/", response_model=List[UserOut], tags=["Users"])
async def list_users(actor: JwtUser = Depends(admin_only), db: AsyncSession = Depends(get_db)):
    """Lista los usuarios de la sucursal del administrador."""
    return await user_service.list_users(db, actor)


@router.get("/{user_id}", response_model=UserOut, tags=["Users"])
async def get_user(user_id: UUID, actor: JwtUser = Depends(admin_only), db: AsyncSession = Depends(get_db)):
    return await user_service.get_user(db, actor, user_id)


# ***************************************************************
# 2. Crear, actualizar y eliminar (soft delete)
# ***************************************************************
@router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED, tags=["Users"])
async def create_user(data: UserCreate, actor: JwtUser = Depends(admin_only), db: AsyncSession = Depends(get_db)):
    """Crea un usuario en la sucursal del administrador."""
    return await user_service.create_user(db, actor, data)


@router.put("/{user_id}", response_model=UserOut, tags=["Users"])
async def update_user(
    user_id: UUID, data: UserUpdate, actor: JwtUser = Depends(admin_only), db: AsyncSession = Depends(get_db)
):
    return await user_service.update_user(db, actor, user_id, data)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Users"])
async def delete_user(user_id: UUID, actor: JwtUser = Depends(admin_only), db: AsyncSession = Depends(get_db)):
    await user_service.delete_user(db, actor, user_id)


# ***************************************************************
# 3. Asignación de roles
# ***************************************************************
@router.post("/{user_id}/roles", response_model=UserOut, tags=["Users"])
async def assign_roles(
    user_id: UUID, data: AssignRolesRequest, actor: JwtUser = Depends(admin_only), db: AsyncSession = Depends(get_db)
):
    """Reemplaza los roles del usuario en la sucursal."""
    return await user_service.assign_roles_to_user(db, actor, user_id, data)


# ***************************************************************
# 4. Cambio de contraseña (solo el propio usuario)
# ***************************************************************
@router.post("/{user_id}/change-password", response_model=MessageResponse, tags=["Users"])
async def change_password(
    user_id: UUID,
    data: ChangePasswordRequest,
    current_user: JwtUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await user_service.change_password(db, current_user, user_id, data)
    return MessageResponse(message="Contraseña actualizada.")
