# grimorio/api/v1/endpoints/roles.py
# type: ignore

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from grimorio.api.v1.endpoints.auth import require_policy
from grimorio.core.authorization import ADMIN_ONLY
from grimorio.database import get_db
from grimorio.schemas.auth import AssignPermissionsRequest, JwtUser, RoleCreate, RoleOut, RoleUpdate
from grimorio.services import roles as role_service

router = APIRouter()
admin_only = require_policy(ADMIN_ONLY)


# ***************************************************************
# 1. Listar y consultar roles
# ***************************************************************
@router.get("/", response_model=List[RoleOut], tags=["Roles"])
async def get_all_roles(actor: JwtUser = Depends(admin_only), db: AsyncSession = Depends(get_db)):
    """Lista los roles de la sucursal con sus permisos."""
    return await role_service.list_roles(db, actor)


@router.get("/{role_id}", response_model=RoleOut, tags=["Roles"])
async def get_role(role_id: UUID, actor: JwtUser = Depends(admin_only), db: AsyncSession = Depends(get_db)):
    return await role_service.get_role(db, actor, role_id)


# ***************************************************************
# 2. Crear, actualizar y eliminar
# ***************************************************************
@router.post("/", response_model=RoleOut, status_code=status.HTTP_201_CREATED, tags=["Roles"])
async def create_role(data: RoleCreate, actor: JwtUser = Depends(admin_only), db: AsyncSession = Depends(get_db)):
    return await role_service.create_role(db, actor, data)


@router.put("/{role_id}", response_model=RoleOut, tags=["Roles"])
async def update_role(
    role_id: UUID, data: RoleUpdate, actor: JwtUser = Depends(admin_only), db: AsyncSession = Depends(get_db)
):
    return await role_service.update_role(db, actor, role_id, data)


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Roles"])
async def delete_role(role_id: UUID, actor: JwtUser = Depends(admin_only), db: AsyncSession = Depends(get_db)):
    await role_service.delete_role(db, actor, role_id)


# ***************************************************************
# 3. Asignación de permisos
# ***************************************************************
@router.post("/{role_id}/permissions", response_model=RoleOut, tags=["Roles"])
async def assign_permissions(
    role_id: UUID,
    data: AssignPermissionsRequest,
    actor: JwtUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    """Reemplaza el conjunto de permisos del rol."""
    return await role_service.assign_permissions_to_role(db, actor, role_id, data)
