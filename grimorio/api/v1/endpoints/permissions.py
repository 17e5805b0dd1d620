# grimorio/api/v1/endpoints/permissions.py
# type: ignore

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from grimorio.api.v1.endpoints.auth import require_policy
from grimorio.core.authorization import ADMIN_ONLY
from grimorio.database import get_db
from grimorio.schemas.auth import JwtUser, PermissionCreate, PermissionOut, PermissionUpdate
from grimorio.services import permissions as permission_service

router = APIRouter()
admin_only = require_policy(ADMIN_ONLY)


@router.get("/", response_model=List[PermissionOut], tags=["Permissions"])
async def list_permissions(actor: JwtUser = Depends(admin_only), db: AsyncSession = Depends(get_db)):
    """Lista los permisos de la sucursal agrupados por categoría."""
    return await permission_service.list_permissions(db, actor)


@router.get("/{permission_id}", response_model=PermissionOut, tags=["Permissions"])
async def get_permission(
    permission_id: UUID, actor: JwtUser = Depends(admin_only), db: AsyncSession = Depends(get_db)
):
    return await permission_service.get_permission(db, actor, permission_id)


@router.post("/", response_model=PermissionOut, status_code=status.HTTP_201_CREATED, tags=["Permissions"])
async def create_permission(
    data: PermissionCreate, actor: JwtUser = Depends(admin_only), db: AsyncSession = Depends(get_db)
):
    return await permission_service.create_permission(db, actor, data)


@router.put("/{permission_id}", response_model=PermissionOut, tags=["Permissions"])
async def update_permission(
    permission_id: UUID,
    data: PermissionUpdate,
    actor: JwtUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    return await permission_service.update_permission(db, actor, permission_id, data)


@router.delete("/{permission_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Permissions"])
async def delete_permission(
    permission_id: UUID, actor: JwtUser = Depends(admin_only), db: AsyncSession = Depends(get_db)
):
    await permission_service.delete_permission(db, actor, permission_id)
