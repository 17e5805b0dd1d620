# grimorio/api/v1/endpoints/employees.py
# type: ignore

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from grimorio.api.v1.endpoints.auth import require_policy
from grimorio.core.authorization import CREATE_EMPLOYEES, DELETE_EMPLOYEES, UPDATE_EMPLOYEES, VIEW_EMPLOYEES
from grimorio.database import get_db
from grimorio.schemas.auth import JwtUser
from grimorio.schemas.common import Page
from grimorio.schemas.organization import EmployeeCreate, EmployeeOut, EmployeeUpdate
from grimorio.services import employees as employee_service

router = APIRouter()


# ***************************************************************
# 1. Consulta de empleados (RRHH.ViewEmployees)
# ***************************************************************
@router.get("/", response_model=Page[EmployeeOut], tags=["Employees"])
async def list_employees(
    page_number: int = Query(1),
    page_size: int = Query(10),
    only_active: bool = Query(True),
    actor: JwtUser = Depends(require_policy(VIEW_EMPLOYEES)),
    db: AsyncSession = Depends(get_db),
):
    """Lista paginada de empleados de la sucursal, ordenada por nombre."""
    return await employee_service.list_employees(db, actor, page_number, page_size, only_active)


@router.get("/{employee_id}", response_model=EmployeeOut, tags=["Employees"])
async def get_employee(
    employee_id: UUID,
    actor: JwtUser = Depends(require_policy(VIEW_EMPLOYEES)),
    db: AsyncSession = Depends(get_db),
):
    return await employee_service.get_employee(db, actor, employee_id)


# ***************************************************************
# 2. Alta, modificación y baja
# ***************************************************************
@router.post("/", response_model=EmployeeOut, status_code=status.HTTP_201_CREATED, tags=["Employees"])
async def create_employee(
    data: EmployeeCreate,
    actor: JwtUser = Depends(require_policy(CREATE_EMPLOYEES)),
    db: AsyncSession = Depends(get_db),
):
    """Registra un empleado. El cargo debe pertenecer a la misma sucursal."""
    return await employee_service.create_employee(db, actor, data)


@router.put("/{employee_id}", response_model=EmployeeOut, tags=["Employees"])
async def update_employee(
    employee_id: UUID,
    data: EmployeeUpdate,
    actor: JwtUser = Depends(require_policy(UPDATE_EMPLOYEES)),
    db: AsyncSession = Depends(get_db),
):
    return await employee_service.update_employee(db, actor, employee_id, data)


@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Employees"])
async def delete_employee(
    employee_id: UUID,
    actor: JwtUser = Depends(require_policy(DELETE_EMPLOYEES)),
    db: AsyncSession = Depends(get_db),
):
    await employee_service.delete_employee(db, actor, employee_id)
