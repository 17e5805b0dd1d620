# grimorio/services/employees.py

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from grimorio.core.exceptions import InvalidOperation, NotFound
from grimorio.core.logging import get_logger
from grimorio.models.organization import Employee, Position
from grimorio.schemas.auth import JwtUser
from grimorio.schemas.common import Page
from grimorio.schemas.organization import EmployeeCreate, EmployeeOut, EmployeeUpdate
from grimorio.services.common import flush_or_invalid, paginate

logger = get_logger(__name__)

EMPLOYEE_NOT_FOUND = "Empleado no encontrado."
IDENTIFICATION_TAKEN = "Ya existe un empleado con esa cédula en esta sucursal."
POSITION_NOT_IN_BRANCH = "El cargo no existe o no pertenece a esta sucursal."


async def _get_employee_entity(db: AsyncSession, actor: JwtUser, employee_id: UUID) -> Employee:
    employee = await db.scalar(
        select(Employee)
        .options(selectinload(Employee.position))
        .where(Employee.id == employee_id, Employee.branch_id == actor.branch_id)
    )
    if employee is None:
        raise NotFound(EMPLOYEE_NOT_FOUND)
    return employee


async def _get_branch_position(db: AsyncSession, actor: JwtUser, position_id: UUID) -> Position:
    # El cargo debe ser de la misma sucursal que el empleado
    position = await db.scalar(
        select(Position).where(Position.id == position_id, Position.branch_id == actor.branch_id)
    )
    if position is None:
        raise InvalidOperation(POSITION_NOT_IN_BRANCH)
    return position


async def get_employee(db: AsyncSession, actor: JwtUser, employee_id: UUID) -> EmployeeOut:
    return EmployeeOut.model_validate(await _get_employee_entity(db, actor, employee_id))


async def list_employees(
    db: AsyncSession, actor: JwtUser, page_number: int = 1, page_size: int = 10, only_active: bool = True
) -> Page[EmployeeOut]:
    """Empleados de la sucursal ordenados por nombre."""
    filters = [Employee.branch_id == actor.branch_id]
    if only_active:
        filters.append(Employee.is_active.is_(True))

    items, total = await paginate(
        db,
        Employee,
        filters,
        [Employee.first_name, Employee.id],
        page_number,
        page_size,
        options=[selectinload(Employee.position)],
    )
    return Page[EmployeeOut].build(
        [EmployeeOut.model_validate(e) for e in items], page_number, page_size, total
    )


async def create_employee(db: AsyncSession, actor: JwtUser, data: EmployeeCreate) -> EmployeeOut:
    position = await _get_branch_position(db, actor, data.position_id)

    existing = await db.scalar(
        select(Employee.id)
        .where(
            Employee.branch_id == actor.branch_id,
            Employee.identification_number == data.identification_number,
        )
        .execution_options(include_deleted=True)
    )
    if existing is not None:
        raise InvalidOperation(IDENTIFICATION_TAKEN)

    employee = Employee(
        branch_id=actor.branch_id,
        created_by=actor.user_id,
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        phone=data.phone,
        identification_number=data.identification_number,
        hire_date=data.hire_date,
        is_active=True,
        position_id=position.id,
    )
    employee.position = position
    db.add(employee)
    await flush_or_invalid(db, IDENTIFICATION_TAKEN)

    logger.info("Empleado creado", extra={"extra_data": {"employee_id": str(employee.id)}})
    return EmployeeOut.model_validate(employee)


async def update_employee(db: AsyncSession, actor: JwtUser, employee_id: UUID, data: EmployeeUpdate) -> EmployeeOut:
    employee = await _get_employee_entity(db, actor, employee_id)
    position = await _get_branch_position(db, actor, data.position_id)

    employee.first_name = data.first_name
    employee.last_name = data.last_name
    employee.email = data.email
    employee.phone = data.phone
    employee.position_id = position.id
    employee.position = position
    employee.termination_date = data.termination_date
    employee.is_active = data.is_active
    employee.touch(actor.user_id)

    await db.flush()
    return EmployeeOut.model_validate(employee)


async def delete_employee(db: AsyncSession, actor: JwtUser, employee_id: UUID) -> None:
    employee = await _get_employee_entity(db, actor, employee_id)
    employee.soft_delete(actor.user_id)
    await db.flush()
