# grimorio/seed.py
"""
Datos iniciales: sucursal principal, permisos base, roles Administrador y
Vendedor, y el usuario administrador. Solo se ejecuta si no existe ningún usuario.
"""

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from grimorio.core.authorization import ADMIN_ROLE
from grimorio.core.config import get_settings
from grimorio.core.logging import get_logger
from grimorio.core.security import get_password_hash
from grimorio.models.auth import Permission, Role, RolePermission, User, UserRole
from grimorio.models.organization import Branch

logger = get_logger(__name__)

SELLER_ROLE = "Vendedor"

# Actor de auditoría para los datos sembrados: no corresponde a ningún usuario
SYSTEM_ACTOR_ID = uuid.UUID(int=0)

# (código, descripción, categoría)
BASE_PERMISSIONS = [
    ("POS.Sell", "Realizar ventas", "POS"),
    ("POS.ViewReports", "Ver reportes de ventas", "POS"),
    ("Inventory.Adjust", "Ajustar inventario", "Inventory"),
    ("Inventory.View", "Ver inventario", "Inventory"),
    ("Cash.Close", "Cerrar caja", "Cash"),
    ("Admin.ManageUsers", "Administrar usuarios", "Admin"),
    ("Admin.ManageRoles", "Administrar roles", "Admin"),
    ("RRHH.ViewEmployees", "Ver empleados", "RRHH"),
    ("RRHH.CreateEmployees", "Crear empleados", "RRHH"),
    ("RRHH.UpdateEmployees", "Actualizar empleados", "RRHH"),
    ("RRHH.DeleteEmployees", "Eliminar empleados", "RRHH"),
]


def _seller_grants(code: str) -> bool:
    return code.startswith("POS.") or code == "Inventory.View"


async def seed_initial_data(db: AsyncSession) -> bool:
    """Crea los datos iniciales. Devuelve `False` si ya había usuarios."""
    users = await db.scalar(select(func.count(User.id)).execution_options(include_deleted=True))
    if users:
        return False

    settings = get_settings()

    # La sucursal es su propio tenant; el sistema figura como creador
    branch_id = uuid.uuid4()

    def audit():
        return {"branch_id": branch_id, "created_by": SYSTEM_ACTOR_ID}

    db.add(Branch(id=branch_id, name="Sucursal Principal", code="MAIN", **audit()))

    permissions = [
        Permission(code=code, description=description, category=category, **audit())
        for code, description, category in BASE_PERMISSIONS
    ]
    db.add_all(permissions)

    admin_role = Role(name=ADMIN_ROLE, description="Acceso total", role_permissions=[], user_roles=[], **audit())
    seller_role = Role(name=SELLER_ROLE, description="Ventas e inventario", role_permissions=[], user_roles=[], **audit())
    db.add_all([admin_role, seller_role])
    await db.flush()

    for permission in permissions:
        db.add(RolePermission(role_id=admin_role.id, permission_id=permission.id, **audit()))
        if _seller_grants(permission.code):
            db.add(RolePermission(role_id=seller_role.id, permission_id=permission.id, **audit()))

    admin = User(
        email=settings.seed_admin_email,
        password_hash=get_password_hash(settings.seed_admin_password),
        first_name="Administrador",
        last_name="Sistema",
        is_active=True,
        user_roles=[],
        **audit(),
    )
    db.add(admin)
    await db.flush()

    db.add(UserRole(user_id=admin.id, role_id=admin_role.id, **audit()))
    await db.flush()

    logger.info("Datos iniciales creados", extra={"extra_data": {"branch_id": str(branch_id)}})
    return True
