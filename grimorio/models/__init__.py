# grimorio/models/__init__.py
# Importar todos los modelos para que SQLAlchemy los registre en Base.metadata

from grimorio.models.base import BaseEntity
from grimorio.models.auth import Permission, RefreshToken, Role, RolePermission, User, UserRole
from grimorio.models.organization import Branch, Employee, Position

__all__ = [
    "BaseEntity",
    "Branch",
    "Employee",
    "Permission",
    "Position",
    "RefreshToken",
    "Role",
    "RolePermission",
    "User",
    "UserRole",
]
