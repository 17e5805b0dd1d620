# grimorio/schemas/auth.py
# type: ignore

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

# ***************************************************************
# 1. Schemas de Autenticación (JWT)
# ***************************************************************
class LoginRequest(BaseModel):
    """Solicitud de login."""
    email: EmailStr
    password: str = Field(..., min_length=6)


class RefreshTokenRequest(BaseModel):
    """Solicitud de refresh/logout con el refresh token recibido en login."""
    refresh_token: str = Field(..., min_length=1)


class AuthResponse(BaseModel):
    """Respuesta de autenticación con JWT y refresh token."""
    user_id: UUID
    email: str
    first_name: str
    last_name: str
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_at: datetime
    roles: List[str] = []
    permissions: List[str] = []


class JwtUser(BaseModel):
    """Identidad recuperada de los claims del access token."""
    user_id: UUID
    branch_id: UUID
    roles: List[str] = []
    permissions: List[str] = []

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def has_permission(self, code: str) -> bool:
        return code in self.permissions


# ***************************************************************
# 2. Schemas de Usuario
# ***************************************************************
class UserRoleOut(BaseModel):
    role_id: UUID
    role_name: str


class UserCreate(BaseModel):
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=6)


class UserUpdate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    is_active: bool = True


class UserOut(BaseModel):
    id: UUID
    email: str
    first_name: str
    last_name: str
    is_active: bool
    last_login_at: Optional[datetime] = None
    roles: List[str] = Field(default=[], validation_alias="role_names")
    role_details: List[UserRoleOut] = []

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class AssignRolesRequest(BaseModel):
    role_ids: List[UUID] = []


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


# ***************************************************************
# 3. Schemas de Rol
# ***************************************************************
class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=500)


class RoleUpdate(RoleCreate):
    is_active: bool = True


class RoleOut(BaseModel):
    id: UUID
    name: str
    description: str
    is_active: bool
    permissions: List[str] = []

    model_config = ConfigDict(from_attributes=True)


class AssignPermissionsRequest(BaseModel):
    permission_ids: List[UUID] = []


# ***************************************************************
# 4. Schemas de Permiso
# ***************************************************************
class PermissionCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=100, description="Ej. 'POS.Sell'")
    description: str = Field("", max_length=500)
    category: str = Field("", max_length=50)


class PermissionUpdate(BaseModel):
    description: str = Field("", max_length=500)
    category: Optional[str] = Field(None, max_length=50)
    is_active: bool = True


class PermissionOut(BaseModel):
    id: UUID
    code: str
    description: str
    category: str
    is_active: bool

    model_config = ConfigDict(from_attributes=True)
