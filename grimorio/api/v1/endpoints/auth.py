# grimorio/api/v1/endpoints/auth.py
# type: ignore

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from grimorio.core.authorization import evaluator
from grimorio.core.exceptions import Forbidden, Unauthorized
from grimorio.core.logging import branch_id_ctx
from grimorio.core.security import decode_token, reusable_oauth2
from grimorio.database import get_db
from grimorio.schemas.auth import AuthResponse, JwtUser, LoginRequest, RefreshTokenRequest
from grimorio.schemas.common import MessageResponse
from grimorio.services import auth as auth_service

router = APIRouter()

INVALID_TOKEN = "Credenciales inválidas o token expirado."


# ***************************************************************
# Dependencia para obtener el usuario autenticado (desde el access token)
# ***************************************************************
async def get_current_user(token: Optional[str] = Depends(reusable_oauth2)) -> JwtUser:
    """Valida el access token y devuelve la identidad del usuario. Sin consulta a la DB."""
    user = decode_token(token) if token else None
    if user is None:
        raise Unauthorized(INVALID_TOKEN)

    branch_id_ctx.set(str(user.branch_id))
    return user


# ***************************************************************
# Dependencia para exigir una política con nombre
# ***************************************************************
def require_policy(policy_name: str):
    """Devuelve una dependencia que responde 403 si el usuario no cumple la política."""
    # Falla al importar el router si el nombre no existe
    evaluator.get_policy(policy_name)

    async def dependency(current_user: JwtUser = Depends(get_current_user)) -> JwtUser:
        if not evaluator.is_authorized(current_user, policy_name):
            raise Forbidden("No tienes permiso para realizar esta acción.")
        return current_user

    return dependency


# ***************************************************************
# 1. Login
# ***************************************************************
@router.post("/login", response_model=AuthResponse, tags=["Auth"])
async def login(request: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Autentica con email y contraseña; devuelve access token y refresh token."""
    return await auth_service.login(db, request)


# ***************************************************************
# 2. Refresh (rotación de tokens)
# ***************************************************************
@router.post("/refresh", response_model=AuthResponse, tags=["Auth"])
async def refresh(request: RefreshTokenRequest, db: AsyncSession = Depends(get_db)):
    """Cambia un refresh token válido por un par nuevo. El anterior queda revocado."""
    return await auth_service.refresh(db, request.refresh_token)


# ***************************************************************
# 3. Logout
# ***************************************************************
@router.post("/logout", response_model=MessageResponse, status_code=status.HTTP_200_OK, tags=["Auth"])
async def logout(request: RefreshTokenRequest, db: AsyncSession = Depends(get_db)):
    await auth_service.logout(db, request.refresh_token)
    return MessageResponse(message="Sesión cerrada.")


# ***************************************************************
# 4. Usuario actual
# ***************************************************************
@router.get("/me", response_model=JwtUser, tags=["Auth"])
async def read_users_me(current_user: JwtUser = Depends(get_current_user)):
    """Identidad, sucursal, roles y permisos del token actual."""
    return current_user
