# grimorio/services/auth.py

from datetime import datetime, timedelta
from typing import List, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from grimorio.core.config import get_settings
from grimorio.core.exceptions import Unauthorized
from grimorio.core.logging import get_logger
from grimorio.core.security import (
    access_token_expiry,
    create_access_token,
    create_refresh_token,
    hash_refresh_token,
    verify_password,
)
from grimorio.models.auth import Permission, RefreshToken, Role, RolePermission, User, UserRole
from grimorio.models.base import utcnow
from grimorio.schemas.auth import AuthResponse, JwtUser, LoginRequest

logger = get_logger(__name__)
settings = get_settings()

# Mismo mensaje para email y contraseña: no se revela cuál falló
INVALID_CREDENTIALS = "Usuario o contraseña inválido."
NO_ROLES_IN_BRANCH = "Usuario no tiene roles asignados en su sucursal."
INVALID_REFRESH_TOKEN = "Refresh token inválido o expirado."


# ***************************************************************
# Claims del usuario
# ***************************************************************
async def load_claims(db: AsyncSession, user: User) -> Tuple[List[str], List[str]]:
    """
    Roles activos del usuario en su propia sucursal y los códigos (sin repetir)
    de los permisos activos de esos roles.
    """
    result = await db.execute(
        select(Role.id, Role.name)
        .join(UserRole, UserRole.role_id == Role.id)
        .where(
            UserRole.user_id == user.id,
            UserRole.branch_id == user.branch_id,
            Role.branch_id == user.branch_id,
            Role.is_active.is_(True),
        )
    )
    roles = result.all()
    if not roles:
        raise Unauthorized(NO_ROLES_IN_BRANCH)

    role_ids = [role_id for role_id, _ in roles]
    permissions = await db.scalars(
        select(Permission.code)
        .join(RolePermission, RolePermission.permission_id == Permission.id)
        .where(RolePermission.role_id.in_(role_ids), Permission.is_active.is_(True))
        .distinct()
        .order_by(Permission.code)
    )
    return sorted({name for _, name in roles}), list(permissions.all())


async def _issue_tokens(
    db: AsyncSession, user: User, roles: List[str], permissions: List[str]
) -> Tuple[str, str, datetime, RefreshToken]:
    jwt_user = JwtUser(user_id=user.id, branch_id=user.branch_id, roles=roles, permissions=permissions)
    expires_at = access_token_expiry()
    access_token = create_access_token(jwt_user)

    refresh_token = create_refresh_token()
    stored = RefreshToken(
        branch_id=user.branch_id,
        created_by=user.id,
        user_id=user.id,
        token_hash=hash_refresh_token(refresh_token),
        expires_at=utcnow() + timedelta(days=settings.refresh_token_expire_days),
    )
    db.add(stored)
    return access_token, refresh_token, expires_at, stored


def _auth_response(user: User, access_token: str, refresh_token: str, expires_at: datetime,
                   roles: List[str], permissions: List[str]) -> AuthResponse:
    return AuthResponse(
        user_id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        access_token=access_token,
        refresh_token=refresh_token,
        expires_at=expires_at,
        roles=roles,
        permissions=permissions,
    )


# ***************************************************************
# Login
# ***************************************************************
async def login(db: AsyncSession, request: LoginRequest) -> AuthResponse:
    """Autentica por email/contraseña y emite access + refresh token."""
    user = await db.scalar(select(User).where(User.email == request.email))

    if user is None or not user.is_active:
        logger.warning("Login rechazado: usuario inexistente o inactivo")
        raise Unauthorized(INVALID_CREDENTIALS)

    if not verify_password(request.password, user.password_hash):
        logger.warning("Login rechazado: contraseña incorrecta", extra={"extra_data": {"user_id": str(user.id)}})
        raise Unauthorized(INVALID_CREDENTIALS)

    roles, permissions = await load_claims(db, user)
    access_token, refresh_token, expires_at, _ = await _issue_tokens(db, user, roles, permissions)

    user.last_login_at = utcnow()
    await db.flush()

    logger.info("Login exitoso", extra={"extra_data": {"user_id": str(user.id), "branch_id": str(user.branch_id)}})
    return _auth_response(user, access_token, refresh_token, expires_at, roles, permissions)


# ***************************************************************
# Refresh (rotación) y Logout
# ***************************************************************
async def _revoke_all_for_user(db: AsyncSession, user_id, when: datetime) -> None:
    await db.execute(
        update(RefreshToken)
        .where(RefreshToken.user_id == user_id, RefreshToken.revoked_at.is_(None))
        .values(revoked_at=when, updated_at=when, updated_by=user_id)
    )


async def refresh(db: AsyncSession, token: str) -> AuthResponse:
    """
    Cambia un refresh token válido por un par nuevo y revoca el anterior.
    Reutilizar un token ya revocado revoca todos los tokens del usuario.
    """
    token_hash = hash_refresh_token(token)
    now = utcnow()

    # Reclamo atómico: solo una solicitud puede revocar un token vigente
    claimed = await db.execute(
        update(RefreshToken)
        .where(
            RefreshToken.token_hash == token_hash,
            RefreshToken.revoked_at.is_(None),
            RefreshToken.expires_at > now,
        )
        .values(revoked_at=now, updated_at=now)
        .execution_options(synchronize_session=False)
    )

    stored = await db.scalar(
        select(RefreshToken)
        .where(RefreshToken.token_hash == token_hash)
        .execution_options(populate_existing=True)
    )
    if stored is None:
        raise Unauthorized(INVALID_REFRESH_TOKEN)

    if claimed.rowcount != 1:
        if stored.revoked_at is not None:
            logger.warning(
                "Reutilización de refresh token revocado", extra={"extra_data": {"user_id": str(stored.user_id)}}
            )
            await _revoke_all_for_user(db, stored.user_id, now)
            # Se confirma antes de lanzar: el rollback de la solicitud no debe deshacer la revocación
            await db.commit()
        raise Unauthorized(INVALID_REFRESH_TOKEN)

    user = await db.scalar(select(User).where(User.id == stored.user_id))
    if user is None or not user.is_active:
        raise Unauthorized(INVALID_REFRESH_TOKEN)

    roles, permissions = await load_claims(db, user)
    access_token, refresh_token, expires_at, new_stored = await _issue_tokens(db, user, roles, permissions)

    stored.replaced_by_hash = new_stored.token_hash
    stored.updated_by = user.id
    await db.flush()

    return _auth_response(user, access_token, refresh_token, expires_at, roles, permissions)


async def logout(db: AsyncSession, token: str) -> None:
    """Revoca el refresh token presentado. Un token desconocido se ignora."""
    now = utcnow()
    await db.execute(
        update(RefreshToken)
        .where(RefreshToken.token_hash == hash_refresh_token(token), RefreshToken.revoked_at.is_(None))
        .values(revoked_at=now, updated_at=now)
        .execution_options(synchronize_session=False)
    )
