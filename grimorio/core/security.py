# grimorio/core/security.py
# type: ignore
import base64
import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from grimorio.core.config import get_settings
from grimorio.core.logging import get_logger
from grimorio.schemas.auth import JwtUser

logger = get_logger(__name__)
settings = get_settings()

# ***************************************************************
# 1. Configuración de Seguridad
# ***************************************************************

# Hash salado, lento y adaptativo; el costo se ajusta con PASSWORD_HASH_ROUNDS
pwd_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
    pbkdf2_sha256__rounds=settings.password_hash_rounds,
)

# Esquema Bearer para endpoints protegidos
reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl="/api/v1/auth/login",
    auto_error=False,
)

# Claims propios del access token
CLAIM_BRANCH_ID = "branch_id"
CLAIM_ROLES = "roles"
CLAIM_PERMISSIONS = "permissions"

# ***************************************************************
# 2. Funciones de Hashing de Contraseñas
# ***************************************************************

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifica una contraseña contra su hash. Nunca lanza: un hash inválido es `False`."""
    if not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def get_password_hash(password: str) -> str:
    """Genera el hash de una contraseña en texto plano."""
    return pwd_context.hash(password)

# ***************************************************************
# 3. Funciones de Creación y Verificación de JWT
# ***************************************************************

def access_token_expiry(now: Optional[datetime] = None) -> datetime:
    """Momento de expiración de un access token emitido en `now`."""
    now = now or datetime.now(timezone.utc)
    return now + timedelta(minutes=settings.access_token_expire_minutes)


def create_access_token(user: JwtUser, expires_delta: Optional[timedelta] = None) -> str:
    """Crea un access token JWT firmado (HS256) con identidad, sucursal, roles y permisos."""
    now = datetime.now(timezone.utc)
    expire = now + expires_delta if expires_delta is not None else access_token_expiry(now)

    to_encode = {
        "sub": str(user.user_id),
        CLAIM_BRANCH_ID: str(user.branch_id),
        CLAIM_ROLES: list(user.roles),
        CLAIM_PERMISSIONS: list(user.permissions),
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_refresh_token() -> str:
    """Genera un refresh token aleatorio: 64 bytes en base64."""
    return base64.b64encode(secrets.token_bytes(64)).decode("ascii")


def hash_refresh_token(token: str) -> str:
    """Hash con el que se persiste un refresh token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def decode_token(token: str) -> Optional[JwtUser]:
    """
    Valida firma, emisor, audiencia y expiración (sin tolerancia de reloj).
    Devuelve `None` ante cualquier falla para no exponer el motivo.
    """
    if not token:
        return None
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options={"require_exp": True, "require_sub": True, "leeway": 0},
        )
    except JWTError:
        logger.debug("Token rechazado")
        return None

    user_id = payload.get("sub")
    branch_id = payload.get(CLAIM_BRANCH_ID)
    if not user_id or not branch_id:
        return None

    roles = payload.get(CLAIM_ROLES) or []
    permissions = payload.get(CLAIM_PERMISSIONS) or []
    # Un único rol/permiso puede llegar como string
    if isinstance(roles, str):
        roles = [roles]
    if isinstance(permissions, str):
        permissions = [permissions]

    try:
        return JwtUser(
            user_id=UUID(user_id),
            branch_id=UUID(branch_id),
            roles=roles,
            permissions=permissions,
        )
    except (ValueError, TypeError):
        return None
