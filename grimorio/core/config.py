# grimorio/core/config.py

import os
from functools import lru_cache
from typing import List

from dotenv import load_dotenv

# ***************************************************************
# Variables de entorno (.env en la raíz del proyecto)
# ***************************************************************
load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Configuración de la aplicación leída desde el entorno."""

    def __init__(self):
        self.app_name: str = os.getenv("APP_NAME", "Grimorio Backend API")
        self.debug: bool = _as_bool(os.getenv("DEBUG", "false"))
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")
        self.api_prefix: str = os.getenv("API_PREFIX", "/api/v1")
        self.allowed_origins: List[str] = [
            origin.strip()
            for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
            if origin.strip()
        ]

        # Base de datos (asyncpg en producción, aiosqlite en desarrollo/pruebas)
        self.database_url: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./grimorio.db")

        # JWT
        self.jwt_secret_key: str = os.getenv("JWT_SECRET_KEY", "your-default-secret-key-change-in-production")
        self.jwt_algorithm: str = "HS256"
        self.jwt_issuer: str = os.getenv("JWT_ISSUER", "Grimorio")
        self.jwt_audience: str = os.getenv("JWT_AUDIENCE", "GrimorioClient")
        self.access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15"))
        self.refresh_token_expire_days: int = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7"))

        # Hashing de contraseñas (rondas de pbkdf2_sha256)
        self.password_hash_rounds: int = int(os.getenv("PASSWORD_HASH_ROUNDS", "29000"))

        # Datos iniciales
        self.seed_on_startup: bool = _as_bool(os.getenv("SEED_ON_STARTUP", "false"))
        self.seed_admin_email: str = os.getenv("SEED_ADMIN_EMAIL", "admin@elcalderoflameante.com")
        self.seed_admin_password: str = os.getenv("SEED_ADMIN_PASSWORD", "Admin123")


@lru_cache
def get_settings() -> Settings:
    """Devuelve la instancia de configuración (cacheada)."""
    return Settings()
