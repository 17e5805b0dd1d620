# grimorio/main.py
# type: ignore

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from grimorio.core.config import get_settings
from grimorio.core.exceptions import Forbidden, GrimorioError, InvalidOperation, NotFound, Unauthorized
from grimorio.core.logging import get_logger, setup_logging
from grimorio.core.middleware import RequestIdMiddleware
from grimorio.database import Base, SessionLocal, engine

# ***************************************************************
# 1. Importar todos los modelos para que SQLAlchemy los registre
# ***************************************************************
import grimorio.models  # noqa: F401

# ***************************************************************
# 2. Importar los Routers de API
# ***************************************************************
from grimorio.api.v1.endpoints import auth, branches, employees, permissions, positions, roles, users
from grimorio.seed import seed_initial_data

settings = get_settings()

setup_logging(level=settings.log_level)
logger = get_logger(__name__)


# Función para crear las tablas al iniciar la app
async def create_tables():
    """Crea todas las tablas de la base de datos si no existen."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Iniciando {settings.app_name}")
    await create_tables()

    if settings.seed_on_startup:
        async with SessionLocal() as session:
            if await seed_initial_data(session):
                await session.commit()

    yield

    logger.info(f"Deteniendo {settings.app_name}")
    await engine.dispose()


# Inicializar la aplicación FastAPI
app = FastAPI(
    title=settings.app_name,
    version="v1",
    description="Backend de administración de personal, roles y permisos por sucursal.",
    lifespan=lifespan,
)

app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ***************************************************************
# 3. Errores de dominio -> respuestas HTTP
# ***************************************************************
def _error_status(exc: GrimorioError) -> int:
    if isinstance(exc, Unauthorized):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, Forbidden):
        return status.HTTP_403_FORBIDDEN
    # NotFound hereda de InvalidOperation: va primero
    if isinstance(exc, NotFound):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, InvalidOperation):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@app.exception_handler(GrimorioError)
async def grimorio_error_handler(request: Request, exc: GrimorioError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return JSONResponse(status_code=_error_status(exc), content={"detail": exc.message}, headers=headers)


# ***************************************************************
# 4. Incluir los Routers
# ***************************************************************
api = settings.api_prefix

app.include_router(auth.router, tags=["Auth"], prefix=f"{api}/auth")
app.include_router(users.router, tags=["Users"], prefix=f"{api}/users")
app.include_router(roles.router, tags=["Roles"], prefix=f"{api}/roles")
app.include_router(permissions.router, tags=["Permissions"], prefix=f"{api}/permissions")
app.include_router(positions.router, tags=["Positions"], prefix=f"{api}/positions")
app.include_router(employees.router, tags=["Employees"], prefix=f"{api}/employees")
app.include_router(branches.router, tags=["Branches"], prefix=f"{api}/branches")


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok"}
