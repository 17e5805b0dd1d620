# grimorio/database.py

from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, ORMExecuteState, Session, with_loader_criteria

from grimorio.core.config import get_settings

settings = get_settings()

# *****************************************************************
# 1. Motor asíncrono
# *****************************************************************
engine_kwargs = {"echo": settings.debug}

if settings.database_url.startswith("postgresql"):
    engine_kwargs.update({
        "pool_size": 5,
        "max_overflow": 10,
        "pool_pre_ping": True,
    })

engine = create_async_engine(settings.database_url, **engine_kwargs)

# 2. Fábrica de sesiones
# Una sesión por solicitud (request) a la API.
SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


# 3. Clase Base
# De ella heredan todos los modelos/tablas.
class Base(DeclarativeBase):
    pass


# *****************************************************************
# 4. Filtro global de soft delete
# *****************************************************************
@event.listens_for(Session, "do_orm_execute")
def _exclude_soft_deleted(execute_state: ORMExecuteState):
    """
    Agrega `is_deleted = false` a todo SELECT del ORM sobre entidades auditadas.
    Para incluir registros eliminados: `.execution_options(include_deleted=True)`.
    """
    if (
        execute_state.is_select
        and not execute_state.is_column_load
        and not execute_state.is_relationship_load
        and not execute_state.execution_options.get("include_deleted", False)
    ):
        # Import tardío: models.base importa Base desde este módulo
        from grimorio.models.base import BaseEntity

        execute_state.statement = execute_state.statement.options(
            with_loader_criteria(
                BaseEntity,
                lambda cls: cls.is_deleted.is_(False),
                include_aliases=True,
            )
        )


# Función de dependencia para obtener una sesión de DB
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Provee una sesión a un endpoint: commit al terminar, rollback si algo falla."""
    async with SessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
