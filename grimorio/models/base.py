# grimorio/models/base.py

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseEntity:
    """
    Mixin común a todas las entidades.
    Incluye sucursal (tenant), auditoría y soft delete con UUID como identificador.
    """

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Sucursal a la que pertenece el registro (aislamiento de datos)
    branch_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    # Un registro eliminado no aparece en consultas normales (ver database.py)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    def touch(self, actor_id: uuid.UUID) -> None:
        """Registra la última actualización."""
        self.updated_at = utcnow()
        self.updated_by = actor_id

    def soft_delete(self, actor_id: uuid.UUID) -> None:
        """Marca el registro como eliminado sin borrar la fila."""
        self.is_deleted = True
        self.deleted_at = utcnow()
        self.deleted_by = actor_id
