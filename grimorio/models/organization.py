# grimorio/models/organization.py
# type: ignore

import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from grimorio.database import Base
from grimorio.models.base import BaseEntity


# ***************************************************************
# 1. Branch (Sucursal) - límite de aislamiento de datos
# ***************************************************************
class Branch(BaseEntity, Base):
    """
    Sucursal del negocio. Para una sucursal, `branch_id` es su propio `id`.
    """
    __tablename__ = "branches"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    address: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    phone: Mapped[str] = mapped_column(String(50), default="", nullable=False)
    email: Mapped[str] = mapped_column(String(256), default="", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Ubicación geográfica
    latitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 7), nullable=True)
    longitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 7), nullable=True)


# ***************************************************************
# 2. Position (Cargo): Chef, Mesero, Cajero...
# ***************************************************************
class Position(BaseEntity, Base):
    __tablename__ = "positions"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    employees: Mapped[List["Employee"]] = relationship(back_populates="position")

    # Nombre de cargo único por sucursal
    __table_args__ = (
        UniqueConstraint("branch_id", "name", name="uq_position_branch_name"),
    )


# ***************************************************************
# 3. Employee (Empleado)
# ***************************************************************
class Employee(BaseEntity, Base):
    __tablename__ = "employees"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(256), default="", nullable=False)
    phone: Mapped[str] = mapped_column(String(50), default="", nullable=False)
    identification_number: Mapped[str] = mapped_column(String(20), nullable=False)  # Cédula
    hire_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    termination_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    position_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("positions.id", ondelete="RESTRICT"), nullable=False
    )

    position: Mapped["Position"] = relationship(back_populates="employees")

    # Cédula única por sucursal
    __table_args__ = (
        UniqueConstraint("branch_id", "identification_number", name="uq_employee_branch_identification"),
    )

    @property
    def position_name(self) -> str:
        return self.position.name if self.position is not None else ""
