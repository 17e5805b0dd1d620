# grimorio/schemas/organization.py
# type: ignore

import re
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

# -------------------------------------------------------------------
# Sucursal (Branch)
# -------------------------------------------------------------------

class BranchUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    code: str = Field(..., min_length=1, max_length=50)
    address: str = Field("", max_length=500)
    phone: str = Field("", max_length=50)
    email: str = Field("", max_length=256)
    is_active: bool = True
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)


class BranchOut(BaseModel):
    id: UUID
    name: str
    code: str
    address: str
    phone: str
    email: str
    is_active: bool
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None

    model_config = ConfigDict(from_attributes=True)

    # Decimal -> float para la salida JSON
    @field_serializer("latitude", "longitude")
    def serialize_decimal(self, value: Optional[Decimal]) -> Optional[float]:
        return float(value) if value is not None else None


# -------------------------------------------------------------------
# Cargo (Position)
# -------------------------------------------------------------------

class PositionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=500)


class PositionUpdate(PositionCreate):
    is_active: bool = True


class PositionOut(BaseModel):
    id: UUID
    branch_id: UUID
    name: str
    description: str
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


# -------------------------------------------------------------------
# Empleado (Employee)
# -------------------------------------------------------------------

CELL_PHONE_PATTERN = re.compile(r"09[0-9]{8}")


def is_valid_cedula(value: str) -> bool:
    """
    Cédula ecuatoriana: 10 dígitos, provincia 01-24 y dígito verificador
    módulo 10 (las posiciones pares se duplican y se resta 9 si pasan de 9).
    """
    if not re.fullmatch(r"[0-9]{10}", value):
        return False
    if not 1 <= int(value[:2]) <= 24:
        return False

    digits = [int(c) for c in value]
    total = 0
    for idx, digit in enumerate(digits[:9]):
        if idx % 2 == 0:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return (10 - total % 10) % 10 == digits[9]


def _check_phone(value: str) -> str:
    value = value.strip()
    if value and not CELL_PHONE_PATTERN.fullmatch(value):
        raise ValueError("El celular debe tener 10 dígitos y empezar con 09.")
    return value


class EmployeeCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field("", max_length=256)
    phone: str = Field("", max_length=50)
    identification_number: str = Field(..., min_length=1, max_length=20, description="Cédula")
    position_id: UUID
    hire_date: datetime

    @field_validator("identification_number")
    @classmethod
    def validate_cedula(cls, v: str) -> str:
        v = v.strip()
        if not is_valid_cedula(v):
            raise ValueError("Cédula ecuatoriana inválida.")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return _check_phone(v)


class EmployeeUpdate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field("", max_length=256)
    phone: str = Field("", max_length=50)
    position_id: UUID
    termination_date: Optional[datetime] = None
    is_active: bool = True

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return _check_phone(v)


class EmployeeOut(BaseModel):
    id: UUID
    branch_id: UUID
    first_name: str
    last_name: str
    email: str
    phone: str
    identification_number: str
    position_id: UUID
    position_name: str = ""
    hire_date: datetime
    termination_date: Optional[datetime] = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)
