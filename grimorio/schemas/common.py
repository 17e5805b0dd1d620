# grimorio/schemas/common.py

import math
from typing import Generic, List, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """Sobre de respuesta para listados paginados (page_number empieza en 1)."""
    items: List[T]
    page_number: int
    page_size: int
    total_count: int
    total_pages: int

    @classmethod
    def build(cls, items: List[T], page_number: int, page_size: int, total_count: int) -> "Page[T]":
        return cls(
            items=items,
            page_number=page_number,
            page_size=page_size,
            total_count=total_count,
            total_pages=math.ceil(total_count / page_size) if page_size else 0,
        )


class MessageResponse(BaseModel):
    message: str
