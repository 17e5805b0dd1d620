# grimorio/services/common.py

from typing import Any, Iterable, List, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from grimorio.core.exceptions import InvalidOperation

MAX_PAGE_SIZE = 100


def validate_page(page_number: int, page_size: int) -> None:
    if page_number < 1:
        raise InvalidOperation("El número de página debe ser mayor o igual a 1.")
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise InvalidOperation(f"El tamaño de página debe estar entre 1 y {MAX_PAGE_SIZE}.")


async def paginate(
    db: AsyncSession,
    entity: Any,
    filters: Sequence[Any],
    order_by: Sequence[Any],
    page_number: int,
    page_size: int,
    options: Iterable[Any] = (),
) -> Tuple[List[Any], int]:
    """Devuelve (items de la página, total) para `entity` con los filtros dados."""
    validate_page(page_number, page_size)

    total_count = await db.scalar(select(func.count(entity.id)).where(*filters))

    stmt = (
        select(entity)
        .where(*filters)
        .options(*options)
        .order_by(*order_by)
        .offset((page_number - 1) * page_size)
        .limit(page_size)
    )
    items = (await db.execute(stmt)).scalars().all()
    return list(items), total_count or 0


async def flush_or_invalid(db: AsyncSession, message: str) -> None:
    """Hace flush; una violación de restricción única se traduce a InvalidOperation."""
    try:
        await db.flush()
    except IntegrityError as exc:
        raise InvalidOperation(message) from exc
