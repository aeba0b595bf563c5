"""
Offset pagination utilities.

Usage:
    GET /api/v1/domains?page=1&per_page=20
    GET /api/v1/domains?pagination=false     # everything, still with total
"""

from typing import Any, TypeVar, Generic, Sequence

from pydantic import BaseModel, Field
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class PaginationParam(BaseModel):
    """Offset pagination parameters."""

    pagination: bool = Field(default=True, description="Disable to fetch every row")
    page: int = Field(default=1, ge=1, description="Page number (1-indexed)")
    per_page: int = Field(default=20, ge=1, le=100, description="Items per page")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    @property
    def limit(self) -> int:
        return self.per_page


class OffsetPage(BaseModel, Generic[T]):
    """Offset pagination response."""

    items: list[T]
    total: int
    page: int
    per_page: int
    pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def create(
        cls,
        items: Sequence[T],
        total: int,
        page: int,
        per_page: int,
    ) -> "OffsetPage[T]":
        pages = (total + per_page - 1) // per_page if per_page > 0 else 0
        return cls(
            items=list(items),
            total=total,
            page=page,
            per_page=per_page,
            pages=pages,
            has_next=page < pages,
            has_prev=page > 1,
        )

    @classmethod
    def from_params(
        cls,
        items: Sequence[T],
        total: int,
        params: PaginationParam,
    ) -> "OffsetPage[T]":
        if not params.pagination:
            return cls.create(items, total, page=1, per_page=max(total, 1))
        return cls.create(items, total, params.page, params.per_page)


async def count_rows(db: AsyncSession, query: Select) -> int:
    """Count rows a query would return, ignoring ordering."""
    count_stmt = select(func.count()).select_from(query.order_by(None).subquery())
    return await db.scalar(count_stmt) or 0


async def paginate(
    db: AsyncSession,
    query: Select,
    params: PaginationParam,
    *,
    entities: bool = True,
) -> tuple[list[Any], int]:
    """
    Run a query with offset/limit applied.

    Returns (rows, total). With ``entities`` the first column is unwrapped
    (``select(Model)``); otherwise each row is returned as a mapping of
    column name to value (``select(Model.id, Model.name)``).
    """
    total = await count_rows(db, query)

    if params.pagination:
        query = query.offset(params.offset).limit(params.limit)

    result = await db.execute(query)
    if entities:
        return list(result.scalars().all()), total
    return [dict(row._mapping) for row in result.all()], total
