"""
Base repository with the shared query contract.

Every repository:
- AND-s its filters,
- honours QueryOptions (ordering, column selection) against a whitelist,
- orders by insertion (id ASC) when the caller gives no ordering,
- re-raises store errors as StoreFailure naming the operation.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, AsyncIterator, Generic, Type, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from admingate.core.errors import ConflictError, StoreFailure
from admingate.models.base import Base
from admingate.schemas.common import OrderDirection, QueryOptions

ModelT = TypeVar("ModelT", bound=Base)
RecordT = TypeVar("RecordT")


@asynccontextmanager
async def store_errors(operation: str) -> AsyncIterator[None]:
    """
    Wrap store failures with call-site context.

    Usage:
        async with store_errors("domain.create"):
            await self.db.flush()
    """
    try:
        yield
    except IntegrityError as exc:
        raise ConflictError(f"{operation}: {exc.orig}") from exc
    except SQLAlchemyError as exc:
        raise StoreFailure(f"{operation}: {exc}") from exc


# ============================================================
# SOFT DELETE STATES
# ============================================================

@dataclass(frozen=True)
class Active(Generic[RecordT]):
    """Live row."""
    record: RecordT


@dataclass(frozen=True)
class Deleted(Generic[RecordT]):
    """Soft-deleted row, kept for audit and policy replay."""
    record: RecordT
    deleted_at: datetime


# ============================================================
# BASE REPOSITORY
# ============================================================

class BaseRepository(Generic[ModelT]):
    """
    Base repository providing the query contract.

    Usage:
        class DomainRepository(BaseRepository[Domain]):
            model = Domain
            name = "domain"
            fields = ("id", "name", "status", ...)
    """

    model: Type[ModelT]
    name: str = "entity"
    # Columns callers may order by or select
    fields: tuple[str, ...] = ("id",)

    def __init__(self, db: AsyncSession):
        self.db = db

    def _base_query(self) -> Select:
        """Base query - override to add default filters (e.g., soft delete)."""
        return select(self.model)

    def _column(self, key: str) -> Any:
        if key not in self.fields:
            raise ValueError(f"unknown {self.name} field: {key!r}")
        return getattr(self.model, key)

    def _apply_options(self, stmt: Select, opts: QueryOptions) -> tuple[Select, bool]:
        """
        Apply column selection and ordering.

        Returns the statement and whether it still selects whole entities.
        """
        entities = True
        if opts.select_fields:
            keys = ["id"] + [k for k in opts.select_fields if k != "id"]
            columns = [self._column(k) for k in keys]
            stmt = stmt.with_only_columns(*columns)
            entities = False

        if opts.order_fields:
            for order in opts.order_fields:
                column = self._column(order.key)
                stmt = stmt.order_by(
                    column.desc() if order.direction == OrderDirection.DESC else column.asc()
                )
        else:
            stmt = stmt.order_by(self.model.id.asc())

        if entities:
            stmt = stmt.execution_options(populate_existing=True)
        return stmt, entities

    async def _find_one(self, stmt: Select) -> ModelT | None:
        # Bulk UPDATEs bypass the identity map; always reload from the row
        stmt = stmt.execution_options(populate_existing=True)
        async with store_errors(f"{self.name}.get"):
            result = await self.db.execute(stmt)
            return result.scalars().first()

    async def _get_entity(self, id: int) -> ModelT | None:
        return await self._find_one(self._base_query().where(self.model.id == id))
