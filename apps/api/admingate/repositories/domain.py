"""
Domain repository.
"""

from typing import Any

from sqlalchemy import Select, select, update

from admingate.core.errors import ConflictError
from admingate.models.base import utc_now
from admingate.models.domain import Domain, DomainStatus
from admingate.schemas.common import QueryOptions
from admingate.schemas.domain import (
    DomainCreate,
    DomainQueryParam,
    DomainResponse,
    DomainUpdate,
)
from admingate.utils.pagination import OffsetPage, paginate

from .base import Active, BaseRepository, Deleted, store_errors


def to_domain_schema(item: Domain) -> DomainResponse:
    return DomainResponse(
        id=item.id,
        name=item.name,
        status=DomainStatus(item.status),
        memo=item.memo,
        maintainer_id=item.maintainer_id,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


def to_domain_schema_from_row(row: dict[str, Any]) -> DomainResponse:
    status = row.get("status")
    return DomainResponse(
        id=row["id"],
        name=row.get("name"),
        status=DomainStatus(status) if status is not None else None,
        memo=row.get("memo"),
        maintainer_id=row.get("maintainer_id"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def to_domain_entity(data: DomainCreate, maintainer_id: int = 0) -> Domain:
    return Domain(
        name=data.name,
        memo=data.memo,
        status=int(data.status),
        maintainer_id=maintainer_id,
    )


class DomainRepository(BaseRepository[Domain]):
    """
    Domain persistence.

    Soft-deleted rows are invisible to query/get; get_state exposes them
    as ``Deleted`` variants.
    """

    model = Domain
    name = "domain"
    fields = ("id", "name", "status", "memo", "maintainer_id", "created_at", "updated_at")

    def _base_query(self) -> Select:
        return select(Domain).where(Domain.deleted_at.is_(None))

    async def query(
        self,
        params: DomainQueryParam,
        opts: QueryOptions | None = None,
    ) -> OffsetPage[DomainResponse]:
        opts = opts or QueryOptions()
        stmt = self._base_query()

        if params.ids:
            stmt = stmt.where(Domain.id.in_(params.ids))
        if params.name:
            stmt = stmt.where(Domain.name == params.name)
        if params.status is not None:
            stmt = stmt.where(Domain.status == int(params.status))
        if params.query_value:
            stmt = stmt.where(Domain.name.contains(params.query_value, autoescape=True))

        stmt, entities = self._apply_options(stmt, opts)

        async with store_errors("domain.query"):
            rows, total = await paginate(self.db, stmt, params, entities=entities)

        if entities:
            items = [to_domain_schema(r) for r in rows]
        else:
            items = [to_domain_schema_from_row(r) for r in rows]
        return OffsetPage.from_params(items, total, params)

    async def get(self, id: int) -> DomainResponse | None:
        item = await self._get_entity(id)
        return to_domain_schema(item) if item else None

    async def get_state(
        self, id: int
    ) -> Active[DomainResponse] | Deleted[DomainResponse] | None:
        """Get a domain whether or not it is soft-deleted."""
        item = await self._find_one(select(Domain).where(Domain.id == id))
        if item is None:
            return None
        if item.deleted_at is not None:
            return Deleted(to_domain_schema(item), item.deleted_at)
        return Active(to_domain_schema(item))

    async def name_taken(self, name: str, exclude_id: int | None = None) -> bool:
        """Check the name against live rows only."""
        stmt = select(Domain.id).where(Domain.name == name, Domain.deleted_at.is_(None))
        if exclude_id is not None:
            stmt = stmt.where(Domain.id != exclude_id)
        async with store_errors("domain.name_taken"):
            return (await self.db.scalar(stmt.limit(1))) is not None

    async def create(self, data: DomainCreate, maintainer_id: int = 0) -> DomainResponse:
        if await self.name_taken(data.name):
            raise ConflictError(f"domain name already exists: {data.name}")

        item = to_domain_entity(data, maintainer_id)
        async with store_errors("domain.create"):
            self.db.add(item)
            await self.db.flush()
            await self.db.refresh(item)
        return to_domain_schema(item)

    async def update(self, id: int, data: DomainUpdate) -> bool:
        """Apply the set, non-empty fields. Returns False if no live row matched."""
        values = data.changes()
        if "name" in values and await self.name_taken(values["name"], exclude_id=id):
            raise ConflictError(f"domain name already exists: {values['name']}")
        if "status" in values:
            values["status"] = int(values["status"])
        if not values:
            return await self._get_entity(id) is not None

        stmt = (
            update(Domain)
            .where(Domain.id == id, Domain.deleted_at.is_(None))
            .values(**values)
        )
        async with store_errors("domain.update"):
            result = await self.db.execute(stmt)
        return result.rowcount > 0

    async def delete(self, id: int) -> bool:
        """Soft delete."""
        stmt = (
            update(Domain)
            .where(Domain.id == id, Domain.deleted_at.is_(None))
            .values(deleted_at=utc_now())
        )
        async with store_errors("domain.delete"):
            result = await self.db.execute(stmt)
        return result.rowcount > 0

    async def restore(self, id: int) -> bool:
        """Bring a soft-deleted domain back if its name is still free."""
        state = await self.get_state(id)
        if not isinstance(state, Deleted):
            return False
        if await self.name_taken(state.record.name):
            raise ConflictError(f"domain name already exists: {state.record.name}")

        stmt = update(Domain).where(Domain.id == id).values(deleted_at=None)
        async with store_errors("domain.restore"):
            result = await self.db.execute(stmt)
        return result.rowcount > 0

    async def update_status(self, id: int, status: DomainStatus) -> bool:
        # Single statement: readers see the old or the new status, never a mix
        stmt = (
            update(Domain)
            .where(Domain.id == id, Domain.deleted_at.is_(None))
            .values(status=int(status), updated_at=utc_now())
        )
        async with store_errors("domain.update_status"):
            result = await self.db.execute(stmt)
        return result.rowcount > 0
