"""
Domain routes.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from admingate.api.dependencies.services import CurrentSubject, get_domain_repository
from admingate.core.errors import ConflictError
from admingate.models.domain import DomainStatus
from admingate.repositories.base import Deleted
from admingate.repositories.domain import DomainRepository
from admingate.schemas.common import QueryOptions, parse_fields, parse_order
from admingate.schemas.domain import (
    DomainCreate,
    DomainQueryParam,
    DomainResponse,
    DomainStatusUpdate,
    DomainUpdate,
)
from admingate.utils.pagination import OffsetPage

router = APIRouter()


@router.get("", response_model=OffsetPage[DomainResponse])
async def list_domains(
    ids: list[int] = Query([]),
    name: str = "",
    query_value: str = "",
    domain_status: DomainStatus | None = Query(None, alias="status"),
    pagination: bool = True,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    order: str | None = Query(None, description="e.g. name,-created_at"),
    fields: str | None = Query(None, description="Columns to return, e.g. id,name"),
    repo: DomainRepository = Depends(get_domain_repository),
):
    """List live domains."""
    params = DomainQueryParam(
        ids=ids,
        name=name,
        query_value=query_value,
        status=domain_status,
        pagination=pagination,
        page=page,
        per_page=per_page,
    )
    opts = QueryOptions(order_fields=parse_order(order), select_fields=parse_fields(fields))
    return await repo.query(params, opts)


@router.get("/{domain_id}", response_model=DomainResponse)
async def get_domain(
    domain_id: int,
    repo: DomainRepository = Depends(get_domain_repository),
):
    domain = await repo.get(domain_id)
    if not domain:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return domain


@router.post("", response_model=DomainResponse, status_code=status.HTTP_201_CREATED)
async def create_domain(
    data: DomainCreate,
    subject_id: CurrentSubject,
    repo: DomainRepository = Depends(get_domain_repository),
):
    """Create a domain maintained by the caller."""
    return await repo.create(data, maintainer_id=subject_id)


@router.patch("/{domain_id}", response_model=DomainResponse)
async def update_domain(
    domain_id: int,
    data: DomainUpdate,
    repo: DomainRepository = Depends(get_domain_repository),
):
    """Apply the set, non-empty fields."""
    if not await repo.update(domain_id, data):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return await repo.get(domain_id)


@router.delete("/{domain_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_domain(
    domain_id: int,
    repo: DomainRepository = Depends(get_domain_repository),
):
    """Soft delete."""
    if not await repo.delete(domain_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)


@router.patch("/{domain_id}/status", response_model=DomainResponse)
async def update_domain_status(
    domain_id: int,
    data: DomainStatusUpdate,
    repo: DomainRepository = Depends(get_domain_repository),
):
    """Enable or disable a domain."""
    if not await repo.update_status(domain_id, data.status):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return await repo.get(domain_id)


@router.post("/{domain_id}/restore", response_model=DomainResponse)
async def restore_domain(
    domain_id: int,
    repo: DomainRepository = Depends(get_domain_repository),
):
    """Bring back a soft-deleted domain."""
    state = await repo.get_state(domain_id)
    if state is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    if not isinstance(state, Deleted):
        raise ConflictError(f"domain {domain_id} is not deleted")
    await repo.restore(domain_id)
    return await repo.get(domain_id)
