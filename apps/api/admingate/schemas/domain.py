"""
Domain schemas.
"""

from datetime import datetime
from pydantic import BaseModel, Field

from admingate.models.domain import DomainStatus
from admingate.utils.pagination import PaginationParam


class DomainCreate(BaseModel):
    """Domain creation schema."""
    name: str = Field(min_length=1, max_length=128)
    memo: str | None = Field(None, max_length=1024)
    status: DomainStatus = DomainStatus.ENABLED


class DomainUpdate(BaseModel):
    """
    Partial domain update.

    Only fields that are set and non-empty are applied.
    """
    name: str | None = Field(None, max_length=128)
    memo: str | None = Field(None, max_length=1024)
    status: DomainStatus | None = None
    maintainer_id: int | None = Field(None, ge=0)

    def changes(self) -> dict:
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value not in (None, "", 0)
        }


class DomainStatusUpdate(BaseModel):
    status: DomainStatus


class DomainResponse(BaseModel):
    """
    Domain as returned by the repository.

    Fields other than ``id`` are optional because queries may restrict
    the selected columns.
    """
    id: int
    name: str | None = None
    status: DomainStatus | None = None
    memo: str | None = None
    maintainer_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DomainQueryParam(PaginationParam):
    """Domain query filters. All set filters are AND-ed."""
    ids: list[int] = Field(default_factory=list)
    name: str = ""
    query_value: str = Field(default="", description="Substring match on name")
    status: DomainStatus | None = None
