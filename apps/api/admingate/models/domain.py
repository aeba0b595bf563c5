"""
Domain model.
"""

from enum import IntEnum
from typing import Optional
from sqlalchemy import BigInteger, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, IDMixin, TimestampMixin, SoftDeleteMixin


class DomainStatus(IntEnum):
    ENABLED = 1
    DISABLED = 2


class Domain(Base, IDMixin, TimestampMixin, SoftDeleteMixin):
    """Tenant/partition unit that principals and policies are scoped to."""

    __tablename__ = "domains"
    __table_args__ = (
        # Name is unique among live rows only; soft-deleted names can be reused
        Index(
            "uq_domains_name_active",
            "name",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    status: Mapped[int] = mapped_column(
        Integer,
        default=DomainStatus.ENABLED,
        nullable=False,
        index=True,
    )
    memo: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    maintainer_id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer(), "sqlite"),
        default=0,
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Domain {self.name}>"
