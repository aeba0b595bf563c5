"""
Query option schemas shared by every repository.
"""

from enum import Enum
from pydantic import BaseModel, Field


class OrderDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class OrderField(BaseModel):
    """One ordering term."""
    key: str
    direction: OrderDirection = OrderDirection.ASC


class QueryOptions(BaseModel):
    """
    Caller-supplied query options.

    Both lists are optional. Without order fields rows come back in
    insertion order; without select fields every column is returned.
    """
    order_fields: list[OrderField] = Field(default_factory=list)
    select_fields: list[str] = Field(default_factory=list)


def parse_order(value: str | None) -> list[OrderField]:
    """
    Parse ``"name,-created_at"`` into order fields.

    A leading ``-`` sorts descending.
    """
    if not value:
        return []
    fields = []
    for part in value.split(","):
        part = part.strip()
        if not part:
            continue
        if part.startswith("-"):
            fields.append(OrderField(key=part[1:], direction=OrderDirection.DESC))
        else:
            fields.append(OrderField(key=part))
    return fields


def parse_fields(value: str | None) -> list[str]:
    if not value:
        return []
    return [f.strip() for f in value.split(",") if f.strip()]
