"""
Menu schemas.
"""

from datetime import datetime
from pydantic import BaseModel, Field

from admingate.models.menu import MenuStatus
from admingate.utils.pagination import PaginationParam


class MenuActionCreate(BaseModel):
    code: str = Field(min_length=1, max_length=100)
    name: str = Field(min_length=1, max_length=100)


class MenuActionUpdate(BaseModel):
    code: str | None = Field(None, max_length=100)
    name: str | None = Field(None, max_length=100)

    def changes(self) -> dict:
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value not in (None, "")
        }


class MenuActionResponse(BaseModel):
    id: int
    menu_id: int
    code: str
    name: str


class MenuActionQueryParam(PaginationParam):
    menu_id: int | None = None
    ids: list[int] = Field(default_factory=list)


class MenuCreate(BaseModel):
    """Menu creation schema, optionally with its actions."""
    name: str = Field(min_length=1, max_length=50)
    sequence: int = 0
    icon: str | None = Field(None, max_length=255)
    router: str | None = Field(None, max_length=255)
    parent_id: int | None = Field(None, ge=1)
    status: MenuStatus = MenuStatus.ENABLED
    memo: str | None = Field(None, max_length=1024)
    actions: list[MenuActionCreate] = Field(default_factory=list)


class MenuUpdate(BaseModel):
    name: str | None = Field(None, max_length=50)
    sequence: int | None = None
    icon: str | None = Field(None, max_length=255)
    router: str | None = Field(None, max_length=255)
    parent_id: int | None = Field(None, ge=1)
    status: MenuStatus | None = None
    memo: str | None = Field(None, max_length=1024)

    def changes(self) -> dict:
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value not in (None, "")
        }


class MenuStatusUpdate(BaseModel):
    status: MenuStatus


class MenuResponse(BaseModel):
    """Menu as returned by the repository; see DomainResponse on optionality."""
    id: int
    name: str | None = None
    sequence: int | None = None
    icon: str | None = None
    router: str | None = None
    parent_id: int | None = None
    status: MenuStatus | None = None
    memo: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    actions: list[MenuActionResponse] | None = None


class MenuQueryParam(PaginationParam):
    ids: list[int] = Field(default_factory=list)
    name: str = ""
    query_value: str = Field(default="", description="Substring match on name")
    parent_id: int | None = None
    status: MenuStatus | None = None


class MenuSeedReport(BaseModel):
    """Counts of rows inserted by one menu data run (updates are not counted)."""
    menus: int = 0
    actions: int = 0
