"""
Menu and menu action repositories.
"""

from typing import Any

from sqlalchemy import delete, select, update

from admingate.models.base import utc_now
from admingate.models.menu import Menu, MenuAction, MenuStatus
from admingate.schemas.common import QueryOptions
from admingate.schemas.menu import (
    MenuActionCreate,
    MenuActionQueryParam,
    MenuActionResponse,
    MenuActionUpdate,
    MenuCreate,
    MenuQueryParam,
    MenuResponse,
    MenuUpdate,
)
from admingate.utils.pagination import OffsetPage, paginate

from .base import BaseRepository, store_errors


def to_menu_action_schema(item: MenuAction) -> MenuActionResponse:
    return MenuActionResponse(
        id=item.id,
        menu_id=item.menu_id,
        code=item.code,
        name=item.name,
    )


def to_menu_action_entity(menu_id: int, data: MenuActionCreate) -> MenuAction:
    return MenuAction(menu_id=menu_id, code=data.code, name=data.name)


def to_menu_schema(item: Menu, with_actions: bool = True) -> MenuResponse:
    return MenuResponse(
        id=item.id,
        name=item.name,
        sequence=item.sequence,
        icon=item.icon,
        router=item.router,
        parent_id=item.parent_id,
        status=MenuStatus(item.status),
        memo=item.memo,
        created_at=item.created_at,
        updated_at=item.updated_at,
        actions=[to_menu_action_schema(a) for a in item.actions] if with_actions else None,
    )


def to_menu_schema_from_row(row: dict[str, Any]) -> MenuResponse:
    status = row.get("status")
    return MenuResponse(
        id=row["id"],
        name=row.get("name"),
        sequence=row.get("sequence"),
        icon=row.get("icon"),
        router=row.get("router"),
        parent_id=row.get("parent_id"),
        status=MenuStatus(status) if status is not None else None,
        memo=row.get("memo"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def to_menu_entity(data: MenuCreate) -> Menu:
    return Menu(
        name=data.name,
        sequence=data.sequence,
        icon=data.icon,
        router=data.router,
        parent_id=data.parent_id,
        status=int(data.status),
        memo=data.memo,
        actions=[MenuAction(code=a.code, name=a.name) for a in data.actions],
    )


class MenuRepository(BaseRepository[Menu]):
    model = Menu
    name = "menu"
    fields = (
        "id", "name", "sequence", "icon", "router", "parent_id",
        "status", "memo", "created_at", "updated_at",
    )

    async def query(
        self,
        params: MenuQueryParam,
        opts: QueryOptions | None = None,
    ) -> OffsetPage[MenuResponse]:
        opts = opts or QueryOptions()
        stmt = self._base_query()

        if params.ids:
            stmt = stmt.where(Menu.id.in_(params.ids))
        if params.name:
            stmt = stmt.where(Menu.name == params.name)
        if params.parent_id is not None:
            stmt = stmt.where(Menu.parent_id == params.parent_id)
        if params.status is not None:
            stmt = stmt.where(Menu.status == int(params.status))
        if params.query_value:
            stmt = stmt.where(Menu.name.contains(params.query_value, autoescape=True))

        stmt, entities = self._apply_options(stmt, opts)

        async with store_errors("menu.query"):
            rows, total = await paginate(self.db, stmt, params, entities=entities)

        if entities:
            items = [to_menu_schema(r) for r in rows]
        else:
            items = [to_menu_schema_from_row(r) for r in rows]
        return OffsetPage.from_params(items, total, params)

    async def get(self, id: int) -> MenuResponse | None:
        item = await self._get_entity(id)
        return to_menu_schema(item) if item else None

    async def find_by_name(self, name: str, parent_id: int | None = None) -> MenuResponse | None:
        """Menu called ``name`` directly under ``parent_id`` (top level when None)."""
        stmt = select(Menu).where(Menu.name == name)
        if parent_id is None:
            stmt = stmt.where(Menu.parent_id.is_(None))
        else:
            stmt = stmt.where(Menu.parent_id == parent_id)
        item = await self._find_one(stmt.order_by(Menu.id))
        return to_menu_schema(item) if item else None

    async def create(self, data: MenuCreate) -> MenuResponse:
        item = to_menu_entity(data)
        async with store_errors("menu.create"):
            self.db.add(item)
            await self.db.flush()
            await self.db.refresh(item, attribute_names=["created_at", "updated_at"])
        return to_menu_schema(item)

    async def update(self, id: int, data: MenuUpdate) -> bool:
        values = data.changes()
        if "status" in values:
            values["status"] = int(values["status"])
        if not values:
            return await self._get_entity(id) is not None

        async with store_errors("menu.update"):
            result = await self.db.execute(
                update(Menu).where(Menu.id == id).values(**values)
            )
        return result.rowcount > 0

    async def delete(self, id: int) -> bool:
        """Hard delete, actions first."""
        async with store_errors("menu.delete"):
            await self.db.execute(delete(MenuAction).where(MenuAction.menu_id == id))
            result = await self.db.execute(delete(Menu).where(Menu.id == id))
        return result.rowcount > 0

    async def update_status(self, id: int, status: MenuStatus) -> bool:
        async with store_errors("menu.update_status"):
            result = await self.db.execute(
                update(Menu)
                .where(Menu.id == id)
                .values(status=int(status), updated_at=utc_now())
            )
        return result.rowcount > 0


class MenuActionRepository(BaseRepository[MenuAction]):
    model = MenuAction
    name = "menu_action"
    fields = ("id", "menu_id", "code", "name")

    async def query(
        self,
        params: MenuActionQueryParam,
        opts: QueryOptions | None = None,
    ) -> OffsetPage[MenuActionResponse]:
        # Actions are small fixed records; column selection is not offered
        opts = QueryOptions(order_fields=(opts or QueryOptions()).order_fields)
        stmt = self._base_query()

        if params.menu_id is not None:
            stmt = stmt.where(MenuAction.menu_id == params.menu_id)
        if params.ids:
            stmt = stmt.where(MenuAction.id.in_(params.ids))

        stmt, _ = self._apply_options(stmt, opts)

        async with store_errors("menu_action.query"):
            rows, total = await paginate(self.db, stmt, params)
        return OffsetPage.from_params([to_menu_action_schema(r) for r in rows], total, params)

    async def get(self, id: int) -> MenuActionResponse | None:
        item = await self._get_entity(id)
        return to_menu_action_schema(item) if item else None

    async def find_by_code(self, menu_id: int, code: str) -> MenuActionResponse | None:
        item = await self._find_one(
            select(MenuAction).where(MenuAction.menu_id == menu_id, MenuAction.code == code)
        )
        return to_menu_action_schema(item) if item else None

    async def create(self, menu_id: int, data: MenuActionCreate) -> MenuActionResponse:
        item = to_menu_action_entity(menu_id, data)
        async with store_errors("menu_action.create"):
            self.db.add(item)
            await self.db.flush()
        return to_menu_action_schema(item)

    async def update(self, id: int, data: MenuActionUpdate) -> bool:
        values = data.changes()
        if not values:
            return await self._get_entity(id) is not None
        async with store_errors("menu_action.update"):
            result = await self.db.execute(
                update(MenuAction).where(MenuAction.id == id).values(**values)
            )
        return result.rowcount > 0

    async def delete(self, id: int) -> bool:
        async with store_errors("menu_action.delete"):
            result = await self.db.execute(delete(MenuAction).where(MenuAction.id == id))
        return result.rowcount > 0
