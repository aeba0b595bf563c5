"""
Menu service.
"""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from admingate.core.errors import ConflictError
from admingate.core.menu_data import MenuSeed, load_menu_data
from admingate.repositories.menu import MenuActionRepository, MenuRepository
from admingate.schemas.menu import (
    MenuActionCreate,
    MenuActionResponse,
    MenuActionUpdate,
    MenuCreate,
    MenuResponse,
    MenuSeedReport,
    MenuUpdate,
)

logger = structlog.get_logger()


class MenuService:
    """
    Menu writes that span both repositories.

    Owns the (menu_id, code) uniqueness rule for actions.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.menus = MenuRepository(db)
        self.actions = MenuActionRepository(db)

    async def create(self, data: MenuCreate) -> MenuResponse:
        codes = [a.code for a in data.actions]
        duplicates = {c for c in codes if codes.count(c) > 1}
        if duplicates:
            raise ConflictError(f"duplicate action codes: {', '.join(sorted(duplicates))}")

        return await self.menus.create(data)

    async def add_action(self, menu_id: int, data: MenuActionCreate) -> MenuActionResponse | None:
        if await self.menus.get(menu_id) is None:
            return None
        if await self.actions.find_by_code(menu_id, data.code) is not None:
            raise ConflictError(f"action code already exists on menu {menu_id}: {data.code}")
        return await self.actions.create(menu_id, data)

    async def update_action(self, id: int, data: MenuActionUpdate) -> bool:
        current = await self.actions.get(id)
        if current is None:
            return False
        if data.code and data.code != current.code:
            if await self.actions.find_by_code(current.menu_id, data.code) is not None:
                raise ConflictError(
                    f"action code already exists on menu {current.menu_id}: {data.code}"
                )
        return await self.actions.update(id, data)

    async def init_data(self, path: str) -> MenuSeedReport:
        """
        Upsert the menu tree stored in ``path``.

        Existing menus keep their id and status; fields set in the file
        overwrite theirs and action names follow the file. Running the same file twice inserts
        nothing the second time.
        """
        report = MenuSeedReport()
        await self._upsert_menus(load_menu_data(path), None, report)
        logger.info("menu_data_seeded", menus=report.menus, actions=report.actions)
        return report

    async def _upsert_menus(
        self,
        seeds: list[MenuSeed],
        parent_id: int | None,
        report: MenuSeedReport,
    ) -> None:
        for seed in seeds:
            menu = await self.menus.find_by_name(seed.name, parent_id)
            if menu is None:
                menu = await self.create(
                    MenuCreate(
                        name=seed.name,
                        sequence=seed.sequence,
                        icon=seed.icon,
                        router=seed.router,
                        parent_id=parent_id,
                        memo=seed.memo,
                        actions=[MenuActionCreate(code=a.code, name=a.name) for a in seed.actions],
                    )
                )
                report.menus += 1
                report.actions += len(seed.actions)
            else:
                await self.menus.update(
                    menu.id,
                    MenuUpdate(
                        sequence=seed.sequence,
                        icon=seed.icon,
                        router=seed.router,
                        memo=seed.memo,
                    ),
                )
                for action in seed.actions:
                    current = await self.actions.find_by_code(menu.id, action.code)
                    if current is None:
                        await self.actions.create(
                            menu.id, MenuActionCreate(code=action.code, name=action.name)
                        )
                        report.actions += 1
                    elif current.name != action.name:
                        await self.actions.update(current.id, MenuActionUpdate(name=action.name))

            await self._upsert_menus(seed.children, menu.id, report)
