"""
Tests for loading and seeding menu data.
"""

from pathlib import Path

import pytest

from admingate.core.config import MenuSettings
from admingate.core.container import build_container
from admingate.core.errors import DecodeFailure, ReadFailure, UnsupportedFormat
from admingate.core.menu_data import load_menu_data
from admingate.repositories.menu import MenuRepository
from admingate.schemas.menu import MenuActionQueryParam, MenuQueryParam
from admingate.services.menu import MenuService

MENU_DATA_FILE = Path(__file__).resolve().parents[1] / "config" / "menu_data.yaml"


def write(tmp_path: Path, name: str, content: str) -> str:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return str(path)


def test_load_sample_tree():
    [system] = load_menu_data(str(MENU_DATA_FILE))

    assert system.name == "System"
    assert [c.name for c in system.children] == ["Domains", "Menus", "Policies"]
    assert [a.code for a in system.children[0].actions] == ["add", "edit", "del", "query"]


def test_empty_file_has_no_menus(tmp_path):
    assert load_menu_data(write(tmp_path, "menus.yaml", "")) == []


def test_unknown_fields_are_ignored(tmp_path):
    path = write(tmp_path, "menus.yml", "- name: Reports\n  hidden: true\n")

    [menu] = load_menu_data(path)

    assert menu.name == "Reports"
    assert menu.actions == []


def test_unsupported_extension(tmp_path):
    with pytest.raises(UnsupportedFormat):
        load_menu_data(write(tmp_path, "menus.toml", "name = 'x'"))


def test_missing_file(tmp_path):
    with pytest.raises(ReadFailure):
        load_menu_data(str(tmp_path / "absent.yaml"))


@pytest.mark.parametrize(
    "content",
    [
        "- name: [unclosed\n",
        "name: System\n",
        "- icon: setting\n",
        "- name: System\n  actions:\n    - code: add\n",
    ],
)
def test_malformed_or_wrong_shape(tmp_path, content):
    with pytest.raises(DecodeFailure):
        load_menu_data(write(tmp_path, "menus.yaml", content))


@pytest.mark.asyncio
async def test_init_data_builds_tree(db):
    service = MenuService(db)

    report = await service.init_data(str(MENU_DATA_FILE))

    assert (report.menus, report.actions) == (4, 10)
    system = await service.menus.find_by_name("System")
    domains = await service.menus.find_by_name("Domains", system.id)
    assert domains.router == "/system/domains"
    assert [a.code for a in domains.actions] == ["add", "edit", "del", "query"]
    assert await service.menus.find_by_name("Domains") is None


@pytest.mark.asyncio
async def test_init_data_is_idempotent(db):
    service = MenuService(db)
    await service.init_data(str(MENU_DATA_FILE))

    report = await service.init_data(str(MENU_DATA_FILE))

    assert (report.menus, report.actions) == (0, 0)
    page = await service.menus.query(MenuQueryParam(pagination=False))
    assert page.total == 4


@pytest.mark.asyncio
async def test_init_data_updates_existing_menus(db, tmp_path):
    service = MenuService(db)
    await service.init_data(
        write(
            tmp_path,
            "v1.yaml",
            "- name: Reports\n  sequence: 1\n  actions:\n    - code: view\n      name: View\n",
        )
    )

    report = await service.init_data(
        write(
            tmp_path,
            "v2.yaml",
            "- name: Reports\n"
            "  sequence: 5\n"
            "  router: /reports\n"
            "  actions:\n"
            "    - code: view\n"
            "      name: Open\n"
            "    - code: export\n"
            "      name: Export\n",
        )
    )

    assert (report.menus, report.actions) == (0, 1)
    menu = await service.menus.find_by_name("Reports")
    assert (menu.sequence, menu.router) == (5, "/reports")
    actions = await service.actions.query(MenuActionQueryParam(menu_id=menu.id))
    assert [(a.code, a.name) for a in actions.items] == [("view", "Open"), ("export", "Export")]


@pytest.mark.asyncio
async def test_container_seeds_menus_when_enabled(settings, db_engine, db):
    enabled = settings.model_copy(
        update={"menu": MenuSettings(enable=True, data=str(MENU_DATA_FILE))}
    )

    await build_container(enabled, engine=db_engine)

    page = await MenuRepository(db).query(MenuQueryParam(pagination=False))
    assert [m.name for m in page.items] == ["System", "Domains", "Menus", "Policies"]


@pytest.mark.asyncio
async def test_container_skips_menus_when_disabled(settings, db_engine, db):
    disabled = settings.model_copy(
        update={"menu": MenuSettings(enable=False, data=str(MENU_DATA_FILE))}
    )

    await build_container(disabled, engine=db_engine)

    assert (await MenuRepository(db).query(MenuQueryParam())).total == 0
