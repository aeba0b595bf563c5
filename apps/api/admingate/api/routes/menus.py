"""
Menu and menu action routes.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from admingate.api.dependencies.services import (
    get_menu_action_repository,
    get_menu_repository,
    get_menu_service,
)
from admingate.models.menu import MenuStatus
from admingate.repositories.menu import MenuActionRepository, MenuRepository
from admingate.schemas.common import QueryOptions, parse_fields, parse_order
from admingate.schemas.menu import (
    MenuActionCreate,
    MenuActionQueryParam,
    MenuActionResponse,
    MenuActionUpdate,
    MenuCreate,
    MenuQueryParam,
    MenuResponse,
    MenuStatusUpdate,
    MenuUpdate,
)
from admingate.services.menu import MenuService
from admingate.utils.pagination import OffsetPage

router = APIRouter()


@router.get("", response_model=OffsetPage[MenuResponse])
async def list_menus(
    ids: list[int] = Query([]),
    name: str = "",
    query_value: str = "",
    parent_id: int | None = None,
    menu_status: MenuStatus | None = Query(None, alias="status"),
    pagination: bool = True,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    order: str | None = Query(None, description="e.g. sequence,-id"),
    fields: str | None = Query(None, description="Columns to return, e.g. id,name"),
    repo: MenuRepository = Depends(get_menu_repository),
):
    params = MenuQueryParam(
        ids=ids,
        name=name,
        query_value=query_value,
        parent_id=parent_id,
        status=menu_status,
        pagination=pagination,
        page=page,
        per_page=per_page,
    )
    opts = QueryOptions(order_fields=parse_order(order), select_fields=parse_fields(fields))
    return await repo.query(params, opts)


@router.get("/{menu_id}", response_model=MenuResponse)
async def get_menu(
    menu_id: int,
    repo: MenuRepository = Depends(get_menu_repository),
):
    menu = await repo.get(menu_id)
    if not menu:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return menu


@router.post("", response_model=MenuResponse, status_code=status.HTTP_201_CREATED)
async def create_menu(
    data: MenuCreate,
    menu_service: MenuService = Depends(get_menu_service),
):
    """Create a menu together with its actions."""
    return await menu_service.create(data)


@router.patch("/{menu_id}", response_model=MenuResponse)
async def update_menu(
    menu_id: int,
    data: MenuUpdate,
    repo: MenuRepository = Depends(get_menu_repository),
):
    if not await repo.update(menu_id, data):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return await repo.get(menu_id)


@router.delete("/{menu_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_menu(
    menu_id: int,
    repo: MenuRepository = Depends(get_menu_repository),
):
    """Delete a menu and its actions."""
    if not await repo.delete(menu_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)


@router.patch("/{menu_id}/status", response_model=MenuResponse)
async def update_menu_status(
    menu_id: int,
    data: MenuStatusUpdate,
    repo: MenuRepository = Depends(get_menu_repository),
):
    if not await repo.update_status(menu_id, data.status):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return await repo.get(menu_id)


# Actions
@router.get("/{menu_id}/actions", response_model=OffsetPage[MenuActionResponse])
async def list_menu_actions(
    menu_id: int,
    pagination: bool = False,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    order: str | None = None,
    repo: MenuActionRepository = Depends(get_menu_action_repository),
):
    params = MenuActionQueryParam(
        menu_id=menu_id,
        pagination=pagination,
        page=page,
        per_page=per_page,
    )
    return await repo.query(params, QueryOptions(order_fields=parse_order(order)))


@router.post(
    "/{menu_id}/actions",
    response_model=MenuActionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_menu_action(
    menu_id: int,
    data: MenuActionCreate,
    menu_service: MenuService = Depends(get_menu_service),
):
    action = await menu_service.add_action(menu_id, data)
    if not action:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return action


@router.patch("/{menu_id}/actions/{action_id}", response_model=MenuActionResponse)
async def update_menu_action(
    menu_id: int,
    action_id: int,
    data: MenuActionUpdate,
    menu_service: MenuService = Depends(get_menu_service),
):
    current = await menu_service.actions.get(action_id)
    if not current or current.menu_id != menu_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    await menu_service.update_action(action_id, data)
    return await menu_service.actions.get(action_id)


@router.delete("/{menu_id}/actions/{action_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_menu_action(
    menu_id: int,
    action_id: int,
    repo: MenuActionRepository = Depends(get_menu_action_repository),
):
    current = await repo.get(action_id)
    if not current or current.menu_id != menu_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    await repo.delete(action_id)
