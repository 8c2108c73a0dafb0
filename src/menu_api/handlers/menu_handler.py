"""Menu item routes."""

from typing import Any

from fastapi import APIRouter, Depends, Request

from menu_api.auth.policies import ADMIN_ONLY, require
from menu_api.models.menu_models import MenuItemCreate, MenuItemUpdate
from menu_api.models.user_models import User
from menu_api.services.menu_service import MenuService
from menu_api.services.query_builder import collect_query_params

router = APIRouter(tags=["Menu"])


def get_menu_service(request: Request) -> MenuService:
    service: MenuService = request.app.state.menu_service
    return service


@router.get("/api/menu")
async def get_menu_items(
    request: Request,
    menu_service: MenuService = Depends(get_menu_service),
) -> dict[str, Any]:
    """List menu items.

    Accepts ``field``/``field[op]`` filters plus ``select``, ``sort``,
    ``page`` and ``limit``.
    """
    params = collect_query_params(request.query_params.multi_items())
    return await menu_service.list_menu_items(params)


@router.get("/api/menu/{item_id}")
async def get_menu_item(
    item_id: str,
    menu_service: MenuService = Depends(get_menu_service),
) -> dict[str, Any]:
    item = await menu_service.get_menu_item(item_id)
    return {"success": True, "data": item.model_dump(mode="json")}


@router.post("/api/menu", status_code=201)
async def create_menu_item(
    body: MenuItemCreate,
    user: User = Depends(require(ADMIN_ONLY)),
    menu_service: MenuService = Depends(get_menu_service),
) -> dict[str, Any]:
    item = await menu_service.create_menu_item(body, owner=user)
    return {"success": True, "data": item.model_dump(mode="json")}


@router.put("/api/menu/{item_id}")
async def update_menu_item(
    item_id: str,
    body: MenuItemUpdate,
    _user: User = Depends(require(ADMIN_ONLY)),
    menu_service: MenuService = Depends(get_menu_service),
) -> dict[str, Any]:
    item = await menu_service.update_menu_item(item_id, body)
    return {"success": True, "data": item.model_dump(mode="json")}


@router.delete("/api/menu/{item_id}")
async def delete_menu_item(
    item_id: str,
    _user: User = Depends(require(ADMIN_ONLY)),
    menu_service: MenuService = Depends(get_menu_service),
) -> dict[str, Any]:
    await menu_service.delete_menu_item(item_id)
    return {"success": True, "data": {}}

