"""Menu item management API endpoints."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from menugate.api.deps import RequireCapability, RequireView, get_db
from menugate.core.rbac import AdminPage, Capability, GrantAdministration

router = APIRouter(prefix="/menus", tags=["menus"])

PAGE = AdminPage.MODULE_MENU.value


# Schemas
class MenuItemCreate(BaseModel):
    module_id: int
    name: str = Field(..., min_length=1, max_length=100)
    page_key: str = Field(..., min_length=1, max_length=255)
    visible: bool = True
    sort_index: Optional[int] = Field(None, ge=1, description="Next free index when omitted")
    note: Optional[str] = None


class MenuItemUpdate(BaseModel):
    module_id: Optional[int] = None
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    page_key: Optional[str] = Field(None, min_length=1, max_length=255)
    visible: Optional[bool] = None
    sort_index: Optional[int] = Field(None, ge=1)
    note: Optional[str] = None


class VisibilityUpdate(BaseModel):
    visible: bool


class MenuItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    module_id: int
    name: str
    page_key: str
    visible: bool
    sort_index: int
    note: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class NextSortIndexResponse(BaseModel):
    next_sort_index: int


# Endpoints
@router.get("", response_model=List[MenuItemResponse], dependencies=[Depends(RequireView(PAGE))])
async def list_menu_items(
    db: Session = Depends(get_db),
    module_id: Optional[int] = Query(None, description="Only items of this module"),
    search: Optional[str] = Query(None, description="Case-insensitive name or page key filter"),
):
    """List menu items grouped by module, in display order."""
    return GrantAdministration(db).list_menu_items(module_id=module_id, search=search)


@router.get(
    "/next-sort-index",
    response_model=NextSortIndexResponse,
    dependencies=[Depends(RequireView(PAGE))],
)
async def next_sort_index(
    module_id: int = Query(...),
    db: Session = Depends(get_db),
):
    """Suggested sort index for a new item of a module."""
    admin = GrantAdministration(db)
    admin.get_module(module_id)
    return NextSortIndexResponse(next_sort_index=admin.next_menu_sort_index(module_id))


@router.post(
    "",
    response_model=MenuItemResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(RequireCapability(PAGE, Capability.CREATE))],
)
async def create_menu_item(
    body: MenuItemCreate,
    db: Session = Depends(get_db),
):
    """Create a menu item. 409 on a taken page key or sort index."""
    return GrantAdministration(db).create_menu_item(
        body.module_id,
        body.name,
        body.page_key,
        visible=body.visible,
        sort_index=body.sort_index,
        note=body.note,
    )


@router.patch(
    "/{menu_id}",
    response_model=MenuItemResponse,
    dependencies=[Depends(RequireCapability(PAGE, Capability.EDIT))],
)
async def update_menu_item(
    menu_id: int,
    body: MenuItemUpdate,
    db: Session = Depends(get_db),
):
    """Update a menu item, possibly moving it to another module."""
    return GrantAdministration(db).update_menu_item(
        menu_id,
        module_id=body.module_id,
        name=body.name,
        page_key=body.page_key,
        visible=body.visible,
        sort_index=body.sort_index,
        note=body.note,
    )


@router.put(
    "/{menu_id}/visibility",
    response_model=MenuItemResponse,
    dependencies=[Depends(RequireCapability(PAGE, Capability.EDIT))],
)
async def set_visibility(
    menu_id: int,
    body: VisibilityUpdate,
    db: Session = Depends(get_db),
):
    """Show or hide a menu item in every navigation tree."""
    return GrantAdministration(db).set_menu_item_visibility(menu_id, body.visible)


@router.delete(
    "/{menu_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(RequireCapability(PAGE, Capability.DELETE))],
)
async def delete_menu_item(
    menu_id: int,
    db: Session = Depends(get_db),
):
    """Delete a menu item and its grants."""
    GrantAdministration(db).delete_menu_item(menu_id)
