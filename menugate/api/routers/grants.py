"""Module and menu grant API endpoints."""

from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from menugate.api.deps import RequireCapability, RequireView, get_db
from menugate.core.rbac import (
    AdminPage,
    Capability,
    GrantAdministration,
    MenuGrantEntry,
    PermissionSet,
)

router = APIRouter(prefix="/roles", tags=["grants"])

MODULE_ACCESS = AdminPage.MODULE_ACCESS.value
MENU_ACCESS = AdminPage.MENU_ACCESS.value


# Schemas
class ModuleGrantsUpdate(BaseModel):
    module_ids: List[int] = Field(default_factory=list)


class ModuleGrantsResponse(BaseModel):
    role_id: int
    module_ids: List[int]


class PermissionFlags(BaseModel):
    view: bool = False
    create: bool = False
    edit: bool = False
    delete: bool = False
    pdf: bool = False
    export: bool = False


class MenuGrantItem(PermissionFlags):
    menu_id: int


class MenuGrantsUpdate(BaseModel):
    grants: List[MenuGrantItem]


class MenuGrantRowResponse(BaseModel):
    menu_id: int
    name: str
    page_key: str
    sort_index: int
    visible: bool
    permissions: PermissionFlags
    saved: bool


# Endpoints
@router.get(
    "/{role_id}/module-grants",
    response_model=ModuleGrantsResponse,
    dependencies=[Depends(RequireView(MODULE_ACCESS))],
)
async def get_module_grants(
    role_id: int,
    db: Session = Depends(get_db),
):
    """Modules a role has access to."""
    module_ids = GrantAdministration(db).get_module_grants(role_id)
    return ModuleGrantsResponse(role_id=role_id, module_ids=module_ids)


@router.put(
    "/{role_id}/module-grants",
    response_model=ModuleGrantsResponse,
    dependencies=[Depends(RequireCapability(MODULE_ACCESS, Capability.EDIT))],
)
async def set_module_grants(
    role_id: int,
    body: ModuleGrantsUpdate,
    db: Session = Depends(get_db),
):
    """Replace the full set of modules a role has access to."""
    module_ids = GrantAdministration(db).set_module_grants(role_id, body.module_ids)
    return ModuleGrantsResponse(role_id=role_id, module_ids=module_ids)


@router.get(
    "/{role_id}/modules/{module_id}/menu-grants",
    response_model=List[MenuGrantRowResponse],
    dependencies=[Depends(RequireView(MENU_ACCESS))],
)
async def get_menu_grants(
    role_id: int,
    module_id: int,
    db: Session = Depends(get_db),
):
    """Every menu item of a module with the role's capabilities on it."""
    rows = GrantAdministration(db).menu_grant_matrix(role_id, module_id)
    return [row.to_dict() for row in rows]


@router.put(
    "/{role_id}/modules/{module_id}/menu-grants",
    response_model=List[MenuGrantRowResponse],
    dependencies=[Depends(RequireCapability(MENU_ACCESS, Capability.EDIT))],
)
async def set_menu_grants(
    role_id: int,
    module_id: int,
    body: MenuGrantsUpdate,
    db: Session = Depends(get_db),
):
    """Insert or update the role's capabilities on menu items of a module."""
    entries = [
        MenuGrantEntry(
            menu_id=item.menu_id,
            permissions=PermissionSet(**item.model_dump(exclude={"menu_id"})),
        )
        for item in body.grants
    ]
    rows = GrantAdministration(db).set_menu_grants(role_id, module_id, entries)
    return [row.to_dict() for row in rows]
