"""Navigation API endpoints."""

from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from menugate.api.deps import Principal, RequireView, get_db, get_principal
from menugate.core.rbac import AdminPage, NavigationSynthesizer

router = APIRouter(prefix="/navigation", tags=["navigation"])


# Schemas
class MenuEntryResponse(BaseModel):
    menu_id: int
    name: str
    page_key: str
    sort_index: int


class NavigationNodeResponse(BaseModel):
    module_id: int
    name: str
    kind: str
    sort_index: int
    menus: List[MenuEntryResponse]


# Endpoints
@router.get("", response_model=List[NavigationNodeResponse])
async def get_navigation(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    """Navigation tree of the calling principal's role."""
    tree = NavigationSynthesizer(db).build_tree(principal.role_id)
    return [node.to_dict() for node in tree]


@router.get(
    "/{role_id}",
    response_model=List[NavigationNodeResponse],
    dependencies=[Depends(RequireView(AdminPage.ROLES.value))],
)
async def preview_navigation(
    role_id: int,
    db: Session = Depends(get_db),
):
    """Preview the navigation tree another role would get."""
    tree = NavigationSynthesizer(db).build_tree(role_id)
    return [node.to_dict() for node in tree]
