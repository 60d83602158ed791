"""Module management API endpoints."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from menugate.api.deps import RequireCapability, RequireView, get_db
from menugate.core.rbac import AdminPage, Capability, GrantAdministration
from menugate.db.models import ScopeKind

router = APIRouter(prefix="/modules", tags=["modules"])

PAGE = AdminPage.MODULES.value


# Schemas
class ModuleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    kind: ScopeKind = ScopeKind.PLATFORM
    sort_index: Optional[int] = Field(None, ge=1, description="Next free index when omitted")
    note: Optional[str] = None


class ModuleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    kind: Optional[ScopeKind] = None
    sort_index: Optional[int] = Field(None, ge=1)
    note: Optional[str] = None


class ModuleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    kind: str
    sort_index: int
    note: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class NextSortIndexResponse(BaseModel):
    next_sort_index: int


# Endpoints
@router.get("", response_model=List[ModuleResponse], dependencies=[Depends(RequireView(PAGE))])
async def list_modules(
    db: Session = Depends(get_db),
    kind: Optional[ScopeKind] = Query(None, description="Only modules of this kind"),
    search: Optional[str] = Query(None, description="Case-insensitive name filter"),
):
    """List modules in display order."""
    return GrantAdministration(db).list_modules(kind=kind.value if kind else None, search=search)


@router.get(
    "/next-sort-index",
    response_model=NextSortIndexResponse,
    dependencies=[Depends(RequireView(PAGE))],
)
async def next_sort_index(
    db: Session = Depends(get_db),
    kind: ScopeKind = Query(ScopeKind.PLATFORM),
):
    """Suggested sort index for a new module of ``kind``."""
    return NextSortIndexResponse(
        next_sort_index=GrantAdministration(db).next_module_sort_index(kind.value)
    )


@router.post(
    "",
    response_model=ModuleResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(RequireCapability(PAGE, Capability.CREATE))],
)
async def create_module(
    body: ModuleCreate,
    db: Session = Depends(get_db),
):
    """Create a module. 409 when the sort index is taken within its kind."""
    return GrantAdministration(db).create_module(
        body.name,
        kind=body.kind.value,
        sort_index=body.sort_index,
        note=body.note,
    )


@router.patch(
    "/{module_id}",
    response_model=ModuleResponse,
    dependencies=[Depends(RequireCapability(PAGE, Capability.EDIT))],
)
async def update_module(
    module_id: int,
    body: ModuleUpdate,
    db: Session = Depends(get_db),
):
    """Update a module."""
    return GrantAdministration(db).update_module(
        module_id,
        name=body.name,
        kind=body.kind.value if body.kind else None,
        sort_index=body.sort_index,
        note=body.note,
    )


@router.delete(
    "/{module_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(RequireCapability(PAGE, Capability.DELETE))],
)
async def delete_module(
    module_id: int,
    db: Session = Depends(get_db),
):
    """Delete a module with its menu items and every grant on them."""
    GrantAdministration(db).delete_module(module_id)
