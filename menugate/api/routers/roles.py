"""Role management API endpoints."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from menugate.api.deps import RequireCapability, RequireView, get_db
from menugate.core.rbac import AdminPage, Capability, GrantAdministration
from menugate.db.models import ScopeKind

router = APIRouter(prefix="/roles", tags=["roles"])

PAGE = AdminPage.ROLES.value


# Schemas
class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    kind: ScopeKind = ScopeKind.ORGANIZATION


class RoleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    kind: Optional[ScopeKind] = None


class RoleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    kind: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Endpoints
@router.get("", response_model=List[RoleResponse], dependencies=[Depends(RequireView(PAGE))])
async def list_roles(
    db: Session = Depends(get_db),
    kind: Optional[ScopeKind] = Query(None, description="Only roles of this kind"),
):
    """List all roles."""
    return GrantAdministration(db).list_roles(kind=kind.value if kind else None)


@router.post(
    "",
    response_model=RoleResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(RequireCapability(PAGE, Capability.CREATE))],
)
async def create_role(
    body: RoleCreate,
    db: Session = Depends(get_db),
):
    """Create a role. It starts without any grant."""
    return GrantAdministration(db).create_role(body.name, kind=body.kind.value)


@router.get("/{role_id}", response_model=RoleResponse, dependencies=[Depends(RequireView(PAGE))])
async def get_role(
    role_id: int,
    db: Session = Depends(get_db),
):
    """Get a role by ID."""
    return GrantAdministration(db).get_role(role_id)


@router.patch(
    "/{role_id}",
    response_model=RoleResponse,
    dependencies=[Depends(RequireCapability(PAGE, Capability.EDIT))],
)
async def update_role(
    role_id: int,
    body: RoleUpdate,
    db: Session = Depends(get_db),
):
    """Rename a role or change its kind."""
    return GrantAdministration(db).update_role(
        role_id,
        name=body.name,
        kind=body.kind.value if body.kind else None,
    )


@router.delete(
    "/{role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(RequireCapability(PAGE, Capability.DELETE))],
)
async def delete_role(
    role_id: int,
    db: Session = Depends(get_db),
):
    """Delete a role and every grant recorded against it."""
    GrantAdministration(db).delete_role(role_id)
