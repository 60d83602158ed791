"""Permission lookup API endpoints.

Screens call these on render to decide which controls to show. The result
is only a rendering hint; mutating endpoints revalidate on their own.
"""

from typing import Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from menugate.api.deps import Principal, get_db, get_principal
from menugate.core.rbac import PermissionEvaluator

router = APIRouter(prefix="/permissions", tags=["permissions"])


# Schemas
class PermissionSetResponse(BaseModel):
    view: bool = False
    create: bool = False
    edit: bool = False
    delete: bool = False
    pdf: bool = False
    export: bool = False


class PagePermissionResponse(BaseModel):
    page_key: str
    permissions: PermissionSetResponse
    snapshot: str


class BatchPermissionRequest(BaseModel):
    page_keys: List[str] = Field(..., max_length=200)


# Endpoints
@router.post("/batch", response_model=Dict[str, PermissionSetResponse])
async def evaluate_batch(
    body: BatchPermissionRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    """Evaluate several pages at once. Unknown pages come back all-false."""
    results = PermissionEvaluator(db).evaluate_many(principal.role_id, body.page_keys)
    return {page_key: permissions._asdict() for page_key, permissions in results.items()}


@router.get("/{page_key}", response_model=PagePermissionResponse)
async def get_page_permissions(
    page_key: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    """
    Effective capabilities of the caller on a page.

    ``snapshot`` is the value to send back in the snapshot header on
    mutating calls. Returns 404 when no menu item has ``page_key``.
    """
    permissions = PermissionEvaluator(db).evaluate(principal.role_id, page_key, strict=True)
    return PagePermissionResponse(
        page_key=page_key,
        permissions=PermissionSetResponse(**permissions._asdict()),
        snapshot=permissions.to_snapshot(),
    )
