from dataclasses import dataclass
from typing import Generator, Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from menugate.db.session import new_session
from menugate.core.config import get_settings
from menugate.core.rbac import (
    Capability,
    PermissionEvaluator,
    PermissionSet,
    RevalidationGuard,
    parse_snapshot,
)


@dataclass(frozen=True)
class Principal:
    """Authenticated caller as resolved by the upstream identity gateway."""
    user_id: str
    role_id: int


def get_db() -> Generator:
    """Database session dependency."""
    db = new_session()
    try:
        yield db
    finally:
        db.close()


def get_principal(request: Request) -> Principal:
    """
    Read the ``(user_id, role_id)`` pair from the gateway headers.

    Identity is trusted as given; authentication happens upstream.
    """
    settings = get_settings()
    user_id = request.headers.get(settings.principal_user_header)
    role_id = request.headers.get(settings.principal_role_header)

    if not user_id or not role_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    try:
        return Principal(user_id=user_id, role_id=int(role_id))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {settings.principal_role_header} header",
        ) from None


def get_permission_snapshot(request: Request) -> Optional[PermissionSet]:
    """Render-time permission set the screen sent along, if any."""
    header = get_settings().snapshot_header
    raw = request.headers.get(header)
    if raw is None:
        return None
    try:
        return parse_snapshot(raw)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {header} header: {e}",
        ) from None


class RequireView:
    """
    FastAPI dependency requiring ``view`` on a page.

    Usage:
        @router.get("/roles", dependencies=[Depends(RequireView("roles"))])
        async def list_roles():
            ...
    """

    def __init__(self, page_key: str):
        self.page_key = page_key

    def __call__(
        self,
        principal: Principal = Depends(get_principal),
        db: Session = Depends(get_db),
    ) -> PermissionSet:
        permissions = PermissionEvaluator(db).evaluate(principal.role_id, self.page_key)
        if not permissions.view:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Unauthorized: no access to {self.page_key!r}",
            )
        return permissions


class RequireCapability:
    """
    FastAPI dependency revalidating a capability right before a mutating call.

    Applied to every endpoint that creates, edits, deletes, exports or
    renders a PDF. Raises ``AuthorizationRevokedError`` when the
    ``X-Permission-Snapshot`` header shows the capability was granted at
    render time but no longer is, ``PermissionDeniedError`` otherwise.

    Usage:
        @router.delete("/roles/{role_id}")
        async def delete_role(
            role_id: int,
            _: PermissionSet = Depends(RequireCapability("roles", Capability.DELETE)),
        ):
            ...
    """

    def __init__(self, page_key: str, capability: Capability):
        self.page_key = page_key
        self.capability = Capability(capability)

    def __call__(
        self,
        principal: Principal = Depends(get_principal),
        db: Session = Depends(get_db),
        cached: Optional[PermissionSet] = Depends(get_permission_snapshot),
    ) -> PermissionSet:
        return RevalidationGuard(db).check(
            principal.role_id, self.page_key, self.capability, cached=cached
        )
