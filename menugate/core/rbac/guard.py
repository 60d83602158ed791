"""Revalidation of permissions immediately before executing an action.

A screen may cache the permission set it loaded on render to decide which
controls to show. That cached value is never trusted to execute anything:
right before a create/edit/delete/export/pdf action runs, the permission is
evaluated again against the store.

Usage::

    guard = RevalidationGuard(db)
    guard.run(role_id, "customers", Capability.DELETE, delete_customer, customer_id,
              cached=rendered_permissions)

    @revalidated("customers", Capability.DELETE)
    def delete_customer(db, role_id, customer_id):
        ...
"""

import logging
from functools import wraps
from typing import Any, Callable, Optional

from sqlalchemy.orm import Session

from .errors import AuthorizationRevokedError, PermissionDeniedError
from .evaluator import PermissionEvaluator
from .permissions import Capability, PermissionSet

logger = logging.getLogger(__name__)


class RevalidationGuard:
    """Fresh permission check performed at execution time."""

    def __init__(self, db: Session):
        self.evaluator = PermissionEvaluator(db)

    def check(
        self,
        role_id: int,
        page_key: str,
        capability: Capability,
        *,
        cached: Optional[PermissionSet] = None,
    ) -> PermissionSet:
        """
        Re-evaluate and require ``capability``.

        Args:
            role_id: Acting role
            page_key: Page the action belongs to
            capability: Capability the action needs
            cached: Permission set the page was rendered with, if any

        Returns:
            The fresh permission set

        Raises:
            AuthorizationRevokedError: If ``cached`` allowed the capability
                but the fresh check does not
            PermissionDeniedError: If the fresh check does not allow it and
                no render-time grant is known
        """
        capability = Capability(capability)
        fresh = self.evaluator.evaluate(role_id, page_key)

        if fresh.allows(capability):
            return fresh

        if cached is not None and cached.allows(capability):
            logger.warning(
                f"Revoked: role {role_id} lost {capability.value} on {page_key!r} "
                f"after the page was rendered"
            )
            raise AuthorizationRevokedError(role_id, page_key, capability)

        logger.warning(f"Denied: role {role_id} may not {capability.value} on {page_key!r}")
        raise PermissionDeniedError(role_id, page_key, capability)

    def run(
        self,
        role_id: int,
        page_key: str,
        capability: Capability,
        action: Callable[..., Any],
        *args,
        cached: Optional[PermissionSet] = None,
        **kwargs,
    ) -> Any:
        """Check, then execute ``action``. The action is not called on failure."""
        self.check(role_id, page_key, capability, cached=cached)
        return action(*args, **kwargs)


def revalidated(page_key: str, capability: Capability):
    """
    Decorator for service functions taking ``(db, role_id, ...)``.

    The wrapped function accepts an optional ``cached`` keyword holding the
    render-time permission set; it is consumed by the guard and not passed on.
    """
    def decorator(func: Callable):
        @wraps(func)
        def wrapper(db: Session, role_id: int, *args, cached: Optional[PermissionSet] = None, **kwargs):
            RevalidationGuard(db).check(role_id, page_key, capability, cached=cached)
            return func(db, role_id, *args, **kwargs)

        return wrapper
    return decorator
