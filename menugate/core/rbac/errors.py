"""Exceptions raised by the authorization and navigation engine.

A missing grant is never an error: it evaluates to "no" for every
capability. Errors signal structural problems (missing entities, invariant
violations, failed transactions) or an action blocked at execution time.
"""

from typing import Optional


class AccessControlError(Exception):
    """Base exception for menugate."""

    code = "access_control_error"

    def __init__(self, message: str = "An access control error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(AccessControlError):
    """Raised when a referenced role, module or menu item does not exist."""

    code = "not_found"
    entity = "Resource"

    def __init__(self, identifier):
        self.identifier = identifier
        super().__init__(f"{self.entity} {identifier!r} not found")


class RoleNotFoundError(NotFoundError):
    entity = "Role"


class AppModuleNotFoundError(NotFoundError):
    entity = "Module"


class MenuNotFoundError(NotFoundError):
    entity = "Menu item"


class DuplicateSortIndexError(AccessControlError):
    """Raised when a sort index collides with a sibling in the same scope."""

    code = "duplicate_sort_index"

    def __init__(self, scope: str, sort_index: int):
        self.scope = scope
        self.sort_index = sort_index
        super().__init__(
            f"Sort index {sort_index} already exists for {scope}. "
            f"Choose a different value."
        )


class DuplicatePageKeyError(AccessControlError):
    """Raised when a page key is already used by another menu item."""

    code = "duplicate_page_key"

    def __init__(self, page_key: str):
        self.page_key = page_key
        super().__init__(f"Page key {page_key!r} is already assigned to a menu item")


class DuplicateRoleNameError(AccessControlError):
    """Raised when a role name is already taken."""

    code = "duplicate_role_name"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Role with name {name!r} already exists")


class InputValidationError(AccessControlError, ValueError):
    """Raised when a name, kind or other administrative input is invalid."""

    code = "invalid_input"


class GrantValidationError(InputValidationError):
    """Raised when a grant payload is malformed."""

    code = "invalid_grant"


class PermissionDeniedError(AccessControlError):
    """Raised when a fresh check does not allow the requested capability."""

    code = "permission_denied"

    def __init__(self, role_id: int, page_key: str, capability, message: Optional[str] = None):
        self.role_id = role_id
        self.page_key = page_key
        self.capability = capability
        super().__init__(
            message
            or f"Permission denied: role {role_id} may not {capability.value} on {page_key!r}"
        )


class AuthorizationRevokedError(PermissionDeniedError):
    """
    Raised when the fresh check contradicts the render-time decision.

    The control was shown because the capability was granted when the page
    loaded; it has been revoked since. The action is aborted and the user
    must reload.
    """

    code = "authorization_revoked"

    def __init__(self, role_id: int, page_key: str, capability):
        super().__init__(
            role_id,
            page_key,
            capability,
            message=(
                f"Permission to {capability.value} on {page_key!r} was revoked, "
                f"reload the page"
            ),
        )


class InconsistentWriteError(AccessControlError):
    """
    Raised when a grant administration write could not complete atomically.

    The transaction has been rolled back; retry the whole operation.
    """

    code = "inconsistent_write"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            f"{operation} could not be completed atomically and was rolled back; "
            f"retry the whole operation"
        )
