"""RBAC (Role-Based Access Control) module for menugate.

This module defines the permission model, the permission evaluator, the
navigation synthesizer, the revalidation guard and grant administration.
"""

from .permissions import (
    Capability,
    PermissionSet,
    AdminPage,
    MUTATING_CAPABILITIES,
    parse_snapshot,
)
from .errors import (
    AccessControlError,
    NotFoundError,
    RoleNotFoundError,
    AppModuleNotFoundError,
    MenuNotFoundError,
    DuplicateSortIndexError,
    DuplicatePageKeyError,
    DuplicateRoleNameError,
    InputValidationError,
    GrantValidationError,
    PermissionDeniedError,
    AuthorizationRevokedError,
    InconsistentWriteError,
)
from .evaluator import PermissionEvaluator
from .navigation import NavigationSynthesizer, NavigationNode, MenuEntry
from .guard import RevalidationGuard, revalidated
from .admin import GrantAdministration, MenuGrantEntry, MenuGrantRow

__all__ = [
    "Capability",
    "PermissionSet",
    "AdminPage",
    "MUTATING_CAPABILITIES",
    "parse_snapshot",
    "AccessControlError",
    "NotFoundError",
    "RoleNotFoundError",
    "AppModuleNotFoundError",
    "MenuNotFoundError",
    "DuplicateSortIndexError",
    "DuplicatePageKeyError",
    "DuplicateRoleNameError",
    "InputValidationError",
    "GrantValidationError",
    "PermissionDeniedError",
    "AuthorizationRevokedError",
    "InconsistentWriteError",
    "PermissionEvaluator",
    "NavigationSynthesizer",
    "NavigationNode",
    "MenuEntry",
    "RevalidationGuard",
    "revalidated",
    "GrantAdministration",
    "MenuGrantEntry",
    "MenuGrantRow",
]
