"""Default catalog and role definitions for menugate.

Defines the Administration module with the grant administration screens
and the 2 standard roles seeded with it:
1. Super Admin - Every capability on every administration screen
2. Access Auditor - Read-only view of roles, modules and grants
"""

from typing import Dict, List

from .permissions import AdminPage, Capability, PermissionSet


# Administration module and its menu items, in display order
ADMINISTRATION_MODULE = {
    "name": "Administration",
    "kind": "Platform",
    "sort_index": 1,
    "note": "Role, module and access management",
}

ADMINISTRATION_MENUS: List[dict] = [
    {"name": "Roles", "page_key": AdminPage.ROLES.value, "sort_index": 1},
    {"name": "Modules", "page_key": AdminPage.MODULES.value, "sort_index": 2},
    {"name": "Module Menus", "page_key": AdminPage.MODULE_MENU.value, "sort_index": 3},
    {"name": "Module Access", "page_key": AdminPage.MODULE_ACCESS.value, "sort_index": 4},
    {"name": "Menu Access", "page_key": AdminPage.MENU_ACCESS.value, "sort_index": 5},
]


# Super Admin: everything on every administration page
SUPER_ADMIN_GRANTS: Dict[str, PermissionSet] = {
    page.value: PermissionSet.allow_all() for page in AdminPage
}

# Access Auditor: can open every administration page and export, nothing else
ACCESS_AUDITOR_GRANTS: Dict[str, PermissionSet] = {
    page.value: PermissionSet.from_capabilities([Capability.VIEW, Capability.EXPORT])
    for page in AdminPage
}


# Default roles configuration
DEFAULT_ROLES: Dict[str, dict] = {
    "super_admin": {
        "name": "Super Admin",
        "kind": "Platform",
        "grants": SUPER_ADMIN_GRANTS,
    },
    "access_auditor": {
        "name": "Access Auditor",
        "kind": "Platform",
        "grants": ACCESS_AUDITOR_GRANTS,
    },
}


def get_default_role_grants(role_key: str) -> Dict[str, PermissionSet]:
    """Get the page key -> permission set mapping of a default role."""
    role = DEFAULT_ROLES.get(role_key)
    if not role:
        raise ValueError(f"Unknown default role: {role_key}")
    return role["grants"]
