"""Database models for menugate."""

from menugate.db.models.role import Role, ScopeKind
from menugate.db.models.module import Module
from menugate.db.models.menu_item import MenuItem
from menugate.db.models.grant import ModuleGrant, MenuGrant

__all__ = [
    "Role",
    "ScopeKind",
    "Module",
    "MenuItem",
    "ModuleGrant",
    "MenuGrant",
]
