"""API routers for menugate."""

from . import health
from . import navigation
from . import permissions
from . import roles
from . import modules
from . import menus
from . import grants

__all__ = [
    "health",
    "navigation",
    "permissions",
    "roles",
    "modules",
    "menus",
    "grants",
]
