"""Permission model for menugate RBAC.

A role's rights on a menu item are six independent capabilities:
view, create, edit, delete, pdf and export. They are carried as a fixed
record of named booleans (``PermissionSet``) and addressed through the
``Capability`` enum.

Snapshot string format: comma-separated capability names
Examples:
  - "view"
  - "view,edit,delete"
"""

from enum import Enum
from typing import NamedTuple, FrozenSet, Iterable


class Capability(str, Enum):
    """Capabilities a role can hold on a menu item."""

    VIEW = "view"       # Open the page and see it in navigation
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    PDF = "pdf"         # Render documents as PDF
    EXPORT = "export"   # Export data (CSV, Excel)


# Actions that change state or leave the system and must be revalidated
MUTATING_CAPABILITIES: FrozenSet[Capability] = frozenset([
    Capability.CREATE,
    Capability.EDIT,
    Capability.DELETE,
    Capability.PDF,
    Capability.EXPORT,
])


class AdminPage(str, Enum):
    """Page keys of the grant administration screens."""

    ROLES = "roles"                   # Role list and editor
    MODULES = "modules"               # Module manager
    MODULE_MENU = "module-menu"       # Menu item manager
    MODULE_ACCESS = "module-access"   # Module grants per role
    MENU_ACCESS = "menu-access"       # Menu grants per role


class PermissionSet(NamedTuple):
    """Effective capabilities of a role on one menu item."""
    view: bool = False
    create: bool = False
    edit: bool = False
    delete: bool = False
    pdf: bool = False
    export: bool = False

    @classmethod
    def deny_all(cls) -> "PermissionSet":
        return cls()

    @classmethod
    def allow_all(cls) -> "PermissionSet":
        return cls(*([True] * len(cls._fields)))

    @classmethod
    def from_capabilities(cls, capabilities: Iterable[Capability]) -> "PermissionSet":
        """Build a set where exactly the given capabilities are granted."""
        granted = {Capability(c) for c in capabilities}
        return cls(**{c.value: True for c in granted})

    @classmethod
    def from_grant(cls, grant) -> "PermissionSet":
        """Copy the flags of a MenuGrant row. ``None`` means no row: deny all."""
        if grant is None:
            return cls.deny_all()
        return cls(
            view=bool(grant.view),
            create=bool(grant.create),
            edit=bool(grant.edit),
            delete=bool(grant.delete),
            pdf=bool(grant.pdf),
            export=bool(grant.export),
        )

    def allows(self, capability: Capability) -> bool:
        return getattr(self, Capability(capability).value)

    def granted(self) -> FrozenSet[Capability]:
        """Capabilities that are set."""
        return frozenset(c for c in Capability if self.allows(c))

    def to_snapshot(self) -> str:
        """Serialize the granted capabilities for the snapshot header."""
        return ",".join(c.value for c in Capability if self.allows(c))


def parse_snapshot(snapshot: str) -> PermissionSet:
    """
    Parse a render-time snapshot like "view,delete".

    Raises:
        ValueError: If a name is not a known capability
    """
    names = [part.strip().lower() for part in snapshot.split(",") if part.strip()]
    capabilities = []
    for name in names:
        try:
            capabilities.append(Capability(name))
        except ValueError:
            raise ValueError(f"Invalid capability in snapshot: {name}") from None
    return PermissionSet.from_capabilities(capabilities)
