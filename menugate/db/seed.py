"""Database seeding for menugate.

Creates the Administration module, its menu items and the default roles
with their grants.
"""

import logging
from typing import Dict, Optional

from sqlalchemy import and_
from sqlalchemy.orm import Session

from menugate.db.models import MenuItem, Module, Role
from menugate.core.rbac import GrantAdministration, MenuGrantEntry
from menugate.core.rbac.roles import (
    ADMINISTRATION_MENUS,
    ADMINISTRATION_MODULE,
    DEFAULT_ROLES,
)

logger = logging.getLogger(__name__)


def _module_sort_index_taken(db: Session, kind: str, sort_index: int) -> bool:
    return db.query(Module.id).filter(
        and_(Module.kind == kind, Module.sort_index == sort_index)
    ).first() is not None


def _menu_sort_index_taken(db: Session, module_id: int, sort_index: int) -> bool:
    return db.query(MenuItem.id).filter(
        and_(MenuItem.module_id == module_id, MenuItem.sort_index == sort_index)
    ).first() is not None


def seed_administration_module(db: Session) -> Module:
    """
    Create the Administration module and its menu items.

    Idempotent: existing rows (matched by module name and kind, and by menu
    page key) are reused. A configured sort index already held by another
    module or menu item is replaced by the next free one.
    """
    admin = GrantAdministration(db)

    module = db.query(Module).filter(
        and_(
            Module.name == ADMINISTRATION_MODULE["name"],
            Module.kind == ADMINISTRATION_MODULE["kind"],
        )
    ).first()

    if module is None:
        kind = ADMINISTRATION_MODULE["kind"]
        sort_index = ADMINISTRATION_MODULE["sort_index"]
        if _module_sort_index_taken(db, kind, sort_index):
            sort_index = admin.next_module_sort_index(kind)
            logger.info("Module sort index %s is taken, seeding Administration at %s",
                        ADMINISTRATION_MODULE["sort_index"], sort_index)
        module = admin.create_module(
            ADMINISTRATION_MODULE["name"],
            kind=kind,
            sort_index=sort_index,
            note=ADMINISTRATION_MODULE["note"],
        )

    for menu_config in ADMINISTRATION_MENUS:
        existing = db.query(MenuItem).filter(
            MenuItem.page_key == menu_config["page_key"]
        ).first()
        if existing:
            continue
        sort_index = menu_config["sort_index"]
        if _menu_sort_index_taken(db, module.id, sort_index):
            sort_index = admin.next_menu_sort_index(module.id)
        admin.create_menu_item(
            module.id,
            menu_config["name"],
            menu_config["page_key"],
            sort_index=sort_index,
        )

    return module


def seed_default_roles(db: Session, module: Module) -> Dict[str, Role]:
    """
    Create the default roles and grant them the Administration module.

    Roles are idempotent - if they already exist, their other module grants
    are kept and the Administration grants are reapplied.

    Returns:
        Dict mapping role key to Role object
    """
    admin = GrantAdministration(db)
    menus = {m.page_key: m for m in admin.list_menu_items(module_id=module.id)}
    seeded = {}

    for role_key, role_config in DEFAULT_ROLES.items():
        role = db.query(Role).filter(Role.name == role_config["name"]).first()
        if role is None:
            role = admin.create_role(role_config["name"], kind=role_config["kind"])

        granted = set(admin.get_module_grants(role.id))
        admin.set_module_grants(role.id, sorted(granted | {module.id}))
        admin.set_menu_grants(
            role.id,
            module.id,
            [
                MenuGrantEntry(menu_id=menus[page_key].id, permissions=permissions)
                for page_key, permissions in role_config["grants"].items()
                if page_key in menus
            ],
        )
        seeded[role_key] = role

    return seeded


def seed_defaults(db: Session) -> Dict[str, Role]:
    """Seed the Administration module and the default roles."""
    module = seed_administration_module(db)
    return seed_default_roles(db, module)


def get_role_by_name(db: Session, name: str) -> Optional[Role]:
    """Get a role by name."""
    return db.query(Role).filter(Role.name == name).first()


def get_super_admin_role(db: Session) -> Optional[Role]:
    """Get the Super Admin role."""
    return get_role_by_name(db, DEFAULT_ROLES["super_admin"]["name"])


# CLI script for seeding
if __name__ == "__main__":
    import sys
    from menugate.common.logger import configure_logging
    from menugate.core.config import get_settings
    from menugate.db.session import new_session

    configure_logging(get_settings())

    db = new_session()
    try:
        roles = seed_defaults(db)
        print(f"Seeded {len(roles)} default roles:")
        for role in roles.values():
            print(f"  - {role.name} (ID: {role.id})")
        print("\nSeeding complete!")

    except Exception as e:
        db.rollback()
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        db.close()
