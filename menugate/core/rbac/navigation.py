"""Navigation tree synthesis for menugate.

Builds the ordered module -> menu tree a role is allowed to see. A module
appears only when the role holds a module grant for it and at least one of
its visible menu items carries a menu grant with ``view`` set.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from sqlalchemy import and_
from sqlalchemy.orm import Session

from menugate.db.models import MenuGrant, MenuItem, Module, ModuleGrant, Role

from .errors import RoleNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MenuEntry:
    """A navigable page in the tree."""
    menu_id: int
    name: str
    page_key: str
    sort_index: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "menu_id": self.menu_id,
            "name": self.name,
            "page_key": self.page_key,
            "sort_index": self.sort_index,
        }


@dataclass(frozen=True)
class NavigationNode:
    """A module with the menu entries the role may view, in display order."""
    module_id: int
    name: str
    kind: str
    sort_index: int
    menus: Tuple[MenuEntry, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "module_id": self.module_id,
            "name": self.name,
            "kind": self.kind,
            "sort_index": self.sort_index,
            "menus": [m.to_dict() for m in self.menus],
        }


class NavigationSynthesizer:
    """
    Builds permission-filtered navigation trees.

    Every call re-reads the store, so visibility and grant changes show up on
    the next call without any invalidation step. Ties on ``sort_index`` (a
    data defect, since indexes are unique per scope) are broken by id.
    """

    def __init__(self, db: Session):
        self.db = db

    def build_tree(self, role_id: int) -> List[NavigationNode]:
        """
        Build the navigation tree for a role.

        Returns:
            Modules in ``sort_index`` order, each with its viewable menu
            items in ``sort_index`` order. Empty for a role without module
            grants.

        Raises:
            RoleNotFoundError: If the role does not exist
        """
        if self.db.query(Role.id).filter(Role.id == role_id).first() is None:
            raise RoleNotFoundError(role_id)

        module_ids = [
            row.module_id
            for row in self.db.query(ModuleGrant.module_id)
            .filter(ModuleGrant.role_id == role_id)
            .all()
        ]
        if not module_ids:
            return []

        modules = (
            self.db.query(Module)
            .filter(Module.id.in_(module_ids))
            .order_by(Module.sort_index.asc(), Module.id.asc())
            .populate_existing()
            .all()
        )

        menus = (
            self.db.query(MenuItem)
            .filter(
                and_(
                    MenuItem.module_id.in_(module_ids),
                    MenuItem.visible.is_(True),
                )
            )
            .order_by(MenuItem.sort_index.asc(), MenuItem.id.asc())
            .populate_existing()
            .all()
        )
        if not menus:
            return []

        viewable = {
            row.menu_id
            for row in self.db.query(MenuGrant.menu_id)
            .filter(
                and_(
                    MenuGrant.role_id == role_id,
                    MenuGrant.menu_id.in_([m.id for m in menus]),
                    MenuGrant.view.is_(True),
                )
            )
            .all()
        }

        menus_by_module: Dict[int, List[MenuEntry]] = {}
        for menu in menus:
            if menu.id not in viewable:
                continue
            menus_by_module.setdefault(menu.module_id, []).append(
                MenuEntry(
                    menu_id=menu.id,
                    name=menu.name,
                    page_key=menu.page_key,
                    sort_index=menu.sort_index,
                )
            )

        tree = [
            NavigationNode(
                module_id=module.id,
                name=module.name,
                kind=module.kind,
                sort_index=module.sort_index,
                menus=tuple(menus_by_module[module.id]),
            )
            for module in modules
            if menus_by_module.get(module.id)
        ]

        logger.debug(
            f"Built navigation for role {role_id}: "
            f"{len(tree)} modules, {sum(len(n.menus) for n in tree)} menus"
        )
        return tree
