"""Permission evaluation for menugate.

Computes the effective ``PermissionSet`` of a role on a page. The module
grant is a gate in series with the menu grant: without it every flag is
false, whatever the menu grant says. A missing menu grant is an explicit
"no" for every capability.
"""

import logging
from typing import Dict, Iterable, Optional

from sqlalchemy import and_
from sqlalchemy.orm import Session

from menugate.db.models import MenuGrant, MenuItem, ModuleGrant, Role

from .errors import MenuNotFoundError, RoleNotFoundError
from .permissions import PermissionSet

logger = logging.getLogger(__name__)


class PermissionEvaluator:
    """
    Pure read of a role's capabilities on menu items.

    Rows are re-read from the store on every call (``populate_existing``),
    never served from objects the session already holds, so a revalidation
    observes writes committed by other sessions. There is no cache here;
    callers own caching.
    """

    def __init__(self, db: Session):
        self.db = db

    def evaluate(self, role_id: int, page_key: str, *, strict: bool = False) -> PermissionSet:
        """
        Evaluate a role's capabilities on a page.

        Args:
            role_id: Role to evaluate
            page_key: Stable page identifier of the menu item
            strict: Raise instead of failing closed when the page is unknown

        Returns:
            The six-flag permission set; all-false when not granted

        Raises:
            RoleNotFoundError: If the role does not exist
            MenuNotFoundError: If ``strict`` and no menu item has ``page_key``
        """
        self._require_role(role_id)

        menu = (
            self.db.query(MenuItem)
            .filter(MenuItem.page_key == page_key)
            .populate_existing()
            .first()
        )
        if menu is None:
            if strict:
                raise MenuNotFoundError(page_key)
            logger.debug(f"Unknown page {page_key!r}, denying role {role_id}")
            return PermissionSet.deny_all()

        return self._evaluate_menu(role_id, menu)

    def evaluate_many(self, role_id: int, page_keys: Iterable[str]) -> Dict[str, PermissionSet]:
        """Evaluate several pages at once. Unknown pages fail closed."""
        self._require_role(role_id)

        keys = list(dict.fromkeys(page_keys))
        results = {key: PermissionSet.deny_all() for key in keys}
        if not keys:
            return results

        menus = (
            self.db.query(MenuItem)
            .filter(and_(MenuItem.page_key.in_(keys), MenuItem.visible.is_(True)))
            .populate_existing()
            .all()
        )
        if not menus:
            return results

        granted_modules = {
            g.module_id
            for g in self.db.query(ModuleGrant)
            .filter(
                and_(
                    ModuleGrant.role_id == role_id,
                    ModuleGrant.module_id.in_(sorted({m.module_id for m in menus})),
                )
            )
            .populate_existing()
            .all()
        }
        gated = [m for m in menus if m.module_id in granted_modules]
        if not gated:
            return results

        grants = {
            g.menu_id: g
            for g in self.db.query(MenuGrant)
            .filter(
                and_(
                    MenuGrant.role_id == role_id,
                    MenuGrant.menu_id.in_([m.id for m in gated]),
                )
            )
            .populate_existing()
            .all()
        }
        for menu in gated:
            results[menu.page_key] = PermissionSet.from_grant(grants.get(menu.id))

        return results

    def _evaluate_menu(self, role_id: int, menu: MenuItem) -> PermissionSet:
        if not menu.visible:
            return PermissionSet.deny_all()

        module_grant = (
            self.db.query(ModuleGrant)
            .filter(
                and_(
                    ModuleGrant.role_id == role_id,
                    ModuleGrant.module_id == menu.module_id,
                )
            )
            .first()
        )
        if module_grant is None:
            return PermissionSet.deny_all()

        grant = self._menu_grant(role_id, menu.id)
        return PermissionSet.from_grant(grant)

    def _menu_grant(self, role_id: int, menu_id: int) -> Optional[MenuGrant]:
        return (
            self.db.query(MenuGrant)
            .filter(
                and_(
                    MenuGrant.role_id == role_id,
                    MenuGrant.menu_id == menu_id,
                )
            )
            .populate_existing()
            .first()
        )

    def _require_role(self, role_id: int) -> None:
        exists = self.db.query(Role.id).filter(Role.id == role_id).first()
        if exists is None:
            raise RoleNotFoundError(role_id)
