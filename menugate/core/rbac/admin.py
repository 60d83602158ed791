"""Grant administration for menugate.

The only writer of authorization state. Maintains roles, modules, menu items
and the module/menu grants linking them, validating invariants before any
row is written. Each public write is a single transaction: it either commits
completely or is rolled back, including when the caller is cancelled
mid-flight.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import and_, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from menugate.db.models import MenuGrant, MenuItem, Module, ModuleGrant, Role, ScopeKind

from .errors import (
    AccessControlError,
    AppModuleNotFoundError,
    DuplicatePageKeyError,
    DuplicateRoleNameError,
    DuplicateSortIndexError,
    GrantValidationError,
    InconsistentWriteError,
    InputValidationError,
    MenuNotFoundError,
    RoleNotFoundError,
)
from .permissions import PermissionSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MenuGrantEntry:
    """Requested capabilities of a role on one menu item."""
    menu_id: int
    permissions: PermissionSet


@dataclass(frozen=True)
class MenuGrantRow:
    """One line of the menu access editor for a role and module."""
    menu_id: int
    name: str
    page_key: str
    sort_index: int
    visible: bool
    permissions: PermissionSet
    saved: bool  # False when no grant row exists yet (all flags default to False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "menu_id": self.menu_id,
            "name": self.name,
            "page_key": self.page_key,
            "sort_index": self.sort_index,
            "visible": self.visible,
            "permissions": self.permissions._asdict(),
            "saved": self.saved,
        }


def _scope_kind(kind) -> str:
    try:
        return ScopeKind(kind).value
    except ValueError:
        allowed = ", ".join(k.value for k in ScopeKind)
        raise InputValidationError(f"Invalid kind {kind!r}. Must be one of: {allowed}") from None


def _required(value: Optional[str], label: str) -> str:
    if value is None or not value.strip():
        raise InputValidationError(f"{label} is required")
    return value.strip()


class GrantAdministration:
    """
    Transactional administration of roles, modules, menu items and grants.

    Handles:
    - Role create/update/delete (deleting a role cascades to its grants)
    - Module and menu item configuration with sort index uniqueness
    - Replacing a role's module grants
    - Upserting a role's menu grants within one module
    """

    def __init__(self, db: Session):
        """
        Initialize the service.

        Args:
            db: Database session; committed or rolled back by each write
        """
        self.db = db

    @contextmanager
    def _atomic(self, operation: str):
        try:
            yield
            self.db.commit()
        except AccessControlError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"{operation} failed, transaction rolled back")
            raise InconsistentWriteError(operation) from e
        except BaseException:
            # Cancellation and interrupts must not leave half-written grants
            self.db.rollback()
            raise

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    def get_role(self, role_id: int) -> Role:
        role = self.db.query(Role).filter(Role.id == role_id).first()
        if role is None:
            raise RoleNotFoundError(role_id)
        return role

    def list_roles(self, kind: Optional[str] = None) -> List[Role]:
        query = self.db.query(Role)
        if kind is not None:
            query = query.filter(Role.kind == _scope_kind(kind))
        return query.order_by(Role.name.asc(), Role.id.asc()).all()

    def create_role(self, name: str, kind: str = ScopeKind.ORGANIZATION.value) -> Role:
        name = _required(name, "Role name")
        kind = _scope_kind(kind)

        with self._atomic("create_role"):
            self._check_role_name(name)
            role = Role(name=name, kind=kind)
            self.db.add(role)
            self.db.flush()

        logger.info(f"Created role {role.id} {name!r} ({kind})")
        return role

    def update_role(
        self,
        role_id: int,
        *,
        name: Optional[str] = None,
        kind: Optional[str] = None,
    ) -> Role:
        with self._atomic("update_role"):
            role = self.get_role(role_id)
            if name is not None:
                name = _required(name, "Role name")
                self._check_role_name(name, exclude_id=role.id)
                role.name = name
            if kind is not None:
                role.kind = _scope_kind(kind)
            self.db.flush()

        return role

    def delete_role(self, role_id: int) -> None:
        """Delete a role together with all of its module and menu grants."""
        with self._atomic("delete_role"):
            role = self.get_role(role_id)
            self.db.delete(role)
            self.db.flush()

        logger.info(f"Deleted role {role_id} and its grants")

    def _check_role_name(self, name: str, exclude_id: Optional[int] = None) -> None:
        query = self.db.query(Role.id).filter(Role.name == name)
        if exclude_id is not None:
            query = query.filter(Role.id != exclude_id)
        if query.first() is not None:
            raise DuplicateRoleNameError(name)

    # ------------------------------------------------------------------
    # Modules
    # ------------------------------------------------------------------

    def get_module(self, module_id: int) -> Module:
        module = self.db.query(Module).filter(Module.id == module_id).first()
        if module is None:
            raise AppModuleNotFoundError(module_id)
        return module

    def list_modules(self, kind: Optional[str] = None, search: Optional[str] = None) -> List[Module]:
        query = self.db.query(Module)
        if kind is not None:
            query = query.filter(Module.kind == _scope_kind(kind))
        if search:
            query = query.filter(Module.name.ilike(f"%{search}%"))
        return query.order_by(Module.sort_index.asc(), Module.id.asc()).all()

    def next_module_sort_index(self, kind: str = ScopeKind.PLATFORM.value) -> int:
        """Next free sort index among modules of ``kind`` (max + 1, or 1)."""
        current = (
            self.db.query(func.max(Module.sort_index))
            .filter(Module.kind == _scope_kind(kind))
            .scalar()
        )
        return (current or 0) + 1

    def create_module(
        self,
        name: str,
        kind: str = ScopeKind.PLATFORM.value,
        sort_index: Optional[int] = None,
        note: Optional[str] = None,
    ) -> Module:
        """
        Create a module.

        Args:
            name: Display name
            kind: Platform or Organization
            sort_index: Position among modules of the same kind; next free
                index when omitted
            note: Free-form administrator note

        Raises:
            DuplicateSortIndexError: If another module of ``kind`` already
                uses ``sort_index``
        """
        name = _required(name, "Module name")
        kind = _scope_kind(kind)

        with self._atomic("create_module"):
            if sort_index is None:
                sort_index = self.next_module_sort_index(kind)
            self._check_module_sort_index(kind, sort_index)
            module = Module(name=name, kind=kind, sort_index=sort_index, note=note)
            self.db.add(module)
            self.db.flush()

        logger.info(f"Created module {module.id} {name!r} ({kind} #{sort_index})")
        return module

    def update_module(
        self,
        module_id: int,
        *,
        name: Optional[str] = None,
        kind: Optional[str] = None,
        sort_index: Optional[int] = None,
        note: Optional[str] = None,
    ) -> Module:
        with self._atomic("update_module"):
            module = self.get_module(module_id)
            new_kind = _scope_kind(kind) if kind is not None else module.kind
            new_index = sort_index if sort_index is not None else module.sort_index
            if (new_kind, new_index) != (module.kind, module.sort_index):
                self._check_module_sort_index(new_kind, new_index, exclude_id=module.id)

            if name is not None:
                module.name = _required(name, "Module name")
            module.kind = new_kind
            module.sort_index = new_index
            if note is not None:
                module.note = note
            self.db.flush()

        return module

    def delete_module(self, module_id: int) -> None:
        """Delete a module, its menu items and every grant on them."""
        with self._atomic("delete_module"):
            module = self.get_module(module_id)
            self.db.delete(module)
            self.db.flush()

        logger.info(f"Deleted module {module_id} with its menu items and grants")

    def _check_module_sort_index(self, kind: str, sort_index: int, exclude_id: Optional[int] = None) -> None:
        query = self.db.query(Module.id).filter(
            and_(Module.kind == kind, Module.sort_index == sort_index)
        )
        if exclude_id is not None:
            query = query.filter(Module.id != exclude_id)
        if query.first() is not None:
            raise DuplicateSortIndexError(f"{kind} modules", sort_index)

    # ------------------------------------------------------------------
    # Menu items
    # ------------------------------------------------------------------

    def get_menu_item(self, menu_id: int) -> MenuItem:
        menu = self.db.query(MenuItem).filter(MenuItem.id == menu_id).first()
        if menu is None:
            raise MenuNotFoundError(menu_id)
        return menu

    def list_menu_items(self, module_id: Optional[int] = None, search: Optional[str] = None) -> List[MenuItem]:
        query = self.db.query(MenuItem)
        if module_id is not None:
            query = query.filter(MenuItem.module_id == module_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(MenuItem.name.ilike(pattern), MenuItem.page_key.ilike(pattern)))
        return query.order_by(
            MenuItem.module_id.asc(), MenuItem.sort_index.asc(), MenuItem.id.asc()
        ).all()

    def next_menu_sort_index(self, module_id: int) -> int:
        """Next free sort index within a module (max + 1, or 1)."""
        current = (
            self.db.query(func.max(MenuItem.sort_index))
            .filter(MenuItem.module_id == module_id)
            .scalar()
        )
        return (current or 0) + 1

    def create_menu_item(
        self,
        module_id: int,
        name: str,
        page_key: str,
        *,
        visible: bool = True,
        sort_index: Optional[int] = None,
        note: Optional[str] = None,
    ) -> MenuItem:
        """
        Create a menu item under a module.

        Raises:
            AppModuleNotFoundError: If the module does not exist
            DuplicatePageKeyError: If ``page_key`` is already used
            DuplicateSortIndexError: If a sibling already uses ``sort_index``
        """
        name = _required(name, "Menu name")
        page_key = _required(page_key, "Page key")

        with self._atomic("create_menu_item"):
            module = self.get_module(module_id)
            self._check_page_key(page_key)
            if sort_index is None:
                sort_index = self.next_menu_sort_index(module.id)
            self._check_menu_sort_index(module, sort_index)
            menu = MenuItem(
                module_id=module.id,
                name=name,
                page_key=page_key,
                visible=visible,
                sort_index=sort_index,
                note=note,
            )
            self.db.add(menu)
            self.db.flush()

        logger.info(f"Created menu item {menu.id} {page_key!r} in module {module_id} (#{sort_index})")
        return menu

    def update_menu_item(
        self,
        menu_id: int,
        *,
        module_id: Optional[int] = None,
        name: Optional[str] = None,
        page_key: Optional[str] = None,
        visible: Optional[bool] = None,
        sort_index: Optional[int] = None,
        note: Optional[str] = None,
    ) -> MenuItem:
        """Update a menu item. Moving it to another module moves its grants too."""
        with self._atomic("update_menu_item"):
            menu = self.get_menu_item(menu_id)
            target = self.get_module(module_id) if module_id is not None else menu.module
            new_index = sort_index if sort_index is not None else menu.sort_index
            moved = target.id != menu.module_id
            if moved or new_index != menu.sort_index:
                self._check_menu_sort_index(target, new_index, exclude_id=menu.id)

            if page_key is not None:
                page_key = _required(page_key, "Page key")
                if page_key != menu.page_key:
                    self._check_page_key(page_key)
                menu.page_key = page_key
            if name is not None:
                menu.name = _required(name, "Menu name")
            if visible is not None:
                menu.visible = visible
            if note is not None:
                menu.note = note
            menu.sort_index = new_index

            if moved:
                menu.module_id = target.id
                self.db.query(MenuGrant).filter(MenuGrant.menu_id == menu.id).update(
                    {MenuGrant.module_id: target.id}, synchronize_session=False
                )
            self.db.flush()

        return menu

    def set_menu_item_visibility(self, menu_id: int, visible: bool) -> MenuItem:
        """
        Show or hide a menu item.

        Navigation trees and evaluations re-read the store, so the change
        applies to the very next call.
        """
        with self._atomic("set_menu_item_visibility"):
            menu = self.get_menu_item(menu_id)
            menu.visible = bool(visible)
            self.db.flush()

        logger.info(f"Menu item {menu_id} visibility set to {bool(visible)}")
        return menu

    def delete_menu_item(self, menu_id: int) -> None:
        with self._atomic("delete_menu_item"):
            menu = self.get_menu_item(menu_id)
            self.db.delete(menu)
            self.db.flush()

        logger.info(f"Deleted menu item {menu_id} and its grants")

    def _check_page_key(self, page_key: str) -> None:
        if self.db.query(MenuItem.id).filter(MenuItem.page_key == page_key).first() is not None:
            raise DuplicatePageKeyError(page_key)

    def _check_menu_sort_index(self, module: Module, sort_index: int, exclude_id: Optional[int] = None) -> None:
        query = self.db.query(MenuItem.id).filter(
            and_(MenuItem.module_id == module.id, MenuItem.sort_index == sort_index)
        )
        if exclude_id is not None:
            query = query.filter(MenuItem.id != exclude_id)
        if query.first() is not None:
            raise DuplicateSortIndexError(f"module {module.name!r}", sort_index)

    # ------------------------------------------------------------------
    # Grants
    # ------------------------------------------------------------------

    def get_module_grants(self, role_id: int) -> List[int]:
        """Module ids granted to a role, ascending."""
        self.get_role(role_id)
        rows = (
            self.db.query(ModuleGrant.module_id)
            .filter(ModuleGrant.role_id == role_id)
            .order_by(ModuleGrant.module_id.asc())
            .all()
        )
        return [row.module_id for row in rows]

    def set_module_grants(self, role_id: int, module_ids: Sequence[int]) -> List[int]:
        """
        Replace the full set of module grants of a role.

        The end state is exactly ``module_ids``: grants outside it are removed,
        missing ones are added. Menu grants are left untouched; without the
        module grant they no longer take effect.

        Returns:
            Granted module ids, ascending

        Raises:
            RoleNotFoundError: If the role does not exist
            AppModuleNotFoundError: If any module id does not exist
        """
        requested = set(module_ids)

        with self._atomic("set_module_grants"):
            self.get_role(role_id)

            if requested:
                found = {
                    row.id
                    for row in self.db.query(Module.id).filter(Module.id.in_(sorted(requested))).all()
                }
                missing = sorted(requested - found)
                if missing:
                    raise AppModuleNotFoundError(missing[0])

            current = {
                row.module_id
                for row in self.db.query(ModuleGrant.module_id)
                .filter(ModuleGrant.role_id == role_id)
                .all()
            }
            to_remove = current - requested
            to_add = requested - current

            if to_remove:
                self.db.query(ModuleGrant).filter(
                    and_(
                        ModuleGrant.role_id == role_id,
                        ModuleGrant.module_id.in_(sorted(to_remove)),
                    )
                ).delete(synchronize_session="fetch")

            for module_id in sorted(to_add):
                self.db.add(ModuleGrant(role_id=role_id, module_id=module_id))
            self.db.flush()

        logger.info(
            f"Module grants for role {role_id}: +{sorted(to_add)} -{sorted(to_remove)}"
        )
        return sorted(requested)

    def set_menu_grants(
        self,
        role_id: int,
        module_id: int,
        grants: Sequence[MenuGrantEntry],
    ) -> List[MenuGrantRow]:
        """
        Insert or update a role's menu grants for menu items of one module.

        Menu items not mentioned keep their current grant. Never creates a
        second row for the same ``(role_id, menu_id)``; calling twice with the
        same payload yields the same state.

        Returns:
            The menu grant matrix of the module after the write

        Raises:
            RoleNotFoundError: If the role does not exist
            AppModuleNotFoundError: If the module does not exist
            MenuNotFoundError: If a menu id is not a menu item of the module
            GrantValidationError: If a menu id appears twice in ``grants``
        """
        menu_ids = [g.menu_id for g in grants]
        duplicates = sorted({m for m in menu_ids if menu_ids.count(m) > 1})
        if duplicates:
            raise GrantValidationError(f"Menu ids listed more than once: {duplicates}")

        with self._atomic("set_menu_grants"):
            self.get_role(role_id)
            self.get_module(module_id)

            owned = {
                row.id
                for row in self.db.query(MenuItem.id).filter(MenuItem.module_id == module_id).all()
            }
            for menu_id in menu_ids:
                if menu_id not in owned:
                    raise MenuNotFoundError(menu_id)

            existing = {
                g.menu_id: g
                for g in self.db.query(MenuGrant).filter(
                    and_(
                        MenuGrant.role_id == role_id,
                        MenuGrant.menu_id.in_(menu_ids),
                    )
                ).all()
            } if menu_ids else {}

            inserted = 0
            for entry in grants:
                flags = PermissionSet(*entry.permissions)._asdict()
                row = existing.get(entry.menu_id)
                if row is None:
                    row = MenuGrant(role_id=role_id, menu_id=entry.menu_id, module_id=module_id)
                    self.db.add(row)
                    inserted += 1
                row.module_id = module_id
                for capability, value in flags.items():
                    setattr(row, capability, bool(value))
            self.db.flush()

        logger.info(
            f"Menu grants for role {role_id} in module {module_id}: "
            f"{inserted} inserted, {len(grants) - inserted} updated"
        )
        return self.menu_grant_matrix(role_id, module_id)

    def menu_grant_matrix(self, role_id: int, module_id: int) -> List[MenuGrantRow]:
        """
        Every menu item of a module with the role's grant on it.

        Items without a grant row are listed with all flags False and
        ``saved=False``.
        """
        self.get_role(role_id)
        self.get_module(module_id)

        menus = (
            self.db.query(MenuItem)
            .filter(MenuItem.module_id == module_id)
            .order_by(MenuItem.sort_index.asc(), MenuItem.id.asc())
            .all()
        )
        grants = {
            g.menu_id: g
            for g in self.db.query(MenuGrant).filter(
                and_(
                    MenuGrant.role_id == role_id,
                    MenuGrant.module_id == module_id,
                )
            ).all()
        }

        return [
            MenuGrantRow(
                menu_id=menu.id,
                name=menu.name,
                page_key=menu.page_key,
                sort_index=menu.sort_index,
                visible=bool(menu.visible),
                permissions=PermissionSet.from_grant(grants.get(menu.id)),
                saved=menu.id in grants,
            )
            for menu in menus
        ]
