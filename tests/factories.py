"""Factory functions for creating test database records.

Each factory creates a model instance, adds it to the session, and flushes
so that database-generated fields (id, created_at, etc.) are populated.
All fields have sensible defaults but can be overridden via keyword arguments.

Factories write rows directly and skip the validation done by
``GrantAdministration``, so tests can also build states the service would
refuse (duplicate sort indexes, for example).

Usage::

    from tests.factories import create_module, create_menu_item, grant_menu

    def test_something(db_session):
        module = create_module(db_session, name="Sales")
        menu = create_menu_item(db_session, module=module, page_key="orders")
        role = create_role(db_session)
        grant_module(db_session, role=role, module=module)
        grant_menu(db_session, role=role, menu=menu, view=True)
"""

from typing import Optional

from sqlalchemy.orm import Session

from menugate.db.models import MenuGrant, MenuItem, Module, ModuleGrant, Role


_counter = 0


def _next_id() -> int:
    """Return a monotonically increasing integer for unique default values."""
    global _counter
    _counter += 1
    return _counter


# ---------------------------------------------------------------------------
# Role
# ---------------------------------------------------------------------------


def create_role(
    session: Session,
    *,
    name: Optional[str] = None,
    kind: str = "Organization",
) -> Role:
    n = _next_id()
    role = Role(name=name or f"Test Role {n}", kind=kind)
    session.add(role)
    session.flush()
    return role


# ---------------------------------------------------------------------------
# Module / MenuItem
# ---------------------------------------------------------------------------


def create_module(
    session: Session,
    *,
    name: Optional[str] = None,
    kind: str = "Platform",
    sort_index: Optional[int] = None,
    note: Optional[str] = None,
) -> Module:
    n = _next_id()
    module = Module(
        name=name or f"Test Module {n}",
        kind=kind,
        sort_index=sort_index if sort_index is not None else n,
        note=note,
    )
    session.add(module)
    session.flush()
    return module


def create_menu_item(
    session: Session,
    *,
    module: Optional[Module] = None,
    name: Optional[str] = None,
    page_key: Optional[str] = None,
    visible: bool = True,
    sort_index: Optional[int] = None,
    note: Optional[str] = None,
) -> MenuItem:
    n = _next_id()
    if module is None:
        module = create_module(session)
    menu = MenuItem(
        module_id=module.id,
        name=name or f"Test Menu {n}",
        page_key=page_key or f"test-page-{n}",
        visible=visible,
        sort_index=sort_index if sort_index is not None else n,
        note=note,
    )
    session.add(menu)
    session.flush()
    return menu


# ---------------------------------------------------------------------------
# Grants
# ---------------------------------------------------------------------------


def grant_module(session: Session, *, role: Role, module: Module) -> ModuleGrant:
    grant = ModuleGrant(role_id=role.id, module_id=module.id)
    session.add(grant)
    session.flush()
    return grant


def grant_menu(
    session: Session,
    *,
    role: Role,
    menu: MenuItem,
    view: bool = False,
    create: bool = False,
    edit: bool = False,
    delete: bool = False,
    pdf: bool = False,
    export: bool = False,
) -> MenuGrant:
    grant = MenuGrant(
        role_id=role.id,
        menu_id=menu.id,
        module_id=menu.module_id,
        view=view,
        create=create,
        edit=edit,
        delete=delete,
        pdf=pdf,
        export=export,
    )
    session.add(grant)
    session.flush()
    return grant
