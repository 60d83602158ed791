"""Tests for default data seeding."""

from menugate.core.rbac import AdminPage, NavigationSynthesizer, PermissionEvaluator, PermissionSet
from menugate.db.models import MenuGrant, MenuItem, Module, ModuleGrant, Role
from menugate.db.seed import get_super_admin_role, seed_defaults


class TestSeedDefaults:
    """Test the Administration module and default roles."""

    def test_creates_administration_catalog(self, db_session):
        seed_defaults(db_session)

        module = db_session.query(Module).filter_by(name="Administration").one()
        keys = [
            m.page_key
            for m in db_session.query(MenuItem).filter_by(module_id=module.id).order_by(MenuItem.sort_index)
        ]
        assert keys == [page.value for page in AdminPage]

    def test_super_admin_sees_every_admin_page(self, db_session):
        roles = seed_defaults(db_session)
        role = roles["super_admin"]

        (node,) = NavigationSynthesizer(db_session).build_tree(role.id)

        assert node.name == "Administration"
        assert [m.page_key for m in node.menus] == [page.value for page in AdminPage]
        assert PermissionEvaluator(db_session).evaluate(role.id, "roles") == PermissionSet.allow_all()

    def test_auditor_is_read_only(self, db_session):
        roles = seed_defaults(db_session)

        perms = PermissionEvaluator(db_session).evaluate(roles["access_auditor"].id, "menu-access")

        assert perms == PermissionSet(view=True, export=True)

    def test_is_idempotent(self, db_session):
        seed_defaults(db_session)
        seed_defaults(db_session)

        assert db_session.query(Module).count() == 1
        assert db_session.query(MenuItem).count() == len(AdminPage)
        assert db_session.query(Role).count() == 2
        assert db_session.query(ModuleGrant).count() == 2
        assert db_session.query(MenuGrant).count() == 2 * len(AdminPage)

    def test_keeps_other_module_grants(self, db_session, module_factory, module_grant_factory):
        roles = seed_defaults(db_session)
        other = module_factory(name="Sales", sort_index=10)
        module_grant_factory(role=roles["super_admin"], module=other)
        db_session.commit()

        seed_defaults(db_session)

        granted = {g.module_id for g in db_session.query(ModuleGrant).filter_by(role_id=roles["super_admin"].id)}
        assert other.id in granted

    def test_get_super_admin_role(self, db_session):
        assert get_super_admin_role(db_session) is None

        seed_defaults(db_session)

        assert get_super_admin_role(db_session).name == "Super Admin"

    def test_module_sort_index_taken(self, db_session, module_factory):
        sales = module_factory(name="Sales", kind="Platform", sort_index=1)
        db_session.commit()

        roles = seed_defaults(db_session)

        module = db_session.query(Module).filter_by(name="Administration").one()
        assert module.sort_index == 2
        assert sales.sort_index == 1
        (node,) = NavigationSynthesizer(db_session).build_tree(roles["super_admin"].id)
        assert [m.page_key for m in node.menus] == [page.value for page in AdminPage]

    def test_menu_sort_index_taken(self, db_session, module_factory, menu_factory):
        module = module_factory(name="Administration", kind="Platform", sort_index=1)
        menu_factory(module=module, page_key="legacy-settings", sort_index=1)
        db_session.commit()

        seed_defaults(db_session)

        items = db_session.query(MenuItem).filter_by(module_id=module.id).order_by(MenuItem.sort_index).all()
        assert [m.page_key for m in items] == ["legacy-settings"] + [page.value for page in AdminPage]
        assert len({m.sort_index for m in items}) == len(items)
