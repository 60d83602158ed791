"""End-to-end tests of the HTTP API against a seeded SQLite database."""

import pytest

from menugate.core.rbac import AdminPage, GrantAdministration, MenuGrantEntry, PermissionSet


pytestmark = [pytest.mark.db, pytest.mark.integration]


def _headers(role_id, snapshot=None):
    headers = {"X-User-ID": "someone@example.com", "X-Role-ID": str(role_id)}
    if snapshot is not None:
        headers["X-Permission-Snapshot"] = snapshot
    return headers


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


class TestPrincipal:

    def test_missing_headers(self, client):
        response = client.get("/api/navigation")
        assert response.status_code == 401

    def test_non_integer_role(self, client):
        response = client.get("/api/navigation", headers={"X-User-ID": "u", "X-Role-ID": "admin"})
        assert response.status_code == 400

    def test_unknown_role(self, client, seeded_roles):
        response = client.get("/api/navigation", headers=_headers(9999))
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"


# ---------------------------------------------------------------------------
# Navigation and permissions
# ---------------------------------------------------------------------------


class TestNavigation:

    def test_super_admin_tree(self, client, admin_headers):
        response = client.get("/api/navigation", headers=admin_headers)

        assert response.status_code == 200
        (node,) = response.json()
        assert node["name"] == "Administration"
        assert [m["page_key"] for m in node["menus"]] == [page.value for page in AdminPage]

    def test_role_without_grants_gets_empty_tree(self, client, admin_headers):
        created = client.post("/api/roles", json={"name": "Newcomer"}, headers=admin_headers).json()

        response = client.get("/api/navigation", headers=_headers(created["id"]))

        assert response.status_code == 200
        assert response.json() == []

    def test_preview_requires_roles_view(self, client, admin_headers, seeded_roles):
        newcomer = client.post("/api/roles", json={"name": "Newcomer"}, headers=admin_headers).json()
        auditor_id = seeded_roles["access_auditor"].id

        assert client.get(f"/api/navigation/{auditor_id}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/navigation/{auditor_id}", headers=_headers(newcomer["id"])).status_code == 403


class TestPermissions:

    def test_page_permissions_and_snapshot(self, client, auditor_headers):
        response = client.get("/api/permissions/roles", headers=auditor_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["permissions"] == {
            "view": True, "create": False, "edit": False,
            "delete": False, "pdf": False, "export": True,
        }
        assert data["snapshot"] == "view,export"

    def test_unknown_page_is_404(self, client, admin_headers):
        response = client.get("/api/permissions/no-such-page", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    def test_batch(self, client, admin_headers):
        response = client.post(
            "/api/permissions/batch",
            json={"page_keys": ["roles", "no-such-page"]},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert all(data["roles"].values())
        assert not any(data["no-such-page"].values())


# ---------------------------------------------------------------------------
# Revalidation on mutating endpoints
# ---------------------------------------------------------------------------


class TestRevalidation:

    def test_auditor_cannot_create(self, client, auditor_headers):
        response = client.post("/api/roles", json={"name": "Sneaky"}, headers=auditor_headers)

        assert response.status_code == 403
        assert response.json()["code"] == "permission_denied"

    def test_revoked_after_render(self, client, db_session, seeded_roles):
        role = seeded_roles["super_admin"]
        rendered = client.get("/api/permissions/roles", headers=_headers(role.id)).json()
        assert rendered["permissions"]["create"] is True

        admin = GrantAdministration(db_session)
        roles_menu = next(m for m in admin.list_menu_items() if m.page_key == "roles")
        admin.set_menu_grants(
            role.id, roles_menu.module_id, [MenuGrantEntry(roles_menu.id, PermissionSet(view=True))]
        )

        response = client.post(
            "/api/roles",
            json={"name": "Too Late"},
            headers=_headers(role.id, snapshot=rendered["snapshot"]),
        )

        assert response.status_code == 403
        body = response.json()
        assert body["code"] == "authorization_revoked"
        assert "reload" in body["detail"]
        names = [r["name"] for r in client.get("/api/roles", headers=_headers(role.id)).json()]
        assert "Too Late" not in names

    def test_invalid_snapshot_header(self, client, admin_headers):
        headers = dict(admin_headers, **{"X-Permission-Snapshot": "view,fly"})

        response = client.post("/api/roles", json={"name": "X"}, headers=headers)

        assert response.status_code == 400


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------


class TestRoleEndpoints:

    def test_crud(self, client, admin_headers):
        created = client.post(
            "/api/roles", json={"name": "Clerk", "kind": "Organization"}, headers=admin_headers
        )
        assert created.status_code == 201
        role_id = created.json()["id"]

        assert client.get(f"/api/roles/{role_id}", headers=admin_headers).json()["name"] == "Clerk"

        updated = client.patch(f"/api/roles/{role_id}", json={"name": "Senior Clerk"}, headers=admin_headers)
        assert updated.status_code == 200
        assert updated.json()["name"] == "Senior Clerk"

        assert client.delete(f"/api/roles/{role_id}", headers=admin_headers).status_code == 204
        assert client.get(f"/api/roles/{role_id}", headers=admin_headers).status_code == 404

    def test_duplicate_name(self, client, admin_headers):
        response = client.post("/api/roles", json={"name": "Super Admin"}, headers=admin_headers)

        assert response.status_code == 409
        assert response.json()["code"] == "duplicate_role_name"

    def test_list_by_kind(self, client, admin_headers):
        client.post("/api/roles", json={"name": "Tenant Admin"}, headers=admin_headers)

        response = client.get("/api/roles", params={"kind": "Organization"}, headers=admin_headers)

        assert [r["name"] for r in response.json()] == ["Tenant Admin"]

    def test_blank_name(self, client, admin_headers):
        response = client.post("/api/roles", json={"name": "   "}, headers=admin_headers)

        assert response.status_code == 422
        assert response.json()["code"] == "invalid_input"


class TestModuleAndMenuEndpoints:

    def test_module_sort_index_collision(self, client, admin_headers):
        response = client.post(
            "/api/modules", json={"name": "Sales", "sort_index": 1}, headers=admin_headers
        )

        assert response.status_code == 409
        assert response.json()["code"] == "duplicate_sort_index"

    def test_next_sort_index(self, client, admin_headers):
        response = client.get("/api/modules/next-sort-index", headers=admin_headers)

        assert response.json() == {"next_sort_index": 2}

    def test_menu_lifecycle(self, client, admin_headers):
        module = client.post("/api/modules", json={"name": "Sales"}, headers=admin_headers).json()
        assert module["sort_index"] == 2

        menu = client.post(
            "/api/menus",
            json={"module_id": module["id"], "name": "Orders", "page_key": "orders"},
            headers=admin_headers,
        )
        assert menu.status_code == 201
        menu_id = menu.json()["id"]

        duplicate = client.post(
            "/api/menus",
            json={"module_id": module["id"], "name": "Orders again", "page_key": "orders"},
            headers=admin_headers,
        )
        assert duplicate.status_code == 409
        assert duplicate.json()["code"] == "duplicate_page_key"

        hidden = client.put(f"/api/menus/{menu_id}/visibility", json={"visible": False}, headers=admin_headers)
        assert hidden.json()["visible"] is False

        listed = client.get("/api/menus", params={"module_id": module["id"]}, headers=admin_headers)
        assert [m["page_key"] for m in listed.json()] == ["orders"]

        assert client.delete(f"/api/menus/{menu_id}", headers=admin_headers).status_code == 204
        assert client.delete(f"/api/modules/{module['id']}", headers=admin_headers).status_code == 204


class TestGrantEndpoints:

    def test_grant_flow_reaches_navigation(self, client, admin_headers):
        module = client.post("/api/modules", json={"name": "Sales"}, headers=admin_headers).json()
        orders = client.post(
            "/api/menus",
            json={"module_id": module["id"], "name": "Orders", "page_key": "orders"},
            headers=admin_headers,
        ).json()
        invoices = client.post(
            "/api/menus",
            json={"module_id": module["id"], "name": "Invoices", "page_key": "invoices"},
            headers=admin_headers,
        ).json()
        role = client.post("/api/roles", json={"name": "Clerk"}, headers=admin_headers).json()

        granted = client.put(
            f"/api/roles/{role['id']}/module-grants",
            json={"module_ids": [module["id"]]},
            headers=admin_headers,
        )
        assert granted.json() == {"role_id": role["id"], "module_ids": [module["id"]]}

        matrix = client.put(
            f"/api/roles/{role['id']}/modules/{module['id']}/menu-grants",
            json={"grants": [{"menu_id": orders["id"], "view": True, "edit": True}]},
            headers=admin_headers,
        )
        assert matrix.status_code == 200
        rows = {row["page_key"]: row for row in matrix.json()}
        assert rows["orders"]["saved"] is True
        assert rows["orders"]["permissions"]["edit"] is True
        assert rows["invoices"]["saved"] is False

        assert client.get(
            f"/api/roles/{role['id']}/modules/{module['id']}/menu-grants", headers=admin_headers
        ).json() == matrix.json()

        tree = client.get("/api/navigation", headers=_headers(role["id"])).json()
        assert tree == [
            {
                "module_id": module["id"],
                "name": "Sales",
                "kind": "Platform",
                "sort_index": module["sort_index"],
                "menus": [
                    {"menu_id": orders["id"], "name": "Orders", "page_key": "orders", "sort_index": 1},
                ],
            }
        ]
        assert invoices["id"] not in [m["menu_id"] for m in tree[0]["menus"]]

    def test_unknown_module_grant(self, client, admin_headers, seeded_roles):
        role_id = seeded_roles["access_auditor"].id

        response = client.put(
            f"/api/roles/{role_id}/module-grants", json={"module_ids": [9999]}, headers=admin_headers
        )

        assert response.status_code == 404

    def test_duplicate_menu_ids(self, client, admin_headers, seeded_roles):
        role_id = seeded_roles["access_auditor"].id
        module_id = client.get("/api/modules", headers=admin_headers).json()[0]["id"]
        menu_id = client.get("/api/menus", headers=admin_headers).json()[0]["id"]

        response = client.put(
            f"/api/roles/{role_id}/modules/{module_id}/menu-grants",
            json={"grants": [{"menu_id": menu_id, "view": True}, {"menu_id": menu_id}]},
            headers=admin_headers,
        )

        assert response.status_code == 422
        assert response.json()["code"] == "invalid_grant"
