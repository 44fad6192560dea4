# tests/unit/api/test_user_routes.py
import pytest

from tenantguard.extensions import db
from tenantguard.core.tenancy import tenant_get, tenant_select
from tenantguard.models import User
from tests.utils import auth_headers, get_role


@pytest.fixture
def team(acme, make_role, make_user):
    """A level-50 coordinator, a peer on the same level and a level-20 junior"""
    coordinator_role = make_role(
        acme,
        "Coordinator",
        50,
        ["users.create", "users.read.all", "users.update.all", "users.delete.all", "events.read.all"],
    )
    junior_role = make_role(acme, "Junior", 20, ["events.read.own"])
    return {
        "coordinator": make_user(acme, coordinator_role, email="u@acme.test"),
        "peer": make_user(acme, coordinator_role, email="v@acme.test"),
        "junior": make_user(acme, junior_role, email="w@acme.test"),
        "junior_role": junior_role,
        "coordinator_role": coordinator_role,
    }


def users_of(tenant):
    return db.session.execute(tenant_select(User, tenant.id)).scalars().all()


class TestCreateUser:
    def test_creates_user_below_own_level(self, client, acme, team):
        response = client.post(
            "/api/users",
            json={
                "email": "new@acme.test",
                "name": "New Hire",
                "password": "password123",
                "role_id": team["junior_role"].id,
            },
            headers=auth_headers(team["coordinator"]),
        )
        assert response.status_code == 201
        body = response.get_json()
        assert body["tenant_id"] == acme.id
        assert body["role_id"] == team["junior_role"].id
        assert "password" not in body

        created = tenant_get(User, body["id"], acme.id)
        assert created.verify_password("password123")
        assert client.get("/api/auth/me", headers=auth_headers(created)).status_code == 200

    def test_role_at_own_level_is_refused(self, client, acme, team):
        response = client.post(
            "/api/users",
            json={"email": "peer2@acme.test", "password": "password123", "role_id": team["coordinator_role"].id},
            headers=auth_headers(team["coordinator"]),
        )
        assert response.status_code == 403
        assert response.get_json()["requiredLevel"] == 51
        assert len(users_of(acme)) == 4

    def test_role_above_own_level_is_refused(self, client, acme, team):
        response = client.post(
            "/api/users",
            json={"email": "boss@acme.test", "password": "password123", "role_id": get_role(acme, "Owner").id},
            headers=auth_headers(team["coordinator"]),
        )
        assert response.status_code == 403
        assert len(users_of(acme)) == 4

    def test_tenant_comes_from_principal(self, client, acme, globex, team):
        response = client.post(
            "/api/users",
            json={
                "email": "smuggled@acme.test",
                "password": "password123",
                "role_id": team["junior_role"].id,
                "tenant_id": globex.id,
            },
            headers=auth_headers(team["coordinator"]),
        )
        assert response.status_code == 201
        assert response.get_json()["tenant_id"] == acme.id
        assert len(users_of(globex)) == 1

    def test_role_of_other_tenant_is_refused(self, client, globex, team):
        response = client.post(
            "/api/users",
            json={"email": "x@acme.test", "password": "password123", "role_id": get_role(globex, "Viewer").id},
            headers=auth_headers(team["coordinator"]),
        )
        assert response.status_code == 400

    def test_duplicate_email_is_refused(self, client, globex, team):
        response = client.post(
            "/api/users",
            json={"email": "owner@globex.test", "password": "password123", "role_id": team["junior_role"].id},
            headers=auth_headers(team["coordinator"]),
        )
        assert response.status_code == 409

    def test_requires_create_permission(self, client, team):
        response = client.post(
            "/api/users",
            json={"email": "y@acme.test", "password": "password123", "role_id": team["junior_role"].id},
            headers=auth_headers(team["junior"]),
        )
        assert response.status_code == 403
        assert response.get_json()["requiredPermission"] == "users.create"


class TestChangeStatus:
    def test_deactivated_user_is_locked_out(self, client, team):
        junior = team["junior"]
        version = junior.overrides_version

        response = client.put(
            f"/api/users/{junior.id}/status",
            json={"is_active": False},
            headers=auth_headers(team["coordinator"]),
        )
        assert response.status_code == 200
        assert response.get_json()["is_active"] is False
        assert tenant_get(User, junior.id, junior.tenant_id).overrides_version == version + 1

        assert client.get("/api/auth/me", headers=auth_headers(junior)).status_code == 401

    def test_reactivation(self, client, team):
        junior = team["junior"]
        url = f"/api/users/{junior.id}/status"
        client.put(url, json={"is_active": False}, headers=auth_headers(team["coordinator"]))
        response = client.put(url, json={"is_active": True}, headers=auth_headers(team["coordinator"]))
        assert response.status_code == 200
        assert client.get("/api/auth/me", headers=auth_headers(junior)).status_code == 200

    def test_peer_status_is_protected(self, client, team):
        response = client.put(
            f"/api/users/{team['peer'].id}/status",
            json={"is_active": False},
            headers=auth_headers(team["coordinator"]),
        )
        assert response.status_code == 403
        assert tenant_get(User, team["peer"].id, team["peer"].tenant_id).is_active

    def test_owner_cannot_be_deactivated(self, client, acme, acme_owner, make_user):
        super_admin = make_user(acme, None, is_super_admin=True)
        response = client.put(
            f"/api/users/{acme_owner.id}/status",
            json={"is_active": False},
            headers=auth_headers(super_admin),
        )
        assert response.status_code == 400

    def test_flag_must_be_boolean(self, client, team):
        response = client.put(
            f"/api/users/{team['junior'].id}/status",
            json={"is_active": "no"},
            headers=auth_headers(team["coordinator"]),
        )
        assert response.status_code == 400

class TestArchiveUser:
    def test_peer_cannot_be_archived(self, client, team):
        response = client.delete(f"/api/users/{team['peer'].id}", headers=auth_headers(team["coordinator"]))
        assert response.status_code == 403
        body = response.get_json()
        assert body["code"] == "FORBIDDEN"
        assert body["requiredLevel"] == 51
        assert not tenant_get(User, team["peer"].id, team["peer"].tenant_id).is_archived

    def test_lower_level_user_archived(self, client, team):
        response = client.delete(
            f"/api/users/{team['junior'].id}", headers=auth_headers(team["coordinator"])
        )
        assert response.status_code == 200
        assert response.get_json()["is_archived"] is True

        junior = tenant_get(User, team["junior"].id, team["junior"].tenant_id)
        assert junior.archived_by == team["coordinator"].id
        assert not junior.is_active

    def test_level_alone_is_not_enough(self, client, acme, team, make_role, make_user):
        lead = make_user(acme, make_role(acme, "Lead", 60, ["users.read.all"]))
        response = client.delete(f"/api/users/{team['junior'].id}", headers=auth_headers(lead))
        assert response.status_code == 403
        assert response.get_json()["requiredPermission"] == "users.delete.all"

    def test_nobody_archives_themselves(self, client, acme_owner):
        response = client.delete(f"/api/users/{acme_owner.id}", headers=auth_headers(acme_owner))
        assert response.status_code == 403

    def test_user_of_other_tenant_looks_missing(self, client, globex, team):
        foreign_owner_id = globex.owner_id
        cross = client.delete(f"/api/users/{foreign_owner_id}", headers=auth_headers(team["coordinator"]))
        missing = client.delete("/api/users/nobody", headers=auth_headers(team["coordinator"]))
        assert cross.status_code == missing.status_code == 404
        assert cross.get_json() == missing.get_json()


class TestChangeRole:
    def test_cannot_grant_role_at_own_level(self, client, team):
        response = client.put(
            f"/api/users/{team['junior'].id}/role",
            json={"role_id": team["coordinator_role"].id},
            headers=auth_headers(team["coordinator"]),
        )
        assert response.status_code == 403

    def test_assigns_lower_role(self, client, acme, team):
        viewer = get_role(acme, "Viewer")
        response = client.put(
            f"/api/users/{team['junior'].id}/role",
            json={"role_id": viewer.id},
            headers=auth_headers(team["coordinator"]),
        )
        assert response.status_code == 200
        assert response.get_json()["role_id"] == viewer.id
        assert response.get_json()["role_type"] == "viewer"

    def test_rejects_role_of_other_tenant(self, client, globex, team, acme_owner):
        foreign = get_role(globex, "Viewer")
        response = client.put(
            f"/api/users/{team['junior'].id}/role",
            json={"role_id": foreign.id},
            headers=auth_headers(acme_owner),
        )
        assert response.status_code == 400


class TestCustomPermissions:
    def test_grant_and_revoke(self, client, team, acme_owner):
        junior = team["junior"]
        response = client.put(
            f"/api/users/{junior.id}/permissions",
            json={"granted": ["finance.read.all", "events.read.own"], "revoked": ["events.read.own"]},
            headers=auth_headers(acme_owner),
        )
        assert response.status_code == 200
        assert response.get_json()["granted_permissions"] == ["finance.read.all"]
        assert response.get_json()["revoked_permissions"] == ["events.read.own"]

        detail = client.get(f"/api/users/{junior.id}", headers=auth_headers(acme_owner)).get_json()
        assert detail["effective_permissions"] == ["finance.read.all"]
        assert detail["role_level"] == 20

    def test_grant_takes_effect_on_next_request(self, client, team, acme_owner):
        junior = team["junior"]
        assert client.get("/api/users", headers=auth_headers(junior)).status_code == 403

        client.put(
            f"/api/users/{junior.id}/permissions",
            json={"granted": ["users.read.all"]},
            headers=auth_headers(acme_owner),
        )
        assert client.get("/api/users", headers=auth_headers(junior)).status_code == 200

    def test_unknown_permission_rejected(self, client, team, acme_owner):
        response = client.put(
            f"/api/users/{team['junior'].id}/permissions",
            json={"granted": ["events.teleport.all"]},
            headers=auth_headers(acme_owner),
        )
        assert response.status_code == 400

    def test_peer_overrides_are_protected(self, client, team):
        response = client.put(
            f"/api/users/{team['peer'].id}/permissions",
            json={"granted": ["finance.read.all"]},
            headers=auth_headers(team["coordinator"]),
        )
        assert response.status_code == 403


class TestListUsers:
    def test_lists_active_tenant_users(self, client, acme, globex, team, acme_owner):
        team["junior"].archive()
        db.session.commit()

        response = client.get("/api/users", headers=auth_headers(team["coordinator"]))
        emails = [user["email"] for user in response.get_json()["users"]]
        assert emails == ["owner@acme.test", "u@acme.test", "v@acme.test"]
