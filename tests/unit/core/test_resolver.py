# tests/unit/core/test_resolver.py
import pytest
from sqlalchemy import select

from tenantguard.extensions import cache, db
from tenantguard.core.catalog import PermissionCatalog
from tenantguard.core.constants import OverrideEffect
from tenantguard.core.exceptions import RoleNotFound
from tenantguard.core.resolver import PermissionResolver, resolve_effective_permissions
from tenantguard.models import Permission

STATIC_CATALOG = PermissionCatalog(
    {
        "events.read.all": True,
        "events.update.own": True,
        "events.update.all": True,
        "finance.delete.all": False,
    }
)


def _permission(name):
    return db.session.execute(select(Permission).where(Permission.name == name)).scalar_one()


class TestResolveEffectivePermissions:
    def test_role_permissions_filtered_by_catalog(self):
        effective = resolve_effective_permissions(
            {"events.read.all", "finance.delete.all", "events.teleport.all"}, set(), set(), STATIC_CATALOG
        )
        assert effective == frozenset({"events.read.all"})

    def test_grants_extend_role(self):
        effective = resolve_effective_permissions(
            {"events.read.all"}, {"events.update.all"}, set(), STATIC_CATALOG
        )
        assert effective == frozenset({"events.read.all", "events.update.all"})

    def test_grants_of_inactive_or_unknown_permissions_are_ignored(self):
        effective = resolve_effective_permissions(
            set(), {"finance.delete.all", "payments.delete.all"}, set(), STATIC_CATALOG
        )
        assert effective == frozenset()

    def test_revoke_wins_over_role_and_grant(self):
        effective = resolve_effective_permissions(
            {"events.read.all", "events.update.own"},
            {"events.update.own"},
            {"events.update.own"},
            STATIC_CATALOG,
        )
        assert effective == frozenset({"events.read.all"})

    def test_resolution_is_idempotent(self):
        args = ({"events.read.all"}, {"events.update.own"}, {"events.update.all"}, STATIC_CATALOG)
        assert resolve_effective_permissions(*args) == resolve_effective_permissions(*args)


class TestPermissionResolver:
    @pytest.fixture
    def coordinator(self, acme, make_role, make_user):
        role = make_role(acme, "Coordinator", 50, ["events.read.all", "events.update.own"])
        return make_user(acme, role)

    def test_resolves_role_permissions(self, coordinator):
        effective = PermissionResolver().resolve(coordinator)
        assert effective == frozenset({"events.read.all", "events.update.own"})

    def test_repeated_calls_hit_cache(self, coordinator):
        resolver = PermissionResolver()
        first = resolver.resolve(coordinator)

        role = resolver.load_role(coordinator)
        key = resolver.cache_key(coordinator, role, PermissionCatalog.current())
        assert sorted(cache.get(key)) == sorted(first)
        assert resolver.resolve(coordinator) == first

    def test_role_change_is_visible_immediately(self, coordinator):
        resolver = PermissionResolver()
        resolver.resolve(coordinator)

        role = resolver.load_role(coordinator)
        role.set_permissions(["events.read.all", "events.update.all"])
        db.session.commit()

        assert resolver.resolve(coordinator) == frozenset({"events.read.all", "events.update.all"})

    def test_override_change_is_visible_immediately(self, coordinator):
        resolver = PermissionResolver()
        resolver.resolve(coordinator)

        coordinator.grant_permission("finance.read.all")
        coordinator.revoke_permission("events.update.own")
        db.session.commit()

        assert resolver.resolve(coordinator) == frozenset({"events.read.all", "finance.read.all"})

    def test_direct_bundle_edit_is_visible_immediately(self, coordinator):
        resolver = PermissionResolver()
        assert resolver.resolve(coordinator) == frozenset({"events.read.all", "events.update.own"})

        role = resolver.load_role(coordinator)
        version = role.version
        update_own = next(p for p in role.permissions if p.name == "events.update.own")
        role.permissions.remove(update_own)
        db.session.commit()

        assert role.version == version + 1
        assert resolver.resolve(coordinator) == frozenset({"events.read.all"})

    def test_direct_bundle_append_is_visible_immediately(self, coordinator):
        resolver = PermissionResolver()
        resolver.resolve(coordinator)

        role = resolver.load_role(coordinator)
        role.permissions.append(_permission("finance.read.all"))
        db.session.commit()

        assert "finance.read.all" in resolver.resolve(coordinator)

    def test_direct_override_edit_is_visible_immediately(self, acme, make_role, make_user):
        role = make_role(acme, "Coordinator", 50, ["events.read.all"])
        user = make_user(acme, role, granted=["finance.read.all"])
        resolver = PermissionResolver()
        assert resolver.resolve(user) == frozenset({"events.read.all", "finance.read.all"})

        version = user.overrides_version
        user.overrides[0].effect = OverrideEffect.REVOKED.value
        db.session.commit()

        assert user.overrides_version == version + 1
        assert resolver.resolve(user) == frozenset({"events.read.all"})

    def test_direct_override_delete_is_visible_immediately(self, acme, make_role, make_user):
        role = make_role(acme, "Coordinator", 50, ["events.read.all"])
        user = make_user(acme, role, granted=["finance.read.all"])
        resolver = PermissionResolver()
        resolver.resolve(user)

        db.session.delete(user.overrides[0])
        db.session.commit()

        assert resolver.resolve(user) == frozenset({"events.read.all"})

    def test_revokes_reapplied_on_cache_hit(self, acme, make_role, make_user):
        role = make_role(acme, "Coordinator", 50, ["events.read.all", "events.update.own"])
        user = make_user(acme, role, revoked=["events.update.own"])

        resolver = PermissionResolver()
        key = resolver.cache_key(user, role, PermissionCatalog.current())
        cache.set(key, ["events.read.all", "events.update.own"])

        assert resolver.resolve(user) == frozenset({"events.read.all"})

    def test_catalog_deactivation_removes_permission(self, coordinator):
        resolver = PermissionResolver()
        resolver.resolve(coordinator)

        permission = db.session.execute(
            select(Permission).where(Permission.name == "events.update.own")
        ).scalar_one()
        permission.set_active(False)

        assert resolver.resolve(coordinator) == frozenset({"events.read.all"})

    def test_disabled_cache_still_resolves(self, coordinator):
        resolver = PermissionResolver(enabled=False)
        assert resolver.resolve(coordinator) == frozenset({"events.read.all", "events.update.own"})

    def test_missing_role_raises(self, acme, make_user):
        user = make_user(acme, None)
        with pytest.raises(RoleNotFound):
            PermissionResolver().resolve(user)

    def test_archived_role_raises(self, coordinator):
        resolver = PermissionResolver()
        role = resolver.load_role(coordinator)
        role.archive()
        db.session.commit()

        with pytest.raises(RoleNotFound) as exc_info:
            resolver.resolve(coordinator)
        assert exc_info.value.role_id == role.id
