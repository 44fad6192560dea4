# tests/unit/core/test_access.py
from types import SimpleNamespace

import pytest

from tenantguard.core.access import DecisionReason, authorize, check_level, check_ownership
from tenantguard.core.exceptions import (
    HierarchyViolation,
    PermissionDenied,
    ResourceNotFound,
    RoleNotFound,
    TenantIsolationViolation,
    TenantMismatch,
)
from tenantguard.core.principal import Principal
from tenantguard.core.registry import ResourceType
from tenantguard.models import Event, Task

EVENT = ResourceType("event", Event, "events")
TASK = ResourceType("task", Task, "tasks", ownership_field="assigned_to")


def make_principal(permissions=(), level=50, tenant_id="t1", **kwargs):
    defaults = dict(
        id="u1",
        tenant_id=tenant_id,
        role_id="r1",
        role_name="Coordinator",
        role_level=level,
        role_type="custom",
        role_resolved=True,
        permissions=frozenset(permissions),
    )
    defaults.update(kwargs)
    return Principal(**defaults)


def make_resource(tenant_id="t1", **fields):
    return SimpleNamespace(tenant_id=tenant_id, **fields)


class TestAuthorize:
    def test_granted(self):
        decision = authorize(make_principal(["events.read.all"]), "events.read.all", "t1")
        assert decision.allowed
        assert decision.reason is DecisionReason.GRANTED

    def test_denied_names_required_permission(self):
        decision = authorize(make_principal(["events.read.all"]), "events.delete.all", "t1")
        assert not decision.allowed
        assert decision.reason is DecisionReason.PERMISSION_DENIED
        assert decision.required_permission == "events.delete.all"

        with pytest.raises(PermissionDenied) as exc_info:
            decision.enforce()
        assert exc_info.value.required_permission == "events.delete.all"
        assert exc_info.value.role == "Coordinator"

    def test_owner_bypass_with_empty_permission_set(self):
        owner = make_principal(role_type="owner", bypass_all=True)
        decision = authorize(owner, "finance.delete.all", "t1")
        assert decision.allowed
        assert decision.reason is DecisionReason.BYPASS

    def test_tenant_mismatch_precedes_bypass(self):
        owner = make_principal(role_type="owner", bypass_all=True)
        decision = authorize(owner, "finance.delete.all", "t2")
        assert not decision.allowed
        assert decision.reason is DecisionReason.TENANT_MISMATCH

        with pytest.raises(TenantMismatch) as exc_info:
            decision.enforce()
        assert isinstance(exc_info.value, ResourceNotFound)
        assert exc_info.value.target_tenant_id == "t2"

    def test_unresolved_role_denies_everything(self):
        principal = make_principal(["events.read.all"], role_resolved=False, level=None)
        decision = authorize(principal, "events.read.all", "t1")
        assert decision.reason is DecisionReason.ROLE_NOT_FOUND
        with pytest.raises(RoleNotFound):
            decision.enforce()

    def test_missing_tenant_context_is_refused(self):
        with pytest.raises(TenantIsolationViolation):
            authorize(make_principal(["events.read.all"]), "events.read.all", None)

    def test_missing_tenant_context_is_refused_for_bypass(self):
        super_admin = make_principal(is_super_admin=True, bypass_all=True)
        with pytest.raises(TenantIsolationViolation):
            authorize(super_admin, "finance.delete.all", None)

    def test_allowed_decision_enforces_to_itself(self):
        decision = authorize(make_principal(["events.read.all"]), "events.read.all", "t1")
        assert decision.enforce() is decision


class TestCheckOwnership:
    """Manager-like principal holding events.read.all and events.update.own"""

    principal = make_principal(["events.read.all", "events.update.own"], id="u1")

    def test_own_resource_allowed(self):
        decision = check_ownership(self.principal, make_resource(created_by="u1"), EVENT, "update")
        assert decision.allowed
        assert decision.reason is DecisionReason.OWNER

    def test_foreign_resource_denied_naming_all(self):
        decision = check_ownership(self.principal, make_resource(created_by="u2"), EVENT, "update")
        assert not decision.allowed
        assert decision.required_permission == "events.update.all"

    def test_all_scope_allows_any_resource(self):
        decision = check_ownership(self.principal, make_resource(created_by="u2"), EVENT, "read")
        assert decision.allowed
        assert decision.reason is DecisionReason.GRANTED

    def test_null_owner_never_matches(self):
        decision = check_ownership(self.principal, make_resource(created_by=None), EVENT, "update")
        assert not decision.allowed

    def test_missing_resource_is_not_found(self):
        decision = check_ownership(self.principal, None, EVENT, "update")
        assert decision.reason is DecisionReason.NOT_FOUND
        with pytest.raises(ResourceNotFound):
            decision.enforce()

    def test_resource_of_other_tenant_is_mismatch(self):
        decision = check_ownership(
            self.principal, make_resource(tenant_id="t2", created_by="u1"), EVENT, "update"
        )
        assert decision.reason is DecisionReason.TENANT_MISMATCH

    def test_bypass_allows_foreign_resource(self):
        owner = make_principal(role_type="owner", bypass_all=True)
        decision = check_ownership(owner, make_resource(created_by="u2"), EVENT, "delete")
        assert decision.allowed

    def test_custom_ownership_field(self):
        principal = make_principal(["tasks.update.own"], id="u1")
        task = make_resource(created_by="u2", assigned_to="u1")
        assert check_ownership(principal, task, TASK, "update").allowed
        assert not check_ownership(principal, task, TASK, "update", ownership_field="created_by").allowed

    def test_unresolved_role_is_denied(self):
        principal = make_principal(["events.update.own"], role_resolved=False)
        decision = check_ownership(principal, make_resource(created_by="u1"), EVENT, "update")
        assert decision.reason is DecisionReason.ROLE_NOT_FOUND


class TestCheckLevel:
    def test_equal_level_denied(self):
        decision = check_level(make_principal(level=50), target=make_principal(id="u2", level=50))
        assert decision.reason is DecisionReason.HIERARCHY_VIOLATION
        assert decision.required_level == 51
        with pytest.raises(HierarchyViolation):
            decision.enforce()

    def test_lower_target_allowed(self):
        decision = check_level(make_principal(level=50), target=make_principal(id="u2", level=20))
        assert decision.allowed
        assert decision.reason is DecisionReason.LEVEL_OK

    def test_min_level(self):
        assert not check_level(make_principal(level=50), min_level=75).allowed
        assert check_level(make_principal(level=75), min_level=75).allowed

    def test_target_in_other_tenant_is_mismatch(self):
        target = make_principal(id="u2", level=10, tenant_id="t2")
        assert check_level(make_principal(level=50), target=target).reason is DecisionReason.TENANT_MISMATCH

    def test_acting_without_role_denied(self):
        decision = check_level(make_principal(level=None, role_resolved=False), min_level=0)
        assert decision.reason is DecisionReason.ROLE_NOT_FOUND

    def test_target_without_role_ranks_lowest(self):
        target = make_principal(id="u2", level=None, role_resolved=False)
        assert check_level(make_principal(level=1), target=target).allowed

    def test_bypass_does_not_skip_hierarchy(self):
        owner = make_principal(level=100, bypass_all=True, role_type="owner")
        assert not check_level(owner, target=make_principal(id="u2", level=100)).allowed

    def test_hierarchy_is_monotonic(self):
        for acting_level in range(0, 101, 10):
            for target_level in range(acting_level, 101, 10):
                decision = check_level(
                    make_principal(level=acting_level),
                    target=make_principal(id="u2", level=target_level),
                )
                assert not decision.allowed

    def test_super_admin_target_outranks_owner(self, app):
        owner = make_principal(level=100, bypass_all=True)
        target = make_principal(id="u2", level=None, is_super_admin=True)
        assert not check_level(owner, target=target).allowed
