# tenantguard/core/access.py
"""
Access decisions.

``authorize``, ``check_ownership`` and ``check_level`` are pure over their
arguments: they return a ``Decision`` and never touch the request. A missing
tenant context is a programming error and raises ``TenantIsolationViolation``.
``Decision.enforce`` turns a denial into the matching API exception.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from flask import current_app

from .constants import PermissionAction, PermissionScope
from .exceptions import (
    HierarchyViolation,
    PermissionDenied,
    ResourceNotFound,
    RoleNotFound,
    TenantIsolationViolation,
    TenantMismatch,
)

logger = logging.getLogger(__name__)


class DecisionReason(Enum):
    BYPASS = "bypass"
    GRANTED = "granted"
    OWNER = "owner"
    LEVEL_OK = "level_ok"
    TENANT_MISMATCH = "tenant_mismatch"
    ROLE_NOT_FOUND = "role_not_found"
    PERMISSION_DENIED = "permission_denied"
    HIERARCHY_VIOLATION = "hierarchy_violation"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: DecisionReason
    principal_id: Optional[str] = None
    role_id: Optional[str] = None
    role: Optional[str] = None
    required_permission: Optional[str] = None
    required_level: Optional[int] = None
    principal_tenant_id: Optional[str] = None
    target_tenant_id: Optional[str] = None

    def __bool__(self):
        return self.allowed

    def enforce(self):
        """Return self when allowed, otherwise raise the mapped exception"""
        if self.allowed:
            return self

        if self.reason is DecisionReason.TENANT_MISMATCH:
            raise TenantMismatch(self.principal_tenant_id, self.target_tenant_id)
        if self.reason is DecisionReason.NOT_FOUND:
            raise ResourceNotFound()
        if self.reason is DecisionReason.ROLE_NOT_FOUND:
            raise RoleNotFound(role_id=self.role_id, user_id=self.principal_id)
        if self.reason is DecisionReason.HIERARCHY_VIOLATION:
            raise HierarchyViolation(role=self.role, required_level=self.required_level)
        raise PermissionDenied(
            f"Missing required permission: {self.required_permission}",
            required_permission=self.required_permission,
            role=self.role,
        )


def _decide(principal, allowed, reason, **details):
    details.setdefault("principal_tenant_id", principal.tenant_id)
    return Decision(
        allowed=allowed,
        reason=reason,
        principal_id=principal.id,
        role_id=principal.role_id,
        role=principal.role_name,
        **details,
    )


def authorize(principal, required_permission, tenant_context) -> Decision:
    """Decide whether ``principal`` holds ``required_permission`` in ``tenant_context``.

    Steps, in order: tenant mismatch denies, bypass allows, a principal whose
    role cannot be resolved is denied, then plain membership in the effective set.
    """
    required = str(required_permission)

    if tenant_context is None:
        raise TenantIsolationViolation(f"Authorization of {required} without a tenant context")

    if tenant_context != principal.tenant_id:
        return _decide(
            principal,
            False,
            DecisionReason.TENANT_MISMATCH,
            required_permission=required,
            target_tenant_id=tenant_context,
        )

    if principal.bypass_all:
        return _decide(principal, True, DecisionReason.BYPASS, required_permission=required)

    if not principal.role_resolved:
        return _decide(
            principal, False, DecisionReason.ROLE_NOT_FOUND, required_permission=required
        )

    if required in principal.permissions:
        return _decide(principal, True, DecisionReason.GRANTED, required_permission=required)

    logger.info(f"Principal {principal.id} lacks {required}")
    return _decide(
        principal, False, DecisionReason.PERMISSION_DENIED, required_permission=required
    )


def check_ownership(principal, resource, resource_type, action, ownership_field=None) -> Decision:
    """Allow ``.all`` holders on any resource of the tenant, ``.own`` holders on their own.

    ``resource_type`` is a registered ``ResourceType``; it maps the type to its
    permission module and default ownership field.
    """
    action = action.value if isinstance(action, PermissionAction) else action
    all_permission = resource_type.permission(action, PermissionScope.ALL)

    if resource is None:
        return _decide(
            principal, False, DecisionReason.NOT_FOUND, required_permission=all_permission
        )

    if resource.tenant_id != principal.tenant_id:
        return _decide(
            principal,
            False,
            DecisionReason.TENANT_MISMATCH,
            required_permission=all_permission,
            target_tenant_id=resource.tenant_id,
        )

    decision = authorize(principal, all_permission, resource.tenant_id)
    if decision.allowed or decision.reason is DecisionReason.ROLE_NOT_FOUND:
        return decision

    own_permission = resource_type.permission(action, PermissionScope.OWN)
    field_name = ownership_field or resource_type.ownership_field
    owner_id = getattr(resource, field_name, None)
    if own_permission in principal.permissions and owner_id is not None and owner_id == principal.id:
        return _decide(principal, True, DecisionReason.OWNER, required_permission=own_permission)

    return _decide(
        principal, False, DecisionReason.PERMISSION_DENIED, required_permission=all_permission
    )


def _level_of(target):
    if target.is_super_admin:
        return current_app.config.get("SUPER_ADMIN_LEVEL", 1000)
    level = target.role_level
    # A target without a resolvable role ranks below every real role
    return level if level is not None else 0


def check_level(acting, min_level=None, target=None) -> Decision:
    """Deny unless ``acting`` reaches ``min_level`` and strictly outranks ``target``"""
    if target is not None and target.tenant_id != acting.tenant_id:
        return _decide(
            acting, False, DecisionReason.TENANT_MISMATCH, target_tenant_id=target.tenant_id
        )

    if acting.role_level is None:
        return _decide(acting, False, DecisionReason.ROLE_NOT_FOUND)

    if min_level is not None and acting.role_level < min_level:
        logger.info(f"Principal {acting.id} at level {acting.role_level} below {min_level}")
        return _decide(
            acting, False, DecisionReason.HIERARCHY_VIOLATION, required_level=min_level
        )

    if target is not None:
        target_level = _level_of(target)
        if acting.role_level <= target_level:
            logger.info(
                f"Principal {acting.id} at level {acting.role_level} cannot act on "
                f"{target.id} at level {target_level}"
            )
            return _decide(
                acting,
                False,
                DecisionReason.HIERARCHY_VIOLATION,
                required_level=target_level + 1,
            )

    return _decide(acting, True, DecisionReason.LEVEL_OK)
