# tenantguard/core/resolver.py
"""
Effective permission resolution.

    effective = (role ∩ catalog-active) ∪ (granted ∩ catalog-active) − revoked

Results are memoized in Flask-Caching under a key made of every version that
can change the outcome: the user, its role and the role's version, the user's
overrides version and the catalog version. Any write to one of those bumps
its version, so stale entries are simply never read again. Revokes are
subtracted once more from freshly loaded state on every call, cache hit or not.
"""
import logging
from typing import FrozenSet, Iterable

from flask import current_app

from ..extensions import cache
from .catalog import PermissionCatalog
from .exceptions import RoleNotFound
from .tenancy import tenant_get

logger = logging.getLogger(__name__)

CACHE_PREFIX = "effective_permissions"


def resolve_effective_permissions(
    role_permissions: Iterable[str],
    granted: Iterable[str],
    revoked: Iterable[str],
    catalog: PermissionCatalog,
) -> FrozenSet[str]:
    """Pure set computation; unknown and inactive identifiers are dropped"""
    from_role = {name for name in role_permissions if catalog.is_grantable(name)}
    from_grants = {name for name in granted if catalog.is_grantable(name)}
    return frozenset((from_role | from_grants) - set(revoked))


class PermissionResolver:
    def __init__(self, enabled=None, timeout=None):
        self.enabled = (
            current_app.config.get("PERMISSION_CACHE_ENABLED", True) if enabled is None else enabled
        )
        self.timeout = (
            current_app.config.get("PERMISSION_CACHE_TIMEOUT", 300) if timeout is None else timeout
        )

    @staticmethod
    def load_role(user):
        """The user's role inside its own tenant, or RoleNotFound"""
        from ..models.role import Role

        role = tenant_get(Role, user.role_id, user.tenant_id)
        if role is None or not role.is_usable:
            logger.warning(
                f"User {user.id} references missing or archived role {user.role_id}; denying all"
            )
            raise RoleNotFound(role_id=user.role_id, user_id=user.id)
        return role

    @staticmethod
    def cache_key(user, role, catalog):
        return (
            f"{CACHE_PREFIX}:{user.id}:{role.id}:{role.version}:"
            f"{user.overrides_version}:{catalog.version}"
        )

    def resolve(self, user, role=None) -> FrozenSet[str]:
        if role is None:
            role = self.load_role(user)

        catalog = PermissionCatalog.current()
        revoked = user.revoked_permission_names()

        key = self.cache_key(user, role, catalog)
        cached = cache.get(key) if self.enabled else None
        if cached is None:
            effective = resolve_effective_permissions(
                role.permission_names(), user.granted_permission_names(), revoked, catalog
            )
            if self.enabled:
                cache.set(key, sorted(effective), timeout=self.timeout)
            logger.debug(f"Resolved {len(effective)} permissions for user {user.id}")
        else:
            effective = frozenset(cached)

        return effective - revoked
