# tenantguard/core/principal.py
import logging
from dataclasses import dataclass, field, replace
from typing import FrozenSet, Optional

from flask import current_app

from ..extensions import db
from .catalog import PermissionCatalog
from .constants import RoleType
from .exceptions import PermissionDenied, RoleNotFound
from .resolver import PermissionResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """Request-time view of an authenticated user.

    Built once per request. ``bypass_all`` and ``permissions`` are resolved
    here and nowhere else; check sites only read them.
    """

    id: str
    tenant_id: str
    role_id: Optional[str] = None
    role_name: Optional[str] = None
    role_level: Optional[int] = None
    role_type: Optional[str] = None
    is_super_admin: bool = False
    bypass_all: bool = False
    role_resolved: bool = False
    permissions: FrozenSet[str] = field(default_factory=frozenset)
    # Set when a super-admin operates inside another tenant
    home_tenant_id: Optional[str] = None

    @classmethod
    def from_user(cls, user, resolver=None):
        from ..models.tenant import Tenant

        config = current_app.config
        resolver = resolver or PermissionResolver()

        role = None
        permissions = frozenset()
        try:
            role = resolver.load_role(user)
            permissions = resolver.resolve(user, role)
        except RoleNotFound:
            pass

        tenant = db.session.get(Tenant, user.tenant_id)
        is_owner = (
            user.role_type == RoleType.OWNER.value
            or (role is not None and role.name == config.get("OWNER_ROLE_NAME", "Owner"))
            or (tenant is not None and tenant.owner_id == user.id)
        )

        role_level = role.level if role is not None else None
        if user.is_super_admin:
            role_level = config.get("SUPER_ADMIN_LEVEL", 1000)

        return cls(
            id=user.id,
            tenant_id=user.tenant_id,
            role_id=user.role_id,
            role_name=role.name if role is not None else None,
            role_level=role_level,
            role_type=user.role_type,
            is_super_admin=bool(user.is_super_admin),
            bypass_all=bool(user.is_super_admin) or is_owner,
            role_resolved=role is not None,
            permissions=permissions,
        )

    def acting_in(self, tenant_id):
        """Platform path: a super-admin scoped to another tenant"""
        if not self.is_super_admin:
            logger.info(f"Principal {self.id} attempted cross-tenant access to {tenant_id}")
            raise PermissionDenied("Super-admin access required", role=self.role_name)

        logger.warning(
            f"Super-admin {self.id} acting in tenant {tenant_id} (home tenant {self.tenant_id})"
        )
        return replace(self, tenant_id=tenant_id, home_tenant_id=self.home_tenant_id or self.tenant_id)

    def effective_permissions(self):
        """Listing view; bypass principals see the whole active catalog"""
        if self.bypass_all:
            return PermissionCatalog.current().active_names()
        return self.permissions

    def to_dict(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "role_id": self.role_id,
            "role": self.role_name,
            "role_level": self.role_level,
            "role_type": self.role_type,
            "is_super_admin": self.is_super_admin,
            "bypass_all": self.bypass_all,
            "permissions": sorted(self.effective_permissions()),
        }
