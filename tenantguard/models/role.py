# tenantguard/models/role.py
import logging

from sqlalchemy import func, select

from tenantguard.extensions import db
from tenantguard.core.catalog import PermissionName
from tenantguard.core.constants import DEFAULT_ROLES
from tenantguard.core.database import BaseModel
from tenantguard.core.tenancy import TenantScopedMixin, tenant_select
from .permission import Permission, role_permissions

logger = logging.getLogger(__name__)


class Role(TenantScopedMixin, BaseModel):
    __tablename__ = "roles"
    __table_args__ = (db.UniqueConstraint("tenant_id", "name", name="uq_role_tenant_name"),)

    name = db.Column(db.String(50), nullable=False)
    description = db.Column(db.String(255))
    level = db.Column(db.Integer, nullable=False, default=10)
    is_system_role = db.Column(db.Boolean, default=False, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    is_archived = db.Column(db.Boolean, default=False, nullable=False)
    # Bumped on every change that can alter the effective set of its holders
    version = db.Column(db.Integer, default=1, nullable=False)

    permissions = db.relationship(
        Permission, secondary=role_permissions, lazy="selectin", order_by=Permission.name
    )

    def __repr__(self):
        return f"<Role {self.name} for tenant {self.tenant_id}>"

    @property
    def is_usable(self):
        return bool(self.is_active) and not self.is_archived

    def permission_names(self):
        """Identifiers in the bundle, regardless of catalog state"""
        return frozenset(permission.name for permission in self.permissions)

    def set_permissions(self, names):
        """Replace the bundle with the given catalog identifiers.

        Raises ValueError for identifiers that are malformed or not in the catalog.
        """
        wanted = {str(PermissionName.parse(name)) for name in names}
        found = []
        if wanted:
            found = db.session.execute(
                select(Permission).where(Permission.name.in_(wanted))
            ).scalars().all()
        missing = wanted - {permission.name for permission in found}
        if missing:
            raise ValueError(f"Unknown permissions: {', '.join(sorted(missing))}")

        self.permissions = list(found)
        self.bump_version()

    def bump_version(self):
        self.version = (self.version or 0) + 1

    def archive(self):
        self.is_archived = True
        self.is_active = False
        self.bump_version()

    def to_dict(self, include_permissions=True):
        """Convert role to dictionary representation"""
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "level": self.level,
            "is_system_role": self.is_system_role,
            "is_active": self.is_active,
            "is_archived": self.is_archived,
            "tenant_id": self.tenant_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_permissions:
            data["permissions"] = sorted(self.permission_names())
        return data

    @staticmethod
    def create_default_roles(tenant_id):
        """Create the system roles for a new tenant, keyed by name"""
        catalog = db.session.execute(select(Permission)).scalars().all()

        created_roles = {}
        for name, definition in DEFAULT_ROLES.items():
            grants = definition["grants"]
            role = Role(
                tenant_id=tenant_id,
                name=name,
                description=definition["description"],
                level=definition["level"],
                is_system_role=True,
                permissions=[p for p in catalog if grants(p.module, p.action, p.scope)],
            )
            db.session.add(role)
            created_roles[name] = role

        db.session.flush()
        logger.info(f"Created {len(created_roles)} default roles for tenant {tenant_id}")
        return created_roles

    @staticmethod
    def get_role_by_name(tenant_id, role_name):
        """Get a role by name within a tenant, case-insensitively"""
        stmt = tenant_select(Role, tenant_id).where(func.lower(Role.name) == role_name.lower())
        return db.session.execute(stmt).scalars().first()
