# tenantguard/models/tenant.py
import logging

from tenantguard.extensions import db
from tenantguard.core.database import BaseModel, session_manager

logger = logging.getLogger(__name__)


class Tenant(BaseModel):
    __tablename__ = "tenants"

    name = db.Column(db.String(100), nullable=False)
    subdomain = db.Column(db.String(100), unique=True, nullable=False)
    settings = db.Column(db.JSON)
    is_active = db.Column(db.Boolean, default=True)
    # Registered owner; plain column, users.tenant_id already points back here
    owner_id = db.Column(db.String(36))

    def __repr__(self):
        return f"<Tenant {self.subdomain}>"

    def to_dict(self):
        """Convert tenant to dictionary representation"""
        return {
            "id": self.id,
            "name": self.name,
            "subdomain": self.subdomain,
            "settings": self.settings,
            "is_active": self.is_active,
            "owner_id": self.owner_id,
        }


def onboard_tenant(name, subdomain, owner_email, owner_name, owner_password, settings=None):
    """Create a tenant with its system roles and its owner account.

    Returns ``(tenant, owner)``. The permission catalog must already be seeded.
    """
    from .role import Role
    from .user import User

    with session_manager() as session:
        tenant = Tenant(name=name, subdomain=subdomain, settings=settings or {})
        session.add(tenant)
        session.flush()

        roles = Role.create_default_roles(tenant.id)

        owner = User(tenant_id=tenant.id, email=owner_email, name=owner_name)
        owner.password = owner_password
        owner.assign_role(roles["Owner"])
        session.add(owner)
        session.flush()

        tenant.owner_id = owner.id

    logger.info(f"Onboarded tenant {tenant.subdomain} ({tenant.id}) with owner {owner.email}")
    return tenant, owner
