# tenantguard/models/permission.py
from tenantguard.extensions import db
from tenantguard.core.database import BaseModel
from tenantguard.core.catalog import PermissionCatalog, PermissionName


role_permissions = db.Table(
    "role_permissions",
    db.Column("role_id", db.String(36), db.ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    db.Column(
        "permission_id",
        db.String(36),
        db.ForeignKey("permissions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Permission(BaseModel):
    """Catalog entry. Global, shared by every tenant."""

    __tablename__ = "permissions"

    name = db.Column(db.String(100), unique=True, nullable=False, index=True)
    display_name = db.Column(db.String(150))
    description = db.Column(db.String(255))
    module = db.Column(db.String(50), nullable=False, index=True)
    action = db.Column(db.String(20), nullable=False)
    scope = db.Column(db.String(10))
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<Permission {self.name}>"

    @classmethod
    def from_name(cls, name, description=None):
        parsed = PermissionName.parse(name)
        display = f"{parsed.action.title()} {parsed.module}"
        if parsed.scope:
            display += f" ({parsed.scope})"
        return cls(
            name=str(parsed),
            display_name=display,
            description=description,
            module=parsed.module,
            action=parsed.action,
            scope=parsed.scope,
            is_active=True,
        )

    def set_active(self, active):
        """Toggle availability; invalidates every cached catalog snapshot"""
        self.is_active = bool(active)
        db.session.commit()
        PermissionCatalog.invalidate()

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "display_name": self.display_name,
            "description": self.description,
            "module": self.module,
            "action": self.action,
            "scope": self.scope,
            "is_active": self.is_active,
        }
