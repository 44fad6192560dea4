# tenantguard/models/resource.py
"""Minimal business records; only their tenant and ownership fields matter here."""
from tenantguard.extensions import db
from tenantguard.core.database import BaseModel
from tenantguard.core.tenancy import TenantScopedMixin


class ResourceMixin(TenantScopedMixin):
    created_by = db.Column(db.String(36), index=True)

    @classmethod
    def create_for(cls, principal, **kwargs):
        """New record in the principal's tenant, owned by the principal"""
        kwargs.setdefault("created_by", principal.id)
        return cls.create(tenant_id=principal.tenant_id, **kwargs)

    def to_dict(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class Event(ResourceMixin, BaseModel):
    __tablename__ = "events"

    title = db.Column(db.String(200), nullable=False)
    starts_at = db.Column(db.DateTime)

    def to_dict(self):
        data = super().to_dict()
        data.update(title=self.title, starts_at=self.starts_at.isoformat() if self.starts_at else None)
        return data


class Payment(ResourceMixin, BaseModel):
    __tablename__ = "payments"

    amount = db.Column(db.Numeric(12, 2), nullable=False)
    currency = db.Column(db.String(3), default="USD")

    def to_dict(self):
        data = super().to_dict()
        data.update(amount=str(self.amount), currency=self.currency)
        return data


class Task(ResourceMixin, BaseModel):
    __tablename__ = "tasks"

    title = db.Column(db.String(200), nullable=False)
    assigned_to = db.Column(db.String(36), index=True)
    is_done = db.Column(db.Boolean, default=False)

    def to_dict(self):
        data = super().to_dict()
        data.update(title=self.title, assigned_to=self.assigned_to, is_done=self.is_done)
        return data


def register_resources(registry):
    registry.register("event", Event, "events")
    registry.register("payment", Payment, "payments")
    registry.register("task", Task, "tasks", ownership_field="assigned_to")
    return registry
