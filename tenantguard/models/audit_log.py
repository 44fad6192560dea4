# tenantguard/models/audit_log.py
from typing import Any, Dict, Optional

from tenantguard.extensions import db
from tenantguard.core.database import BaseModel
from tenantguard.core.tenancy import TenantScopedMixin
from tenantguard.core.utils import utcnow


class AuditLog(TenantScopedMixin, BaseModel):
    """Administrative actions taken inside a tenant"""

    __tablename__ = "audit_logs"

    actor_id = db.Column(db.String(36), nullable=True)

    action = db.Column(db.String(50), nullable=False)  # e.g. 'create', 'update', 'archive'
    entity_type = db.Column(db.String(50), nullable=False)  # e.g. 'role', 'user'
    entity_id = db.Column(db.String(36), nullable=True)

    changes = db.Column(db.JSON, nullable=True)
    event_metadata = db.Column(db.JSON, nullable=True)

    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
    endpoint = db.Column(db.String(255), nullable=True)

    timestamp = db.Column(db.DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<AuditLog {self.action} {self.entity_type}:{self.entity_id}>"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "actor_id": self.actor_id,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "changes": self.changes,
            "event_metadata": self.event_metadata,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "endpoint": self.endpoint,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }

    @staticmethod
    def log_action(
        action: str,
        entity_type: str,
        tenant_id: str,
        entity_id: Optional[str] = None,
        actor_id: Optional[str] = None,
        changes: Optional[Dict[str, Any]] = None,
        event_metadata: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        endpoint: Optional[str] = None,
    ) -> "AuditLog":
        """Create a new audit log entry"""
        return AuditLog.create(
            action=action,
            entity_type=entity_type,
            tenant_id=tenant_id,
            entity_id=entity_id,
            actor_id=actor_id,
            changes=changes,
            event_metadata=event_metadata,
            ip_address=ip_address,
            user_agent=user_agent,
            endpoint=endpoint,
        )
