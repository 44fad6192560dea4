# tenantguard/models/__init__.py
from .permission import Permission, role_permissions
from .role import Role
from .user import User, PermissionOverride
from .tenant import Tenant, onboard_tenant
from .resource import Event, Payment, Task, register_resources
from .audit_log import AuditLog

__all__ = [
    "Permission",
    "role_permissions",
    "Role",
    "User",
    "PermissionOverride",
    "Tenant",
    "onboard_tenant",
    "Event",
    "Payment",
    "Task",
    "register_resources",
    "AuditLog",
]
