# tenantguard/core/constants.py
from enum import Enum


class PermissionScope(Enum):
    OWN = "own"
    ALL = "all"


class PermissionAction(Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    MANAGE = "manage"
    EXPORT = "export"


class RoleType(Enum):
    """Fast-path tag stored on the user next to its role"""

    OWNER = "owner"
    MANAGER = "manager"
    STAFF = "staff"
    VIEWER = "viewer"
    CUSTOM = "custom"


class OverrideEffect(Enum):
    GRANTED = "granted"
    REVOKED = "revoked"


PERMISSION_MODULES = (
    "events",
    "clients",
    "partners",
    "finance",
    "payments",
    "invoices",
    "contracts",
    "supplies",
    "inventory",
    "portfolio",
    "tasks",
    "reminders",
    "users",
    "roles",
    "business",
    "resources",
    "reports",
    "settings",
)

# Modules whose records carry an owner and therefore get own/all variants
_SCOPED_MODULES = (
    "events",
    "clients",
    "partners",
    "finance",
    "payments",
    "invoices",
    "contracts",
    "supplies",
    "inventory",
    "portfolio",
    "tasks",
    "reminders",
    "users",
)


def _default_permissions():
    definitions = []
    for module in _SCOPED_MODULES:
        definitions.append((module, PermissionAction.CREATE.value, None))
        for action in (PermissionAction.READ, PermissionAction.UPDATE, PermissionAction.DELETE):
            for scope in (PermissionScope.OWN, PermissionScope.ALL):
                definitions.append((module, action.value, scope.value))
        definitions.append((module, PermissionAction.EXPORT.value, PermissionScope.ALL.value))

    for module in ("roles", "business", "resources", "settings"):
        for action in (
            PermissionAction.CREATE,
            PermissionAction.READ,
            PermissionAction.UPDATE,
            PermissionAction.DELETE,
        ):
            definitions.append((module, action.value, None))
        definitions.append((module, PermissionAction.MANAGE.value, None))

    definitions.append(("reports", PermissionAction.READ.value, PermissionScope.ALL.value))
    definitions.append(("reports", PermissionAction.EXPORT.value, PermissionScope.ALL.value))
    return definitions


# (module, action, scope) triples seeded into the permission catalog
DEFAULT_PERMISSIONS = _default_permissions()


# name -> (level, role type, predicate over (module, action, scope))
DEFAULT_ROLES = {
    "Owner": {
        "level": 100,
        "role_type": RoleType.OWNER,
        "description": "Full access to all features",
        "grants": lambda module, action, scope: True,
    },
    "Manager": {
        "level": 75,
        "role_type": RoleType.MANAGER,
        "description": "Can manage events, clients, and day-to-day operations",
        "grants": lambda module, action, scope: module not in ("roles", "business", "settings")
        and action != PermissionAction.DELETE.value,
    },
    "Staff": {
        "level": 50,
        "role_type": RoleType.STAFF,
        "description": "Can view and create basic records",
        "grants": lambda module, action, scope: (
            action == PermissionAction.CREATE.value
            and module not in ("roles", "users", "business", "settings")
        )
        or (action == PermissionAction.READ.value and scope != PermissionScope.ALL.value)
        or (module == "tasks" and scope == PermissionScope.OWN.value),
    },
    "Viewer": {
        "level": 25,
        "role_type": RoleType.VIEWER,
        "description": "Read-only access",
        "grants": lambda module, action, scope: action == PermissionAction.READ.value,
    },
}
