# tenantguard/core/registry.py
import logging
from dataclasses import dataclass
from typing import Dict

from .catalog import PermissionName
from .constants import PERMISSION_MODULES, PermissionAction, PermissionScope
from .tenancy import TenantScopedMixin, tenant_get

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceType:
    """An ownable model and the permission module guarding it"""

    name: str
    model: type
    permission_module: str
    ownership_field: str = "created_by"

    def permission(self, action, scope=None):
        if isinstance(action, PermissionAction):
            action = action.value
        if scope is not None and not isinstance(scope, PermissionScope):
            scope = PermissionScope(scope)
        return str(PermissionName(self.permission_module, action, None).with_scope(scope))

    def load(self, resource_id, tenant_id):
        return tenant_get(self.model, resource_id, tenant_id)


class ResourceRegistry:
    def __init__(self):
        self._types: Dict[str, ResourceType] = {}

    def register(self, name, model, permission_module, ownership_field="created_by"):
        """Register a resource type; re-registering the same definition is a no-op"""
        if permission_module not in PERMISSION_MODULES:
            raise ValueError(f"Unknown permission module {permission_module!r}")
        if not issubclass(model, TenantScopedMixin):
            raise ValueError(f"{model.__name__} is not tenant scoped")
        if not hasattr(model, ownership_field):
            raise ValueError(f"{model.__name__} has no ownership field {ownership_field!r}")

        resource_type = ResourceType(name, model, permission_module, ownership_field)
        existing = self._types.get(name)
        if existing is not None and existing != resource_type:
            raise ValueError(f"Resource type {name!r} already registered differently")

        self._types[name] = resource_type
        return resource_type

    def get(self, name) -> ResourceType:
        if isinstance(name, ResourceType):
            return name
        try:
            return self._types[name]
        except KeyError:
            raise LookupError(f"Unknown resource type {name!r}") from None

    def __contains__(self, name):
        return name in self._types

    def names(self):
        return sorted(self._types)


registry = ResourceRegistry()
