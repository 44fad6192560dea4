# tenantguard/core/permissions.py
from functools import wraps

from flask import g

from .access import authorize, check_level, check_ownership
from .catalog import PermissionName
from .exceptions import ResourceNotFound, Unauthenticated
from .metrics import metrics
from .registry import registry
from .tenancy import tenant_get


def current_principal():
    principal = g.get("principal")
    if principal is None:
        raise Unauthenticated()
    return principal


def _enforce(decision):
    metrics.track_decision(decision)
    return decision.enforce()


def require_permission(permission):
    """Route guard for a catalog identifier in the caller's own tenant"""
    permission = str(PermissionName.parse(permission))

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            principal = current_principal()
            _enforce(authorize(principal, permission, principal.tenant_id))
            return f(*args, **kwargs)

        return decorated_function

    return decorator


def require_ownership(resource_type, action="update", ownership_field=None, id_arg="resource_id"):
    """Load the resource named by ``id_arg`` and apply .all/.own scoping.

    The loaded resource is left on ``g.resource`` for the view.
    """

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            principal = current_principal()
            rtype = registry.get(resource_type)
            resource = rtype.load(kwargs.get(id_arg), principal.tenant_id)

            _enforce(check_ownership(principal, resource, rtype, action, ownership_field))
            g.resource = resource
            return f(*args, **kwargs)

        return decorated_function

    return decorator


def require_role_level(min_level=None, target_arg=None):
    """Require a minimum level and, with ``target_arg``, a strictly higher level than the target user"""

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            from ..models import User

            principal = current_principal()
            target = None
            if target_arg is not None:
                target = tenant_get(User, kwargs.get(target_arg), principal.tenant_id)
                if target is None:
                    raise ResourceNotFound()
                g.target_user = target

            _enforce(check_level(principal, min_level=min_level, target=target))
            return f(*args, **kwargs)

        return decorated_function

    return decorator
