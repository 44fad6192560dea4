# tenantguard/core/middleware.py
import logging
from functools import wraps
from typing import Any, Callable

from flask import g
from flask_jwt_extended import verify_jwt_in_request

from ..extensions import db
from .exceptions import Unauthenticated
from .principal import Principal
from .security import get_current_user_id, get_token_tenant_id
from .tenancy import tenant_get

logger = logging.getLogger(__name__)


class PrincipalMiddleware:
    """Builds the request principal from the verified JWT.

    The tenant comes from the token's ``tenant_id`` claim and nowhere else;
    headers and query parameters are never consulted.
    """

    @staticmethod
    def load_principal() -> Principal:
        from ..models import Tenant, User

        verify_jwt_in_request()
        user_id = get_current_user_id()
        tenant_id = get_token_tenant_id()
        if not user_id or not tenant_id:
            raise Unauthenticated()

        user = tenant_get(User, user_id, tenant_id)
        if user is None:
            logger.info(f"Token for unknown user {user_id} in tenant {tenant_id}")
            raise Unauthenticated()

        if not user.is_active or user.is_archived:
            logger.info(f"Inactive user {user.id} presented a valid token")
            raise Unauthenticated("Account is inactive")

        tenant = db.session.get(Tenant, tenant_id)
        if tenant is None or not tenant.is_active:
            logger.warning(f"User {user.id} belongs to inactive tenant {tenant_id}")
            raise Unauthenticated("Tenant is inactive")

        principal = Principal.from_user(user)
        g.principal = principal
        g.tenant_id = principal.tenant_id
        g.current_user = user
        return principal

    @classmethod
    def principal_required(cls, f: Callable) -> Callable:
        """Require an authenticated principal; use below ``@jwt_required()``"""

        @wraps(f)
        def decorated(*args: Any, **kwargs: Any) -> Any:
            if g.get("principal") is None:
                cls.load_principal()
            return f(*args, **kwargs)

        return decorated


principal_required = PrincipalMiddleware.principal_required
