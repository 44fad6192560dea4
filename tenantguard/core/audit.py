# tenantguard/core/audit.py
import logging
from functools import wraps
from typing import Callable, Optional

from flask import g, request

from ..extensions import db

logger = logging.getLogger(__name__)

REDACTED_FIELDS = ("password",)


def _request_changes():
    if not request.is_json:
        return None
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return data
    return {key: value for key, value in data.items() if key not in REDACTED_FIELDS}


def _split_response(response):
    if isinstance(response, tuple):
        return response[0], response[1] if len(response) > 1 else 200
    return response, response.status_code


def audit_action(action: str, entity_type: str, get_entity_id: Optional[Callable] = None):
    """
    Decorator to audit administrative API actions.

    Args:
        action: Type of action (create, update, archive, etc.)
        entity_type: Type of entity being acted upon
        get_entity_id: Optional function extracting the entity id from
            the view's keyword arguments and response body
    """

    def decorator(f: Callable):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            response = f(*args, **kwargs)

            body, status_code = _split_response(response)
            principal = g.get("principal")
            if principal is None or status_code >= 400:
                return response

            try:
                # The main transaction must land even if audit logging fails
                db.session.commit()

                from ..models.audit_log import AuditLog

                entity_id = None
                if get_entity_id:
                    entity_id = get_entity_id(kwargs, body.get_json(silent=True) or {})
                AuditLog.log_action(
                    action=action,
                    entity_type=entity_type,
                    tenant_id=principal.tenant_id,
                    entity_id=entity_id,
                    actor_id=principal.id,
                    changes=_request_changes(),
                    event_metadata={"role": principal.role_name} if principal.role_name else None,
                    ip_address=request.remote_addr,
                    user_agent=request.user_agent.string,
                    endpoint=request.endpoint,
                )
            except Exception as e:
                # Audit failure shouldn't fail the main operation
                logger.error(f"Error creating audit log: {str(e)}")
                db.session.rollback()

            return response

        return decorated_function

    return decorator
