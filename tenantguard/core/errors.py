# tenantguard/core/errors.py
import logging

from flask import jsonify

from .exceptions import (
    BaseAPIException,
    HierarchyViolation,
    PermissionDenied,
    ResourceNotFound,
    RoleNotFound,
    TenantIsolationViolation,
    TenantMismatch,
)

logger = logging.getLogger(__name__)


class APIError(Exception):
    def __init__(self, message, status_code=400, payload=None):
        super().__init__()
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv["message"] = self.message
        return rv

    def __str__(self):
        return self.message


def handle_api_error(error):
    """Handle APIError exceptions"""
    response = jsonify(error.to_dict())
    response.status_code = error.status_code
    return response


def handle_not_found(error):
    """TenantMismatch and a genuine miss produce byte-identical responses"""
    if isinstance(error, TenantMismatch):
        logger.warning(
            f"Tenant mismatch: principal tenant {error.principal_tenant_id} "
            f"reached for tenant {error.target_tenant_id}"
        )
    response = jsonify({"code": ResourceNotFound.code, "message": "Resource not found"})
    response.status_code = 404
    return response


def handle_permission_denied(error):
    """Handle PermissionDenied exceptions"""
    if isinstance(error, RoleNotFound):
        logger.warning(
            f"Data integrity: user {error.user_id} references missing role {error.role_id}"
        )
        body = {"code": PermissionDenied.code, "message": "Permission denied"}
    else:
        body = {"code": PermissionDenied.code, "message": error.message, "role": error.role}
        if error.required_permission:
            body["requiredPermission"] = error.required_permission
        if isinstance(error, HierarchyViolation) and error.required_level is not None:
            body["requiredLevel"] = error.required_level

    response = jsonify(body)
    response.status_code = 403
    return response


def handle_base_api_exception(error):
    """Handle remaining BaseAPIException subclasses"""
    response = jsonify({"code": error.code, "message": error.message})
    response.status_code = error.status_code
    return response


def handle_isolation_violation(error):
    logger.critical(f"Tenant isolation violation: {error}", exc_info=True)
    response = jsonify({"code": "INTERNAL_ERROR", "message": "Internal server error"})
    response.status_code = 500
    return response


def register_error_handlers(app):
    """Register error handlers with the Flask app"""
    app.register_error_handler(APIError, handle_api_error)
    app.register_error_handler(ResourceNotFound, handle_not_found)
    app.register_error_handler(PermissionDenied, handle_permission_denied)
    app.register_error_handler(BaseAPIException, handle_base_api_exception)
    app.register_error_handler(TenantIsolationViolation, handle_isolation_violation)
