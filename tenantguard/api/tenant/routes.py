# tenantguard/api/tenant/routes.py
import logging

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from sqlalchemy import select

from tenantguard.extensions import db
from tenantguard.models import Role, Tenant
from tenantguard.core.access import authorize
from tenantguard.core.audit import audit_action
from tenantguard.core.errors import APIError
from tenantguard.core.exceptions import PermissionDenied, ResourceNotFound
from tenantguard.core.metrics import metrics
from tenantguard.core.middleware import principal_required
from tenantguard.core.permissions import current_principal, require_permission
from tenantguard.core.tenancy import tenant_select

logger = logging.getLogger(__name__)
tenant_bp = Blueprint("tenant", __name__)
admin_bp = Blueprint("admin", __name__)


@tenant_bp.route("", methods=["GET"])
@jwt_required()
@principal_required
@require_permission("business.read")
def get_current_tenant():
    tenant = db.session.get(Tenant, current_principal().tenant_id)
    return jsonify(tenant.to_dict())


@tenant_bp.route("", methods=["PUT"])
@jwt_required()
@principal_required
@require_permission("business.update")
@audit_action("update", "tenant", lambda kwargs, body: body.get("id"))
def update_current_tenant():
    tenant = db.session.get(Tenant, current_principal().tenant_id)
    data = request.get_json(silent=True) or {}

    if "name" in data:
        if not data["name"]:
            raise APIError("Tenant name is required", status_code=400)
        tenant.name = data["name"]
    if "settings" in data:
        if not isinstance(data["settings"], dict):
            raise APIError("settings must be an object", status_code=400)
        tenant.settings = data["settings"]

    db.session.commit()
    return jsonify(tenant.to_dict())


@admin_bp.route("/tenants", methods=["GET"])
@jwt_required()
@principal_required
def list_tenants():
    """Platform view of every tenant; super-admins only"""
    principal = current_principal()
    if not principal.is_super_admin:
        raise PermissionDenied("Super-admin access required", role=principal.role_name)

    tenants = db.session.execute(select(Tenant).order_by(Tenant.name)).scalars().all()
    return jsonify({"tenants": [tenant.to_dict() for tenant in tenants]})


@admin_bp.route("/tenants/<tenant_id>/roles", methods=["GET"])
@jwt_required()
@principal_required
def list_tenant_roles(tenant_id):
    """Roles of any tenant, for a super-admin acting inside it"""
    acting = current_principal().acting_in(tenant_id)

    if db.session.get(Tenant, tenant_id) is None:
        raise ResourceNotFound()

    decision = authorize(acting, "roles.read", tenant_id)
    metrics.track_decision(decision)
    decision.enforce()

    stmt = tenant_select(Role, tenant_id).order_by(Role.level.desc(), Role.name)
    roles = db.session.execute(stmt).scalars().all()
    return jsonify({"tenant_id": tenant_id, "roles": [role.to_dict() for role in roles]})
