# tenantguard/api/users/routes.py
import logging

from flask import Blueprint, g, jsonify, request
from flask_jwt_extended import jwt_required
from sqlalchemy import select

from tenantguard.extensions import db
from tenantguard.models import Role, Tenant, User
from tenantguard.core.access import check_level
from tenantguard.core.audit import audit_action
from tenantguard.core.errors import APIError
from tenantguard.core.exceptions import HierarchyViolation, ResourceNotFound
from tenantguard.core.metrics import metrics
from tenantguard.core.middleware import principal_required
from tenantguard.core.permissions import (
    current_principal,
    require_permission,
    require_role_level,
)
from tenantguard.core.principal import Principal
from tenantguard.core.tenancy import tenant_get, tenant_select, unscoped

logger = logging.getLogger(__name__)
users_bp = Blueprint("users", __name__)


def _user_id(kwargs, body):
    return kwargs.get("user_id")


@users_bp.route("", methods=["GET"])
@jwt_required()
@principal_required
@require_permission("users.read.all")
def list_users():
    """List non-archived users of the current tenant"""
    principal = current_principal()
    stmt = (
        tenant_select(User, principal.tenant_id)
        .where(User.is_archived.is_(False))
        .order_by(User.email)
    )
    users = db.session.execute(stmt).scalars().all()
    return jsonify({"users": [user.to_dict() for user in users]})


@users_bp.route("", methods=["POST"])
@jwt_required()
@principal_required
@require_permission("users.create")
@audit_action("create", "user", lambda kwargs, body: body.get("id"))
def create_user():
    """Add a team member to the caller's tenant with a role below the caller's"""
    principal = current_principal()
    data = request.get_json(silent=True) or {}

    email = (data.get("email") or "").strip()
    password = data.get("password")
    if not email or not password:
        raise APIError("Missing email or password", status_code=400)

    role = tenant_get(Role, data.get("role_id"), principal.tenant_id)
    if role is None or not role.is_usable:
        raise APIError("Unknown role", status_code=400)

    decision = check_level(principal, min_level=role.level + 1)
    metrics.track_decision(decision)
    decision.enforce()

    # Emails are unique across tenants
    existing = db.session.execute(
        unscoped(select(User.id).where(User.email == email), "email uniqueness on user create")
    ).first()
    if existing is not None:
        raise APIError("Email already registered", status_code=409)

    user = User(tenant_id=principal.tenant_id, email=email, name=data.get("name"))
    user.password = password
    user.assign_role(role)
    db.session.add(user)
    db.session.commit()

    logger.info(f"User {user.id} created with role {role.name} by {principal.id}")
    return jsonify(user.to_dict()), 201


@users_bp.route("/<user_id>", methods=["GET"])
@jwt_required()
@principal_required
@require_permission("users.read.all")
def get_user(user_id):
    user = tenant_get(User, user_id, current_principal().tenant_id)
    if user is None:
        raise ResourceNotFound()

    data = user.to_dict()
    view = Principal.from_user(user)
    data["role"] = view.role_name
    data["role_level"] = view.role_level
    data["effective_permissions"] = sorted(view.effective_permissions())
    return jsonify(data)


@users_bp.route("/<user_id>/role", methods=["PUT"])
@jwt_required()
@principal_required
@require_permission("users.update.all")
@require_role_level(target_arg="user_id")
@audit_action("change_role", "user", _user_id)
def change_role(user_id):
    principal = current_principal()
    user = g.target_user
    data = request.get_json(silent=True) or {}

    role = tenant_get(Role, data.get("role_id"), principal.tenant_id)
    if role is None or not role.is_usable:
        raise APIError("Unknown role", status_code=400)

    # Nobody hands out a role at or above their own level
    if role.level >= principal.role_level:
        raise HierarchyViolation(role=principal.role_name, required_level=role.level + 1)

    user.assign_role(role)
    db.session.commit()
    logger.info(f"User {user.id} moved to role {role.name} by {principal.id}")
    return jsonify(user.to_dict())


@users_bp.route("/<user_id>/permissions", methods=["PUT"])
@jwt_required()
@principal_required
@require_permission("users.update.all")
@require_role_level(target_arg="user_id")
@audit_action("update_permissions", "user", _user_id)
def update_permissions(user_id):
    user = g.target_user
    data = request.get_json(silent=True) or {}

    granted = data.get("granted", [])
    revoked = data.get("revoked", [])
    if not isinstance(granted, list) or not isinstance(revoked, list):
        raise APIError("granted and revoked must be lists", status_code=400)

    try:
        user.set_custom_permissions(granted=granted, revoked=revoked)
    except ValueError as e:
        db.session.rollback()
        raise APIError(str(e), status_code=400)

    db.session.commit()
    return jsonify(user.to_dict())


@users_bp.route("/<user_id>/status", methods=["PUT"])
@jwt_required()
@principal_required
@require_permission("users.update.all")
@require_role_level(target_arg="user_id")
@audit_action("change_status", "user", _user_id)
def change_status(user_id):
    principal = current_principal()
    user = g.target_user
    data = request.get_json(silent=True) or {}

    is_active = data.get("is_active")
    if not isinstance(is_active, bool):
        raise APIError("is_active must be a boolean", status_code=400)
    if user.is_archived:
        raise APIError("Archived users cannot be reactivated", status_code=400)

    tenant = db.session.get(Tenant, user.tenant_id)
    if tenant is not None and tenant.owner_id == user.id:
        raise APIError("The tenant owner cannot be deactivated", status_code=400)

    user.set_active(is_active)
    db.session.commit()
    logger.info(f"User {user.id} set active={is_active} by {principal.id}")
    return jsonify(user.to_dict())


@users_bp.route("/<user_id>", methods=["DELETE"])
@jwt_required()
@principal_required
@require_permission("users.delete.all")
@require_role_level(target_arg="user_id")
@audit_action("archive", "user", _user_id)
def archive_user(user_id):
    principal = current_principal()
    user = g.target_user

    if user.id == principal.id:
        raise APIError("You cannot archive yourself", status_code=400)

    tenant = db.session.get(Tenant, user.tenant_id)
    if tenant is not None and tenant.owner_id == user.id:
        raise APIError("The tenant owner cannot be archived", status_code=400)

    user.archive(archived_by=principal.id)
    db.session.commit()
    logger.info(f"User {user.id} archived by {principal.id}")
    return jsonify(user.to_dict())
