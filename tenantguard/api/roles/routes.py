# tenantguard/api/roles/routes.py
import logging

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from tenantguard.extensions import db
from tenantguard.models import Role, User
from tenantguard.core.audit import audit_action
from tenantguard.core.errors import APIError
from tenantguard.core.exceptions import (
    HierarchyViolation,
    ProtectedRole,
    ResourceNotFound,
    RoleInUse,
)
from tenantguard.core.middleware import principal_required
from tenantguard.core.permissions import current_principal, require_permission
from tenantguard.core.tenancy import tenant_get, tenant_select

logger = logging.getLogger(__name__)
roles_bp = Blueprint("roles", __name__)


def _get_role_or_404(role_id, tenant_id):
    role = tenant_get(Role, role_id, tenant_id)
    if role is None:
        raise ResourceNotFound()
    return role


def _require_outranks(principal, level):
    """Roles at or above the caller's own level are out of reach"""
    if principal.role_level is None or principal.role_level <= level:
        raise HierarchyViolation(role=principal.role_name, required_level=level + 1)


def _parse_level(value):
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise APIError("level must be a non-negative integer", status_code=400)
    return value


def _name_taken(tenant_id, name, exclude_id=None):
    existing = Role.get_role_by_name(tenant_id, name)
    return existing is not None and existing.id != exclude_id


@roles_bp.route("", methods=["GET"])
@jwt_required()
@principal_required
@require_permission("roles.read")
def list_roles():
    principal = current_principal()
    stmt = (
        tenant_select(Role, principal.tenant_id)
        .where(Role.is_archived.is_(False))
        .order_by(Role.level.desc(), Role.name)
    )
    roles = db.session.execute(stmt).scalars().all()
    return jsonify({"roles": [role.to_dict() for role in roles]})


@roles_bp.route("/<role_id>", methods=["GET"])
@jwt_required()
@principal_required
@require_permission("roles.read")
def get_role(role_id):
    role = _get_role_or_404(role_id, current_principal().tenant_id)
    return jsonify(role.to_dict())


@roles_bp.route("", methods=["POST"])
@jwt_required()
@principal_required
@require_permission("roles.create")
@audit_action("create", "role", lambda kwargs, body: body.get("id"))
def create_role():
    principal = current_principal()
    data = request.get_json(silent=True) or {}

    name = (data.get("name") or "").strip()
    if not name:
        raise APIError("Role name is required", status_code=400)
    if _name_taken(principal.tenant_id, name):
        raise APIError(f"Role {name} already exists", status_code=400)

    level = _parse_level(data.get("level", current_app.config["CUSTOM_ROLE_LEVEL"]))
    _require_outranks(principal, level)

    role = Role(
        tenant_id=principal.tenant_id,
        name=name,
        description=data.get("description"),
        level=level,
        is_system_role=False,
    )
    try:
        role.set_permissions(data.get("permissions", []))
    except ValueError as e:
        raise APIError(str(e), status_code=400)

    db.session.add(role)
    db.session.commit()
    logger.info(f"Role {role.name} created in tenant {principal.tenant_id} by {principal.id}")
    return jsonify(role.to_dict()), 201


@roles_bp.route("/<role_id>", methods=["PUT"])
@jwt_required()
@principal_required
@require_permission("roles.update")
@audit_action("update", "role", lambda kwargs, body: kwargs.get("role_id"))
def update_role(role_id):
    principal = current_principal()
    role = _get_role_or_404(role_id, principal.tenant_id)
    data = request.get_json(silent=True) or {}

    if role.is_system_role and role.name == current_app.config["OWNER_ROLE_NAME"]:
        raise ProtectedRole("The owner role cannot be modified", role=principal.role_name)
    _require_outranks(principal, role.level)

    if "name" in data and data["name"] != role.name:
        name = (data["name"] or "").strip()
        if role.is_system_role:
            raise ProtectedRole("System roles cannot be renamed", role=principal.role_name)
        if not name:
            raise APIError("Role name is required", status_code=400)
        if _name_taken(principal.tenant_id, name, exclude_id=role.id):
            raise APIError(f"Role {name} already exists", status_code=400)
        role.name = name

    if "description" in data:
        role.description = data["description"]

    if "level" in data:
        level = _parse_level(data["level"])
        _require_outranks(principal, level)
        role.level = level

    if "is_active" in data and bool(data["is_active"]) != role.is_active:
        role.is_active = bool(data["is_active"])
        role.bump_version()

    if "permissions" in data:
        try:
            role.set_permissions(data["permissions"])
        except ValueError as e:
            raise APIError(str(e), status_code=400)

    db.session.commit()
    return jsonify(role.to_dict())


@roles_bp.route("/<role_id>", methods=["DELETE"])
@jwt_required()
@principal_required
@require_permission("roles.delete")
@audit_action("archive", "role", lambda kwargs, body: kwargs.get("role_id"))
def delete_role(role_id):
    principal = current_principal()
    role = _get_role_or_404(role_id, principal.tenant_id)

    if role.is_system_role:
        raise ProtectedRole("System roles cannot be deleted", role=principal.role_name)
    _require_outranks(principal, role.level)

    assigned = db.session.execute(
        tenant_select(User, principal.tenant_id)
        .where(User.role_id == role.id, User.is_archived.is_(False))
        .limit(1)
    ).scalar_one_or_none()
    if assigned is not None:
        raise RoleInUse()

    role.archive()
    db.session.commit()
    logger.info(f"Role {role.name} archived in tenant {principal.tenant_id} by {principal.id}")
    return jsonify(role.to_dict())
