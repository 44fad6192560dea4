# tenantguard/api/permissions/routes.py
from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required
from sqlalchemy import select

from tenantguard.extensions import db
from tenantguard.models import Permission
from tenantguard.core.middleware import principal_required
from tenantguard.core.permissions import require_permission

permissions_bp = Blueprint("permissions", __name__)


@permissions_bp.route("", methods=["GET"])
@jwt_required()
@principal_required
@require_permission("roles.read")
def list_permissions():
    """Active catalog, flat and grouped by module"""
    stmt = (
        select(Permission)
        .where(Permission.is_active.is_(True))
        .order_by(Permission.module, Permission.name)
    )
    permissions = db.session.execute(stmt).scalars().all()

    grouped = {}
    for permission in permissions:
        grouped.setdefault(permission.module, []).append(permission.to_dict())

    return jsonify({"permissions": [p.to_dict() for p in permissions], "modules": grouped})
