# tenantguard/api/auth/routes.py
import logging

from flask import Blueprint, g, jsonify, request
from flask_jwt_extended import jwt_required
from sqlalchemy import select

from tenantguard.extensions import db
from tenantguard.models import Tenant, User
from tenantguard.core.errors import APIError
from tenantguard.core.middleware import principal_required
from tenantguard.core.permissions import current_principal
from tenantguard.core.tenancy import unscoped

logger = logging.getLogger(__name__)
auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True)
    if not data or not data.get("email") or not data.get("password"):
        raise APIError("Missing email or password", status_code=400)

    # Email is unique across tenants; the tenant is taken from the user row
    user = db.session.execute(
        unscoped(select(User).where(User.email == data["email"]), "login lookup by email")
    ).scalar_one_or_none()

    if not user or not user.verify_password(data["password"]):
        logger.info(f"Failed login for {data['email']}")
        raise APIError("Invalid email or password", status_code=401)

    if not user.is_active or user.is_archived:
        raise APIError("Account is inactive", status_code=401)

    tenant = db.session.get(Tenant, user.tenant_id)
    if tenant is None or not tenant.is_active:
        raise APIError("Tenant is inactive", status_code=401)

    user.update_last_login()
    token = user.generate_token()
    logger.info(f"User {user.id} logged in to tenant {tenant.subdomain}")

    return jsonify({"token": token, "user": user.to_dict(), "tenant": tenant.to_dict()})


@auth_bp.route("/me", methods=["GET"])
@jwt_required()
@principal_required
def get_current_user():
    principal = current_principal()
    return jsonify({"user": g.current_user.to_dict(), "principal": principal.to_dict()})
