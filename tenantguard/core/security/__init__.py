# tenantguard/core/security/__init__.py
import logging
from typing import Optional

from flask import jsonify
from flask_jwt_extended import create_access_token, get_jwt, get_jwt_identity
from werkzeug.security import check_password_hash, generate_password_hash

logger = logging.getLogger(__name__)


class SecurityMixin:
    @property
    def password(self):
        raise AttributeError("password is not a readable attribute")

    @password.setter
    def password(self, password):
        self.password_hash = generate_password_hash(password)

    def verify_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def generate_token(self):
        return create_access_token(identity=self.id, additional_claims={"tenant_id": self.tenant_id})


def get_current_user_id() -> Optional[str]:
    """User id of the verified JWT; only valid after jwt_required"""
    user_id = get_jwt_identity()
    return str(user_id) if user_id else None


def get_token_tenant_id() -> Optional[str]:
    return get_jwt().get("tenant_id")


def _unauthorized(message):
    return jsonify({"code": "UNAUTHORIZED", "message": message}), 401


def register_jwt_handlers(jwt):
    """Render every token failure with the same body as a missing principal"""

    @jwt.unauthorized_loader
    def missing_token(reason):
        logger.info(f"Missing token: {reason}")
        return _unauthorized("Authentication required")

    @jwt.invalid_token_loader
    def invalid_token(reason):
        logger.info(f"Invalid token: {reason}")
        return _unauthorized("Authentication required")

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return _unauthorized("Token has expired")


__all__ = [
    "SecurityMixin",
    "get_current_user_id",
    "get_token_tenant_id",
    "register_jwt_handlers",
]
