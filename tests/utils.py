# tests/utils.py
from flask_jwt_extended import create_access_token

from tenantguard.models import Role


def auth_headers(user):
    """Bearer header for a user, carrying its tenant claim"""
    token = create_access_token(identity=user.id, additional_claims={"tenant_id": user.tenant_id})
    return {"Authorization": f"Bearer {token}"}


def get_role(tenant, name):
    return Role.get_role_by_name(tenant.id, name)
