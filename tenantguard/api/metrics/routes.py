# tenantguard/api/metrics/routes.py
from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required

from tenantguard.core.metrics import get_current_metrics
from tenantguard.core.middleware import principal_required
from tenantguard.core.permissions import require_permission

metrics_bp = Blueprint("metrics", __name__)


@metrics_bp.route("", methods=["GET"])
@jwt_required()
@principal_required
@require_permission("reports.read.all")
def get_metrics():
    """Authorization decision counters"""
    return jsonify(get_current_metrics())
