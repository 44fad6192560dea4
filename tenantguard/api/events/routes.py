# tenantguard/api/events/routes.py
import logging

from flask import Blueprint, g, jsonify, request
from flask_jwt_extended import jwt_required

from tenantguard.extensions import db
from tenantguard.models import Event
from tenantguard.core.access import authorize
from tenantguard.core.errors import APIError
from tenantguard.core.metrics import metrics
from tenantguard.core.middleware import principal_required
from tenantguard.core.permissions import current_principal, require_ownership, require_permission
from tenantguard.core.registry import registry
from tenantguard.core.tenancy import tenant_select

logger = logging.getLogger(__name__)
events_bp = Blueprint("events", __name__)


@events_bp.route("", methods=["GET"])
@jwt_required()
@principal_required
def list_events():
    """All events with events.read.all, only the caller's own with events.read.own"""
    principal = current_principal()
    event_type = registry.get("event")
    model = event_type.model
    stmt = tenant_select(model, principal.tenant_id).order_by(model.created_at)

    decision = authorize(principal, event_type.permission("read", "all"), principal.tenant_id)
    if not decision.allowed:
        own = authorize(principal, event_type.permission("read", "own"), principal.tenant_id)
        if not own.allowed:
            metrics.track_decision(decision)
            decision.enforce()
        decision = own
        stmt = stmt.where(getattr(model, event_type.ownership_field) == principal.id)
    metrics.track_decision(decision)

    events = db.session.execute(stmt).scalars().all()
    return jsonify({"events": [event.to_dict() for event in events]})


@events_bp.route("", methods=["POST"])
@jwt_required()
@principal_required
@require_permission("events.create")
def create_event():
    data = request.get_json(silent=True) or {}
    if not data.get("title"):
        raise APIError("title is required", status_code=400)

    event = Event.create_for(current_principal(), title=data["title"])
    return jsonify(event.to_dict()), 201


@events_bp.route("/<event_id>", methods=["GET"])
@jwt_required()
@principal_required
@require_ownership("event", action="read", id_arg="event_id")
def get_event(event_id):
    return jsonify(g.resource.to_dict())


@events_bp.route("/<event_id>", methods=["PUT"])
@jwt_required()
@principal_required
@require_ownership("event", action="update", id_arg="event_id")
def update_event(event_id):
    event = g.resource
    data = request.get_json(silent=True) or {}
    if "title" in data:
        if not data["title"]:
            raise APIError("title is required", status_code=400)
        event.title = data["title"]
    db.session.commit()
    return jsonify(event.to_dict())


@events_bp.route("/<event_id>", methods=["DELETE"])
@jwt_required()
@principal_required
@require_ownership("event", action="delete", id_arg="event_id")
def delete_event(event_id):
    db.session.delete(g.resource)
    db.session.commit()
    logger.info(f"Event {event_id} deleted by {current_principal().id}")
    return jsonify({"message": "Event deleted"})
