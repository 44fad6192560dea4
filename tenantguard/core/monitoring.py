# tenantguard/core/monitoring.py

from flask import g, has_request_context, request
import sentry_sdk
from sentry_sdk.integrations.flask import FlaskIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.integrations.redis import RedisIntegration


def should_capture_error(exception):
    """Authorization outcomes are expected; only 5xx and unknown errors are reported"""
    status_code = getattr(exception, "status_code", None)
    if status_code is not None and status_code < 500:
        return False
    return True


def before_send(event, hint):
    """Process and filter events before sending to Sentry"""
    exc_info = hint.get("exc_info")
    if exc_info and not should_capture_error(exc_info[1]):
        return None

    if has_request_context():
        principal = g.get("principal")
        if principal is not None:
            event.setdefault("tags", {})
            event["tags"]["tenant_id"] = principal.tenant_id
            event["user"] = {"id": principal.id, "tenant_id": principal.tenant_id}

        event.setdefault("request", {})
        event["request"]["url"] = request.url
        event["request"]["method"] = request.method

    return event


def init_sentry(app):
    """Initialize Sentry when a DSN is configured"""
    if not app.config.get("SENTRY_DSN"):
        app.logger.info("SENTRY_DSN not configured, skipping Sentry initialization")
        return False

    sentry_sdk.init(
        dsn=app.config["SENTRY_DSN"],
        integrations=[
            FlaskIntegration(transaction_style="url"),
            SqlalchemyIntegration(),
            RedisIntegration(),
        ],
        before_send=before_send,
        traces_sample_rate=0.01,
        environment=app.config.get("FLASK_ENV", "production"),
        max_breadcrumbs=20,
        send_default_pii=False,
    )
    return True
