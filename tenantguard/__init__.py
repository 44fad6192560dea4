# tenantguard/__init__.py
import logging

from flask import Flask, g, jsonify
from werkzeug.exceptions import HTTPException

from .extensions import init_extensions, jwt
from .config import config_by_name
from .core.errors import register_error_handlers
from .core.monitoring import init_sentry
from .core.registry import registry
from .core.security import register_jwt_handlers
from .core.tenancy import init_tenant_isolation

logger = logging.getLogger(__name__)


def create_app(config_name="development"):
    app = Flask(__name__)

    # Load config
    app.config.from_object(config_by_name[config_name])

    # Initialize extensions
    init_extensions(app)
    register_jwt_handlers(jwt)
    init_tenant_isolation()
    init_sentry(app)

    from .models import register_resources

    register_resources(registry)

    # Register error handlers
    register_error_handlers(app)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return jsonify({"code": error.name.upper().replace(" ", "_"), "message": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_exception(error):
        logger.error(f"Unhandled Exception: {str(error)}", exc_info=True)
        return jsonify({"code": "INTERNAL_ERROR", "message": "Internal server error"}), 500

    # g survives between requests that share an app context, e.g. in tests
    @app.before_request
    def reset_request_context():
        for name in ("principal", "tenant_id", "current_user", "resource", "target_user"):
            g.pop(name, None)

    # Register blueprints
    from .api.auth import auth_bp
    from .api.events import events_bp
    from .api.metrics import metrics_bp
    from .api.permissions import permissions_bp
    from .api.roles import roles_bp
    from .api.tenant import admin_bp, tenant_bp
    from .api.users import users_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(permissions_bp, url_prefix="/api/permissions")
    app.register_blueprint(roles_bp, url_prefix="/api/roles")
    app.register_blueprint(users_bp, url_prefix="/api/users")
    app.register_blueprint(events_bp, url_prefix="/api/events")
    app.register_blueprint(tenant_bp, url_prefix="/api/tenant")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")
    app.register_blueprint(metrics_bp, url_prefix="/api/metrics")

    from .commands import register_commands

    register_commands(app)

    logger.info(f"Registered {len(list(app.url_map.iter_rules()))} routes")
    return app
