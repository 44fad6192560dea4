import os
from datetime import timedelta
from flask import g, has_request_context
from google.cloud import secretmanager
import logging
from logging.handlers import RotatingFileHandler
import sys


class TenantContextFilter(logging.Filter):
    """Attach the current principal's tenant to every log record"""

    def filter(self, record):
        if not hasattr(record, "tenant_id"):
            record.tenant_id = "NO_TENANT"
            if has_request_context():
                principal = g.get("principal")
                if principal is not None:
                    record.tenant_id = principal.tenant_id
        return True


# Enhanced logging setup
def setup_logging(app_env):
    """Configure logging based on environment"""
    log_level = logging.DEBUG if app_env == "development" else logging.INFO
    log_dir = os.getenv("LOG_DIR", "logs")

    # Create logs directory if it doesn't exist
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    # Configure logging format
    log_format = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - [%(tenant_id)s] - %(message)s"
    )
    tenant_filter = TenantContextFilter()

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(log_format)
    console_handler.addFilter(tenant_filter)

    # File handler
    file_handler = RotatingFileHandler(
        os.path.join(log_dir, "app.log"), maxBytes=10 * 1024 * 1024, backupCount=5  # 10MB
    )
    file_handler.setFormatter(log_format)
    file_handler.addFilter(tenant_filter)

    # Root logger configuration
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Clear existing handlers to prevent duplicates
    root_logger.handlers = []

    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    return root_logger


# Initialize logging
logger = setup_logging(os.getenv("FLASK_ENV", "development"))


def get_secret(secret_id, default_value):
    """Get secret from Secret Manager or return default value"""
    project = os.getenv("GCP_PROJECT")
    if not project:
        return default_value

    try:
        client = secretmanager.SecretManagerServiceClient()
        name = f"projects/{project}/secrets/{secret_id}/versions/latest"
        response = client.access_secret_version(request={"name": name})
        return response.payload.data.decode("UTF-8")
    except Exception as e:
        logger.warning(f"Could not load secret {secret_id}: {e}")
        return default_value


def get_db_url(db_name):
    """Get database URL with connection parameters"""
    user = os.getenv("DB_USER", "postgres")
    password = os.getenv("DB_PASSWORD", "postgres")
    host = os.getenv("DB_HOST", "localhost")
    port = os.getenv("DB_PORT", "5432")

    # Add SSL mode for production
    ssl_mode = "?sslmode=verify-full" if os.getenv("FLASK_ENV") == "production" else ""

    return f"postgresql://{user}:{password}@{host}:{port}/{db_name}{ssl_mode}"


class BaseConfig:
    """Base configuration with shared settings"""

    # Basic configuration
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = True

    # CORS settings
    CORS_ENABLED = True
    CORS_SUPPORTS_CREDENTIALS = True

    # JWT settings
    JWT_TOKEN_LOCATION = ["headers"]
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=15)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=30)

    # Database settings
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_size": 10,
        "pool_timeout": 30,
        "pool_recycle": 1800,
        "max_overflow": 20,
    }

    # Access control
    OWNER_ROLE_NAME = "Owner"
    CUSTOM_ROLE_LEVEL = 10
    SUPER_ADMIN_LEVEL = 1000
    PERMISSION_CACHE_ENABLED = True
    PERMISSION_CACHE_TIMEOUT = 300

    # Caching
    CACHE_TYPE = "SimpleCache"
    CACHE_DEFAULT_TIMEOUT = 300

    # Secrets
    SECRET_KEY = get_secret("tg-flask-secret-key", os.getenv("SECRET_KEY", "dev-secret-key"))
    JWT_SECRET_KEY = get_secret(
        "tg-jwt-secret-key", os.getenv("JWT_SECRET_KEY", "dev-jwt-secret-key")
    )


class DevelopmentConfig(BaseConfig):
    """Development configuration"""

    DEBUG = True
    DEVELOPMENT = True

    # Database
    SQLALCHEMY_DATABASE_URI = get_db_url("tenantguard_dev")
    SQLALCHEMY_ECHO = True

    # CORS - relaxed for development
    CORS_ORIGINS = ["http://localhost:3000"]

    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_size": 5,  # Base number of connections
        "max_overflow": 10,  # Additional connections if needed
        "pool_timeout": 30,  # Seconds to wait for connection
        "pool_recycle": 1800,  # Recycle connections after 30 min
        "pool_pre_ping": True,  # Check connection validity before use
    }


class ProductionConfig(BaseConfig):
    """Production configuration"""

    DEBUG = False
    TESTING = False

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL")
    SQLALCHEMY_ECHO = False

    # CORS
    CORS_ORIGINS = os.getenv("ALLOWED_ORIGINS", "").split(",")

    # Caching, shared between workers so role/override writes invalidate everywhere
    CACHE_TYPE = "RedisCache"
    CACHE_REDIS_URL = os.getenv("REDIS_URL")

    # Monitoring
    SENTRY_DSN = get_secret("sentry-dsn", os.getenv("SENTRY_DSN"))

    PREFERRED_URL_SCHEME = "https"


class TestingConfig(BaseConfig):
    """Testing configuration"""

    TESTING = True
    DEBUG = False

    # Database
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    SQLALCHEMY_ECHO = False

    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-length"
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=1)

    CACHE_TYPE = "SimpleCache"


config_by_name = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
