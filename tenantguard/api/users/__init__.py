from .routes import users_bp

__all__ = ["users_bp"]
