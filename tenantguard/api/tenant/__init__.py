from .routes import admin_bp, tenant_bp

__all__ = ["admin_bp", "tenant_bp"]
