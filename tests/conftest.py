# conftest.py
from uuid import uuid4

import pytest

from tenantguard import create_app
from tenantguard.extensions import cache, db
from tenantguard.core.catalog import PermissionCatalog
from tenantguard.core.metrics import metrics
from tenantguard.core.tenancy import tenant_get
from tenantguard.models import Role, User, onboard_tenant


@pytest.fixture
def app():
    """Fresh app and in-memory database per test"""
    app = create_app("testing")

    with app.app_context():
        db.create_all()
        cache.clear()
        metrics.reset()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def catalog(app):
    """Seed the default permission catalog"""
    PermissionCatalog.seed()
    return PermissionCatalog.current()


@pytest.fixture
def acme(catalog):
    tenant, _ = onboard_tenant("Acme Events", "acme", "owner@acme.test", "Acme Owner", "password123")
    return tenant


@pytest.fixture
def globex(catalog):
    tenant, _ = onboard_tenant("Globex", "globex", "owner@globex.test", "Globex Owner", "password123")
    return tenant


@pytest.fixture
def acme_owner(acme):
    return tenant_get(User, acme.owner_id, acme.id)


@pytest.fixture
def make_role():
    def _make_role(tenant, name, level, permissions=()):
        role = Role(tenant_id=tenant.id, name=name, level=level)
        role.set_permissions(permissions)
        db.session.add(role)
        db.session.commit()
        return role

    return _make_role


@pytest.fixture
def make_user():
    def _make_user(tenant, role, email=None, granted=(), revoked=(), **kwargs):
        user = User(
            tenant_id=tenant.id,
            email=email or f"user-{uuid4().hex[:8]}@example.com",
            name=kwargs.pop("name", "Test User"),
            **kwargs,
        )
        user.password = "password123"
        if role is not None:
            user.assign_role(role)
        if granted or revoked:
            user.set_custom_permissions(granted=granted, revoked=revoked)
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user

