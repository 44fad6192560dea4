# tests/unit/test_commands.py
from sqlalchemy import select

from tenantguard.extensions import db
from tenantguard.core.constants import DEFAULT_PERMISSIONS
from tenantguard.models import Tenant


def test_seed_permissions_command(app):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["seed-permissions"])
    assert result.exit_code == 0
    assert f"Seeded {len(DEFAULT_PERMISSIONS)} permissions" in result.output

    result = runner.invoke(args=["seed-permissions"])
    assert "Seeded 0 permissions" in result.output


def test_create_tenant_command(app, catalog):
    result = app.test_cli_runner().invoke(
        args=[
            "create-tenant",
            "--name", "Initech",
            "--subdomain", "initech",
            "--owner-email", "bill@initech.test",
            "--owner-password", "tps-report",
        ]
    )
    assert result.exit_code == 0, result.output
    assert "bill@initech.test" in result.output

    tenant = db.session.execute(select(Tenant).where(Tenant.subdomain == "initech")).scalar_one()
    assert tenant.owner_id is not None
