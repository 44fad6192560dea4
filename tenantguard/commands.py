# tenantguard/commands.py
import click
from flask.cli import with_appcontext

from .core.catalog import PermissionCatalog
from .models import onboard_tenant


@click.command("seed-permissions")
@with_appcontext
def seed_permissions_command():
    """Insert missing entries of the default permission catalog."""
    created = PermissionCatalog.seed()
    click.echo(f"Seeded {created} permissions")


@click.command("create-tenant")
@click.option("--name", required=True)
@click.option("--subdomain", required=True)
@click.option("--owner-email", required=True)
@click.option("--owner-name", default=None)
@click.option("--owner-password", prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_tenant_command(name, subdomain, owner_email, owner_name, owner_password):
    """Onboard a tenant with its default roles and owner account."""
    tenant, owner = onboard_tenant(name, subdomain, owner_email, owner_name, owner_password)
    click.echo(f"Created tenant {tenant.subdomain} ({tenant.id}) owned by {owner.email}")


def register_commands(app):
    app.cli.add_command(seed_permissions_command)
    app.cli.add_command(create_tenant_command)
