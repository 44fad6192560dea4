"""create access control tables

Revision ID: 3f9a1c2b7d10
Revises: None
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '3f9a1c2b7d10'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
    ]


def upgrade():
    op.create_table(
        'tenants',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('subdomain', sa.String(100), unique=True, nullable=False),
        sa.Column('settings', sa.JSON()),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('owner_id', sa.String(36)),
        *_timestamps()
    )

    # Global permission catalog
    op.create_table(
        'permissions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('display_name', sa.String(150)),
        sa.Column('description', sa.String(255)),
        sa.Column('module', sa.String(50), nullable=False),
        sa.Column('action', sa.String(20), nullable=False),
        sa.Column('scope', sa.String(10)),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps()
    )
    op.create_index('ix_permissions_name', 'permissions', ['name'], unique=True)
    op.create_index('ix_permissions_module', 'permissions', ['module'])

    op.create_table(
        'roles',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('tenant_id', sa.String(36), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('description', sa.String(255)),
        sa.Column('level', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('is_system_role', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_archived', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        *_timestamps(),
        sa.UniqueConstraint('tenant_id', 'name', name='uq_role_tenant_name')
    )
    op.create_index('ix_roles_tenant_id', 'roles', ['tenant_id'])

    op.create_table(
        'role_permissions',
        sa.Column('role_id', sa.String(36), sa.ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True),
        sa.Column(
            'permission_id', sa.String(36), sa.ForeignKey('permissions.id', ondelete='CASCADE'), primary_key=True
        ),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('tenant_id', sa.String(36), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('email', sa.String(255), unique=True, nullable=False),
        sa.Column('name', sa.String(150)),
        sa.Column('password_hash', sa.String(255)),
        sa.Column('role_id', sa.String(36), sa.ForeignKey('roles.id')),
        sa.Column('role_type', sa.String(20), nullable=False, server_default='custom'),
        sa.Column('is_super_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_archived', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('archived_at', sa.DateTime()),
        sa.Column('archived_by', sa.String(36)),
        sa.Column('last_login', sa.DateTime()),
        sa.Column('overrides_version', sa.Integer(), nullable=False, server_default='1'),
        *_timestamps()
    )
    op.create_index('ix_users_tenant_id', 'users', ['tenant_id'])

    op.create_table(
        'user_permission_overrides',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'permission_id', sa.String(36), sa.ForeignKey('permissions.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column('effect', sa.String(10), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'permission_id', name='uq_override_user_permission')
    )
    op.create_index('ix_user_permission_overrides_user_id', 'user_permission_overrides', ['user_id'])


def downgrade():
    op.drop_table('user_permission_overrides')
    op.drop_table('users')
    op.drop_table('role_permissions')
    op.drop_table('roles')
    op.drop_table('permissions')
    op.drop_table('tenants')
