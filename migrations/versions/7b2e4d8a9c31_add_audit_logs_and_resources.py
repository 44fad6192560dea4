"""add audit logs and ownable resources

Revision ID: 7b2e4d8a9c31
Revises: 3f9a1c2b7d10
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '7b2e4d8a9c31'
down_revision = '3f9a1c2b7d10'
branch_labels = None
depends_on = None


def _resource_columns():
    return [
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('tenant_id', sa.String(36), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('created_by', sa.String(36)),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
    ]


def upgrade():
    op.create_table(
        'audit_logs',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('tenant_id', sa.String(36), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('actor_id', sa.String(36)),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.String(36)),
        sa.Column('changes', sa.JSON()),
        sa.Column('event_metadata', sa.JSON()),
        sa.Column('ip_address', sa.String(45)),
        sa.Column('user_agent', sa.String(255)),
        sa.Column('endpoint', sa.String(255)),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
    )
    op.create_index('idx_audit_logs_tenant_timestamp', 'audit_logs', ['tenant_id', 'timestamp'])

    op.create_table(
        'events',
        *_resource_columns(),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('starts_at', sa.DateTime()),
    )
    op.create_table(
        'payments',
        *_resource_columns(),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(3)),
    )
    op.create_table(
        'tasks',
        *_resource_columns(),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('assigned_to', sa.String(36)),
        sa.Column('is_done', sa.Boolean()),
    )

    for table in ('events', 'payments', 'tasks'):
        op.create_index(f'ix_{table}_tenant_id', table, ['tenant_id'])
        op.create_index(f'ix_{table}_created_by', table, ['created_by'])
    op.create_index('ix_tasks_assigned_to', 'tasks', ['assigned_to'])


def downgrade():
    op.drop_table('tasks')
    op.drop_table('payments')
    op.drop_table('events')
    op.drop_index('idx_audit_logs_tenant_timestamp', table_name='audit_logs')
    op.drop_table('audit_logs')
