"""initial package manager schema

Revision ID: 3f9c2a71d0b4
Revises:
Create Date: 2026-10-19 10:12:44.118302

"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = '3f9c2a71d0b4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'packages',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('package_id', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('version', sa.String(length=50), nullable=False),
        sa.Column('icon', sa.String(length=100), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('service_url', sa.String(length=1024), nullable=False),
        sa.Column('port', sa.Integer(), nullable=False),
        sa.Column('base_path', sa.String(length=255), nullable=False),
        sa.Column('health_endpoint', sa.String(length=255), nullable=False),
        sa.Column('manifest_endpoint', sa.String(length=255), nullable=False),
        sa.Column('required_integrations', sa.JSON(), nullable=False),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('features', sa.JSON(), nullable=False),
        sa.Column('screenshots', sa.JSON(), nullable=False),
        sa.Column('author', sa.String(length=255), nullable=False),
        sa.Column('documentation', sa.String(length=1024), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_packages_package_id'), 'packages', ['package_id'], unique=True)

    op.create_table(
        'platform_integrations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('integration_id', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('provider', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('icon', sa.String(length=100), nullable=False),
        sa.Column('category', sa.String(length=20), nullable=False),
        sa.Column('config', sa.JSON(), nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False),
        sa.Column('used_by_packages', sa.JSON(), nullable=False),
        sa.Column('updated_by', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        op.f('ix_platform_integrations_integration_id'),
        'platform_integrations',
        ['integration_id'],
        unique=True,
    )

    op.create_table(
        'package_installations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('package_id', sa.String(length=100), nullable=False),
        sa.Column('tenant_id', sa.String(length=100), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('config', sa.JSON(), nullable=False),
        sa.Column('enabled_features', sa.JSON(), nullable=False),
        sa.Column('installed_by', sa.String(length=255), nullable=False),
        sa.Column('last_health_check', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_health_status', sa.String(length=20), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('installed_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['package_id'], ['packages.package_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('package_id', 'tenant_id', name='uix_installation_package_tenant'),
    )
    op.create_index(
        op.f('ix_package_installations_package_id'), 'package_installations', ['package_id'], unique=False
    )
    op.create_index(
        op.f('ix_package_installations_tenant_id'), 'package_installations', ['tenant_id'], unique=False
    )
    # NULL tenant_id is the org-wide scope; the composite constraint above treats NULLs as distinct
    op.create_index(
        'uix_installation_package_org',
        'package_installations',
        ['package_id'],
        unique=True,
        postgresql_where=sa.text('tenant_id IS NULL'),
    )


def downgrade() -> None:
    op.drop_index('uix_installation_package_org', table_name='package_installations')
    op.drop_index(op.f('ix_package_installations_tenant_id'), table_name='package_installations')
    op.drop_index(op.f('ix_package_installations_package_id'), table_name='package_installations')
    op.drop_table('package_installations')
    op.drop_index(op.f('ix_platform_integrations_integration_id'), table_name='platform_integrations')
    op.drop_table('platform_integrations')
    op.drop_index(op.f('ix_packages_package_id'), table_name='packages')
    op.drop_table('packages')
