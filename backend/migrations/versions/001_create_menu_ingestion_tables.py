"""Create menu catalog and menu ingestion tables

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _uuid(name, nullable=False, **kwargs):
    return sa.Column(name, postgresql.UUID(as_uuid=True), nullable=nullable, **kwargs)


def _jsonb(name, nullable=False, default="'{}'::jsonb"):
    return sa.Column(
        name,
        postgresql.JSONB(astext_type=sa.Text()),
        nullable=nullable,
        server_default=sa.text(default) if default else None,
    )


def _timestamp(name):
    return sa.Column(name, sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False)


def upgrade():
    """Create tenancy lookups, live catalog, ingestion and staging tables."""

    op.create_table(
        'location',
        _uuid('id', server_default=sa.text('gen_random_uuid()')),
        _uuid('tenant_id'),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('currency', sa.String(3), nullable=True, comment='ISO 4217 default for menus'),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_location_tenant_id', 'location', ['tenant_id'])

    op.create_table(
        'staff_role',
        _uuid('id', server_default=sa.text('gen_random_uuid()')),
        _uuid('user_id'),
        _uuid('tenant_id'),
        sa.Column('role', sa.Text(), nullable=False),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("role IN ('owner', 'manager', 'admin', 'support')", name='ck_staff_role_role'),
    )
    op.create_index('ix_staff_role_user_tenant', 'staff_role', ['user_id', 'tenant_id'])

    # Live catalog
    op.create_table(
        'menu',
        _uuid('id', server_default=sa.text('gen_random_uuid()')),
        _uuid('tenant_id'),
        _uuid('location_id'),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['location_id'], ['location.id'], ondelete='RESTRICT'),
    )
    op.create_index('ix_menu_tenant_location', 'menu', ['tenant_id', 'location_id'])

    op.create_table(
        'menu_category',
        _uuid('id', server_default=sa.text('gen_random_uuid()')),
        _uuid('menu_id'),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['menu_id'], ['menu.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_menu_category_menu_id', 'menu_category', ['menu_id'])

    op.create_table(
        'menu_item',
        _uuid('id', server_default=sa.text('gen_random_uuid()')),
        _uuid('menu_id'),
        _uuid('category_id'),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price_cents', sa.Integer(), nullable=True),
        sa.Column('currency', sa.String(3), nullable=True),
        _jsonb('allergens', default="'[]'::jsonb"),
        _jsonb('tags', default="'[]'::jsonb"),
        sa.Column('is_alcohol', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('media_url', sa.Text(), nullable=True),
        _jsonb('embedding', nullable=True, default=None),
        sa.Column('embedding_model', sa.Text(), nullable=True),
        sa.Column('embedding_text_hash', sa.Text(), nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['menu_id'], ['menu.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['category_id'], ['menu_category.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_menu_item_menu_id', 'menu_item', ['menu_id'])
    op.create_index('ix_menu_item_category_id', 'menu_item', ['category_id'])

    # Ingestion pipeline
    op.create_table(
        'menu_ingestion',
        _uuid('id', server_default=sa.text('gen_random_uuid()')),
        _uuid('tenant_id'),
        _uuid('location_id'),
        _uuid('uploaded_by', nullable=True),
        sa.Column('original_filename', sa.Text(), nullable=True),
        sa.Column('storage_path', sa.Text(), nullable=False),
        sa.Column('file_mime', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False, server_default='uploaded'),
        sa.Column('currency', sa.String(3), nullable=True),
        _jsonb('metadata_json'),
        _jsonb('errors_json', default="'[]'::jsonb"),
        sa.Column('items_count', sa.Integer(), nullable=True),
        sa.Column('pages_processed', sa.Integer(), nullable=True),
        sa.Column('raw_text', sa.Text(), nullable=True),
        _jsonb('structured_json', nullable=True, default=None),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['location_id'], ['location.id'], ondelete='RESTRICT'),
        sa.CheckConstraint(
            "status IN ('uploaded', 'processing', 'awaiting_review', 'published', 'failed')",
            name='ck_menu_ingestion_status',
        ),
    )
    op.create_index('ix_menu_ingestion_tenant_id', 'menu_ingestion', ['tenant_id'])
    op.create_index('ix_menu_ingestion_location_status', 'menu_ingestion', ['location_id', 'status'])

    op.create_table(
        'menu_item_staging',
        _uuid('id', server_default=sa.text('gen_random_uuid()')),
        _uuid('ingestion_id'),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('category_name', sa.Text(), nullable=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price_cents', sa.Integer(), nullable=True),
        sa.Column('currency', sa.String(3), nullable=True),
        _jsonb('allergens', default="'[]'::jsonb"),
        _jsonb('tags', default="'[]'::jsonb"),
        sa.Column('is_alcohol', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('confidence', sa.Numeric(4, 3), nullable=True),
        sa.Column('media_url', sa.Text(), nullable=True),
        _jsonb('flags'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['ingestion_id'], ['menu_ingestion.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_menu_item_staging_ingestion_id', 'menu_item_staging', ['ingestion_id'])

    # Append-only lifecycle log
    op.create_table(
        'ingestion_event',
        _uuid('id', server_default=sa.text('gen_random_uuid()')),
        _uuid('ingestion_id'),
        _uuid('tenant_id'),
        _uuid('location_id'),
        sa.Column('event', sa.Text(), nullable=False),
        _jsonb('payload_json'),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_ingestion_event_ingestion_id', 'ingestion_event', ['ingestion_id'])
    op.create_index('ix_ingestion_event_tenant_created_at', 'ingestion_event', ['tenant_id', 'created_at'])


def downgrade():
    """Drop all menu pipeline tables."""
    op.drop_table('ingestion_event')
    op.drop_table('menu_item_staging')
    op.drop_table('menu_ingestion')
    op.drop_table('menu_item')
    op.drop_table('menu_category')
    op.drop_table('menu')
    op.drop_table('staff_role')
    op.drop_table('location')
