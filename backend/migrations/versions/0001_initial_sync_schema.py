"""initial sync schema

Revision ID: s0001sync
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates one table per synced collection plus the id sequence table:
- merchants, bills, inventory, supply, production, products,
  bill_of_materials: merchant-scoped, primary key (id, mid)
- registrations: global, unique hostname, unique server-issued mid
- sync_sequences: next server-assigned id per (collection, mid)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 's0001sync'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def _scoped_identity():
    return [
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=False),
        sa.Column('mid', sa.Integer(), nullable=False, autoincrement=False),
    ]


def upgrade():
    """
    Every merchant-scoped natural key carries a unique constraint that
    includes mid; the upsert engine relies on it to detect lost insert races.
    """

    # ============================================================================
    # merchants: named business units under a tenant
    # ============================================================================
    op.create_table(
        'merchants',
        *_scoped_identity(),
        sa.Column('name', sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', 'mid'),
        sa.UniqueConstraint('name', 'mid', name='uq_merchants_name_mid'),
    )

    # ============================================================================
    # bills: opaque sale documents, unique only on (id, mid)
    # ============================================================================
    op.create_table(
        'bills',
        *_scoped_identity(),
        sa.Column('bill_number', sa.String(length=64), nullable=True),
        sa.Column('data', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', 'mid'),
    )
    op.create_index('ix_bills_bill_number', 'bills', ['bill_number'])

    # ============================================================================
    # inventory: one count per (merchant_name, date, mid)
    # ============================================================================
    op.create_table(
        'inventory',
        *_scoped_identity(),
        sa.Column('merchant_name', sa.String(length=255), nullable=False),
        sa.Column('date', sa.String(length=32), nullable=False),
        sa.Column('data', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', 'mid'),
        sa.UniqueConstraint('merchant_name', 'date', 'mid', name='uq_inventory_merchant_date_mid'),
    )

    op.create_table(
        'supply',
        *_scoped_identity(),
        sa.Column('name', sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', 'mid'),
        sa.UniqueConstraint('name', 'mid', name='uq_supply_name_mid'),
    )

    op.create_table(
        'production',
        *_scoped_identity(),
        sa.Column('date', sa.String(length=32), nullable=False),
        sa.Column('data', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', 'mid'),
        sa.UniqueConstraint('date', 'mid', name='uq_production_date_mid'),
    )

    op.create_table(
        'products',
        *_scoped_identity(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('list_price', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('wholesale_price', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('sale_price', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('unit', sa.String(length=32), nullable=False, server_default='unit'),
        sa.Column('discount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('tax_rate', sa.Numeric(6, 2), nullable=False, server_default='0'),
        sa.Column('effective_date', sa.String(length=32), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', 'mid'),
        sa.UniqueConstraint('name', 'mid', name='uq_products_name_mid'),
    )

    op.create_table(
        'bill_of_materials',
        *_scoped_identity(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('effective_date', sa.String(length=32), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', 'mid'),
        sa.UniqueConstraint('name', 'mid', name='uq_bill_of_materials_name_mid'),
    )

    # ============================================================================
    # registrations: global terminal registry; issues merchant ids
    # ============================================================================
    op.create_table(
        'registrations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('hostname', sa.String(length=255), nullable=False),
        sa.Column('mid', sa.Integer(), nullable=False),
        sa.Column('edit_password', sa.String(length=64), nullable=False),
        sa.Column('business_name', sa.String(length=255), nullable=True),
        sa.Column('owner_name', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('city', sa.String(length=120), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('inventory_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('supply_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('production_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('bom_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('multi_merchant_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_registrations_hostname', 'registrations', ['hostname'], unique=True)
    op.create_index('ix_registrations_mid', 'registrations', ['mid'], unique=True)

    op.create_table(
        'sync_sequences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('collection', sa.String(length=32), nullable=False),
        sa.Column('scope_mid', sa.Integer(), nullable=False),
        sa.Column('next_id', sa.BigInteger(), nullable=False, server_default='1'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('collection', 'scope_mid', name='uq_sync_sequences_collection_mid'),
        sqlite_autoincrement=True
    )


def downgrade():
    """Drop all tables (destructive operation)."""
    op.drop_table('sync_sequences')
    op.drop_index('ix_registrations_mid', table_name='registrations')
    op.drop_index('ix_registrations_hostname', table_name='registrations')
    op.drop_table('registrations')
    op.drop_table('bill_of_materials')
    op.drop_table('products')
    op.drop_table('production')
    op.drop_table('supply')
    op.drop_table('inventory')
    op.drop_index('ix_bills_bill_number', table_name='bills')
    op.drop_table('bills')
    op.drop_table('merchants')
