"""initial billing schema

Revision ID: b1l2l3i4n5g6
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the complete billing schema from scratch:
- counters: named monotonic sequences (productId, billNumber)
- products: catalog with stored stock (never negative)
- bills / bill_items: append-only bills with price/name snapshots
- contacts: one row per mobile number
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b1l2l3i4n5g6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # counters: atomic sequences, incremented in place
    # ============================================================================
    op.create_table(
        'counters',
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('seq', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('seq >= 0', name='ck_counters_seq_non_negative'),
        sa.PrimaryKeyConstraint('name'),
    )

    # ============================================================================
    # products: ids come from the productId counter, not autoincrement
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('localized_name', sa.String(length=255), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('min_stock_level', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
        sa.CheckConstraint('price_cents >= 0', name='ck_products_price_non_negative'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_products_stock_level', 'products', ['stock', 'min_stock_level'])

    # ============================================================================
    # bills: immutable once written
    # ============================================================================
    op.create_table(
        'bills',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('bill_number', sa.String(length=32), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('mobile_number', sa.String(length=10), nullable=False),
        sa.Column('grand_total_cents', sa.BigInteger(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('grand_total_cents >= 0', name='ck_bills_grand_total_non_negative'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('bill_number'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_bills_mobile_number', 'bills', ['mobile_number'])
    op.create_index('ix_bills_created_at', 'bills', ['created_at'])

    # WHY no FK on product_id: items are snapshots and must survive product deletion
    op.create_table(
        'bill_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('bill_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('localized_name', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('line_total_cents', sa.BigInteger(), nullable=False),
        sa.CheckConstraint('quantity >= 1', name='ck_bill_items_quantity_positive'),
        sa.ForeignKeyConstraint(['bill_id'], ['bills.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('bill_id', 'position', name='uq_bill_items_bill_position'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_bill_items_bill_id', 'bill_items', ['bill_id'])
    op.create_index('ix_bill_items_product_id', 'bill_items', ['product_id'])

    # ============================================================================
    # contacts: one per mobile number
    # ============================================================================
    op.create_table(
        'contacts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('mobile_number', sa.String(length=10), nullable=False),
        sa.Column('last_used', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('mobile_number', name='uq_contacts_mobile_number'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_contacts_last_used', 'contacts', ['last_used'])


def downgrade():
    op.drop_index('ix_contacts_last_used', table_name='contacts')
    op.drop_table('contacts')
    op.drop_index('ix_bill_items_product_id', table_name='bill_items')
    op.drop_index('ix_bill_items_bill_id', table_name='bill_items')
    op.drop_table('bill_items')
    op.drop_index('ix_bills_created_at', table_name='bills')
    op.drop_index('ix_bills_mobile_number', table_name='bills')
    op.drop_table('bills')
    op.drop_index('ix_products_stock_level', table_name='products')
    op.drop_table('products')
    op.drop_table('counters')
