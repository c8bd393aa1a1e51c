"""
Alembic migration: Create order, order detail and shopping cart tables.

Creates the orders table, the order_details table holding order lines, and
the shopping_carts table of staged retailer items. Statuses and payment modes
are stored as integers. Orders and order lines carry a version counter for
optimistic concurrency control.

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# Revision identifiers, used by Alembic
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column(
            'created_on',
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text('now()'),
            comment='Timestamp when record was created',
        ),
        sa.Column(
            'created_by',
            postgresql.UUID(as_uuid=True),
            nullable=False,
            comment='User who created the record',
        ),
        sa.Column(
            'updated_on',
            sa.DateTime(timezone=True),
            nullable=True,
            comment='Timestamp when record was last updated',
        ),
        sa.Column(
            'updated_by',
            postgresql.UUID(as_uuid=True),
            nullable=True,
            comment='User who last updated the record',
        ),
        sa.Column(
            'is_active',
            sa.Boolean(),
            nullable=False,
            server_default=sa.text('true'),
            comment='False once the record has been soft deleted',
        ),
    ]


def upgrade() -> None:
    """
    Upgrade database schema with the order management tables.
    """
    op.create_table(
        'orders',
        sa.Column('order_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('retailer_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('manufacturer_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('delivery_personnel_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('order_status', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('total_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('payment_mode', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('payment_currency', sa.String(length=3), nullable=False),
        sa.Column(
            'shipping_cost',
            sa.Numeric(precision=10, scale=2),
            nullable=False,
            server_default='0.00',
        ),
        sa.Column('shipping_currency', sa.String(length=3), nullable=False),
        sa.Column('shipping_address', sa.String(length=500), nullable=True),
        *_audit_columns(),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.PrimaryKeyConstraint('order_id', name='pk_orders'),
        sa.CheckConstraint('total_price >= 0', name='ck_orders_total_price_non_negative'),
        sa.CheckConstraint('shipping_cost >= 0', name='ck_orders_shipping_cost_non_negative'),
        comment='Retailer purchase orders',
    )
    op.create_index('ix_orders_retailer_id', 'orders', ['retailer_id'])
    op.create_index('ix_orders_manufacturer_id', 'orders', ['manufacturer_id'])
    op.create_index('ix_orders_delivery_personnel_id', 'orders', ['delivery_personnel_id'])
    op.create_index('ix_orders_order_status', 'orders', ['order_status'])
    op.create_index('ix_orders_retailer_status', 'orders', ['retailer_id', 'order_status'])
    op.create_index('ix_orders_created_on', 'orders', ['created_on'])

    op.create_table(
        'order_details',
        sa.Column('order_detail_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('order_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('product_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('manufacturer_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('product_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('order_item_status', sa.Integer(), nullable=False, server_default='3'),
        *_audit_columns(),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.PrimaryKeyConstraint('order_detail_id', name='pk_order_details'),
        sa.ForeignKeyConstraint(
            ['order_id'],
            ['orders.order_id'],
            name='fk_order_details_order_id',
            ondelete='RESTRICT',
        ),
        sa.CheckConstraint('quantity > 0', name='ck_order_details_quantity_positive'),
        sa.CheckConstraint('product_price >= 0', name='ck_order_details_price_non_negative'),
        comment='Order line items',
    )
    op.create_index('ix_order_details_order_id', 'order_details', ['order_id'])
    op.create_index('ix_order_details_product_id', 'order_details', ['product_id'])
    op.create_index('ix_order_details_manufacturer_id', 'order_details', ['manufacturer_id'])
    op.create_index('ix_order_details_order_item_status', 'order_details', ['order_item_status'])

    op.create_table(
        'shopping_carts',
        sa.Column('cart_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('retailer_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('product_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('manufacturer_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('order_quantity', sa.Integer(), nullable=False),
        sa.Column('product_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('status', sa.Integer(), nullable=False, server_default='1'),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('cart_id', name='pk_shopping_carts'),
        sa.CheckConstraint('order_quantity > 0', name='ck_shopping_carts_quantity_positive'),
        sa.CheckConstraint('product_price >= 0', name='ck_shopping_carts_price_non_negative'),
        comment='Retailer shopping cart entries',
    )
    op.create_index('ix_shopping_carts_retailer_id', 'shopping_carts', ['retailer_id'])
    op.create_index(
        'ix_shopping_carts_retailer_active', 'shopping_carts', ['retailer_id', 'is_active']
    )


def downgrade() -> None:
    """
    Downgrade database schema by dropping the order management tables.
    """
    op.drop_index('ix_shopping_carts_retailer_active', table_name='shopping_carts')
    op.drop_index('ix_shopping_carts_retailer_id', table_name='shopping_carts')
    op.drop_table('shopping_carts')

    op.drop_index('ix_order_details_order_item_status', table_name='order_details')
    op.drop_index('ix_order_details_manufacturer_id', table_name='order_details')
    op.drop_index('ix_order_details_product_id', table_name='order_details')
    op.drop_index('ix_order_details_order_id', table_name='order_details')
    op.drop_table('order_details')

    op.drop_index('ix_orders_created_on', table_name='orders')
    op.drop_index('ix_orders_retailer_status', table_name='orders')
    op.drop_index('ix_orders_order_status', table_name='orders')
    op.drop_index('ix_orders_delivery_personnel_id', table_name='orders')
    op.drop_index('ix_orders_manufacturer_id', table_name='orders')
    op.drop_index('ix_orders_retailer_id', table_name='orders')
    op.drop_table('orders')
