"""initial inventory schema

Revision ID: s001_initial
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the complete Stockroom schema:
- users / session_tokens: owners and their bearer sessions
- status_categories / status_types / transaction_types: reference data
- customers / suppliers: order counterparties
- products: authoritative stock counter and unit cost
- inventory_transactions: append-only ledger
- sales/purchase orders and returns with their lines
- ai_inventory_notifications: forecasting shortage warnings
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 's001_initial'
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


def upgrade():
    # ============================================================================
    # Identity
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)
    op.create_index('ix_session_tokens_expires_at', 'session_tokens', ['expires_at'])
    op.create_index('ix_session_tokens_is_revoked', 'session_tokens', ['is_revoked'])
    op.create_index('ix_session_tokens_user_active', 'session_tokens', ['user_id', 'is_revoked'])

    # ============================================================================
    # Reference data
    # ============================================================================
    op.create_table(
        'status_categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'status_types',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(['category_id'], ['status_categories.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('category_id', 'name', name='uq_status_types_category_name'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_status_types_category_id', 'status_types', ['category_id'])

    op.create_table(
        'transaction_types',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )

    # ============================================================================
    # Counterparties
    # ============================================================================
    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_customers_user_id', 'customers', ['user_id'])
    op.create_index('ix_customers_user_name', 'customers', ['user_id', 'name'])

    op.create_table(
        'suppliers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
        sa.Column('contact_phone', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_suppliers_user_id', 'suppliers', ['user_id'])
    op.create_index('ix_suppliers_user_name', 'suppliers', ['user_id', 'name'])

    # ============================================================================
    # products: stock counter (changed only with a paired ledger row)
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('barcode', sa.String(length=64), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unit_cost_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'name', name='uq_products_user_name'),
        sa.UniqueConstraint('user_id', 'barcode', name='uq_products_user_barcode'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_user_id', 'products', ['user_id'])
    op.create_index('ix_products_user_name', 'products', ['user_id', 'name'])

    # ============================================================================
    # inventory_transactions: append-only ledger
    # ============================================================================
    op.create_table(
        'inventory_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('transaction_type_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('previous_stock', sa.Integer(), nullable=False),
        sa.Column('new_stock', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('new_stock = previous_stock + quantity', name='ck_invtx_stock_arithmetic'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.ForeignKeyConstraint(['transaction_type_id'], ['transaction_types.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_inventory_transactions_user_id', 'inventory_transactions', ['user_id'])
    op.create_index('ix_inventory_transactions_product_id', 'inventory_transactions', ['product_id'])
    op.create_index('ix_inventory_transactions_created_at', 'inventory_transactions', ['created_at'])
    op.create_index('ix_invtx_user_product_created', 'inventory_transactions',
                    ['user_id', 'product_id', 'created_at'])
    op.create_index('ix_invtx_type_created', 'inventory_transactions', ['transaction_type_id', 'created_at'])

    # ============================================================================
    # Orders
    # ============================================================================
    for table, party_col, party_table in (
        ('sales_orders', 'customer_id', 'customers'),
        ('purchase_orders', 'supplier_id', 'suppliers'),
    ):
        op.create_table(
            table,
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column(party_col, sa.Integer(), nullable=False),
            sa.Column('status_id', sa.Integer(), nullable=False),
            sa.Column('subtotal_cents', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('tax_cents', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('total_amount_cents', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('order_date', sa.DateTime(timezone=True), nullable=False,
                      server_default=sa.text('CURRENT_TIMESTAMP')),
            sa.Column('notes', sa.Text(), nullable=True),
            *_timestamps(),
            sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.ForeignKeyConstraint([party_col], [f'{party_table}.id'], ),
            sa.ForeignKeyConstraint(['status_id'], ['status_types.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sqlite_autoincrement=True
        )
        op.create_index(f'ix_{table}_user_id', table, ['user_id'])
        op.create_index(f'ix_{table}_{party_col}', table, [party_col])
        op.create_index(f'ix_{table}_user_date', table, ['user_id', 'order_date'])

    for table, parent_col, parent_table, amount_col, constraint in (
        ('sales_order_lines', 'sales_order_id', 'sales_orders', 'unit_price_cents',
         'uq_sales_order_lines_order_product'),
        ('purchase_order_lines', 'purchase_order_id', 'purchase_orders', 'unit_cost_cents',
         'uq_purchase_order_lines_order_product'),
    ):
        op.create_table(
            table,
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column(parent_col, sa.Integer(), nullable=False),
            sa.Column('product_id', sa.Integer(), nullable=False),
            sa.Column('quantity', sa.Integer(), nullable=False),
            sa.Column(amount_col, sa.Integer(), nullable=False),
            sa.Column('line_total_cents', sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint([parent_col], [f'{parent_table}.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint(parent_col, 'product_id', name=constraint),
            sqlite_autoincrement=True
        )
        op.create_index(f'ix_{table}_{parent_col}', table, [parent_col])
        op.create_index(f'ix_{table}_product_id', table, ['product_id'])

    # ============================================================================
    # Returns
    # ============================================================================
    for table, parent_col, parent_table in (
        ('sales_returns', 'sales_order_id', 'sales_orders'),
        ('purchase_returns', 'purchase_order_id', 'purchase_orders'),
    ):
        op.create_table(
            table,
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column(parent_col, sa.Integer(), nullable=False),
            sa.Column('status_id', sa.Integer(), nullable=False),
            sa.Column('return_date', sa.DateTime(timezone=True), nullable=False,
                      server_default=sa.text('CURRENT_TIMESTAMP')),
            sa.Column('notes', sa.Text(), nullable=True),
            *_timestamps(),
            sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.ForeignKeyConstraint([parent_col], [f'{parent_table}.id'], ),
            sa.ForeignKeyConstraint(['status_id'], ['status_types.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sqlite_autoincrement=True
        )
        op.create_index(f'ix_{table}_user_id', table, ['user_id'])
        op.create_index(f'ix_{table}_{parent_col}', table, [parent_col])
        op.create_index(f'ix_{table}_user_date', table, ['user_id', 'return_date'])

    for table, parent_col, parent_table, constraint in (
        ('sales_return_lines', 'sales_return_id', 'sales_returns', 'uq_sales_return_lines_return_product'),
        ('purchase_return_lines', 'purchase_return_id', 'purchase_returns',
         'uq_purchase_return_lines_return_product'),
    ):
        op.create_table(
            table,
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column(parent_col, sa.Integer(), nullable=False),
            sa.Column('product_id', sa.Integer(), nullable=False),
            sa.Column('quantity', sa.Integer(), nullable=False),
            sa.Column('status_id', sa.Integer(), nullable=True),
            sa.ForeignKeyConstraint([parent_col], [f'{parent_table}.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
            sa.ForeignKeyConstraint(['status_id'], ['status_types.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint(parent_col, 'product_id', name=constraint),
            sqlite_autoincrement=True
        )
        op.create_index(f'ix_{table}_{parent_col}', table, [parent_col])
        op.create_index(f'ix_{table}_product_id', table, ['product_id'])

    # ============================================================================
    # ai_inventory_notifications
    # ============================================================================
    op.create_table(
        'ai_inventory_notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('status_id', sa.Integer(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('prediction_details', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['status_id'], ['status_types.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_ai_inventory_notifications_user_id', 'ai_inventory_notifications', ['user_id'])
    op.create_index('ix_ai_inventory_notifications_product_id', 'ai_inventory_notifications', ['product_id'])
    op.create_index('ix_ai_notifications_user_created', 'ai_inventory_notifications', ['user_id', 'created_at'])


def downgrade():
    op.drop_table('ai_inventory_notifications')
    op.drop_table('purchase_return_lines')
    op.drop_table('sales_return_lines')
    op.drop_table('purchase_returns')
    op.drop_table('sales_returns')
    op.drop_table('purchase_order_lines')
    op.drop_table('sales_order_lines')
    op.drop_table('purchase_orders')
    op.drop_table('sales_orders')
    op.drop_table('inventory_transactions')
    op.drop_table('products')
    op.drop_table('suppliers')
    op.drop_table('customers')
    op.drop_table('transaction_types')
    op.drop_table('status_types')
    op.drop_table('status_categories')
    op.drop_table('session_tokens')
    op.drop_table('users')
