"""Initial marketplace schema: users, catalog, sell submissions, orders

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19

This migration creates:
1. Users and saved payment methods
2. Sell submissions and their price negotiation rounds
3. Books (inventory copies) and cart items
4. Purchase orders, order line items and payments

All money columns are integer cents.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. USERS AND PAYMENT METHODS
    # ==========================================================================
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=64), nullable=True),
        sa.Column('last_name', sa.String(length=64), nullable=True),
        sa.Column('user_type', sa.String(length=16), nullable=False, server_default='Customer'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username', name='uq_users_username'),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_username'), ['username'], unique=False)

    op.create_table('payment_methods',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('card_type', sa.String(length=32), nullable=False),
        sa.Column('last_four_digits', sa.String(length=4), nullable=False),
        sa.Column('expiration_date', sa.String(length=7), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('payment_methods', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_payment_methods_user_id'), ['user_id'], unique=False)

    # ==========================================================================
    # 2. SELL SUBMISSIONS AND NEGOTIATION ROUNDS
    # ==========================================================================
    op.create_table('sell_submissions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('admin_user_id', sa.Integer(), nullable=True),
        sa.Column('isbn', sa.String(length=32), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('author', sa.String(length=255), nullable=False),
        sa.Column('edition', sa.String(length=64), nullable=False),
        sa.Column('physical_condition', sa.String(length=16), nullable=False),
        sa.Column('course_major', sa.String(length=128), nullable=True),
        sa.Column('asking_price_cents', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='PENDING_REVIEW'),
        sa.Column('rejection_reason', sa.String(length=255), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['admin_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sell_submissions', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_sell_submissions_status'), ['status'], unique=False)
        batch_op.create_index('ix_sell_submissions_user_status', ['user_id', 'status'], unique=False)

    op.create_table('price_negotiations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('submission_id', sa.Integer(), nullable=False),
        sa.Column('offered_by', sa.String(length=8), nullable=False),
        sa.Column('offered_price_cents', sa.Integer(), nullable=False),
        sa.Column('offer_message', sa.String(length=500), nullable=True),
        sa.Column('offer_status', sa.String(length=16), nullable=False, server_default='PENDING'),
        sa.Column('round_number', sa.Integer(), nullable=False),
        sa.Column('offered_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['submission_id'], ['sell_submissions.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('submission_id', 'round_number', name='uq_price_negotiations_round'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('price_negotiations', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_price_negotiations_submission_id'), ['submission_id'], unique=False)
        batch_op.create_index(
            'ix_price_negotiations_submission_status',
            ['submission_id', 'offered_by', 'offer_status'],
            unique=False,
        )

    # ==========================================================================
    # 3. BOOKS AND CART
    # ==========================================================================
    op.create_table('books',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('submission_id', sa.Integer(), nullable=True),
        sa.Column('isbn', sa.String(length=32), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('author', sa.String(length=255), nullable=False),
        sa.Column('edition', sa.String(length=64), nullable=False),
        sa.Column('book_condition', sa.String(length=16), nullable=False),
        sa.Column('course_major', sa.String(length=128), nullable=True),
        sa.Column('selling_price_cents', sa.Integer(), nullable=False),
        sa.Column('acquisition_cost_cents', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='AVAILABLE'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.CheckConstraint('selling_price_cents > acquisition_cost_cents', name='ck_books_price_margin'),
        sa.ForeignKeyConstraint(['submission_id'], ['sell_submissions.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('submission_id', name='uq_books_submission_id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('books', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_books_status'), ['status'], unique=False)
        batch_op.create_index('ix_books_isbn_edition', ['isbn', 'edition'], unique=False)

    op.create_table('cart_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('book_id', sa.Integer(), nullable=False),
        sa.Column('added_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['book_id'], ['books.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'book_id', name='uq_cart_items_user_book'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('cart_items', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_cart_items_user_id'), ['user_id'], unique=False)

    # ==========================================================================
    # 4. ORDERS AND PAYMENTS
    # ==========================================================================
    op.create_table('purchase_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='NEW'),
        sa.Column('total_amount_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('order_date', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('purchase_orders', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_purchase_orders_status'), ['status'], unique=False)
        batch_op.create_index('ix_purchase_orders_user_status', ['user_id', 'status'], unique=False)

    op.create_table('order_line_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('book_id', sa.Integer(), nullable=False),
        sa.Column('price_at_sale_cents', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['purchase_orders.id'], ),
        sa.ForeignKeyConstraint(['book_id'], ['books.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('order_line_items', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_order_line_items_order_id'), ['order_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_order_line_items_book_id'), ['book_id'], unique=False)

    op.create_table('payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('payment_method_id', sa.Integer(), nullable=True),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('payment_status', sa.String(length=16), nullable=False, server_default='COMPLETED'),
        sa.Column('payment_date', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['purchase_orders.id'], ),
        sa.ForeignKeyConstraint(['payment_method_id'], ['payment_methods.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id', name='uq_payments_order_id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('payments', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_payments_payment_method_id'), ['payment_method_id'], unique=False)


def downgrade():
    op.drop_table('payments')
    op.drop_table('order_line_items')
    op.drop_table('purchase_orders')
    op.drop_table('cart_items')
    op.drop_table('books')
    op.drop_table('price_negotiations')
    op.drop_table('sell_submissions')
    op.drop_table('payment_methods')
    op.drop_table('users')
