"""Create storefront schema

Revision ID: 001_storefront
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSONB

# revision identifiers
revision = '001_storefront'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
    ]


def upgrade():
    """Create catalogue, order, wishlist and settings tables"""

    # ====================
    # USERS TABLE
    # ====================
    op.create_table(
        'users',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('email', sa.String(255), unique=True, nullable=False),
        sa.Column('name', sa.String(200), nullable=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), server_default='CUSTOMER', nullable=False),
        sa.Column('is_active', sa.Boolean, server_default='true', nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'])

    # ====================
    # CATEGORIES TABLE
    # ====================
    op.create_table(
        'categories',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('name', sa.String(100), unique=True, nullable=False),
        sa.Column('display_name', sa.String(200), nullable=False),
        sa.Column('display_name_en', sa.String(200), nullable=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('sort_order', sa.Integer, server_default='0', nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_categories_name', 'categories', ['name'])

    # ====================
    # PRODUCTS TABLE
    # ====================
    op.create_table(
        'products',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('slug', sa.String(280), unique=True, nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('title_en', sa.String(255), nullable=True),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('description_en', sa.Text, nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('status', sa.String(20), server_default='AVAILABLE', nullable=False),
        sa.Column('sold_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('category_id', UUID(as_uuid=True), sa.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True),
        sa.Column('dimensions', sa.String(255), nullable=True),
        sa.Column('materials', sa.String(255), nullable=True),
        sa.Column('condition', sa.String(255), nullable=True),
        sa.Column('provenance', sa.String(255), nullable=True),
        sa.Column('is_featured', sa.Boolean, server_default='false', nullable=False),
        sa.Column('shipping_cost', sa.Numeric(10, 2), nullable=True),
        sa.Column('shipping_cost_intl', sa.Numeric(10, 2), nullable=True),
        sa.Column('requires_special_shipping', sa.Boolean, server_default='false', nullable=False),
        sa.Column('shipping_note', sa.Text, nullable=True),
        sa.Column('shipping_note_en', sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_products_slug', 'products', ['slug'])
    op.create_index('ix_products_status', 'products', ['status'])
    op.create_index('ix_product_status_created', 'products', ['status', 'created_at'])
    op.create_index('ix_product_category_status', 'products', ['category_id', 'status'])

    op.create_table(
        'product_images',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('product_id', UUID(as_uuid=True), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('url', sa.String(500), nullable=False),
        sa.Column('alt', sa.String(255), nullable=True),
        sa.Column('is_primary', sa.Boolean, server_default='false', nullable=True),
        sa.Column('sort_order', sa.Integer, server_default='0', nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
    )
    op.create_index('ix_product_images_product_id', 'product_images', ['product_id'])

    # ====================
    # ORDERS TABLE
    # ====================
    op.create_table(
        'orders',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('order_number', sa.String(30), unique=True, nullable=False),
        sa.Column('status', sa.String(20), server_default='PENDING', nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('shipping_name', sa.String(200), nullable=True),
        sa.Column('shipping_email', sa.String(255), nullable=True),
        sa.Column('shipping_phone', sa.String(50), nullable=True),
        sa.Column('shipping_address', sa.String(500), nullable=True),
        sa.Column('shipping_city', sa.String(100), nullable=True),
        sa.Column('shipping_postal', sa.String(20), nullable=True),
        sa.Column('shipping_country', sa.String(2), nullable=True),
        sa.Column('subtotal', sa.Numeric(10, 2), nullable=False),
        sa.Column('shipping_cost', sa.Numeric(10, 2), server_default='0', nullable=False),
        sa.Column('tax', sa.Numeric(10, 2), server_default='0', nullable=False),
        sa.Column('total', sa.Numeric(10, 2), nullable=False),
        sa.Column('internal_notes', sa.Text, nullable=True),
        sa.Column('payment_session_id', sa.String(100), unique=True, nullable=True),
        sa.Column('payment_reference', sa.String(100), nullable=True),
        sa.Column('payment_details', JSONB, nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('shipped_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_orders_order_number', 'orders', ['order_number'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_payment_reference', 'orders', ['payment_reference'])
    op.create_index('ix_order_status_created', 'orders', ['status', 'created_at'])
    op.create_index('ix_order_user_created', 'orders', ['user_id', 'created_at'])

    op.create_table(
        'order_items',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('order_id', UUID(as_uuid=True), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', UUID(as_uuid=True), sa.ForeignKey('products.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('product_title', sa.String(255), nullable=False),
        sa.Column('product_slug', sa.String(280), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('quantity', sa.Integer, server_default='1', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])
    op.create_index('ix_order_items_product_id', 'order_items', ['product_id'])

    # ====================
    # WISHLIST TABLE
    # ====================
    op.create_table(
        'wishlist_items',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', UUID(as_uuid=True), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('notify_on_sale', sa.Boolean, server_default='true', nullable=False),
        sa.Column('notify_on_available', sa.Boolean, server_default='false', nullable=False),
        sa.Column('notify_on_price_change', sa.Boolean, server_default='false', nullable=False),
        sa.Column('notified_sold', sa.Boolean, server_default='false', nullable=False),
        sa.Column('notified_available', sa.Boolean, server_default='false', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.UniqueConstraint('user_id', 'product_id', name='uq_wishlist_user_product'),
    )
    op.create_index('ix_wishlist_user_id', 'wishlist_items', ['user_id'])
    op.create_index('ix_wishlist_product_id', 'wishlist_items', ['product_id'])

    # ====================
    # SITE SETTINGS (singleton)
    # ====================
    op.create_table(
        'site_settings',
        sa.Column('id', sa.String(20), primary_key=True, server_default='default'),
        sa.Column('business_name', sa.String(200), server_default='Antichità Barbaglia', nullable=False),
        sa.Column('business_name_en', sa.String(200), nullable=True),
        sa.Column('tagline', sa.String(255), nullable=True),
        sa.Column('tagline_en', sa.String(255), nullable=True),
        sa.Column('opening_hours', sa.Text, nullable=True),
        sa.Column('opening_hours_en', sa.Text, nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('address', sa.String(255), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('postal_code', sa.String(20), nullable=True),
        sa.Column('country', sa.String(100), nullable=True),
        sa.Column('facebook_url', sa.String(500), nullable=True),
        sa.Column('instagram_url', sa.String(500), nullable=True),
        sa.Column('whatsapp_url', sa.String(500), nullable=True),
        sa.Column('free_shipping_threshold', sa.Numeric(10, 2), server_default='500.00', nullable=False),
        sa.Column('domestic_shipping_cost', sa.Numeric(10, 2), server_default='50.00', nullable=False),
        sa.Column('international_shipping_cost', sa.Numeric(10, 2), server_default='150.00', nullable=False),
        sa.Column('shipping_notes', sa.Text, nullable=True),
        sa.Column('shipping_notes_en', sa.Text, nullable=True),
        sa.Column('order_confirmation_enabled', sa.Boolean, server_default='true', nullable=False),
        sa.Column('wishlist_notifications_enabled', sa.Boolean, server_default='true', nullable=False),
        sa.Column('contact_form_notification_email', sa.String(255), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
    )
    op.execute("INSERT INTO site_settings (id) VALUES ('default')")

    print("Storefront schema created successfully")


def downgrade():
    """Drop storefront tables"""
    op.drop_table('site_settings')
    op.drop_table('wishlist_items')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('product_images')
    op.drop_table('products')
    op.drop_table('categories')
    op.drop_table('users')
