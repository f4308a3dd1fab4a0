# Models module - importing registers every table on Base.metadata
from storefront.models.user import User, UserRole
from storefront.models.category import Category
from storefront.models.product import Product, ProductImage, ProductStatus
from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.models.wishlist import WishlistItem
from storefront.models.site_settings import SiteSettings, DEFAULT_SETTINGS_ID

__all__ = [
    "User",
    "UserRole",
    "Category",
    "Product",
    "ProductImage",
    "ProductStatus",
    "Order",
    "OrderItem",
    "OrderStatus",
    "WishlistItem",
    "SiteSettings",
    "DEFAULT_SETTINGS_ID",
]
