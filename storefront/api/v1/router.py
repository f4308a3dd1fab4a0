from fastapi import APIRouter

from storefront.api.v1.endpoints import (
    # Access Control
    auth,
    # Catalogue
    products,
    categories,
    # Customer
    wishlist,
    orders,
    # Payments
    checkout,
    webhooks,
    # Site
    settings,
    contact,
    uploads,
)


# Create main API router
api_router = APIRouter(prefix="/api")

# ==================== Access Control ====================
api_router.include_router(
    auth.router,
    prefix="/auth"
)

# ==================== Catalogue ====================
api_router.include_router(
    products.router,
    prefix="/products"
)
api_router.include_router(
    categories.router,
    prefix="/categories"
)

# ==================== Customer ====================
api_router.include_router(
    wishlist.router,
    prefix="/wishlist"
)
api_router.include_router(
    orders.router,
    prefix="/orders"
)

# ==================== Payments ====================
api_router.include_router(
    checkout.router,
    prefix="/checkout"
)
api_router.include_router(
    webhooks.router,
    prefix="/webhooks"
)

# ==================== Site ====================
api_router.include_router(
    settings.router,
    prefix="/settings"
)
api_router.include_router(
    contact.router,
    prefix="/contact"
)
api_router.include_router(
    uploads.router,
    prefix="/upload"
)
