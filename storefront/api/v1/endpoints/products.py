from typing import Optional
import uuid

from fastapi import APIRouter, Query, status

from storefront.api.deps import DB, AdminContext, Email
from storefront.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse,
    ProductUpdateResponse,
    NotificationOutcomeResponse,
)
from storefront.services.product_service import ProductService


router = APIRouter(tags=["Products"])


@router.get(
    "",
    response_model=ProductListResponse,
    summary="List products",
)
async def list_products(
    db: DB,
    category: Optional[uuid.UUID] = Query(None, description="Category ID"),
    status: Optional[str] = Query(None, description="AVAILABLE, RESERVED, SOLD or COMING_SOON"),
    featured: Optional[bool] = Query(None, description="Only homepage showcase products"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    products, total = await ProductService(db).list_products(
        category_id=category,
        status=status,
        featured=featured,
        limit=limit,
        offset=offset,
    )
    return ProductListResponse(
        products=[ProductResponse.model_validate(p) for p in products],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/by-slug/{slug}",
    response_model=ProductResponse,
    summary="Get product by slug",
)
async def get_product_by_slug(slug: str, db: DB):
    product = await ProductService(db).get_product_by_slug(slug)
    return ProductResponse.model_validate(product)


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Get product",
)
async def get_product(product_id: uuid.UUID, db: DB):
    product = await ProductService(db).get_product(product_id)
    return ProductResponse.model_validate(product)


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create product",
)
async def create_product(data: ProductCreate, db: DB, ctx: AdminContext):
    product = await ProductService(db).create_product(ctx, data)
    return ProductResponse.model_validate(product)


@router.put(
    "/{product_id}",
    response_model=ProductUpdateResponse,
    summary="Update product",
)
async def update_product(
    product_id: uuid.UUID,
    data: ProductUpdate,
    db: DB,
    ctx: AdminContext,
    email_service: Email,
):
    """
    Partial update. A status change notifies wishlist subscribers before the
    response is sent; the per-subscriber results are in `wishlistNotifications`.
    """
    product, outcomes = await ProductService(db).update_product(ctx, product_id, data, email_service)
    response = ProductUpdateResponse.model_validate(product)
    response.wishlist_notifications = [
        NotificationOutcomeResponse(
            wishlist_item_id=o.wishlist_item_id,
            email=o.email,
            status=o.status.value,
            error=o.error,
        )
        for o in outcomes
    ]
    return response


@router.delete(
    "/{product_id}",
    summary="Delete product",
)
async def delete_product(product_id: uuid.UUID, db: DB, ctx: AdminContext):
    await ProductService(db).delete_product(ctx, product_id)
    return {"success": True}
