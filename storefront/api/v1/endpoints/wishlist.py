import uuid

from fastapi import APIRouter, status

from storefront.api.deps import DB, Context, UserContext
from storefront.schemas.wishlist import (
    AddToWishlistRequest,
    AddToWishlistResponse,
    WishlistCheckResponse,
    WishlistItemResponse,
    WishlistResponse,
)
from storefront.services.wishlist_service import WishlistService, wishlist_item_payload


router = APIRouter(tags=["Wishlist"])


@router.get("", response_model=WishlistResponse)
async def get_wishlist(db: DB, ctx: UserContext):
    items = await WishlistService(db).get_wishlist(ctx)
    return WishlistResponse(
        items=[WishlistItemResponse.model_validate(wishlist_item_payload(item)) for item in items]
    )


@router.post("", response_model=AddToWishlistResponse, status_code=status.HTTP_201_CREATED)
async def add_to_wishlist(data: AddToWishlistRequest, db: DB, ctx: UserContext):
    """
    Save a product. Sold pieces are refused with `PRODUCT_SOLD`; saving the
    same product twice is a 409.
    """
    item = await WishlistService(db).add_item(ctx, data)
    return AddToWishlistResponse(
        message="Added to wishlist",
        item=WishlistItemResponse.model_validate(wishlist_item_payload(item)),
    )


@router.get("/{product_id}", response_model=WishlistCheckResponse)
async def check_wishlist(product_id: uuid.UUID, db: DB, ctx: Context):
    """Whether the caller has saved the product. Always false for anonymous callers."""
    item = await WishlistService(db).check_item(ctx, product_id)
    return WishlistCheckResponse(in_wishlist=item is not None, item_id=item.id if item else None)


@router.delete("/{product_id}")
async def remove_from_wishlist(product_id: uuid.UUID, db: DB, ctx: UserContext):
    await WishlistService(db).remove_item(ctx, product_id)
    return {"message": "Removed from wishlist"}
