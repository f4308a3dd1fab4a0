"""Wishlist schemas."""
from datetime import datetime
from typing import Optional, List
import uuid

from storefront.schemas.base import BaseCreateSchema, BaseResponseSchema


class AddToWishlistRequest(BaseCreateSchema):
    product_id: uuid.UUID
    notify_on_sale: bool = True
    notify_on_price_change: bool = False


class WishlistProductSummary(BaseResponseSchema):
    id: uuid.UUID
    title: str
    title_en: Optional[str] = None
    slug: str
    price: float
    status: str
    category_name: Optional[str] = None
    category_name_en: Optional[str] = None
    image_url: Optional[str] = None


class WishlistItemResponse(BaseResponseSchema):
    id: uuid.UUID
    product_id: uuid.UUID
    created_at: datetime
    notify_on_sale: bool
    notify_on_available: bool
    notify_on_price_change: bool
    product: WishlistProductSummary


class WishlistResponse(BaseResponseSchema):
    items: List[WishlistItemResponse]


class AddToWishlistResponse(BaseResponseSchema):
    message: str
    item: WishlistItemResponse


class WishlistCheckResponse(BaseResponseSchema):
    in_wishlist: bool
    item_id: Optional[uuid.UUID] = None
