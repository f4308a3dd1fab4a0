"""Customer wishlist management."""
import logging
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.context import RequestContext
from storefront.core.exceptions import (
    NotFoundError,
    ValidationError,
    ConflictError,
    PRODUCT_SOLD,
    ALREADY_IN_WISHLIST,
)
from storefront.models.product import Product, ProductStatus
from storefront.models.wishlist import WishlistItem
from storefront.schemas.wishlist import AddToWishlistRequest


logger = logging.getLogger(__name__)


# Saving one of these means "tell me when it becomes available"
PRE_ARMED_STATUSES = {ProductStatus.COMING_SOON.value, ProductStatus.RESERVED.value}


def wishlist_item_payload(item: WishlistItem) -> dict:
    """Flatten a wishlist item and its product for the storefront."""
    product = item.product
    category = product.category
    return {
        "id": item.id,
        "product_id": item.product_id,
        "created_at": item.created_at,
        "notify_on_sale": item.notify_on_sale,
        "notify_on_available": item.notify_on_available,
        "notify_on_price_change": item.notify_on_price_change,
        "product": {
            "id": product.id,
            "title": product.title,
            "title_en": product.title_en,
            "slug": product.slug,
            "price": product.price,
            "status": product.status,
            "category_name": category.display_name if category else None,
            "category_name_en": category.display_name_en if category else None,
            "image_url": product.primary_image_url,
        },
    }


class WishlistService:
    """Service for a user's saved products."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _item_query(self):
        return select(WishlistItem).options(
            selectinload(WishlistItem.product).selectinload(Product.images),
            selectinload(WishlistItem.product).selectinload(Product.category),
        )

    async def get_wishlist(self, ctx: RequestContext) -> List[WishlistItem]:
        user_id = ctx.require_user()
        result = await self.db.execute(
            self._item_query()
            .where(WishlistItem.user_id == user_id)
            .order_by(WishlistItem.created_at.desc())
        )
        return list(result.scalars().all())

    async def _find(self, user_id: uuid.UUID, product_id: uuid.UUID) -> Optional[WishlistItem]:
        result = await self.db.execute(
            self._item_query().where(
                WishlistItem.user_id == user_id,
                WishlistItem.product_id == product_id,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def add_item(self, ctx: RequestContext, data: AddToWishlistRequest) -> WishlistItem:
        """
        Save a product. SOLD pieces are refused; COMING_SOON and RESERVED ones
        are saved with the back-in-stock notification switched on.
        """
        user_id = ctx.require_user()

        product = await self.db.get(Product, data.product_id)
        if not product:
            raise NotFoundError("Product not found")

        if product.status == ProductStatus.SOLD.value:
            raise ValidationError(
                "This item has already been sold and is no longer available.",
                PRODUCT_SOLD,
            )

        if await self._find(user_id, data.product_id):
            raise ConflictError("Product already in wishlist", ALREADY_IN_WISHLIST)

        item = WishlistItem(
            user_id=user_id,
            product_id=data.product_id,
            notify_on_sale=data.notify_on_sale,
            notify_on_available=product.status in PRE_ARMED_STATUSES,
            notify_on_price_change=data.notify_on_price_change,
        )
        self.db.add(item)
        try:
            await self.db.flush()
        except IntegrityError:
            # Concurrent add of the same pair
            raise ConflictError("Product already in wishlist", ALREADY_IN_WISHLIST)

        logger.info(f"User {user_id} saved product {product.slug}")
        return await self._find(user_id, data.product_id)

    async def remove_item(self, ctx: RequestContext, product_id: uuid.UUID) -> None:
        user_id = ctx.require_user()
        item = await self._find(user_id, product_id)
        if not item:
            raise NotFoundError("Item not found in wishlist")
        await self.db.delete(item)
        await self.db.flush()

    async def check_item(self, ctx: RequestContext, product_id: uuid.UUID) -> Optional[WishlistItem]:
        """Membership lookup. Anonymous callers never have anything saved."""
        if not ctx.is_authenticated:
            return None
        return await self._find(ctx.user_id, product_id)
