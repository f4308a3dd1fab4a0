"""
Product Service

Catalog management for one-of-a-kind pieces. Besides plain CRUD it enforces
the catalog rules:
- slugs are unique
- at most MAX_FEATURED_PRODUCTS products sit in the homepage showcase
- a product referenced by an order cannot be deleted
- a status change fans out wishlist notifications
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, List, Tuple

from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.config import settings
from storefront.core.context import RequestContext
from storefront.core.exceptions import (
    NotFoundError,
    ValidationError,
    ConflictError,
    FEATURED_LIMIT_EXCEEDED,
    HAS_ORDERS,
    INVALID_STATUS,
    SLUG_EXISTS,
)
from storefront.models.category import Category
from storefront.models.order import OrderItem
from storefront.models.product import Product, ProductImage, ProductStatus
from storefront.schemas.product import ProductCreate, ProductUpdate, ProductImagesPayload
from storefront.services.email_service import EmailService
from storefront.services.wishlist_notifier import WishlistNotifier, NotificationOutcome


logger = logging.getLogger(__name__)


# Text fields where an empty string means "clear"
NULLABLE_TEXT_FIELDS = {
    "title_en", "description_en", "dimensions", "materials", "condition",
    "provenance", "shipping_note", "shipping_note_en",
}


def parse_product_status(value: str) -> ProductStatus:
    try:
        return ProductStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid status: {value}", INVALID_STATUS)


class ProductService:
    """Service for managing catalog products."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _product_query(self):
        return select(Product).options(
            selectinload(Product.category),
            selectinload(Product.images),
        )

    async def _load(self, product_id: uuid.UUID) -> Product:
        result = await self.db.execute(
            self._product_query()
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
        product = result.scalar_one_or_none()
        if not product:
            raise NotFoundError("Product not found")
        return product

    # ==================== READ ====================

    async def list_products(
        self,
        category_id: Optional[uuid.UUID] = None,
        status: Optional[str] = None,
        featured: Optional[bool] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[List[Product], int]:
        conditions = []
        if category_id:
            conditions.append(Product.category_id == category_id)
        if status:
            conditions.append(Product.status == parse_product_status(status).value)
        if featured:
            conditions.append(Product.is_featured.is_(True))

        total = await self.db.scalar(select(func.count(Product.id)).where(*conditions))
        result = await self.db.execute(
            self._product_query()
            .where(*conditions)
            .order_by(Product.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def get_product(self, product_id: uuid.UUID) -> Product:
        return await self._load(product_id)

    async def get_product_by_slug(self, slug: str) -> Product:
        result = await self.db.execute(self._product_query().where(Product.slug == slug))
        product = result.scalar_one_or_none()
        if not product:
            raise NotFoundError("Product not found")
        return product

    # ==================== RULES ====================

    async def _ensure_slug_free(self, slug: str, exclude_id: Optional[uuid.UUID] = None) -> None:
        query = select(Product.id).where(Product.slug == slug)
        if exclude_id:
            query = query.where(Product.id != exclude_id)
        if await self.db.scalar(query):
            raise ConflictError("A product with this slug already exists", SLUG_EXISTS)

    async def _ensure_featured_slot(self) -> None:
        featured_count = await self.db.scalar(
            select(func.count(Product.id)).where(Product.is_featured.is_(True))
        )
        if featured_count >= settings.MAX_FEATURED_PRODUCTS:
            raise ValidationError(
                f"È possibile avere al massimo {settings.MAX_FEATURED_PRODUCTS} prodotti in evidenza. "
                "Rimuovi un prodotto dalla vetrina prima di aggiungerne un altro.",
                FEATURED_LIMIT_EXCEEDED,
            )

    async def _ensure_category(self, category_id: Optional[uuid.UUID]) -> None:
        if category_id is None:
            return
        if not await self.db.get(Category, category_id):
            raise ValidationError("Category not found")

    # ==================== WRITE ====================

    async def create_product(self, ctx: RequestContext, data: ProductCreate) -> Product:
        ctx.require_admin()

        status = parse_product_status(data.status) if data.status else ProductStatus.AVAILABLE
        await self._ensure_slug_free(data.slug)
        if data.is_featured:
            await self._ensure_featured_slot()
        await self._ensure_category(data.category_id)

        values = data.model_dump(exclude={"images", "status"})
        for field in NULLABLE_TEXT_FIELDS:
            if values.get(field) == "":
                values[field] = None

        product = Product(**values, status=status.value)
        if status == ProductStatus.SOLD:
            product.sold_at = datetime.now(timezone.utc)
        self.db.add(product)
        await self.db.flush()

        if data.images:
            await self._apply_images(product, data.images)

        logger.info(f"Product created: {product.slug} by {ctx.email}")
        return await self._load(product.id)

    async def update_product(
        self,
        ctx: RequestContext,
        product_id: uuid.UUID,
        data: ProductUpdate,
        email_service: EmailService
    ) -> Tuple[Product, List[NotificationOutcome]]:
        """
        Apply a partial update. A status change runs the matching wishlist
        fan-out before returning; its outcomes are returned with the product.
        """
        ctx.require_admin()
        product = await self._load(product_id)
        fields = data.provided_fields()

        new_status = None
        if fields.get("status") is not None:
            new_status = parse_product_status(fields["status"])

        if fields.get("slug") and fields["slug"] != product.slug:
            await self._ensure_slug_free(fields["slug"], exclude_id=product.id)

        if fields.get("is_featured") and not product.is_featured:
            await self._ensure_featured_slot()

        if "category_id" in fields:
            await self._ensure_category(fields["category_id"])

        old_status = product.status

        for field, value in fields.items():
            if field in ("images", "status"):
                continue
            # Required columns keep their value when sent as null
            if value is None and field in ("title", "slug", "description", "price", "is_featured",
                                           "requires_special_shipping"):
                continue
            if field in NULLABLE_TEXT_FIELDS and value == "":
                value = None
            setattr(product, field, value)

        if new_status is not None:
            product.status = new_status.value
            if new_status == ProductStatus.SOLD and old_status != ProductStatus.SOLD.value:
                product.sold_at = datetime.now(timezone.utc)

        await self.db.flush()

        if data.images:
            await self._apply_images(product, data.images)

        outcomes: List[NotificationOutcome] = []
        if new_status is not None and new_status.value != old_status:
            logger.info(f"Product {product.slug} status {old_status} -> {new_status.value}")
            notifier = WishlistNotifier(self.db, email_service)
            outcomes = await notifier.notify_transition(product, old_status, new_status.value)

        return await self._load(product.id), outcomes

    async def delete_product(self, ctx: RequestContext, product_id: uuid.UUID) -> None:
        ctx.require_admin()
        product = await self._load(product_id)

        in_orders = await self.db.scalar(
            select(func.count(OrderItem.id)).where(OrderItem.product_id == product_id)
        )
        if in_orders:
            raise ValidationError(
                "Cannot delete product that is part of existing orders. Consider marking it as sold instead.",
                HAS_ORDERS,
            )

        await self.db.delete(product)
        await self.db.flush()
        logger.info(f"Product deleted: {product.slug} by {ctx.email}")

    async def _apply_images(self, product: Product, images: ProductImagesPayload) -> None:
        """Delete, reorder and add images in that order."""
        if images.images_to_delete:
            await self.db.execute(
                delete(ProductImage).where(
                    ProductImage.id.in_(images.images_to_delete),
                    ProductImage.product_id == product.id,
                )
            )

        for existing in images.existing_images:
            image = await self.db.get(ProductImage, existing.id)
            if image is None or image.product_id != product.id:
                continue
            image.is_primary = existing.is_primary
            image.sort_order = existing.sort_order

        for new_image in images.new_images:
            self.db.add(ProductImage(
                product_id=product.id,
                url=new_image.url,
                alt=product.title,
                is_primary=new_image.is_primary,
                sort_order=new_image.sort_order,
            ))

        await self.db.flush()
