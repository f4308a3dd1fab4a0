"""Category management."""
import logging
import uuid
from typing import List, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.context import RequestContext
from storefront.core.exceptions import NotFoundError, ValidationError, ConflictError, HAS_PRODUCTS
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.schemas.category import CategoryCreate, CategoryUpdate


logger = logging.getLogger(__name__)


class CategoryService:
    """Service for managing product categories."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_categories(self) -> List[Tuple[Category, int]]:
        """All categories in display order, each with its product count."""
        product_count = (
            select(func.count(Product.id))
            .where(Product.category_id == Category.id)
            .correlate(Category)
            .scalar_subquery()
        )
        result = await self.db.execute(
            select(Category, product_count).order_by(Category.sort_order, Category.display_name)
        )
        return [(category, count or 0) for category, count in result.all()]

    async def get_category(self, category_id: uuid.UUID) -> Category:
        category = await self.db.get(Category, category_id)
        if not category:
            raise NotFoundError("Category not found")
        return category

    async def count_products(self, category_id: uuid.UUID) -> int:
        count = await self.db.scalar(
            select(func.count(Product.id)).where(Product.category_id == category_id)
        )
        return count or 0

    async def _ensure_name_free(self, name: str) -> None:
        if await self.db.scalar(select(Category.id).where(Category.name == name)):
            raise ConflictError("A category with this name already exists")

    async def create_category(self, ctx: RequestContext, data: CategoryCreate) -> Category:
        ctx.require_admin()
        await self._ensure_name_free(data.name)

        category = Category(**data.model_dump())
        self.db.add(category)
        await self.db.flush()
        await self.db.refresh(category)
        logger.info(f"Category created: {category.name}")
        return category

    async def update_category(
        self,
        ctx: RequestContext,
        category_id: uuid.UUID,
        data: CategoryUpdate
    ) -> Category:
        ctx.require_admin()
        category = await self.get_category(category_id)
        fields = data.provided_fields()

        if fields.get("name") and fields["name"] != category.name:
            await self._ensure_name_free(fields["name"])

        for field, value in fields.items():
            if value is None and field in ("name", "display_name", "sort_order"):
                continue
            setattr(category, field, value)

        await self.db.flush()
        await self.db.refresh(category)
        return category

    async def delete_category(self, ctx: RequestContext, category_id: uuid.UUID) -> None:
        ctx.require_admin()
        category = await self.get_category(category_id)

        if await self.count_products(category_id):
            raise ValidationError(
                "Cannot delete category with products. Move or delete the products first.",
                HAS_PRODUCTS,
            )

        await self.db.delete(category)
        await self.db.flush()
        logger.info(f"Category deleted: {category.name}")
