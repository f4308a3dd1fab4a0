from typing import List
import uuid

from fastapi import APIRouter, status

from storefront.api.deps import DB, AdminContext
from storefront.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    CategoryWithCountResponse,
)
from storefront.services.category_service import CategoryService


router = APIRouter(tags=["Categories"])


@router.get("", response_model=List[CategoryWithCountResponse])
async def list_categories(db: DB):
    """All categories in display order with their product counts."""
    rows = await CategoryService(db).list_categories()
    return [
        CategoryWithCountResponse.model_validate(category).model_copy(update={"product_count": count})
        for category, count in rows
    ]


@router.get("/{category_id}", response_model=CategoryWithCountResponse)
async def get_category(category_id: uuid.UUID, db: DB):
    service = CategoryService(db)
    category = await service.get_category(category_id)
    count = await service.count_products(category_id)
    return CategoryWithCountResponse.model_validate(category).model_copy(update={"product_count": count})


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(data: CategoryCreate, db: DB, ctx: AdminContext):
    category = await CategoryService(db).create_category(ctx, data)
    return CategoryResponse.model_validate(category)


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(category_id: uuid.UUID, data: CategoryUpdate, db: DB, ctx: AdminContext):
    category = await CategoryService(db).update_category(ctx, category_id, data)
    return CategoryResponse.model_validate(category)


@router.delete("/{category_id}")
async def delete_category(category_id: uuid.UUID, db: DB, ctx: AdminContext):
    await CategoryService(db).delete_category(ctx, category_id)
    return {"success": True}
