from datetime import datetime
from typing import Optional
import uuid

from pydantic import Field

from storefront.schemas.base import BaseCreateSchema, BaseUpdateSchema, BaseResponseSchema


class CategoryCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=100)
    display_name: str = Field(..., min_length=1, max_length=200)
    display_name_en: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    sort_order: int = 0


class CategoryUpdate(BaseUpdateSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    display_name: Optional[str] = Field(None, min_length=1, max_length=200)
    display_name_en: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    sort_order: Optional[int] = None


class CategoryResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    display_name: str
    display_name_en: Optional[str] = None
    description: Optional[str] = None
    sort_order: int
    created_at: datetime


class CategoryWithCountResponse(CategoryResponse):
    """Category plus the number of products filed under it."""
    product_count: int = 0
