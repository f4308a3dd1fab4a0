from datetime import datetime
from decimal import Decimal
from typing import Optional, List
import uuid

from pydantic import Field

from storefront.schemas.base import BaseCreateSchema, BaseUpdateSchema, BaseResponseSchema
from storefront.schemas.category import CategoryResponse


# ==================== IMAGE SCHEMAS ====================

class ProductImageInput(BaseCreateSchema):
    """Image already uploaded to storage, to attach to a product."""
    url: str = Field(..., min_length=1, max_length=500)
    is_primary: bool = False
    sort_order: int = 0


class ProductImageUpdate(BaseCreateSchema):
    """Reordering / primary flag change for an existing image."""
    id: uuid.UUID
    is_primary: bool = False
    sort_order: int = 0


class ProductImagesPayload(BaseCreateSchema):
    new_images: List[ProductImageInput] = Field(default_factory=list)
    existing_images: List[ProductImageUpdate] = Field(default_factory=list)
    images_to_delete: List[uuid.UUID] = Field(default_factory=list)


class ProductImageResponse(BaseResponseSchema):
    id: uuid.UUID
    url: str
    alt: Optional[str] = None
    is_primary: bool
    sort_order: int


# ==================== PRODUCT SCHEMAS ====================

class ProductCreate(BaseCreateSchema):
    """Product creation schema."""
    title: str = Field(..., min_length=1, max_length=255)
    title_en: Optional[str] = Field(None, max_length=255)
    slug: str = Field(..., min_length=1, max_length=280, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: str = Field(..., min_length=1)
    description_en: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    # Validated against ProductStatus by the service so bad values get a 400
    status: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    dimensions: Optional[str] = None
    materials: Optional[str] = None
    condition: Optional[str] = None
    provenance: Optional[str] = None
    is_featured: bool = False
    shipping_cost: Optional[Decimal] = Field(None, ge=0)
    shipping_cost_intl: Optional[Decimal] = Field(None, ge=0)
    requires_special_shipping: bool = False
    shipping_note: Optional[str] = None
    shipping_note_en: Optional[str] = None
    images: Optional[ProductImagesPayload] = None


class ProductUpdate(BaseUpdateSchema):
    """Partial product update. Only fields present in the body are applied."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    title_en: Optional[str] = Field(None, max_length=255)
    slug: Optional[str] = Field(None, min_length=1, max_length=280, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: Optional[str] = None
    description_en: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    status: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    dimensions: Optional[str] = None
    materials: Optional[str] = None
    condition: Optional[str] = None
    provenance: Optional[str] = None
    is_featured: Optional[bool] = None
    shipping_cost: Optional[Decimal] = Field(None, ge=0)
    shipping_cost_intl: Optional[Decimal] = Field(None, ge=0)
    requires_special_shipping: Optional[bool] = None
    shipping_note: Optional[str] = None
    shipping_note_en: Optional[str] = None
    images: Optional[ProductImagesPayload] = None


class ProductResponse(BaseResponseSchema):
    """Product response schema."""
    id: uuid.UUID
    slug: str
    title: str
    title_en: Optional[str] = None
    description: str
    description_en: Optional[str] = None
    price: float
    status: str
    sold_at: Optional[datetime] = None
    category_id: Optional[uuid.UUID] = None
    category: Optional[CategoryResponse] = None
    dimensions: Optional[str] = None
    materials: Optional[str] = None
    condition: Optional[str] = None
    provenance: Optional[str] = None
    is_featured: bool
    shipping_cost: Optional[float] = None
    shipping_cost_intl: Optional[float] = None
    requires_special_shipping: bool
    shipping_note: Optional[str] = None
    shipping_note_en: Optional[str] = None
    images: List[ProductImageResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseResponseSchema):
    products: List[ProductResponse]
    total: int
    limit: int
    offset: int


class NotificationOutcomeResponse(BaseResponseSchema):
    """Delivery result for one wishlist subscriber."""
    wishlist_item_id: uuid.UUID
    email: Optional[str] = None
    status: str
    error: Optional[str] = None


class ProductUpdateResponse(ProductResponse):
    """Updated product plus the wishlist notifications its status change produced."""
    wishlist_notifications: List[NotificationOutcomeResponse] = Field(default_factory=list)
