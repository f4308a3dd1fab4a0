from datetime import datetime
from typing import Optional, List
import uuid

from pydantic import EmailStr, Field

from storefront.schemas.base import BaseCreateSchema, BaseUpdateSchema, BaseResponseSchema


# ==================== ORDER ITEM SCHEMAS ====================

class OrderItemResponse(BaseResponseSchema):
    """Purchased line with the snapshot taken at checkout."""
    id: uuid.UUID
    product_id: uuid.UUID
    product_title: str
    product_slug: str
    price: float
    quantity: int
    image_url: Optional[str] = None


class OrderUserBrief(BaseResponseSchema):
    id: uuid.UUID
    name: Optional[str] = None
    email: str


# ==================== ORDER SCHEMAS ====================

class OrderUpdate(BaseUpdateSchema):
    """
    Admin status change.

    ``status`` is kept as a plain string so unknown values reach the service
    and are rejected with a 400 instead of a schema error.
    """
    status: Optional[str] = None
    internal_notes: Optional[str] = None
    shipped_at: Optional[datetime] = None
    tracking_number: Optional[str] = Field(None, max_length=100)
    carrier_name: Optional[str] = Field(None, max_length=100)
    tracking_url: Optional[str] = Field(None, max_length=500)
    send_notification: bool = True


class ResendNotificationRequest(BaseCreateSchema):
    tracking_number: Optional[str] = Field(None, max_length=100)
    carrier_name: Optional[str] = Field(None, max_length=100)
    tracking_url: Optional[str] = Field(None, max_length=500)
    # Append the tracking details to the internal notes before re-sending
    update_tracking: bool = False


class ResendNotificationResponse(BaseResponseSchema):
    success: bool
    message: str


class OrderResponse(BaseResponseSchema):
    """Full order as seen by admins and the owning customer."""
    id: uuid.UUID
    order_number: str
    status: str
    user_id: Optional[uuid.UUID] = None
    user: Optional[OrderUserBrief] = None
    shipping_name: Optional[str] = None
    shipping_email: Optional[str] = None
    shipping_phone: Optional[str] = None
    shipping_address: Optional[str] = None
    shipping_city: Optional[str] = None
    shipping_postal: Optional[str] = None
    shipping_country: Optional[str] = None
    subtotal: float
    shipping_cost: float
    tax: float
    total: float
    internal_notes: Optional[str] = None
    payment_session_id: Optional[str] = None
    paid_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemResponse] = Field(default_factory=list)


class OrderUpdateResponse(OrderResponse):
    """Updated order plus the outcome of the shipment email, when one was due."""
    notification_status: Optional[str] = None


class OrderListResponse(BaseResponseSchema):
    orders: List[OrderResponse]
    total: int
    limit: int
    offset: int


# ==================== PUBLIC TRACKING ====================

class OrderTrackRequest(BaseCreateSchema):
    order_number: str = Field(..., min_length=1, max_length=30)
    email: EmailStr


class TrackedOrderResponse(BaseResponseSchema):
    """Order view for the public tracking page. No internal notes, no payment data."""
    id: uuid.UUID
    order_number: str
    status: str
    subtotal: float
    shipping_cost: float
    tax: float
    total: float
    shipping_name: Optional[str] = None
    shipping_address: Optional[str] = None
    shipping_city: Optional[str] = None
    shipping_postal: Optional[str] = None
    shipping_country: Optional[str] = None
    created_at: datetime
    paid_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    items: List[OrderItemResponse] = Field(default_factory=list)


class OrderTrackResponse(BaseResponseSchema):
    order: TrackedOrderResponse
