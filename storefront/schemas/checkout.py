"""Checkout and payment webhook schemas."""
from typing import Optional, List
import uuid

from pydantic import EmailStr, Field, field_validator

from storefront.schemas.base import BaseCreateSchema, BaseResponseSchema


class CheckoutLineItem(BaseCreateSchema):
    """One cart line as sent by the storefront."""
    product_id: uuid.UUID
    product_title: str = Field(..., min_length=1, max_length=255)
    product_slug: str = Field(..., min_length=1, max_length=280)
    price: float = Field(..., ge=0)
    quantity: int = Field(1, ge=1)
    image_url: Optional[str] = None


class CheckoutCustomer(BaseCreateSchema):
    """Shipping snapshot collected on the checkout page."""
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    address: str = Field(..., min_length=1, max_length=500)
    city: str = Field(..., min_length=1, max_length=100)
    postal: str = Field(..., min_length=1, max_length=20)
    country: str = Field("IT", min_length=2, max_length=2)

    @field_validator("country")
    @classmethod
    def upper_country(cls, v: str) -> str:
        return v.upper()


class CheckoutRequest(BaseCreateSchema):
    items: List[CheckoutLineItem] = Field(..., min_length=1)
    customer: CheckoutCustomer


class CheckoutResponse(BaseResponseSchema):
    """Hosted payment page to redirect the browser to."""
    session_id: str
    url: str
    subtotal: float
    shipping_cost: float
    total: float


class WebhookAck(BaseResponseSchema):
    received: bool = True
    event: Optional[str] = None
    order_number: Optional[str] = None
