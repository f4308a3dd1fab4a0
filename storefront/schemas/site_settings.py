from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from storefront.schemas.base import BaseUpdateSchema, BaseResponseSchema


class SiteSettingsUpdate(BaseUpdateSchema):
    """Partial update of the settings singleton."""
    business_name: Optional[str] = Field(None, min_length=1, max_length=200)
    business_name_en: Optional[str] = Field(None, max_length=200)
    tagline: Optional[str] = Field(None, max_length=255)
    tagline_en: Optional[str] = Field(None, max_length=255)
    opening_hours: Optional[str] = None
    opening_hours_en: Optional[str] = None

    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=100)

    facebook_url: Optional[str] = Field(None, max_length=500)
    instagram_url: Optional[str] = Field(None, max_length=500)
    whatsapp_url: Optional[str] = Field(None, max_length=500)

    free_shipping_threshold: Optional[Decimal] = Field(None, ge=0)
    domestic_shipping_cost: Optional[Decimal] = Field(None, ge=0)
    international_shipping_cost: Optional[Decimal] = Field(None, ge=0)
    shipping_notes: Optional[str] = None
    shipping_notes_en: Optional[str] = None

    order_confirmation_enabled: Optional[bool] = None
    wishlist_notifications_enabled: Optional[bool] = None
    contact_form_notification_email: Optional[str] = Field(None, max_length=255)


class SiteSettingsResponse(BaseResponseSchema):
    business_name: str
    business_name_en: Optional[str] = None
    tagline: Optional[str] = None
    tagline_en: Optional[str] = None
    opening_hours: Optional[str] = None
    opening_hours_en: Optional[str] = None

    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None

    facebook_url: Optional[str] = None
    instagram_url: Optional[str] = None
    whatsapp_url: Optional[str] = None

    free_shipping_threshold: float
    domestic_shipping_cost: float
    international_shipping_cost: float
    shipping_notes: Optional[str] = None
    shipping_notes_en: Optional[str] = None

    order_confirmation_enabled: bool
    wishlist_notifications_enabled: bool
    contact_form_notification_email: Optional[str] = None

    updated_at: datetime
