from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import String, Boolean, DateTime, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

from storefront.database import Base


DEFAULT_SETTINGS_ID = "default"


class SiteSettings(Base):
    """Singleton row with business info, shipping defaults and email switches."""
    __tablename__ = "site_settings"

    id: Mapped[str] = mapped_column(String(20), primary_key=True, default=DEFAULT_SETTINGS_ID)

    # Business info
    business_name: Mapped[str] = mapped_column(String(200), default="Antichità Barbaglia", nullable=False)
    business_name_en: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    tagline: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    tagline_en: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    opening_hours: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    opening_hours_en: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Contact info
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    postal_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Social media
    facebook_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    instagram_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    whatsapp_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Shipping defaults (EUR)
    free_shipping_threshold: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("500.00"), nullable=False
    )
    domestic_shipping_cost: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("50.00"), nullable=False
    )
    international_shipping_cost: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("150.00"), nullable=False
    )
    shipping_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    shipping_notes_en: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Email switches
    order_confirmation_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    wishlist_notifications_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    contact_form_notification_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )
