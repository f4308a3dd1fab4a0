"""
Customer Wishlist Model

Stores a user's saved products together with their notification preferences.
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.database import Base
from storefront.db_types import UUIDType

if TYPE_CHECKING:
    from storefront.models.user import User
    from storefront.models.product import Product


class WishlistItem(Base):
    """
    A user's subscription to notifications about one product.

    The notify_* toggles are the user's preferences. The notified_* flags gate
    re-sending: marking one of them resets the other, so a piece that sells and
    later comes back arms each path once per transition.
    """
    __tablename__ = "wishlist_items"
    __table_args__ = (
        UniqueConstraint('user_id', 'product_id', name='uq_wishlist_user_product'),
        Index('ix_wishlist_user_id', 'user_id'),
        Index('ix_wishlist_product_id', 'product_id'),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )

    product_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False
    )

    # Preferences
    notify_on_sale: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notify_on_available: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notify_on_price_change: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Delivery state
    notified_sold: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notified_available: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="wishlist_items")
    product: Mapped["Product"] = relationship("Product", back_populates="wishlist_items")

    def mark_notified_sold(self) -> None:
        self.notified_sold = True
        self.notified_available = False

    def mark_notified_available(self) -> None:
        self.notified_available = True
        self.notified_sold = False

    def __repr__(self) -> str:
        return f"<WishlistItem(user_id={self.user_id}, product_id={self.product_id})>"
