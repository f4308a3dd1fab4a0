import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Optional, List
from decimal import Decimal

from sqlalchemy import String, Boolean, DateTime, ForeignKey, Integer, Text, Numeric, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.database import Base
from storefront.db_types import UUIDType

if TYPE_CHECKING:
    from storefront.models.category import Category
    from storefront.models.wishlist import WishlistItem


class ProductStatus(str, Enum):
    """Availability of a one-of-a-kind piece."""
    AVAILABLE = "AVAILABLE"
    RESERVED = "RESERVED"
    SOLD = "SOLD"
    COMING_SOON = "COMING_SOON"


class Product(Base):
    """
    Antique piece in the catalog.
    Each product is unique, so availability is a status rather than a stock count.
    """
    __tablename__ = "products"
    __table_args__ = (
        Index('ix_product_status_created', 'status', 'created_at'),
        Index('ix_product_category_status', 'category_id', 'status'),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    slug: Mapped[str] = mapped_column(String(280), unique=True, nullable=False, index=True)

    # Bilingual texts (Italian is the primary language)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    title_en: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    description_en: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        default=ProductStatus.AVAILABLE.value,
        nullable=False,
        index=True,
        comment="AVAILABLE, RESERVED, SOLD, COMING_SOON"
    )
    sold_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    category_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType,
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True
    )

    # Piece details
    dimensions: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    materials: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    condition: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    provenance: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Shipping overrides (null means use the site-wide defaults)
    shipping_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    shipping_cost_intl: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    requires_special_shipping: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    shipping_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    shipping_note_en: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    # Relationships
    category: Mapped[Optional["Category"]] = relationship("Category", back_populates="products")
    images: Mapped[List["ProductImage"]] = relationship(
        "ProductImage",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ProductImage.sort_order"
    )
    wishlist_items: Mapped[List["WishlistItem"]] = relationship(
        "WishlistItem",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    @property
    def primary_image(self) -> Optional["ProductImage"]:
        """Get the primary product image."""
        for img in self.images:
            if img.is_primary:
                return img
        return self.images[0] if self.images else None

    @property
    def primary_image_url(self) -> Optional[str]:
        image = self.primary_image
        return image.url if image else None

    def __repr__(self) -> str:
        return f"<Product(slug='{self.slug}', status='{self.status}')>"


class ProductImage(Base):
    """Product images, ordered by sort_order."""
    __tablename__ = "product_images"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    url: Mapped[str] = mapped_column(String(500), nullable=False)
    alt: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    is_primary: Mapped[bool] = mapped_column(Boolean, default=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    # Relationships
    product: Mapped["Product"] = relationship("Product", back_populates="images")

    def __repr__(self) -> str:
        return f"<ProductImage(product_id='{self.product_id}', primary={self.is_primary})>"
