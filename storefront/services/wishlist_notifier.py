"""
Wishlist Notifier

Fans a product availability change out to the users who saved that product.

- Back in stock: the product became AVAILABLE again. Subscribers with
  ``notify_on_available`` who have not been told yet get one email each.
- Sold: the product became SOLD. Subscribers with ``notify_on_sale`` who have
  not been told yet get one email each.

Sends are sequential, one per subscriber, without retries. A failed send is
recorded and logged and the loop moves on; flags already set for earlier
subscribers stay set.
"""
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from starlette.concurrency import run_in_threadpool

from storefront.models.product import Product, ProductStatus
from storefront.models.wishlist import WishlistItem
from storefront.services.email_service import EmailService
from storefront.services.settings_service import SettingsService


logger = logging.getLogger(__name__)


# Statuses a product can come back from
RESTOCK_SOURCES = {
    ProductStatus.SOLD.value,
    ProductStatus.COMING_SOON.value,
    ProductStatus.RESERVED.value,
}


class NotificationStatus(str, Enum):
    SENT = "SENT"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"  # Subscriber has no email address


class NotificationKind(str, Enum):
    BACK_IN_STOCK = "BACK_IN_STOCK"
    SOLD = "SOLD"


@dataclass
class NotificationOutcome:
    """Delivery result for one wishlist subscriber."""
    wishlist_item_id: uuid.UUID
    user_id: uuid.UUID
    product_id: uuid.UUID
    email: Optional[str]
    status: NotificationStatus
    error: Optional[str] = None


def notification_for_transition(old_status: str, new_status: str) -> Optional[NotificationKind]:
    """Which fan-out, if any, a product status change triggers."""
    if old_status == new_status:
        return None
    if new_status == ProductStatus.AVAILABLE.value and old_status in RESTOCK_SOURCES:
        return NotificationKind.BACK_IN_STOCK
    if new_status == ProductStatus.SOLD.value:
        return NotificationKind.SOLD
    return None


class WishlistNotifier:
    """Sends wishlist emails for a product and records per-subscriber outcomes."""

    def __init__(self, db: AsyncSession, email_service: EmailService):
        self.db = db
        self.email_service = email_service

    async def notifications_enabled(self) -> bool:
        site_settings = await SettingsService(self.db).get_settings()
        return site_settings.wishlist_notifications_enabled

    async def notify_transition(
        self,
        product: Product,
        old_status: str,
        new_status: str
    ) -> List[NotificationOutcome]:
        """Run the fan-out matching a status change. Other changes notify nobody."""
        kind = notification_for_transition(old_status, new_status)
        if kind == NotificationKind.BACK_IN_STOCK:
            return await self.notify_back_in_stock(product.id)
        if kind == NotificationKind.SOLD:
            return await self.notify_sold([product.id])
        return []

    async def notify_back_in_stock(self, product_id: uuid.UUID) -> List[NotificationOutcome]:
        """Email subscribers waiting for the product to become available."""
        if not await self.notifications_enabled():
            logger.info(f"Wishlist notifications disabled, skipping back-in-stock for {product_id}")
            return []

        items = await self._pending_items(
            [product_id],
            WishlistItem.notify_on_available.is_(True),
            WishlistItem.notified_available.is_(False),
        )
        logger.info(f"Found {len(items)} wishlist users to notify about product {product_id} back in stock")

        outcomes = []
        for item in items:
            outcomes.append(await self._deliver(item, NotificationKind.BACK_IN_STOCK))
        return outcomes

    async def notify_sold(self, product_ids: Iterable[uuid.UUID]) -> List[NotificationOutcome]:
        """Email subscribers who asked to hear when the product sells."""
        product_ids = list(product_ids)
        if not product_ids:
            return []

        if not await self.notifications_enabled():
            logger.info(f"Wishlist notifications disabled, skipping sold notice for {product_ids}")
            return []

        items = await self._pending_items(
            product_ids,
            WishlistItem.notify_on_sale.is_(True),
            WishlistItem.notified_sold.is_(False),
        )
        logger.info(f"Found {len(items)} wishlist users to notify about sold items")

        outcomes = []
        for item in items:
            outcomes.append(await self._deliver(item, NotificationKind.SOLD))
        return outcomes

    async def _pending_items(self, product_ids: List[uuid.UUID], *conditions) -> List[WishlistItem]:
        result = await self.db.execute(
            select(WishlistItem)
            .options(
                selectinload(WishlistItem.user),
                selectinload(WishlistItem.product).selectinload(Product.images),
            )
            .where(WishlistItem.product_id.in_(product_ids), *conditions)
            .order_by(WishlistItem.created_at)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def _deliver(self, item: WishlistItem, kind: NotificationKind) -> NotificationOutcome:
        user = item.user
        product = item.product
        email = user.email if user else None

        if not email:
            logger.warning(f"Wishlist item {item.id} has no recipient email, skipping")
            return NotificationOutcome(item.id, item.user_id, item.product_id, None, NotificationStatus.SKIPPED)

        send = (
            self.email_service.send_back_in_stock_email
            if kind == NotificationKind.BACK_IN_STOCK
            else self.email_service.send_wishlist_sold_email
        )

        try:
            sent = await run_in_threadpool(
                send,
                to_email=email,
                customer_name=user.name or "Cliente",
                product_title=product.title,
                product_slug=product.slug,
                product_price=product.price,
                product_image_url=product.primary_image_url,
                locale="it",
            )
        except Exception as e:
            logger.error(f"Failed to send {kind.value} wishlist email to {email}: {e}")
            return NotificationOutcome(
                item.id, item.user_id, item.product_id, email, NotificationStatus.FAILED, str(e)
            )

        if not sent:
            logger.warning(f"{kind.value} wishlist email to {email} was not delivered")
            return NotificationOutcome(
                item.id, item.user_id, item.product_id, email, NotificationStatus.FAILED, "Email delivery failed"
            )

        if kind == NotificationKind.BACK_IN_STOCK:
            item.mark_notified_available()
        else:
            item.mark_notified_sold()
        await self.db.flush()

        logger.info(f"{kind.value} wishlist notification sent to {email} for product {product.title}")
        return NotificationOutcome(item.id, item.user_id, item.product_id, email, NotificationStatus.SENT)
