"""
Order Service

Order lifecycle for the storefront back-office:
- Listing and lookup (admin sees everything, customers their own orders)
- Status transitions with their side effects:
    * SHIPPED: stamp shipped_at, append a tracking block to the notes,
      email the customer
    * CANCELLED: put SOLD products back on sale
- Re-sending the shipment email
- Public tracking by order number + email
- Creating the PAID order once the payment processor confirms it
"""
import logging
import secrets
import time
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, List, Tuple, Dict

from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from starlette.concurrency import run_in_threadpool

from storefront.core.context import RequestContext
from storefront.core.exceptions import (
    NotFoundError,
    ValidationError,
    ForbiddenError,
    INVALID_STATUS,
)
from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.models.product import Product, ProductStatus
from storefront.schemas.order import OrderUpdate, ResendNotificationRequest
from storefront.services.email_service import EmailService
from storefront.services.wishlist_notifier import NotificationStatus


logger = logging.getLogger(__name__)


BASE36_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
ORDER_NUMBER_PREFIX = "AB"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_order_number() -> str:
    """Human-readable order number: AB-<base36 ms timestamp>-<4 random chars>."""
    timestamp = _to_base36(int(time.time() * 1000))
    random_part = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(4))
    return f"{ORDER_NUMBER_PREFIX}-{timestamp}-{random_part}"


def format_note_date(value: datetime) -> str:
    """Italian short date used in note headers (d/m/yyyy)."""
    return f"{value.day}/{value.month}/{value.year}"


def tracking_lines(
    carrier_name: Optional[str],
    tracking_number: Optional[str],
    tracking_url: Optional[str]
) -> List[str]:
    lines = []
    if carrier_name:
        lines.append(f"Corriere: {carrier_name}")
    if tracking_number:
        lines.append(f"Tracking: {tracking_number}")
    if tracking_url:
        lines.append(f"Link: {tracking_url}")
    return lines


def append_note_block(notes: Optional[str], header: str, lines: List[str]) -> str:
    block = "\n".join([f"--- {header} ---", *lines])
    return f"{notes}\n\n{block}" if notes else block


def parse_order_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid status: {value}", INVALID_STATUS)


class OrderService:
    """Service for managing storefront orders."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _order_query(self):
        return select(Order).options(
            selectinload(Order.user),
            selectinload(Order.items)
            .selectinload(OrderItem.product)
            .selectinload(Product.images),
        )

    async def _load(self, order_id: uuid.UUID) -> Order:
        result = await self.db.execute(
            self._order_query()
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
        if not order:
            raise NotFoundError("Order not found")
        return order

    # ==================== READ ====================

    async def list_orders(
        self,
        ctx: RequestContext,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[List[Order], int]:
        """Admins see all orders, customers only their own."""
        user_id = ctx.require_user()

        query = self._order_query()
        count_query = select(func.count(Order.id))

        if not ctx.is_admin:
            query = query.where(Order.user_id == user_id)
            count_query = count_query.where(Order.user_id == user_id)

        if status:
            status_value = parse_order_status(status).value
            query = query.where(Order.status == status_value)
            count_query = count_query.where(Order.status == status_value)

        total = await self.db.scalar(count_query)
        result = await self.db.execute(
            query.order_by(Order.created_at.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def get_order(self, ctx: RequestContext, order_id: uuid.UUID) -> Order:
        ctx.require_user()
        order = await self._load(order_id)
        if not ctx.can_access_owner(order.user_id):
            raise ForbiddenError("You do not have access to this order")
        return order

    async def track_order(self, order_number: str, email: str) -> Order:
        """
        Public lookup. A wrong email answers exactly like a missing order so the
        endpoint does not confirm which order numbers exist.
        """
        normalized_number = order_number.strip().upper()
        normalized_email = email.strip().lower()

        result = await self.db.execute(
            self._order_query().where(func.upper(Order.order_number) == normalized_number)
        )
        order = result.scalar_one_or_none()
        if not order or (order.customer_email or "").lower() != normalized_email:
            raise NotFoundError("Order not found")
        return order

    # ==================== STATUS TRANSITIONS ====================

    async def update_order(
        self,
        ctx: RequestContext,
        order_id: uuid.UUID,
        data: OrderUpdate,
        email_service: EmailService
    ) -> Tuple[Order, Optional[NotificationStatus]]:
        """
        Apply an admin status change.

        Returns the reloaded order and, when a shipment email was due, whether
        it went out. The email never decides the outcome of the update.
        """
        ctx.require_admin()
        order = await self._load(order_id)

        fields = data.provided_fields()
        # An empty status means "no change"
        new_status = parse_order_status(data.status) if data.status else None
        previous_status = order.status

        if "internal_notes" in fields:
            order.internal_notes = data.internal_notes

        shipping_transition = (
            new_status == OrderStatus.SHIPPED
            and previous_status != OrderStatus.SHIPPED.value
        )
        cancellation = (
            new_status == OrderStatus.CANCELLED
            and previous_status != OrderStatus.CANCELLED.value
        )

        if new_status is not None:
            order.status = new_status.value

        if shipping_transition:
            shipped_at = data.shipped_at or datetime.now(timezone.utc)
            order.shipped_at = shipped_at
            order.internal_notes = append_note_block(
                order.internal_notes,
                f"Spedizione {format_note_date(shipped_at)}",
                tracking_lines(data.carrier_name, data.tracking_number, data.tracking_url),
            )

        if cancellation:
            restored = await self.restore_sold_products(order)
            logger.info(f"Order {order.order_number} cancelled, {restored} product(s) back on sale")

        await self.db.flush()
        order = await self._load(order_id)

        logger.info(
            f"Order {order.order_number} updated by {ctx.email}: "
            f"{previous_status} -> {order.status}"
        )

        notification_status = None
        if shipping_transition and data.send_notification:
            notification_status = await self._send_shipped_email(
                order,
                email_service,
                tracking_number=data.tracking_number,
                carrier_name=data.carrier_name,
                tracking_url=data.tracking_url,
            )

        return order, notification_status

    async def restore_sold_products(self, order: Order) -> int:
        """
        Put every SOLD product referenced by the order back to AVAILABLE.

        Does not check which order sold the product.
        """
        product_ids = [item.product_id for item in order.items]
        if not product_ids:
            return 0

        result = await self.db.execute(
            update(Product)
            .where(
                Product.id.in_(product_ids),
                Product.status == ProductStatus.SOLD.value,
            )
            .values(status=ProductStatus.AVAILABLE.value, sold_at=None)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def resend_notification(
        self,
        ctx: RequestContext,
        order_id: uuid.UUID,
        data: ResendNotificationRequest,
        email_service: EmailService
    ) -> Tuple[bool, str]:
        """Send the shipment email again, optionally logging new tracking details first."""
        ctx.require_admin()
        order = await self._load(order_id)

        if order.status not in (OrderStatus.SHIPPED.value, OrderStatus.DELIVERED.value):
            raise ValidationError(
                "Can only resend shipping notification for shipped or delivered orders",
                INVALID_STATUS,
            )

        customer_email = order.customer_email
        if not customer_email:
            raise ValidationError("No customer email found for this order")

        lines = tracking_lines(data.carrier_name, data.tracking_number, data.tracking_url)
        if data.update_tracking and lines:
            order.internal_notes = append_note_block(
                order.internal_notes,
                f"Aggiornamento Tracking {format_note_date(datetime.now(timezone.utc))}",
                lines,
            )
            await self.db.flush()

        status = await self._send_shipped_email(
            order,
            email_service,
            tracking_number=data.tracking_number,
            carrier_name=data.carrier_name,
            tracking_url=data.tracking_url,
        )

        if status == NotificationStatus.SENT:
            logger.info(f"Shipping notification resent to {customer_email} for order {order.order_number}")
            return True, f"Shipping notification resent to {customer_email}"

        return False, f"Failed to resend shipping notification to {customer_email}"

    async def _send_shipped_email(
        self,
        order: Order,
        email_service: EmailService,
        tracking_number: Optional[str] = None,
        carrier_name: Optional[str] = None,
        tracking_url: Optional[str] = None
    ) -> NotificationStatus:
        to_email = order.customer_email
        if not to_email:
            logger.warning(f"Order {order.order_number} has no customer email, shipment email skipped")
            return NotificationStatus.SKIPPED

        try:
            sent = await run_in_threadpool(
                email_service.send_order_shipped_email,
                to_email=to_email,
                order_number=order.order_number,
                customer_name=order.customer_name or "Cliente",
                items=order_items_payload(order),
                total=order.total,
                shipping_address=shipping_address_payload(order),
                tracking_number=tracking_number,
                carrier_name=carrier_name,
                tracking_url=tracking_url,
                shipped_at=order.shipped_at,
                locale="it",
            )
        except Exception as e:
            logger.error(f"Failed to send shipment email for order {order.order_number}: {e}")
            return NotificationStatus.FAILED

        if not sent:
            logger.warning(f"Shipment email for order {order.order_number} was not delivered")
            return NotificationStatus.FAILED
        return NotificationStatus.SENT

    # ==================== CREATION ====================

    async def get_by_payment_session(self, session_id: str) -> Optional[Order]:
        result = await self.db.execute(
            self._order_query().where(Order.payment_session_id == session_id)
        )
        return result.scalar_one_or_none()

    async def get_by_payment_reference(self, payment_id: str) -> Optional[Order]:
        result = await self.db.execute(
            self._order_query().where(Order.payment_reference == payment_id)
        )
        return result.scalars().first()

    async def create_paid_order(
        self,
        session_id: str,
        product_ids: List[uuid.UUID],
        shipping: Dict[str, Optional[str]],
        subtotal: Decimal,
        shipping_cost: Decimal,
        total: Decimal,
        user_id: Optional[uuid.UUID] = None,
        payment_reference: Optional[str] = None,
        payment_details: Optional[dict] = None
    ) -> Order:
        """
        Create the PAID order for a completed payment and mark its products SOLD.

        Title, slug and price are copied from the products at this moment.
        """
        result = await self.db.execute(select(Product).where(Product.id.in_(product_ids)))
        products = {p.id: p for p in result.scalars().all()}

        now = datetime.now(timezone.utc)
        order = Order(
            order_number=generate_order_number(),
            status=OrderStatus.PAID.value,
            user_id=user_id,
            shipping_name=shipping.get("name"),
            shipping_email=shipping.get("email"),
            shipping_phone=shipping.get("phone"),
            shipping_address=shipping.get("address"),
            shipping_city=shipping.get("city"),
            shipping_postal=shipping.get("postal"),
            shipping_country=shipping.get("country"),
            subtotal=subtotal,
            shipping_cost=shipping_cost,
            total=total,
            payment_session_id=session_id,
            payment_reference=payment_reference,
            payment_details=payment_details,
            paid_at=now,
        )
        self.db.add(order)

        for product_id in product_ids:
            product = products.get(product_id)
            if product is None:
                logger.warning(f"Paid session {session_id} references unknown product {product_id}")
                continue
            order.items.append(OrderItem(
                product_id=product.id,
                product_title=product.title,
                product_slug=product.slug,
                price=product.price,
                quantity=1,
            ))
            product.status = ProductStatus.SOLD.value
            product.sold_at = now

        await self.db.flush()
        logger.info(f"Order created: {order.order_number} for session {session_id}")
        return await self._load(order.id)

    async def cancel_for_failed_payment(self, order: Order, reason: str) -> bool:
        """
        Cancel an order whose payment failed. Only PENDING orders are touched,
        so a paid or fulfilled order keeps its SOLD pieces.
        """
        if order.status != OrderStatus.PENDING.value:
            logger.warning(
                f"Ignoring payment failure for order {order.order_number} in status {order.status}"
            )
            return False
        order.status = OrderStatus.CANCELLED.value
        order.internal_notes = append_note_block(
            order.internal_notes,
            f"Pagamento fallito {format_note_date(datetime.now(timezone.utc))}",
            [reason],
        )
        await self.restore_sold_products(order)
        await self.db.flush()
        logger.info(f"Order cancelled due to payment failure: {order.order_number}")
        return True


def order_items_payload(order: Order) -> List[dict]:
    """Line items in the shape the email templates expect."""
    return [
        {
            "id": str(item.id),
            "product_title": item.product_title,
            "product_slug": item.product_slug,
            "price": item.price,
            "quantity": item.quantity,
            "image_url": item.image_url,
        }
        for item in order.items
    ]


def shipping_address_payload(order: Order) -> Optional[dict]:
    if not order.shipping_address:
        return None
    return {
        "name": order.shipping_name,
        "address": order.shipping_address,
        "city": order.shipping_city,
        "postal": order.shipping_postal,
        "country": order.shipping_country,
    }
