"""
Checkout Service

Turns a cart into a hosted payment page and, once the payment processor
confirms the payment, into a PAID order.

Flow:
1. POST /checkout: prices and availability are re-read from the catalog,
   shipping is computed from the site settings, and a payment link is created.
   Nothing is written to the database yet.
2. payment_link.paid webhook: the order is created (once per link), its
   products are marked SOLD, and the confirmation, admin and wishlist-sold
   emails go out.
3. payment.failed webhook: a PENDING order recorded for that exact payment,
   if any, is cancelled and its products are put back on sale.
"""
import json
import logging
import uuid
from decimal import Decimal
from typing import Optional, List, Dict, Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from storefront.config import settings
from storefront.core.context import RequestContext
from storefront.core.exceptions import (
    StorefrontError,
    ValidationError,
    NotFoundError,
    PRODUCT_SOLD,
)
from storefront.models.order import Order
from storefront.models.product import Product, ProductStatus
from storefront.models.site_settings import SiteSettings
from storefront.schemas.checkout import CheckoutRequest
from storefront.services.email_service import EmailService
from storefront.services.order_service import (
    OrderService,
    order_items_payload,
    shipping_address_payload,
)
from storefront.services.payment_service import (
    PaymentService,
    WebhookEvent,
    MAX_CHECKOUT_ITEMS,
    encode_product_notes,
    decode_product_notes,
    from_minor_units,
)
from storefront.services.settings_service import SettingsService
from storefront.services.wishlist_notifier import WishlistNotifier


logger = logging.getLogger(__name__)


DOMESTIC_COUNTRY = "IT"


def calculate_shipping(
    products: List[Product],
    subtotal: Decimal,
    site_settings: SiteSettings,
    country: str
) -> Decimal:
    """
    Free above the threshold. Otherwise the most expensive of the per-product
    costs, where a product without an override uses the site default.
    """
    if subtotal >= site_settings.free_shipping_threshold:
        return Decimal("0.00")

    international = country.upper() != DOMESTIC_COUNTRY
    default_cost = (
        site_settings.international_shipping_cost if international
        else site_settings.domestic_shipping_cost
    )

    costs = []
    for product in products:
        override = product.shipping_cost_intl if international else product.shipping_cost
        costs.append(override if override is not None else default_cost)

    return max(costs) if costs else default_cost


class CheckoutService:
    """Checkout session creation and payment webhook processing."""

    def __init__(self, db: AsyncSession, payment_service: PaymentService):
        self.db = db
        self.payment_service = payment_service

    # ==================== CHECKOUT ====================

    async def create_checkout(self, ctx: RequestContext, request: CheckoutRequest) -> Dict[str, Any]:
        """
        Create the hosted checkout session for a cart.

        Each piece is unique, so every product is charged once whatever
        quantity the cart carries.
        """
        product_ids = list(dict.fromkeys(item.product_id for item in request.items))
        if len(product_ids) > MAX_CHECKOUT_ITEMS:
            raise ValidationError(f"Too many items. Maximum {MAX_CHECKOUT_ITEMS} pieces per order.")

        result = await self.db.execute(select(Product).where(Product.id.in_(product_ids)))
        products = {p.id: p for p in result.scalars().all()}

        ordered_products = []
        for product_id in product_ids:
            product = products.get(product_id)
            if product is None:
                raise NotFoundError("Product not found")
            if product.status == ProductStatus.SOLD.value:
                raise ValidationError(
                    f'"{product.title}" has already been sold and is no longer available.',
                    PRODUCT_SOLD,
                )
            if product.status != ProductStatus.AVAILABLE.value:
                raise ValidationError(f'"{product.title}" is not available for purchase.')
            ordered_products.append(product)

        site_settings = await SettingsService(self.db).get_settings()
        customer = request.customer

        subtotal = sum((p.price for p in ordered_products), Decimal("0.00"))
        shipping_cost = calculate_shipping(ordered_products, subtotal, site_settings, customer.country)
        total = subtotal + shipping_cost

        notes = {
            "user_id": str(ctx.user_id) if ctx.user_id else "guest",
            "shipping_name": customer.name,
            "shipping_email": customer.email,
            "shipping_phone": customer.phone or "",
            "shipping_address": customer.address[:256],
            "shipping_city": customer.city,
            "shipping_postal": customer.postal,
            "shipping_country": customer.country,
            "subtotal": str(subtotal),
            "shipping_cost": str(shipping_cost),
            **encode_product_notes(product_ids),
        }

        titles = ", ".join(p.title for p in ordered_products)
        link = self.payment_service.create_payment_link(
            amount=total,
            description=f"{settings.SMTP_FROM_NAME}: {titles}",
            customer={"name": customer.name, "email": customer.email, "contact": customer.phone},
            notes=notes,
            callback_url=f"{settings.BASE_URL.rstrip('/')}/order-confirmation",
        )

        logger.info(f"Checkout session {link['id']} created for {len(product_ids)} product(s), total {total}")
        return {
            "session_id": link["id"],
            "url": link["short_url"],
            "subtotal": subtotal,
            "shipping_cost": shipping_cost,
            "total": total,
        }

    # ==================== WEBHOOK ====================

    async def handle_webhook(
        self,
        body: bytes,
        signature: Optional[str],
        email_service: EmailService
    ) -> Dict[str, Any]:
        if not settings.RAZORPAY_WEBHOOK_SECRET:
            logger.error("Missing RAZORPAY_WEBHOOK_SECRET")
            raise StorefrontError("Webhook secret not configured")

        if not signature:
            raise ValidationError("Missing X-Razorpay-Signature header")

        if not self.payment_service.verify_webhook_signature(body, signature):
            raise ValidationError("Invalid signature")

        try:
            event = json.loads(body)
        except ValueError:
            raise ValidationError("Invalid webhook payload")

        event_type = event.get("event")
        payload = event.get("payload") or {}
        order = None

        if event_type == WebhookEvent.PAYMENT_LINK_PAID:
            order = await self.handle_payment_link_paid(payload, email_service)
        elif event_type == WebhookEvent.PAYMENT_FAILED:
            order = await self.handle_payment_failed(payload)
        else:
            logger.info(f"Unhandled event type: {event_type}")

        return {
            "received": True,
            "event": event_type,
            "order_number": order.order_number if order else None,
        }

    async def handle_payment_link_paid(self, payload: Dict[str, Any], email_service: EmailService) -> Order:
        link = (payload.get("payment_link") or {}).get("entity") or {}
        payment = (payload.get("payment") or {}).get("entity") or {}
        session_id = link.get("id")
        if not session_id:
            raise ValidationError("Webhook payload has no payment link")

        logger.info(f"Processing payment_link.paid: {session_id}")
        order_service = OrderService(self.db)

        existing = await order_service.get_by_payment_session(session_id)
        if existing:
            logger.info(f"Order already exists for session: {session_id}")
            return existing

        notes = link.get("notes") or {}
        product_ids = decode_product_notes(notes)
        customer = link.get("customer") or {}

        user_id = None
        raw_user_id = notes.get("user_id")
        if raw_user_id and raw_user_id != "guest":
            try:
                user_id = uuid.UUID(raw_user_id)
            except ValueError:
                logger.warning(f"Ignoring malformed user id in payment notes: {raw_user_id}")

        shipping = {
            "name": notes.get("shipping_name") or customer.get("name"),
            "email": notes.get("shipping_email") or payment.get("email") or customer.get("email"),
            "phone": notes.get("shipping_phone") or payment.get("contact") or customer.get("contact"),
            "address": notes.get("shipping_address"),
            "city": notes.get("shipping_city"),
            "postal": notes.get("shipping_postal"),
            "country": notes.get("shipping_country"),
        }

        total = from_minor_units(link.get("amount_paid") or link.get("amount") or 0)
        shipping_cost = Decimal(str(notes.get("shipping_cost") or "0"))
        subtotal = Decimal(str(notes.get("subtotal") or total - shipping_cost))

        order = await order_service.create_paid_order(
            session_id=session_id,
            product_ids=product_ids,
            shipping=shipping,
            subtotal=subtotal,
            shipping_cost=shipping_cost,
            total=total,
            user_id=user_id,
            payment_reference=payment.get("id"),
            payment_details={
                "payment_link_id": session_id,
                "payment_id": payment.get("id"),
                "method": payment.get("method"),
                "amount": payment.get("amount"),
                "currency": payment.get("currency") or link.get("currency"),
            },
        )

        site_settings = await SettingsService(self.db).get_settings()
        if site_settings.order_confirmation_enabled and order.customer_email:
            sent = await run_in_threadpool(
                email_service.send_order_confirmation_email,
                to_email=order.customer_email,
                order_number=order.order_number,
                customer_name=order.customer_name or "Cliente",
                items=order_items_payload(order),
                subtotal=order.subtotal,
                shipping_cost=order.shipping_cost,
                total=order.total,
                shipping_address=shipping_address_payload(order),
                order_date=order.created_at,
                locale="it",
            )
            if sent:
                logger.info(f"Order confirmation email sent to: {order.customer_email}")
            else:
                logger.warning(f"Order confirmation email to {order.customer_email} was not delivered")

        await WishlistNotifier(self.db, email_service).notify_sold(product_ids)
        await self._notify_admin(order, email_service, is_guest=user_id is None)
        return order

    async def _notify_admin(self, order: Order, email_service: EmailService, is_guest: bool) -> None:
        admin_email = await SettingsService(self.db).get_admin_email()
        if not admin_email:
            logger.info("No admin email configured, skipping admin notification")
            return

        await run_in_threadpool(
            email_service.send_admin_new_order_email,
            admin_email=admin_email,
            order_number=order.order_number,
            customer_name=order.customer_name or "Cliente",
            customer_email=order.customer_email or "N/A",
            customer_phone=order.shipping_phone,
            items=order_items_payload(order),
            subtotal=order.subtotal,
            shipping_cost=order.shipping_cost,
            total=order.total,
            shipping_address=shipping_address_payload(order),
            order_date=order.created_at,
            is_guest=is_guest,
        )

    async def handle_payment_failed(self, payload: Dict[str, Any]) -> Optional[Order]:
        """
        Cancel the PENDING order recorded for exactly this payment.

        Returns the cancelled order, or None when nothing was cancelled.
        """
        payment = (payload.get("payment") or {}).get("entity") or {}
        payment_id = payment.get("id")
        logger.info(f"Processing payment.failed: {payment_id}")

        if not payment_id:
            return None

        order_service = OrderService(self.db)
        order = await order_service.get_by_payment_reference(payment_id)
        if order is None:
            # Link payments only create an order once paid, so this is the usual case
            logger.info(f"No order found for failed payment {payment_id}")
            return None

        reason = payment.get("error_description") or "Unknown error"
        if not await order_service.cancel_for_failed_payment(order, f"Payment failed: {reason}"):
            return None
        return order
