"""
Payment Service - Razorpay Integration

Hosted checkout for the storefront:
- Create Razorpay Payment Links (the hosted payment page)
- Verify webhook signatures
- Carry the cart and shipping snapshot through the link notes so the webhook
  can build the order once the payment is captured
"""

import logging
import hmac
import hashlib
import time
import uuid
from decimal import Decimal
from typing import Optional, Dict, Any, List

import razorpay

from storefront.config import settings
from storefront.core.exceptions import ExternalServiceError


logger = logging.getLogger(__name__)


# Razorpay accepts at most 15 note keys of 256 characters each
PRODUCT_NOTE_KEYS = ["products_1", "products_2", "products_3", "products_4"]
IDS_PER_NOTE = 7  # 7 x 32 hex chars + separators fit in 256
MAX_CHECKOUT_ITEMS = len(PRODUCT_NOTE_KEYS) * IDS_PER_NOTE

# Razorpay refuses links expiring in less than 15 minutes
MIN_LINK_EXPIRY_MINUTES = 16


def encode_product_notes(product_ids: List[uuid.UUID]) -> Dict[str, str]:
    """Spread product ids over the product note keys."""
    notes = {}
    for index, key in enumerate(PRODUCT_NOTE_KEYS):
        chunk = product_ids[index * IDS_PER_NOTE:(index + 1) * IDS_PER_NOTE]
        if chunk:
            notes[key] = ",".join(pid.hex for pid in chunk)
    return notes


def decode_product_notes(notes: Dict[str, Any]) -> List[uuid.UUID]:
    product_ids = []
    for key in PRODUCT_NOTE_KEYS:
        value = notes.get(key)
        if not value:
            continue
        for raw in str(value).split(","):
            raw = raw.strip()
            if not raw:
                continue
            try:
                product_ids.append(uuid.UUID(raw))
            except ValueError:
                logger.warning(f"Ignoring malformed product id in payment notes: {raw}")
    return product_ids


def to_minor_units(amount: Decimal) -> int:
    """Euros to cents."""
    return int((Decimal(amount) * 100).quantize(Decimal("1")))


def from_minor_units(amount: int) -> Decimal:
    return (Decimal(amount) / 100).quantize(Decimal("0.01"))


class WebhookEvent:
    """Razorpay webhook event types handled by the storefront."""
    PAYMENT_LINK_PAID = "payment_link.paid"
    PAYMENT_FAILED = "payment.failed"


class PaymentService:
    """
    Service for handling Razorpay payments.
    """

    def __init__(self, client=None):
        """Initialize Razorpay client."""
        self.client = client or razorpay.Client(
            auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET)
        )
        self.key_id = settings.RAZORPAY_KEY_ID

    def create_payment_link(
        self,
        amount: Decimal,
        description: str,
        customer: Dict[str, Optional[str]],
        notes: Dict[str, str],
        callback_url: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Create a Razorpay Payment Link.

        Args:
            amount: Amount to charge in major units (EUR)
            description: Shown on the hosted page
            customer: name / email / contact
            notes: Metadata returned verbatim in webhooks

        Returns:
            Dict with the link ``id`` and its ``short_url``
        """
        expire_minutes = max(settings.PAYMENT_LINK_EXPIRE_MINUTES, MIN_LINK_EXPIRY_MINUTES)
        link_data = {
            "amount": to_minor_units(amount),
            "currency": settings.PAYMENT_CURRENCY,
            "accept_partial": False,
            "description": description[:2048],
            "reference_id": f"CK-{uuid.uuid4().hex[:12].upper()}",
            "customer": {k: v for k, v in customer.items() if v},
            "notify": {"sms": False, "email": False},
            "reminder_enable": False,
            "expire_by": int(time.time()) + expire_minutes * 60,
            "notes": notes,
        }
        if callback_url:
            link_data["callback_url"] = callback_url
            link_data["callback_method"] = "get"

        try:
            link = self.client.payment_link.create(link_data)
        except Exception as e:
            logger.error(f"Failed to create Razorpay payment link: {e}")
            raise ExternalServiceError("Failed to create checkout session") from e

        logger.info(f"Created Razorpay payment link {link['id']} for {link_data['amount']} {link_data['currency']}")
        return {"id": link["id"], "short_url": link["short_url"]}

    def verify_webhook_signature(self, body: bytes, signature: Optional[str]) -> bool:
        """
        Verify Razorpay webhook signature.

        Args:
            body: Raw request body bytes
            signature: X-Razorpay-Signature header value

        Returns:
            True if signature is valid, False otherwise
        """
        webhook_secret = settings.RAZORPAY_WEBHOOK_SECRET

        if not webhook_secret:
            logger.warning("Webhook secret not configured")
            return False

        if not signature:
            logger.warning("Webhook received without signature")
            return False

        expected_signature = hmac.new(
            webhook_secret.encode(),
            body,
            hashlib.sha256
        ).hexdigest()

        # Compare signatures (constant-time comparison)
        is_valid = hmac.compare_digest(expected_signature, signature)

        if not is_valid:
            logger.warning("Invalid webhook signature")

        return is_valid


def get_payment_service() -> PaymentService:
    """Get configured payment service instance."""
    return PaymentService()
