from typing import Optional

from fastapi import APIRouter, Header, Request

from storefront.api.deps import DB, Email, Payments
from storefront.schemas.checkout import WebhookAck
from storefront.services.checkout_service import CheckoutService


router = APIRouter(tags=["Webhooks"])


@router.post("/payments", response_model=WebhookAck)
async def payment_webhook(
    request: Request,
    db: DB,
    payments: Payments,
    email_service: Email,
    x_razorpay_signature: Optional[str] = Header(None),
):
    """
    Razorpay event receiver.

    The signature is checked against the raw body, so the body is read
    before any parsing.
    """
    body = await request.body()
    ack = await CheckoutService(db, payments).handle_webhook(body, x_razorpay_signature, email_service)
    return WebhookAck(**ack)
