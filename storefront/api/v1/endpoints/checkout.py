from fastapi import APIRouter

from storefront.api.deps import DB, Context, Payments
from storefront.schemas.checkout import CheckoutRequest, CheckoutResponse
from storefront.services.checkout_service import CheckoutService


router = APIRouter(tags=["Checkout"])


@router.post("", response_model=CheckoutResponse)
async def create_checkout(data: CheckoutRequest, db: DB, ctx: Context, payments: Payments):
    """
    Start a hosted payment for the cart.

    Prices and availability are re-read from the catalogue; the amounts in the
    request are ignored. Guests may check out. No order exists until the
    payment provider confirms the payment.
    """
    result = await CheckoutService(db, payments).create_checkout(ctx, data)
    return CheckoutResponse(**result)
