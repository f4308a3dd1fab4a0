from typing import Optional
import uuid

from fastapi import APIRouter, Query

from storefront.api.deps import DB, UserContext, AdminContext, Email
from storefront.schemas.order import (
    OrderUpdate,
    OrderResponse,
    OrderUpdateResponse,
    OrderListResponse,
    ResendNotificationRequest,
    ResendNotificationResponse,
    OrderTrackRequest,
    OrderTrackResponse,
    TrackedOrderResponse,
)
from storefront.services.order_service import OrderService


router = APIRouter(tags=["Orders"])


@router.get(
    "",
    response_model=OrderListResponse,
    summary="List orders",
    description="Admins see every order, customers only their own.",
)
async def list_orders(
    db: DB,
    ctx: UserContext,
    status: Optional[str] = Query(None, description="Filter by status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    orders, total = await OrderService(db).list_orders(ctx, status=status, limit=limit, offset=offset)
    return OrderListResponse(
        orders=[OrderResponse.model_validate(o) for o in orders],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post(
    "/track",
    response_model=OrderTrackResponse,
    summary="Public order tracking",
)
async def track_order(data: OrderTrackRequest, db: DB):
    """Look up an order by number and the email it was placed with."""
    order = await OrderService(db).track_order(data.order_number, data.email)
    return OrderTrackResponse(order=TrackedOrderResponse.model_validate(order))


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get order",
)
async def get_order(order_id: uuid.UUID, db: DB, ctx: UserContext):
    order = await OrderService(db).get_order(ctx, order_id)
    return OrderResponse.model_validate(order)


@router.put(
    "/{order_id}",
    response_model=OrderUpdateResponse,
    summary="Update order status",
)
async def update_order(
    order_id: uuid.UUID,
    data: OrderUpdate,
    db: DB,
    ctx: AdminContext,
    email_service: Email,
):
    """
    Change status, notes or shipping details.

    Moving to SHIPPED stamps the ship date, logs the tracking details in the
    internal notes and emails the customer unless `sendNotification` is false.
    Moving to CANCELLED puts the order's sold pieces back on sale.
    """
    order, notification_status = await OrderService(db).update_order(ctx, order_id, data, email_service)
    response = OrderUpdateResponse.model_validate(order)
    response.notification_status = notification_status.value if notification_status else None
    return response


@router.post(
    "/{order_id}/resend-notification",
    response_model=ResendNotificationResponse,
    summary="Resend shipment email",
)
async def resend_notification(
    order_id: uuid.UUID,
    data: ResendNotificationRequest,
    db: DB,
    ctx: AdminContext,
    email_service: Email,
):
    success, message = await OrderService(db).resend_notification(ctx, order_id, data, email_service)
    return ResendNotificationResponse(success=success, message=message)
