"""Order status transitions, access control, tracking and shipment emails."""
import uuid
from datetime import datetime, timezone

from storefront.models import ProductStatus, OrderStatus


async def test_ship_order_stamps_date_logs_tracking_and_emails(
    client, db, admin_headers, make_product, make_order, email_service
):
    product = await make_product(status=ProductStatus.SOLD)
    order = await make_order([product], status=OrderStatus.PAID)

    response = await client.put(
        f"/api/orders/{order.id}",
        json={"status": "SHIPPED", "trackingNumber": "1Z999", "carrierName": "BRT"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "SHIPPED"
    assert body["shippedAt"] is not None
    assert "1Z999" in body["internalNotes"]
    assert "Corriere: BRT" in body["internalNotes"]
    assert body["internalNotes"].startswith("--- Spedizione ")
    assert body["notificationStatus"] == "SENT"
    assert body["items"][0]["productTitle"] == product.title

    shipped = email_service.of_kind("order_shipped")
    assert len(shipped) == 1
    assert shipped[0]["to"] == "cliente@example.com"
    assert shipped[0]["tracking_number"] == "1Z999"


async def test_shipping_twice_does_not_restamp_or_reappend(
    client, admin_headers, make_product, make_order, email_service
):
    product = await make_product(status=ProductStatus.SOLD)
    order = await make_order([product])

    first = await client.put(
        f"/api/orders/{order.id}",
        json={"status": "SHIPPED", "trackingNumber": "1Z999"},
        headers=admin_headers,
    )
    second = await client.put(
        f"/api/orders/{order.id}",
        json={"status": "SHIPPED", "trackingNumber": "2X000"},
        headers=admin_headers,
    )

    assert second.status_code == 200
    assert second.json()["shippedAt"] == first.json()["shippedAt"]
    assert second.json()["internalNotes"] == first.json()["internalNotes"]
    assert "2X000" not in second.json()["internalNotes"]
    assert second.json()["notificationStatus"] is None
    assert len(email_service.of_kind("order_shipped")) == 1


async def test_ship_without_notification(client, admin_headers, make_product, make_order, email_service):
    order = await make_order([await make_product(status=ProductStatus.SOLD)])

    response = await client.put(
        f"/api/orders/{order.id}",
        json={"status": "SHIPPED", "sendNotification": False},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["notificationStatus"] is None
    assert email_service.of_kind("order_shipped") == []


async def test_email_failure_does_not_fail_update(client, admin_headers, make_product, make_order, email_service):
    order = await make_order([await make_product(status=ProductStatus.SOLD)])
    email_service.raising.add("cliente@example.com")

    response = await client.put(
        f"/api/orders/{order.id}",
        json={"status": "SHIPPED", "trackingNumber": "1Z999"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["status"] == "SHIPPED"
    assert response.json()["notificationStatus"] == "FAILED"


async def test_shipment_email_falls_back_to_account_email(
    client, admin_headers, customer, make_product, make_order, email_service
):
    order = await make_order(
        [await make_product(status=ProductStatus.SOLD)], user=customer, shipping_email=None
    )

    await client.put(f"/api/orders/{order.id}", json={"status": "SHIPPED"}, headers=admin_headers)

    assert email_service.of_kind("order_shipped")[0]["to"] == customer.email


async def test_cancel_restores_sold_products(client, db, admin_headers, make_product, make_order):
    sold = await make_product(status=ProductStatus.SOLD, sold_at=datetime(2026, 3, 1, tzinfo=timezone.utc))
    reserved = await make_product(status=ProductStatus.RESERVED)
    order = await make_order([sold, reserved])

    response = await client.put(
        f"/api/orders/{order.id}", json={"status": "CANCELLED"}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["status"] == "CANCELLED"
    await db.refresh(sold)
    await db.refresh(reserved)
    assert sold.status == ProductStatus.AVAILABLE.value
    assert sold.sold_at is None
    assert reserved.status == ProductStatus.RESERVED.value


async def test_cancelling_cancelled_order_leaves_products_alone(
    client, db, admin_headers, make_product, make_order
):
    product = await make_product(status=ProductStatus.SOLD)
    order = await make_order([product], status=OrderStatus.CANCELLED)

    response = await client.put(
        f"/api/orders/{order.id}", json={"status": "CANCELLED"}, headers=admin_headers
    )

    assert response.status_code == 200
    await db.refresh(product)
    assert product.status == ProductStatus.SOLD.value


async def test_notes_replacement_without_status(client, admin_headers, make_product, make_order):
    order = await make_order([await make_product()], internal_notes="vecchia nota")

    response = await client.put(
        f"/api/orders/{order.id}", json={"internalNotes": "chiamato il cliente"}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["internalNotes"] == "chiamato il cliente"
    assert response.json()["status"] == "PAID"


async def test_empty_status_leaves_status_unchanged(client, admin_headers, make_product, make_order):
    order = await make_order([await make_product()])

    response = await client.put(
        f"/api/orders/{order.id}", json={"status": "", "internalNotes": "in attesa"}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["status"] == "PAID"
    assert response.json()["internalNotes"] == "in attesa"


async def test_update_requires_authentication(client, make_product, make_order):
    order = await make_order([await make_product()])
    response = await client.put(f"/api/orders/{order.id}", json={"status": "SHIPPED"})
    assert response.status_code == 401


async def test_update_forbidden_for_customer(client, customer_headers, make_product, make_order):
    order = await make_order([await make_product()])
    response = await client.put(
        f"/api/orders/{order.id}", json={"status": "SHIPPED"}, headers=customer_headers
    )
    assert response.status_code == 403


async def test_update_missing_order(client, admin_headers):
    response = await client.put(
        f"/api/orders/{uuid.uuid4()}", json={"status": "SHIPPED"}, headers=admin_headers
    )
    assert response.status_code == 404
    assert response.json()["error"] == "Order not found"


async def test_update_invalid_status(client, admin_headers, make_product, make_order):
    order = await make_order([await make_product()])
    response = await client.put(
        f"/api/orders/{order.id}", json={"status": "LOST"}, headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["errorCode"] == "INVALID_STATUS"


async def test_invalid_token_is_rejected(client, make_product, make_order):
    order = await make_order([await make_product()])
    response = await client.get(f"/api/orders/{order.id}", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401


# ==================== RESEND ====================

async def test_resend_requires_shipped_order(client, admin_headers, make_product, make_order):
    order = await make_order([await make_product()], status=OrderStatus.PAID)
    response = await client.post(
        f"/api/orders/{order.id}/resend-notification", json={}, headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["errorCode"] == "INVALID_STATUS"


async def test_resend_with_tracking_update(client, db, admin_headers, make_product, make_order, email_service):
    order = await make_order(
        [await make_product(status=ProductStatus.SOLD)],
        status=OrderStatus.SHIPPED,
        internal_notes="--- Spedizione 1/1/2026 ---",
    )

    response = await client.post(
        f"/api/orders/{order.id}/resend-notification",
        json={"trackingNumber": "NEW123", "updateTracking": True},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Shipping notification resent to cliente@example.com",
    }
    await db.refresh(order)
    assert "--- Aggiornamento Tracking " in order.internal_notes
    assert "Tracking: NEW123" in order.internal_notes
    assert email_service.of_kind("order_shipped")[0]["tracking_number"] == "NEW123"


async def test_resend_reports_failed_delivery(client, admin_headers, make_product, make_order, email_service):
    order = await make_order([await make_product(status=ProductStatus.SOLD)], status=OrderStatus.DELIVERED)
    email_service.failing.add("cliente@example.com")

    response = await client.post(
        f"/api/orders/{order.id}/resend-notification", json={}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["success"] is False


# ==================== READ ====================

async def test_customer_lists_only_own_orders(
    client, customer, customer_headers, admin_headers, make_product, make_order
):
    mine = await make_order([await make_product()], user=customer)
    await make_order([await make_product()])

    own = await client.get("/api/orders", headers=customer_headers)
    everything = await client.get("/api/orders", headers=admin_headers)

    assert own.json()["total"] == 1
    assert own.json()["orders"][0]["id"] == str(mine.id)
    assert everything.json()["total"] == 2


async def test_list_filters_by_status(client, admin_headers, make_product, make_order):
    await make_order([await make_product()], status=OrderStatus.PAID)
    await make_order([await make_product()], status=OrderStatus.SHIPPED)

    response = await client.get("/api/orders", params={"status": "SHIPPED"}, headers=admin_headers)

    assert response.json()["total"] == 1
    assert response.json()["orders"][0]["status"] == "SHIPPED"


async def test_customer_cannot_read_someone_elses_order(
    client, customer_headers, make_user, make_product, make_order
):
    other = await make_user()
    order = await make_order([await make_product()], user=other)

    response = await client.get(f"/api/orders/{order.id}", headers=customer_headers)

    assert response.status_code == 403


async def test_track_order_by_number_and_email(client, make_product, make_order):
    order = await make_order([await make_product()], internal_notes="segreto")

    response = await client.post(
        "/api/orders/track",
        json={"orderNumber": order.order_number.lower(), "email": "CLIENTE@example.com"},
    )

    assert response.status_code == 200
    tracked = response.json()["order"]
    assert tracked["orderNumber"] == order.order_number
    assert "internalNotes" not in tracked


async def test_track_order_wrong_email_is_not_found(client, make_product, make_order):
    order = await make_order([await make_product()])

    response = await client.post(
        "/api/orders/track", json={"orderNumber": order.order_number, "email": "altro@example.com"}
    )

    assert response.status_code == 404
