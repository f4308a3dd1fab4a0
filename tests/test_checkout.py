"""Checkout session creation and the Razorpay webhook."""
import hashlib
import hmac
import json
import uuid
from decimal import Decimal

from sqlalchemy import select, func

from storefront.models import Order, OrderStatus, ProductStatus
from storefront.services.payment_service import (
    MAX_CHECKOUT_ITEMS,
    decode_product_notes,
    encode_product_notes,
)

WEBHOOK_SECRET = "whsec_test"


def customer_payload(**overrides):
    customer = {
        "name": "Giulia Bianchi",
        "email": "giulia@example.com",
        "phone": "+39 333 1234567",
        "address": "Via Po 12",
        "city": "Torino",
        "postal": "10123",
        "country": "it",
    }
    customer.update(overrides)
    return customer


def line(product, quantity=1):
    return {
        "productId": str(product.id),
        "productTitle": product.title,
        "productSlug": product.slug,
        "price": 1,
        "quantity": quantity,
    }


def paid_event(link_request, link_id="plink_0001", payment_id="pay_0001"):
    return {
        "event": "payment_link.paid",
        "payload": {
            "payment_link": {"entity": {
                "id": link_id,
                "amount": link_request["amount"],
                "amount_paid": link_request["amount"],
                "currency": link_request["currency"],
                "notes": link_request["notes"],
                "customer": link_request["customer"],
            }},
            "payment": {"entity": {
                "id": payment_id,
                "amount": link_request["amount"],
                "currency": link_request["currency"],
                "method": "card",
                "email": link_request["customer"]["email"],
            }},
        },
    }


def signed(event):
    body = json.dumps(event).encode()
    signature = hmac.new(WEBHOOK_SECRET.encode(), body, hashlib.sha256).hexdigest()
    return body, {"X-Razorpay-Signature": signature, "Content-Type": "application/json"}


def test_product_notes_round_trip_across_keys():
    ids = [uuid.uuid4() for _ in range(MAX_CHECKOUT_ITEMS)]
    notes = encode_product_notes(ids)

    assert len(notes) == 4
    assert all(len(value) <= 256 for value in notes.values())
    assert decode_product_notes(notes) == ids


# ==================== CHECKOUT ====================

async def test_checkout_uses_catalogue_prices_and_free_shipping(client, make_product, razorpay_client):
    product = await make_product(price="1200.00")

    response = await client.post(
        "/api/checkout",
        json={"items": [line(product, quantity=3)], "customer": customer_payload()},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["sessionId"] == "plink_0001"
    assert body["url"] == "https://rzp.io/i/plink_0001"
    assert body["subtotal"] == 1200
    assert body["shippingCost"] == 0
    assert body["total"] == 1200

    link_request = razorpay_client.payment_link.created[0]
    assert link_request["amount"] == 120000
    assert link_request["currency"] == "EUR"
    assert link_request["notes"]["user_id"] == "guest"
    assert link_request["notes"]["shipping_country"] == "IT"
    assert decode_product_notes(link_request["notes"]) == [product.id]


async def test_checkout_shipping_takes_most_expensive_piece(client, make_product):
    lamp = await make_product(price="100.00")
    mirror = await make_product(price="150.00", shipping_cost=Decimal("80.00"))

    response = await client.post(
        "/api/checkout", json={"items": [line(lamp), line(mirror)], "customer": customer_payload()}
    )

    assert response.json()["shippingCost"] == 80
    assert response.json()["total"] == 330


async def test_checkout_international_default(client, make_product):
    product = await make_product(price="200.00")

    response = await client.post(
        "/api/checkout", json={"items": [line(product)], "customer": customer_payload(country="FR")}
    )

    assert response.json()["shippingCost"] == 150


async def test_checkout_refuses_sold_piece(client, make_product, razorpay_client):
    product = await make_product(status=ProductStatus.SOLD)

    response = await client.post(
        "/api/checkout", json={"items": [line(product)], "customer": customer_payload()}
    )

    assert response.status_code == 400
    assert response.json()["errorCode"] == "PRODUCT_SOLD"
    assert razorpay_client.payment_link.created == []


async def test_checkout_refuses_reserved_piece(client, make_product):
    product = await make_product(status=ProductStatus.RESERVED)

    response = await client.post(
        "/api/checkout", json={"items": [line(product)], "customer": customer_payload()}
    )

    assert response.status_code == 400


async def test_checkout_provider_failure(client, make_product, razorpay_client):
    product = await make_product()
    razorpay_client.payment_link.fail = True

    response = await client.post(
        "/api/checkout", json={"items": [line(product)], "customer": customer_payload()}
    )

    assert response.status_code == 502
    assert response.json()["error"] == "Failed to create checkout session"


async def test_checkout_records_signed_in_customer(client, customer, customer_headers, make_product, razorpay_client):
    product = await make_product()

    await client.post(
        "/api/checkout",
        json={"items": [line(product)], "customer": customer_payload()},
        headers=customer_headers,
    )

    assert razorpay_client.payment_link.created[0]["notes"]["user_id"] == str(customer.id)


# ==================== WEBHOOK ====================

async def test_paid_webhook_creates_order_and_notifies(
    client, db, make_user, make_product, make_wishlist_item, razorpay_client, email_service
):
    product = await make_product(price="1200.00", title="Credenza piemontese")
    watcher = await make_user(email="watcher@example.com")
    await make_wishlist_item(watcher, product, notify_on_sale=True)
    await client.post("/api/checkout", json={"items": [line(product)], "customer": customer_payload()})

    body, headers = signed(paid_event(razorpay_client.payment_link.created[0]))
    response = await client.post("/api/webhooks/payments", content=body, headers=headers)

    assert response.status_code == 200
    ack = response.json()
    assert ack["received"] is True
    assert ack["event"] == "payment_link.paid"
    assert ack["orderNumber"].startswith("AB-")

    order = await db.scalar(select(Order).where(Order.order_number == ack["orderNumber"]))
    assert order.status == OrderStatus.PAID.value
    assert order.total == Decimal("1200.00")
    assert order.shipping_email == "giulia@example.com"
    assert order.payment_reference == "pay_0001"
    assert order.user_id is None

    await db.refresh(product)
    assert product.status == ProductStatus.SOLD.value
    assert product.sold_at is not None

    assert [m["to"] for m in email_service.of_kind("order_confirmation")] == ["giulia@example.com"]
    assert [m["to"] for m in email_service.of_kind("admin_new_order")] == ["owner@barbaglia.test"]
    assert email_service.of_kind("admin_new_order")[0]["is_guest"] is True
    assert [m["to"] for m in email_service.of_kind("wishlist_sold")] == ["watcher@example.com"]


async def test_paid_webhook_is_idempotent(client, db, make_product, razorpay_client, email_service):
    product = await make_product()
    await client.post("/api/checkout", json={"items": [line(product)], "customer": customer_payload()})
    body, headers = signed(paid_event(razorpay_client.payment_link.created[0]))

    first = await client.post("/api/webhooks/payments", content=body, headers=headers)
    second = await client.post("/api/webhooks/payments", content=body, headers=headers)

    assert second.status_code == 200
    assert second.json()["orderNumber"] == first.json()["orderNumber"]
    assert await db.scalar(select(func.count(Order.id))) == 1
    assert len(email_service.of_kind("order_confirmation")) == 1


async def test_webhook_rejects_bad_signature(client, db):
    body = json.dumps({"event": "payment_link.paid", "payload": {}}).encode()

    invalid = await client.post(
        "/api/webhooks/payments", content=body, headers={"X-Razorpay-Signature": "deadbeef"}
    )
    missing = await client.post("/api/webhooks/payments", content=body)

    assert invalid.status_code == 400
    assert invalid.json()["error"] == "Invalid signature"
    assert missing.status_code == 400
    assert await db.scalar(select(func.count(Order.id))) == 0


async def test_unhandled_event_is_acknowledged(client):
    body, headers = signed({"event": "payment.captured", "payload": {}})

    response = await client.post("/api/webhooks/payments", content=body, headers=headers)

    assert response.status_code == 200
    assert response.json() == {"received": True, "event": "payment.captured", "orderNumber": None}


async def test_failed_payment_cancels_order_and_restores_products(client, db, make_product, make_order):
    product = await make_product(status=ProductStatus.SOLD)
    order = await make_order([product], status=OrderStatus.PENDING, payment_reference="pay_failed")

    body, headers = signed({
        "event": "payment.failed",
        "payload": {"payment": {"entity": {"id": "pay_failed", "error_description": "Card declined"}}},
    })
    response = await client.post("/api/webhooks/payments", content=body, headers=headers)

    assert response.status_code == 200
    assert response.json()["orderNumber"] == order.order_number
    await db.refresh(order)
    await db.refresh(product)
    assert order.status == OrderStatus.CANCELLED.value
    assert "Payment failed: Card declined" in order.internal_notes
    assert product.status == ProductStatus.AVAILABLE.value


async def test_failed_payment_without_order(client):
    body, headers = signed({"event": "payment.failed", "payload": {"payment": {"entity": {"id": "pay_x"}}}})

    response = await client.post("/api/webhooks/payments", content=body, headers=headers)

    assert response.status_code == 200
    assert response.json()["orderNumber"] is None


async def test_late_failure_from_earlier_attempt_keeps_paid_order(client, db, make_product, make_order):
    product = await make_product(status=ProductStatus.SOLD)
    order = await make_order([product], payment_session_id="plink_1", payment_reference="pay_ok")

    body, headers = signed({
        "event": "payment.failed",
        "payload": {"payment": {"entity": {
            "id": "pay_first_attempt",
            "notes": {"payment_link_id": "plink_1"},
            "error_description": "Card declined",
        }}},
    })
    response = await client.post("/api/webhooks/payments", content=body, headers=headers)

    assert response.status_code == 200
    assert response.json()["orderNumber"] is None
    await db.refresh(order)
    await db.refresh(product)
    assert order.status == OrderStatus.PAID.value
    assert product.status == ProductStatus.SOLD.value


async def test_failure_never_cancels_fulfilled_order(client, db, make_product, make_order):
    product = await make_product(status=ProductStatus.SOLD)
    order = await make_order([product], status=OrderStatus.SHIPPED, payment_reference="pay_shipped")

    body, headers = signed({
        "event": "payment.failed",
        "payload": {"payment": {"entity": {"id": "pay_shipped"}}},
    })
    await client.post("/api/webhooks/payments", content=body, headers=headers)

    await db.refresh(order)
    await db.refresh(product)
    assert order.status == OrderStatus.SHIPPED.value
    assert product.status == ProductStatus.SOLD.value
