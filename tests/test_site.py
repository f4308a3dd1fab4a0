"""Site settings, contact form and health check."""


async def test_settings_defaults_are_created_on_first_read(client):
    response = await client.get("/api/settings")

    assert response.status_code == 200
    body = response.json()
    assert body["freeShippingThreshold"] == 500
    assert body["domesticShippingCost"] == 50
    assert body["internationalShippingCost"] == 150
    assert body["wishlistNotificationsEnabled"] is True


async def test_partial_settings_update(client, admin_headers):
    response = await client.put(
        "/api/settings",
        json={"freeShippingThreshold": 800, "tagline": "", "orderConfirmationEnabled": False},
        headers=admin_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["freeShippingThreshold"] == 800
    assert body["domesticShippingCost"] == 50
    assert body["tagline"] is None
    assert body["orderConfirmationEnabled"] is False


async def test_settings_update_requires_admin(client, customer_headers):
    response = await client.put("/api/settings", json={"tagline": "x"}, headers=customer_headers)
    assert response.status_code == 403


async def test_contact_form_sends_receipt_and_forwards(client, admin_headers, email_service):
    await client.put(
        "/api/settings", json={"contactFormNotificationEmail": "negozio@barbaglia.test"}, headers=admin_headers
    )

    response = await client.post(
        "/api/contact",
        json={
            "name": "Laura",
            "email": "laura@example.com",
            "subject": "Informazioni",
            "message": "Vorrei sapere se la credenza è ancora disponibile.",
            "locale": "en",
        },
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Message sent successfully. We will get back to you soon.",
    }
    assert [m["to"] for m in email_service.of_kind("contact_receipt")] == ["laura@example.com"]
    assert [m["to"] for m in email_service.of_kind("contact_admin")] == ["negozio@barbaglia.test"]


async def test_contact_succeeds_when_email_fails(client, email_service):
    email_service.failing.add("laura@example.com")

    response = await client.post(
        "/api/contact",
        json={"name": "Laura", "email": "laura@example.com", "subject": "Ciao", "message": "Un messaggio di prova."},
    )

    assert response.status_code == 200
    assert response.json()["success"] is True


async def test_contact_validation(client):
    response = await client.post(
        "/api/contact", json={"name": "L", "email": "laura@example.com", "subject": "Ciao", "message": "corto"}
    )
    assert response.status_code == 422


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["checks"]["database"] == "connected"
