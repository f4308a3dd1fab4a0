from decimal import Decimal

import pytest

from storefront.services.email_service import EmailService, format_price

PHISHING_NAME = '<a href="https://evil.example">Verify your account</a>'


class CapturingEmailService(EmailService):
    """Renders every template but keeps the message instead of sending it."""

    def __init__(self):
        super().__init__(base_url="https://shop.test")
        self.messages = []

    def send_email(self, to_email, subject, html_content, text_content=None):
        self.messages.append({
            "to": to_email,
            "subject": subject,
            "html": html_content,
            "text": text_content,
        })
        return True


@pytest.fixture
def mailer():
    return CapturingEmailService()


def test_format_price():
    assert format_price(Decimal("1234.5")) == "1.234,50 €"
    assert format_price(None) == "0,00 €"


def test_contact_receipt_escapes_sender_input(mailer):
    mailer.send_contact_receipt_email(
        to_email="victim@example.com",
        customer_name=PHISHING_NAME,
        subject="Domanda",
        message="<img src=x onerror=alert(1)>",
    )

    html = mailer.messages[0]["html"]
    assert '<a href="https://evil.example">' not in html
    assert "&lt;a href=&quot;https://evil.example&quot;&gt;" in html
    assert "<img src=x" not in html
    assert "&lt;img src=x onerror=alert(1)&gt;" in html
    assert PHISHING_NAME in mailer.messages[0]["text"]


def test_contact_admin_notification_escapes_sender_input(mailer):
    mailer.send_contact_admin_notification(
        admin_email="owner@barbaglia.test",
        customer_name=PHISHING_NAME,
        customer_email="x@example.com",
        subject="<b>urgente</b>",
        message="ciao",
    )

    html = mailer.messages[0]["html"]
    assert "<a href" not in html
    assert "<b>urgente</b>" not in html
    assert "&lt;b&gt;urgente&lt;/b&gt;" in html


def test_order_confirmation_escapes_checkout_fields(mailer):
    mailer.send_order_confirmation_email(
        to_email="giulia@example.com",
        order_number="AB-20260101-0001",
        customer_name=PHISHING_NAME,
        items=[{
            "product_title": "Comò <script>",
            "product_slug": "como",
            "price": Decimal("100.00"),
            "quantity": 1,
        }],
        subtotal=Decimal("100.00"),
        shipping_cost=Decimal("0.00"),
        total=Decimal("100.00"),
        shipping_address={"name": "Giulia", "address": '"><a href="https://evil.example">', "city": "Torino"},
    )

    html = mailer.messages[0]["html"]
    assert "evil.example\">" not in html
    assert "<a href=\"https://evil.example" not in html
    assert "Comò &lt;script&gt;" in html
    assert "<script>" not in html


def test_admin_new_order_escapes_customer_data(mailer):
    mailer.send_admin_new_order_email(
        admin_email="owner@barbaglia.test",
        order_number="AB-20260101-0002",
        customer_name=PHISHING_NAME,
        customer_email="<x@example.com>",
        items=[],
        subtotal=Decimal("10.00"),
        shipping_cost=Decimal("0.00"),
        total=Decimal("10.00"),
        customer_phone="<i>333</i>",
    )

    html = mailer.messages[0]["html"]
    assert "evil.example\">" not in html
    assert "&lt;x@example.com&gt;" in html
    assert "&lt;i&gt;333&lt;/i&gt;" in html


def test_back_in_stock_escapes_product_title(mailer):
    mailer.send_back_in_stock_email(
        to_email="watcher@example.com",
        customer_name="Mario",
        product_title="<em>Specchiera</em>",
        product_slug="specchiera",
        product_price=Decimal("300.00"),
    )

    html = mailer.messages[0]["html"]
    assert "<em>Specchiera</em>" not in html
    assert "&lt;em&gt;Specchiera&lt;/em&gt;" in html
    assert 'href="https://shop.test/shop/specchiera"' in html
