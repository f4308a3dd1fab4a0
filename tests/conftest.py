"""
Shared fixtures.

The app runs against a throwaway SQLite database; tables are recreated for
every test. Email and Razorpay are replaced through dependency overrides.
"""
import os
import tempfile
import threading
import uuid
from decimal import Decimal

_DB_PATH = os.path.join(tempfile.gettempdir(), f"storefront-test-{os.getpid()}.db")

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "rzp_test_secret"
os.environ["RAZORPAY_WEBHOOK_SECRET"] = "whsec_test"
os.environ["ADMIN_EMAIL"] = "owner@barbaglia.test"

import pytest
from httpx import AsyncClient, ASGITransport

from storefront.main import app
from storefront.database import Base, engine, async_session_factory
from storefront.core.security import get_password_hash
from storefront.models import (
    User,
    UserRole,
    Category,
    Product,
    ProductImage,
    ProductStatus,
    Order,
    OrderItem,
    OrderStatus,
    WishlistItem,
)
from storefront.services.auth_service import AuthService
from storefront.services.email_service import get_email_service
from storefront.services.payment_service import PaymentService, get_payment_service


class FakeEmailService:
    """Records every send. Addresses in `failing` get False back, those in `raising` an exception."""

    def __init__(self):
        self.sent = []
        self.failing = set()
        self.raising = set()

    def _record(self, kind, recipient, **kwargs):
        if recipient in self.raising:
            raise ConnectionError(f"SMTP unavailable for {recipient}")
        self.sent.append({"kind": kind, "to": recipient, "thread": threading.get_ident(), **kwargs})
        return recipient not in self.failing

    def of_kind(self, kind):
        return [m for m in self.sent if m["kind"] == kind]

    def send_order_confirmation_email(self, to_email, **kwargs):
        return self._record("order_confirmation", to_email, **kwargs)

    def send_order_shipped_email(self, to_email, **kwargs):
        return self._record("order_shipped", to_email, **kwargs)

    def send_admin_new_order_email(self, admin_email, **kwargs):
        return self._record("admin_new_order", admin_email, **kwargs)

    def send_wishlist_sold_email(self, to_email, **kwargs):
        return self._record("wishlist_sold", to_email, **kwargs)

    def send_back_in_stock_email(self, to_email, **kwargs):
        return self._record("back_in_stock", to_email, **kwargs)

    def send_contact_receipt_email(self, to_email, **kwargs):
        return self._record("contact_receipt", to_email, **kwargs)

    def send_contact_admin_notification(self, admin_email, **kwargs):
        return self._record("contact_admin", admin_email, **kwargs)


class StubPaymentLinks:
    def __init__(self):
        self.created = []
        self.fail = False

    def create(self, data):
        if self.fail:
            raise RuntimeError("Razorpay is down")
        self.created.append(data)
        link_id = f"plink_{len(self.created):04d}"
        return {"id": link_id, "short_url": f"https://rzp.io/i/{link_id}", **data}


class StubRazorpayClient:
    def __init__(self):
        self.payment_link = StubPaymentLinks()


@pytest.fixture(autouse=True)
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest.fixture
async def db():
    async with async_session_factory() as session:
        yield session


@pytest.fixture
def email_service():
    return FakeEmailService()


@pytest.fixture
def razorpay_client():
    return StubRazorpayClient()


@pytest.fixture
def payment_service(razorpay_client):
    return PaymentService(client=razorpay_client)


@pytest.fixture
async def client(email_service, payment_service):
    app.dependency_overrides[get_email_service] = lambda: email_service
    app.dependency_overrides[get_payment_service] = lambda: payment_service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


# ==================== FACTORIES ====================

@pytest.fixture
def make_user(db):
    async def _make(email=None, name="Mario Rossi", role=UserRole.CUSTOMER, password="password123"):
        user = User(
            email=email or f"user-{uuid.uuid4().hex[:8]}@example.com",
            name=name,
            password_hash=get_password_hash(password),
            role=role.value,
        )
        db.add(user)
        await db.commit()
        return user
    return _make


@pytest.fixture
def make_category(db):
    async def _make(name=None, display_name="Mobili"):
        category = Category(name=name or f"cat-{uuid.uuid4().hex[:8]}", display_name=display_name)
        db.add(category)
        await db.commit()
        return category
    return _make


@pytest.fixture
def make_product(db):
    async def _make(
        title="Cassettone Luigi XVI",
        price="1200.00",
        status=ProductStatus.AVAILABLE,
        slug=None,
        category=None,
        is_featured=False,
        image_url=None,
        **extra
    ):
        product = Product(
            slug=slug or f"pezzo-{uuid.uuid4().hex[:8]}",
            title=title,
            description="Pezzo unico restaurato.",
            price=Decimal(price),
            status=status.value,
            category_id=category.id if category else None,
            is_featured=is_featured,
            **extra
        )
        if image_url:
            product.images.append(ProductImage(url=image_url, is_primary=True, sort_order=0))
        db.add(product)
        await db.commit()
        return product
    return _make


@pytest.fixture
def make_order(db):
    async def _make(products, status=OrderStatus.PAID, user=None, shipping_email="cliente@example.com", **extra):
        order = Order(
            order_number=f"AB-TEST-{uuid.uuid4().hex[:6].upper()}",
            status=status.value,
            user_id=user.id if user else None,
            shipping_name="Giulia Bianchi",
            shipping_email=shipping_email,
            shipping_address="Via Roma 1",
            shipping_city="Torino",
            shipping_postal="10100",
            shipping_country="IT",
            subtotal=sum((p.price for p in products), Decimal("0.00")),
            shipping_cost=Decimal("0.00"),
            total=sum((p.price for p in products), Decimal("0.00")),
            **extra
        )
        for product in products:
            order.items.append(OrderItem(
                product_id=product.id,
                product_title=product.title,
                product_slug=product.slug,
                price=product.price,
                quantity=1,
            ))
        db.add(order)
        await db.commit()
        return order
    return _make


@pytest.fixture
def make_wishlist_item(db):
    async def _make(user, product, **flags):
        item = WishlistItem(user_id=user.id, product_id=product.id, **flags)
        db.add(item)
        await db.commit()
        return item
    return _make


@pytest.fixture
def auth_headers(db):
    def _headers(user):
        token, _ = AuthService(db).create_token(user)
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
async def admin(make_user):
    return await make_user(email="admin@barbaglia.test", name="Admin", role=UserRole.ADMIN)


@pytest.fixture
async def customer(make_user):
    return await make_user(email="mario@example.com", name="Mario Rossi")


@pytest.fixture
def admin_headers(admin, auth_headers):
    return auth_headers(admin)


@pytest.fixture
def customer_headers(customer, auth_headers):
    return auth_headers(customer)
