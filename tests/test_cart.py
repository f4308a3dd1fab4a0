import json
import uuid
from decimal import Decimal

import pytest

from storefront.cart.store import (
    CART_STORAGE_KEY,
    CartItem,
    CartStore,
    JsonFileStorage,
    MemoryStorage,
)
from storefront.models import ProductStatus


def piece(price="100.00", **overrides):
    values = {
        "product_id": str(uuid.uuid4()),
        "title": "Specchiera",
        "slug": f"specchiera-{uuid.uuid4().hex[:6]}",
        "price": Decimal(price),
    }
    values.update(overrides)
    return CartItem(**values)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def cart(storage):
    store = CartStore(storage)
    store.load()
    return store


def test_nothing_is_written_while_loading(storage):
    saved = json.dumps({"items": [piece().to_dict()]})
    storage.set(CART_STORAGE_KEY, saved)
    store = CartStore(storage)

    assert store.is_loading
    store.clear()
    assert storage.get(CART_STORAGE_KEY) == saved

    store.load()
    assert not store.is_loading
    assert len(store.items) == 1


def test_add_is_keyed_by_product(cart, storage):
    item = piece()

    assert cart.add_item(item) is True
    assert cart.add_item(piece(product_id=item.product_id)) is False
    assert cart.item_count() == 1
    assert json.loads(storage.get(CART_STORAGE_KEY))["items"][0]["product_id"] == item.product_id


def test_quantity_and_subtotal(cart):
    chair = piece("120.50")
    lamp = piece("80.00")
    cart.add_item(chair)
    cart.add_item(lamp)

    cart.update_quantity(chair.product_id, 2)
    assert cart.item_count() == 3
    assert cart.subtotal() == Decimal("321.00")

    cart.update_quantity(lamp.product_id, 0)
    assert not cart.contains(lamp.product_id)
    assert cart.subtotal() == Decimal("241.00")


def test_reconcile_drops_sold_and_missing(cart):
    sold, reserved, gone = piece(), piece(), piece()
    for item in (sold, reserved, gone):
        cart.add_item(item)

    removed = cart.reconcile({
        sold.product_id: ProductStatus.SOLD.value,
        reserved.product_id: ProductStatus.RESERVED.value,
    })

    assert {item.product_id for item in removed} == {sold.product_id, gone.product_id}
    assert [item.status for item in cart.items] == [ProductStatus.RESERVED.value]


def test_corrupt_data_yields_empty_cart(storage):
    storage.set(CART_STORAGE_KEY, "{not json")
    store = CartStore(storage)

    store.load()

    assert store.items == []
    assert not store.is_loading


def test_file_storage_survives_restart(tmp_path):
    path = tmp_path / "cart.json"
    first = CartStore(JsonFileStorage(path))
    first.load()
    item = piece("450.00", image_url="https://cdn.test/c.webp")
    first.add_item(item)

    second = CartStore(JsonFileStorage(path))
    second.load()

    assert second.items == [item]
    assert second.items[0].price == Decimal("450.00")


def test_checkout_items(cart):
    item = piece("99.90")
    cart.add_item(item)

    (line,) = cart.to_checkout_items()

    assert line["product_id"] == uuid.UUID(item.product_id)
    assert line["price"] == Decimal("99.90")
    assert line["quantity"] == 1


def test_cart_keeps_its_own_copy(cart, storage):
    item = piece("100.00", product_id=uuid.uuid4())
    cart.add_item(item)

    item.price = Decimal("1.00")
    item.quantity = 5

    (line,) = cart.items
    assert line.price == Decimal("100.00")
    assert line.quantity == 1
    assert isinstance(line.product_id, str)
    assert cart.contains(item.product_id)
    assert json.loads(storage.get(CART_STORAGE_KEY))["items"][0]["price"] == "100.00"
