"""
Shopper cart persisted to a key/value storage.

The store starts in a loading state. Until `load()` has rehydrated the saved
lines, nothing is written back, so an empty in-memory cart can never clobber
the saved one.
"""
from dataclasses import dataclass, asdict, fields, replace
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional, Protocol
import json
import logging
import uuid

from storefront.models.product import ProductStatus


logger = logging.getLogger(__name__)

CART_STORAGE_KEY = "antichita-barbaglia-cart"


@dataclass
class CartItem:
    """One line of the cart. Each antique is a single piece, so lines are keyed by product."""
    product_id: str
    title: str
    slug: str
    price: Decimal
    image_url: Optional[str] = None
    status: str = ProductStatus.AVAILABLE.value
    quantity: int = 1

    def to_dict(self) -> dict:
        data = asdict(self)
        data["price"] = str(self.price)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "CartItem":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values["product_id"] = str(values["product_id"])
        values["price"] = Decimal(str(values["price"]))
        values["quantity"] = int(values.get("quantity", 1))
        return cls(**values)


class Storage(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    """Dict-backed storage."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStorage:
    """All keys live in one JSON object on disk."""

    def __init__(self, path):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        content = self.path.read_text(encoding="utf-8")
        if not content.strip():
            return {}
        data = json.loads(content)
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object in {self.path}")
        return data

    def _write_all(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


class CartStore:
    """In-progress selection of products, keyed by product id."""

    def __init__(self, storage: Storage, key: str = CART_STORAGE_KEY):
        self.storage = storage
        self.key = key
        self._items: Dict[str, CartItem] = {}
        self._loading = True

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def items(self) -> List[CartItem]:
        return list(self._items.values())

    def load(self) -> None:
        """
        Rehydrate from storage.

        Unreadable data is logged and replaced by an empty cart.
        """
        items: Dict[str, CartItem] = {}
        try:
            raw = self.storage.get(self.key)
            if raw:
                payload = json.loads(raw)
                for entry in payload.get("items", []):
                    item = CartItem.from_dict(entry)
                    items[item.product_id] = item
        except (ValueError, TypeError, KeyError, AttributeError, OSError) as e:
            logger.warning(f"Discarding unreadable cart data: {e}")
            items = {}

        self._items = items
        self._loading = False

    def _persist(self) -> None:
        if self._loading:
            return
        payload = {"items": [item.to_dict() for item in self._items.values()]}
        self.storage.set(self.key, json.dumps(payload))

    @staticmethod
    def _key(product_id) -> str:
        return str(product_id)

    def add_item(self, item: CartItem) -> bool:
        """Add a copy of a line. Returns False when the product is already in the cart."""
        key = self._key(item.product_id)
        if key in self._items:
            return False
        self._items[key] = replace(item, product_id=key)
        self._persist()
        return True

    def remove_item(self, product_id) -> None:
        if self._items.pop(self._key(product_id), None) is not None:
            self._persist()

    def update_quantity(self, product_id, quantity: int) -> None:
        key = self._key(product_id)
        if key not in self._items:
            return
        if quantity <= 0:
            self.remove_item(key)
            return
        self._items[key].quantity = quantity
        self._persist()

    def clear(self) -> None:
        self._items = {}
        self._persist()

    def contains(self, product_id) -> bool:
        return self._key(product_id) in self._items

    def item_count(self) -> int:
        return sum(item.quantity for item in self._items.values())

    def subtotal(self) -> Decimal:
        return sum((item.price * item.quantity for item in self._items.values()), Decimal("0.00"))

    def reconcile(self, statuses: Dict[str, str]) -> List[CartItem]:
        """
        Refresh status snapshots from live product statuses.

        Lines whose product is SOLD or missing from `statuses` are removed and
        returned.
        """
        live = {self._key(k): v for k, v in statuses.items()}
        removed = []
        for key, item in list(self._items.items()):
            status = live.get(key)
            if status is None or status == ProductStatus.SOLD.value:
                removed.append(self._items.pop(key))
            else:
                item.status = status

        if removed:
            logger.info(f"Removed {len(removed)} unavailable item(s) from cart")
        self._persist()
        return removed

    def to_checkout_items(self) -> List[dict]:
        """Lines in the shape accepted by the checkout endpoint."""
        return [
            {
                "product_id": uuid.UUID(item.product_id),
                "product_title": item.title,
                "product_slug": item.slug,
                "price": item.price,
                "quantity": item.quantity,
                "image_url": item.image_url,
            }
            for item in self._items.values()
        ]
