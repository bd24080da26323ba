import json
from typing import List, Optional

from pydantic import ValidationError

from wingshop.config import settings
from wingshop.repositories.storage_repo import KeyValueStorage
from wingshop.schemas.cart_schema import CartLine
from wingshop.utils.log import get_logger

log = get_logger("cart")

CART_STORAGE_KEY = "how_cart_v1"

# sentinel so remove()/set_qty() can tell "no variant given" from price_id=None
UNSET = object()


class CartStore:
    """
    The shopper's cart. Lines are unique per (product_id, price_id) and the whole
    collection is written through the injected storage after every mutation.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = CART_STORAGE_KEY,
        max_qty: Optional[int] = None,
    ):
        self.storage = storage
        self.key = key
        self.max_qty = max_qty or settings.CART_MAX_LINE_QTY
        self._items: List[CartLine] = self._hydrate()

    def _hydrate(self) -> List[CartLine]:
        raw = self.storage.get_item(self.key)
        if not raw:
            return []
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError("stored cart is not a list")
            return [CartLine.model_validate(entry) for entry in data]
        except (ValueError, TypeError, ValidationError) as e:
            log.warning(f"discarding unreadable cart under {self.key!r}: {e}")
            return []

    def _persist(self):
        self.storage.set_item(self.key, json.dumps([it.to_storage() for it in self._items]))

    def _cap(self, qty: int) -> int:
        return min(int(qty), self.max_qty)

    @staticmethod
    def _matches(line: CartLine, product_id: str, price_id) -> bool:
        if line.product_id != product_id:
            return False
        return price_id is UNSET or line.price_id == price_id

    @property
    def items(self) -> List[CartLine]:
        return [it.model_copy() for it in self._items]

    @property
    def count(self) -> int:
        return sum(it.qty for it in self._items)

    @property
    def subtotal(self) -> int:
        return sum(it.line_total for it in self._items)

    @property
    def currency(self) -> Optional[str]:
        # single-currency carts only; the first line decides
        return self._items[0].currency if self._items else None

    def add(self, item: CartLine, qty: int = 1) -> CartLine:
        if qty < 1:
            raise ValueError("Quantity must be positive")
        for i, existing in enumerate(self._items):
            if existing.key == item.key:
                updated = existing.model_copy(update={"qty": self._cap(existing.qty + qty)})
                self._items[i] = updated
                self._persist()
                return updated
        new = item.model_copy(update={"qty": self._cap(qty)})
        self._items.append(new)
        self._persist()
        return new

    def remove(self, product_id: str, price_id=UNSET):
        self._items = [it for it in self._items if not self._matches(it, product_id, price_id)]
        self._persist()

    def set_qty(self, product_id: str, qty: int, price_id=UNSET):
        if qty <= 0:
            return self.remove(product_id, price_id)
        self._items = [
            it.model_copy(update={"qty": self._cap(qty)})
            if self._matches(it, product_id, price_id)
            else it
            for it in self._items
        ]
        self._persist()

    def clear(self):
        self._items = []
        self._persist()

    def summary(self) -> dict:
        return {
            "items": [it.to_storage() for it in self._items],
            "count": self.count,
            "subtotal": self.subtotal,
            "currency": self.currency,
        }
