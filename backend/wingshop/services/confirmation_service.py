import asyncio
import re
from typing import Callable, Iterable, List, Optional

from wingshop.repositories.storage_repo import KeyValueStorage
from wingshop.services.order_service import OrderService, OrderServiceException
from wingshop.utils.log import get_logger

log = get_logger("orders")

CART_NAME = re.compile(r"cart", re.IGNORECASE)

STATE_NOT_FOUND = "not_found"
STATE_PAYMENT_INCOMPLETE = "payment_incomplete"
STATE_CONFIRMED = "confirmed"

CHECKOUT_PATH = "/checkout"


def cart_cookie_names(cookie_names: Iterable[str]) -> List[str]:
    return [n for n in cookie_names if CART_NAME.search(n)]


class ClearCartOnArrival:
    """
    Purges every cart-named key from the given stores. run() acts once per
    arrival; retry() repeats the purge shortly afterwards to catch late writers.
    """

    RETRY_DELAYS = (0.0, 0.2)

    def __init__(self, stores: Callable[[], List[KeyValueStorage]], on_clear: Optional[Callable[[], None]] = None):
        self._stores = stores
        self._on_clear = on_clear
        self.did_run = False
        self.purges = 0

    def purge(self) -> List[str]:
        removed = []
        for store in self._stores():
            for key in store.keys():
                if CART_NAME.search(key):
                    store.remove_item(key)
                    removed.append(key)
        if self._on_clear:
            self._on_clear()
        self.purges += 1
        return removed

    def run(self) -> bool:
        if self.did_run:
            return False
        self.did_run = True
        removed = self.purge()
        log.debug(f"cleared cart keys on arrival: {removed}")
        return True

    async def retry(self):
        for delay in self.RETRY_DELAYS:
            await asyncio.sleep(delay)
            self.purge()


class ConfirmationService:
    def __init__(self, orders: OrderService):
        self.orders = orders

    def view(self, reference: Optional[str], redirect_status: Optional[str] = None) -> dict:
        """
        Confirmation page state. Never raises: an absent reference or a failed
        lookup yields "not_found" with a path back to checkout.
        """
        reference = (reference or "").strip()
        if redirect_status and redirect_status != "succeeded":
            return {
                "state": STATE_PAYMENT_INCOMPLETE,
                "payment_reference": reference or None,
                "redirect_status": redirect_status,
                "back_to": f"{CHECKOUT_PATH}?retry=1",
            }
        if not reference:
            return {"state": STATE_NOT_FOUND, "back_to": CHECKOUT_PATH}
        try:
            order = self.orders.get_order(reference)
        except OrderServiceException as e:
            log.warning(f"confirmation lookup failed for {reference}: {e}")
            return {"state": STATE_NOT_FOUND, "back_to": CHECKOUT_PATH}
        return {"state": STATE_CONFIRMED, "order": order.to_response()}
