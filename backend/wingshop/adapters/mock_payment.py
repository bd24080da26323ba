from typing import Dict, List, Optional
from uuid import uuid4

from wingshop.adapters.payment_gateway import PaymentGatewayError


class MockPaymentGateway:
    """
    In-memory stand-in for the payments platform, used when no secret key is
    configured and in tests. Intents, products and prices live in dicts.

    A payment method of "pm_card_chargeDeclined" is declined on confirmation,
    mirroring the platform's test cards.
    """

    DECLINE_METHOD = "pm_card_chargeDeclined"

    def __init__(self, products: Optional[List[Dict]] = None, prices: Optional[List[Dict]] = None):
        self.products: Dict[str, Dict] = {p["id"]: p for p in (products or [])}
        self.prices: Dict[str, Dict] = {p["id"]: p for p in (prices or [])}
        self.intents: Dict[str, Dict] = {}
        self.fail_with: Optional[str] = None
        self.calls: List[str] = []

    def _check(self, what: str):
        self.calls.append(what)
        if self.fail_with:
            raise PaymentGatewayError(self.fail_with)

    def list_products(self, limit: int = 100) -> List[Dict]:
        self._check("products.list")
        out = []
        for p in list(self.products.values())[:limit]:
            if not p.get("active", True):
                continue
            item = dict(p)
            dp = item.get("default_price")
            if isinstance(dp, str) and dp in self.prices:
                item["default_price"] = self.prices[dp]
            out.append(item)
        return out

    def retrieve_product(self, product_id: str) -> Dict:
        self._check("products.retrieve")
        if product_id not in self.products:
            raise PaymentGatewayError(f"No such product: '{product_id}'")
        return dict(self.products[product_id])

    def retrieve_price(self, price_id: str) -> Dict:
        self._check("prices.retrieve")
        if price_id not in self.prices:
            raise PaymentGatewayError(f"No such price: '{price_id}'")
        return dict(self.prices[price_id])

    def create_payment_intent(
        self,
        amount: int,
        currency: str,
        metadata: Dict[str, str],
        shipping: Optional[Dict] = None,
    ) -> Dict:
        self._check("payment_intents.create")
        pi_id = f"pi_mock_{uuid4().hex[:16]}"
        intent = {
            "id": pi_id,
            "object": "payment_intent",
            "amount": amount,
            "currency": currency,
            "client_secret": f"{pi_id}_secret_{uuid4().hex[:12]}",
            "metadata": dict(metadata),
            "shipping": shipping,
            "status": "requires_payment_method",
        }
        self.intents[pi_id] = intent
        return dict(intent)

    def retrieve_payment_intent(self, payment_intent_id: str) -> Dict:
        self._check("payment_intents.retrieve")
        if payment_intent_id not in self.intents:
            raise PaymentGatewayError(f"No such payment_intent: '{payment_intent_id}'")
        return dict(self.intents[payment_intent_id])

    def confirm_payment_intent(
        self, payment_intent_id: str, payment_method: str, return_url: str
    ) -> Dict:
        self._check("payment_intents.confirm")
        intent = self.intents.get(payment_intent_id)
        if not intent:
            raise PaymentGatewayError(f"No such payment_intent: '{payment_intent_id}'")
        if payment_method == self.DECLINE_METHOD:
            intent["status"] = "requires_payment_method"
            raise PaymentGatewayError("Your card was declined.")
        intent["status"] = "succeeded"
        return dict(intent)

    def health_check(self) -> bool:
        return True
