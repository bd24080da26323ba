from typing import Any, Dict, List, Optional

import stripe

from wingshop.utils.log import get_logger

log = get_logger("payments")


class PaymentGatewayError(Exception):
    """Raised for any failure reported by, or while talking to, the payments platform."""


def _plain(obj: Any) -> Any:
    """Turn a StripeObject (or anything dict-like) into plain dicts and lists."""
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    if hasattr(obj, "to_dict_recursive"):
        return obj.to_dict_recursive()
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if isinstance(obj, dict):
        return {k: _plain(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_plain(v) for v in obj]
    return obj


class StripeGateway:
    """
    Payments platform adapter over the stripe SDK. Every call passes the api key
    explicitly and returns plain dicts so callers never handle SDK objects.
    """

    def __init__(self, api_key: str):
        self.api_key = api_key

    def _call(self, what: str, fn, *args, **kwargs) -> Dict:
        try:
            return _plain(fn(*args, api_key=self.api_key, **kwargs))
        except stripe.StripeError as e:
            log.error(f"{what} failed: {e.user_message or e}")
            raise PaymentGatewayError(e.user_message or str(e)) from e

    def list_products(self, limit: int = 100) -> List[Dict]:
        res = self._call(
            "products.list",
            stripe.Product.list,
            active=True,
            limit=limit,
            expand=["data.default_price"],
        )
        return list(res.get("data") or [])

    def retrieve_product(self, product_id: str) -> Dict:
        return self._call("products.retrieve", stripe.Product.retrieve, product_id)

    def retrieve_price(self, price_id: str) -> Dict:
        return self._call("prices.retrieve", stripe.Price.retrieve, price_id)

    def create_payment_intent(
        self,
        amount: int,
        currency: str,
        metadata: Dict[str, str],
        shipping: Optional[Dict] = None,
    ) -> Dict:
        params = {
            "amount": amount,
            "currency": currency,
            "automatic_payment_methods": {"enabled": True},
            "metadata": metadata,
        }
        if shipping:
            params["shipping"] = shipping
        return self._call("payment_intents.create", stripe.PaymentIntent.create, **params)

    def retrieve_payment_intent(self, payment_intent_id: str) -> Dict:
        return self._call(
            "payment_intents.retrieve", stripe.PaymentIntent.retrieve, payment_intent_id
        )

    def confirm_payment_intent(
        self, payment_intent_id: str, payment_method: str, return_url: str
    ) -> Dict:
        return self._call(
            "payment_intents.confirm",
            stripe.PaymentIntent.confirm,
            payment_intent_id,
            payment_method=payment_method,
            return_url=return_url,
        )

    def health_check(self) -> bool:
        return bool(self.api_key)
