import json
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from wingshop.adapters.payment_gateway import PaymentGatewayError
from wingshop.repositories.order_repo import OrderRepository, ledger_status
from wingshop.schemas.order_schema import OrderLineView, OrderView
from wingshop.utils.log import get_logger

log = get_logger("orders")

VARIANT_SUFFIX = {"single": "12oz", "gallon": "Gallon"}


class OrderServiceException(Exception):
    pass


def variant_name(base: str, price: Optional[Dict]) -> str:
    nickname = ((price or {}).get("nickname") or "").lower()
    suffix = VARIANT_SUFFIX.get(nickname)
    return f"{base} ({suffix})" if suffix else base


def _int(value, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_cart_metadata(raw: Optional[str]) -> List[Dict]:
    """Read the cart snapshot stored on the payment record; anything malformed reads as empty."""
    try:
        data = json.loads(raw or "[]")
    except (TypeError, ValueError):
        return []
    if not isinstance(data, list):
        return []
    out = []
    for x in data:
        if not isinstance(x, dict):
            continue
        product_id = str(x.get("productId") or x.get("id") or "")
        if not product_id:
            continue
        qty = _int(x.get("quantity", x.get("qty", 1)), 1)
        out.append(
            {
                "productId": product_id,
                "priceId": str(x["priceId"]) if x.get("priceId") else None,
                "quantity": qty if qty > 0 else 1,
            }
        )
    return out


class OrderService:
    def __init__(self, gateway, db: Optional[Session] = None):
        self.gateway = gateway
        self.db = db
        self.orders = OrderRepository(db) if db is not None else None

    def _line(self, entry: Dict) -> OrderLineView:
        product = self.gateway.retrieve_product(entry["productId"])
        name = product.get("name") or entry["productId"]
        unit_amount = 0
        price_id = entry["priceId"]

        if price_id:
            try:
                price = self.gateway.retrieve_price(price_id)
                if price.get("unit_amount"):
                    unit_amount = int(price["unit_amount"])
                    name = variant_name(name, price)
            except PaymentGatewayError:
                log.warning(f"price {price_id} unavailable, falling back to default price")

        default_price = product.get("default_price")
        if not unit_amount and default_price:
            if isinstance(default_price, str):
                default_price = self.gateway.retrieve_price(default_price)
            unit_amount = int(default_price.get("unit_amount") or 0)

        images = product.get("images") or []
        return OrderLineView(
            id=product.get("id") or entry["productId"],
            name=name,
            quantity=entry["quantity"],
            unit_amount=unit_amount,
            image=images[0] if images else None,
            price_id=price_id,
        )

    def _lines(self, metadata_cart: Optional[str]) -> List[OrderLineView]:
        entries = parse_cart_metadata(metadata_cart)
        try:
            return [self._line(e) for e in entries]
        except PaymentGatewayError as e:
            log.warning(f"could not rebuild order lines: {e}")
            return []

    def get_order(self, payment_reference: str) -> OrderView:
        """
        Normalized order view for a payment reference. The amounts come from the
        metadata written when the intent was created; line names and unit prices
        are re-read from the catalog.
        """
        if not payment_reference:
            raise OrderServiceException("missing payment reference")
        try:
            pi = self.gateway.retrieve_payment_intent(payment_reference)
        except PaymentGatewayError as e:
            raise OrderServiceException(str(e)) from e

        md = pi.get("metadata") or {}
        view = OrderView(
            id=pi["id"],
            amount=_int(pi.get("amount")),
            currency=pi.get("currency") or "usd",
            shipping=pi.get("shipping"),
            subtotal=_int(md.get("subtotal")),
            shipping_cents=_int(md.get("shipping")),
            tax=_int(md.get("tax")),
            rate_id=md.get("rate_id") or "",
            cart=self._lines(md.get("cart")),
            status=pi.get("status") or "unknown",
        )

        if self.orders is not None:
            self.orders.update_status(view.id, ledger_status(view.status))
            self.db.commit()
        return view
