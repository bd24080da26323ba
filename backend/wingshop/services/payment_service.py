import json
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from wingshop.adapters.payment_gateway import PaymentGatewayError
from wingshop.config import settings
from wingshop.repositories.order_repo import OrderRepository, ledger_status
from wingshop.schemas.address_schema import Address
from wingshop.services.order_math import estimate_tax, round_half_up, sanitize, subtotal_from
from wingshop.utils.log import get_logger

log = get_logger("payments")

# the payments platform rejects metadata values longer than this
METADATA_VALUE_LIMIT = 500


class PaymentServiceException(Exception):
    pass


def cart_snapshot(lines) -> List[Dict[str, Any]]:
    return [
        {"productId": line.product_id, "priceId": line.price_id, "quantity": line.qty}
        for line in lines
    ]


class PaymentService:
    def __init__(self, gateway, db: Optional[Session] = None):
        self.gateway = gateway
        self.db = db
        self.orders = OrderRepository(db) if db is not None else None

    def create_payment_intent(
        self,
        items: List[Any],
        currency: str = "usd",
        ship_cents: Any = 0,
        address: Optional[Address] = None,
        rate_id: Optional[str] = None,
    ) -> Dict:
        """
        Create a payment intent for the cart plus the chosen shipping charge.

        Totals are computed here, at creation time, and embedded as metadata
        together with a compact cart snapshot; a later rate change must create a
        new intent rather than patch this one. Returns
        {client_secret, payment_intent_id, amount}.
        """
        lines = sanitize(items)
        if not lines:
            raise PaymentServiceException("Cart is empty")
        try:
            ship = max(0, round_half_up(ship_cents))
        except (ArithmeticError, ValueError, TypeError):
            ship = 0

        subtotal = subtotal_from(lines)
        tax = estimate_tax(subtotal, shipping_cents=ship, to_address=address)
        total = subtotal + ship + tax
        amount = max(settings.PAYMENT_MIN_CENTS, total)
        currency = (currency or "usd").lower()

        snapshot = cart_snapshot(lines)
        cart_json = json.dumps(snapshot, separators=(",", ":"))
        if len(cart_json) > METADATA_VALUE_LIMIT:
            # TODO: move the full snapshot off metadata once the ledger is the confirmation source
            log.warning(
                f"cart metadata is {len(cart_json)} chars, over the {METADATA_VALUE_LIMIT} limit; "
                "the platform may reject this intent"
            )

        metadata = {
            "subtotal": str(subtotal),
            "shipping": str(ship),
            "tax": str(tax),
            "rate_id": rate_id or "",
            "cart": cart_json,
        }
        shipping = address.to_stripe_shipping() if address else None

        try:
            pi = self.gateway.create_payment_intent(
                amount=amount, currency=currency, metadata=metadata, shipping=shipping
            )
        except PaymentGatewayError as e:
            raise PaymentServiceException(str(e)) from e

        log.info(f"created intent {pi['id']} amount={amount} rate={rate_id or '-'}")
        if self.orders is not None:
            self.orders.record_intent(
                payment_intent_id=pi["id"],
                currency=currency,
                subtotal_cents=subtotal,
                shipping_cents=ship,
                tax_cents=tax,
                amount_cents=amount,
                rate_id=rate_id,
                shipping=shipping,
                cart=[line.to_storage() for line in lines],
            )
            self.db.commit()

        return {
            "client_secret": pi.get("client_secret"),
            "payment_intent_id": pi["id"],
            "amount": amount,
        }

    def confirm_payment(self, payment_intent_id: str, payment_method: str, return_url: Optional[str] = None) -> Dict:
        """Submit a client-collected payment method against an existing intent."""
        return_url = return_url or f"{settings.SITE_URL.rstrip('/')}/checkout/confirmation/stripe-redirect"
        try:
            pi = self.gateway.confirm_payment_intent(payment_intent_id, payment_method, return_url)
        except PaymentGatewayError as e:
            raise PaymentServiceException(str(e)) from e
        if self.orders is not None:
            self.orders.update_status(payment_intent_id, ledger_status(pi.get("status")))
            self.db.commit()
        return {"payment_intent_id": pi["id"], "status": pi.get("status"), "return_url": return_url}
