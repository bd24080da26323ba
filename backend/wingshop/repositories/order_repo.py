from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from wingshop.models.order import Order


class OrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_payment_intent(self, payment_intent_id: str) -> Optional[Order]:
        return (
            self.db.query(Order)
            .filter(Order.payment_intent_id == payment_intent_id)
            .first()
        )

    def record_intent(
        self,
        payment_intent_id: str,
        currency: str,
        subtotal_cents: int,
        shipping_cents: int,
        tax_cents: int,
        amount_cents: int,
        rate_id: Optional[str],
        shipping: Optional[dict],
        cart: List[dict],
        status: str = "pending",
    ) -> Order:
        o = self.get_by_payment_intent(payment_intent_id)
        if not o:
            o = Order(payment_intent_id=payment_intent_id)
            self.db.add(o)
        o.status = status
        o.currency = currency
        o.subtotal_cents = subtotal_cents
        o.shipping_cents = shipping_cents
        o.tax_cents = tax_cents
        o.amount_cents = amount_cents
        o.rate_id = rate_id
        o.shipping = shipping
        o.cart = cart
        self.db.flush()
        return o

    def update_status(self, payment_intent_id: str, status: str) -> Optional[Order]:
        o = self.get_by_payment_intent(payment_intent_id)
        if o and o.status != status:
            o.status = status
            self.db.flush()
        return o

    def expire_pending(self, ttl_seconds: int) -> List[str]:
        """Mark pending entries older than ttl_seconds as abandoned; returns their intent ids."""
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=ttl_seconds)
        stale = (
            self.db.query(Order)
            .filter(Order.status == "pending", Order.created_at < cutoff)
            .all()
        )
        for o in stale:
            o.status = "abandoned"
        self.db.flush()
        return [o.payment_intent_id for o in stale]


def ledger_status(payment_status: str) -> str:
    """Collapse the payments platform's intent status onto the ledger's statuses."""
    s = (payment_status or "").lower()
    if s in ("succeeded", "processing", "canceled"):
        return s
    return "pending"
