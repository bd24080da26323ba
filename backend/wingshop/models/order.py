from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Integer, String

from wingshop.db import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Order(Base):
    """
    Local ledger entry for a checkout attempt, written when the payment intent is
    created and kept in step with the payment platform's status afterwards.
    """

    __tablename__ = "orders"
    id = Column(Integer, primary_key=True, autoincrement=True)
    payment_intent_id = Column(String(128), unique=True, nullable=False, index=True)
    status = Column(
        String(32), nullable=False, default="pending"
    )  # pending, succeeded, processing, failed, canceled, abandoned
    currency = Column(String(8), nullable=False, default="usd")
    subtotal_cents = Column(Integer, nullable=False, default=0)
    shipping_cents = Column(Integer, nullable=False, default=0)
    tax_cents = Column(Integer, nullable=False, default=0)
    amount_cents = Column(Integer, nullable=False, default=0)
    rate_id = Column(String(128), nullable=True)
    shipping = Column(JSON, nullable=True)
    cart = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    def __repr__(self):
        return f"<Order pi={self.payment_intent_id} status={self.status}>"
