"""
Order math. All money is integer minor currency units (cents).

Rounding is ROUND_HALF_UP on each component before anything is summed, so
totals never carry fractional cents.
"""
from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from wingshop.config import settings
from wingshop.schemas.address_schema import Address
from wingshop.schemas.cart_schema import CartLine
from wingshop.schemas.order_schema import OrderTotals
from wingshop.schemas.shipping_schema import ParcelItem

_ID_KEYS = ("productId", "product_id", "id")
_PRICE_ID_KEYS = ("priceId", "price_id")
_NAME_KEYS = ("name", "title")
_QTY_KEYS = ("qty", "quantity")
_PRICE_KEYS = ("price", "unitAmount", "unit_amount", "amount")


@dataclass(frozen=True)
class TaxPolicy:
    rate: float = 0.0
    include_shipping: bool = False
    origin_state: Optional[str] = None

    @classmethod
    def from_settings(cls) -> "TaxPolicy":
        return cls(
            rate=settings.TAX_RATE,
            include_shipping=settings.TAX_SHIPPING,
            origin_state=settings.TAX_ORIGIN_STATE or None,
        )


def round_half_up(value) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _first(raw: Dict[str, Any], keys) -> Any:
    for k in keys:
        if raw.get(k) is not None:
            return raw[k]
    return None


def to_minor_units(value: Any) -> int:
    """
    Coerce a price into cents.

    Upstream shapes disagree on units, so this is a heuristic: a non-integer
    number, or an integer below 100, is read as major units (dollars) and
    multiplied by 100. Anything else is taken as cents already. That means an
    integer 99 becomes 9900, which is intended behavior for this storefront,
    where nothing sells for under a dollar.
    """
    if value is None or isinstance(value, bool):
        return 0
    try:
        num = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return 0
    if not num.is_finite() or num < 0:
        return 0
    if num != num.to_integral_value() or abs(num) < 100:
        return round_half_up(num * 100)
    return int(num)


def _to_qty(value: Any) -> int:
    try:
        qty = round_half_up(value)
    except (InvalidOperation, ValueError, TypeError):
        return 1
    return max(1, qty)


def sanitize_line(raw: Dict[str, Any]) -> CartLine:
    """Map an inbound line item of any accepted shape onto CartLine."""
    if isinstance(raw, CartLine):
        return raw
    price_id = _first(raw, _PRICE_ID_KEYS)
    qty = _first(raw, _QTY_KEYS)
    return CartLine(
        product_id=str(_first(raw, _ID_KEYS) or ""),
        price_id=str(price_id) if price_id else None,
        name=str(_first(raw, _NAME_KEYS) or ""),
        price=to_minor_units(_first(raw, _PRICE_KEYS)),
        currency=raw.get("currency"),
        image=raw.get("image"),
        qty=_to_qty(1 if qty is None else qty),
    )


def sanitize(lines: Iterable[Any]) -> List[CartLine]:
    """sanitize_line over a list; entries without a product id are dropped."""
    out = []
    for raw in lines or []:
        if isinstance(raw, CartLine):
            out.append(raw)
            continue
        if not isinstance(raw, dict) or not _first(raw, _ID_KEYS):
            continue
        out.append(sanitize_line(raw))
    return out


def sanitize_units(lines: Iterable[Any]) -> List[ParcelItem]:
    """
    Name and quantity only, for parcel building. Unlike sanitize(), entries
    without a product id are kept; only non-dict entries are skipped.
    """
    out = []
    for raw in lines or []:
        if isinstance(raw, (CartLine, ParcelItem)):
            out.append(ParcelItem(name=raw.name, qty=raw.qty))
        elif isinstance(raw, dict):
            qty = _first(raw, _QTY_KEYS)
            out.append(ParcelItem(name=str(_first(raw, _NAME_KEYS) or ""), qty=_to_qty(1 if qty is None else qty)))
    return out


def subtotal_from(lines: Iterable[CartLine]) -> int:
    return sum(max(0, line.price or 0) * max(1, line.qty) for line in lines)


def shipping_for(subtotal: int) -> int:
    if subtotal == 0 or subtotal >= settings.FREE_SHIPPING_THRESHOLD_CENTS:
        return 0
    return settings.FLAT_SHIPPING_CENTS


def estimate_tax(
    subtotal: int,
    shipping_cents: int = 0,
    to_address: Optional[Address] = None,
    policy: Optional[TaxPolicy] = None,
) -> int:
    """
    Flat-rate tax estimate. With an origin state configured, tax only applies
    when the destination state matches it (use-tax approximation); without a
    known destination the gate cannot pass and tax is 0.
    """
    policy = policy or TaxPolicy.from_settings()
    if policy.rate <= 0:
        return 0
    if policy.origin_state:
        dest = (to_address.state if to_address else "").upper()
        if dest != policy.origin_state.upper():
            return 0
    base = subtotal + (shipping_cents if policy.include_shipping else 0)
    return round_half_up(Decimal(str(policy.rate)) * Decimal(base))


def breakdown(
    lines: Iterable[CartLine],
    shipping_cents: Optional[int] = None,
    policy: Optional[TaxPolicy] = None,
) -> OrderTotals:
    """
    Flat-rate totals: shipping defaults to shipping_for(subtotal) and tax uses the
    flat rate with no destination gating. Callers that know the destination
    should use estimate_tax() for the tax line.
    """
    policy = policy or TaxPolicy.from_settings()
    subtotal = subtotal_from(lines)
    shipping = shipping_for(subtotal) if shipping_cents is None else max(0, int(shipping_cents))
    tax = estimate_tax(subtotal, shipping, policy=replace(policy, origin_state=None))
    return OrderTotals(subtotal=subtotal, shipping=shipping, tax=tax, total=subtotal + shipping + tax)


def format_money(cents: int, currency: str = "USD") -> str:
    amount = Decimal(max(0, int(cents or 0))) / 100
    if currency.upper() == "USD":
        return f"${amount:,.2f}"
    return f"{amount:,.2f} {currency.upper()}"
