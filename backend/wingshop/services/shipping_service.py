from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple, Union

from wingshop.adapters.shippo import ShippoError
from wingshop.config import settings
from wingshop.schemas.address_schema import Address
from wingshop.schemas.cart_schema import CartLine
from wingshop.schemas.shipping_schema import ParcelItem, RateQuote, ShippingRate
from wingshop.services.order_math import round_half_up
from wingshop.utils.log import get_logger

log = get_logger("shipping")

# anything with a name and a qty
Unit = Union[CartLine, ParcelItem]

# units in the box -> (total package weight in lbs, (length, width, height) in inches)
BOTTLE_RULES: Dict[int, Tuple[float, Tuple[float, float, float]]] = {
    1: (3, (7, 7, 14)),
    2: (5, (7, 7, 14)),
    3: (6, (7, 7, 14)),
    4: (8, (7, 7, 14)),
    5: (10, (7, 7, 14)),
    6: (11, (13, 13, 13)),
    7: (12, (13, 13, 13)),
    8: (13, (13, 13, 13)),
    9: (14, (13, 13, 13)),
    10: (15, (13, 13, 13)),
    11: (17, (13, 13, 13)),
    12: (19, (13, 13, 13)),
}

GALLON_RULES: Dict[int, Tuple[float, Tuple[float, float, float]]] = {
    1: (11, (7, 7, 14)),
    2: (22, (13.5, 7.875, 13.5625)),
    3: (33, (13, 13, 13)),
    4: (38, (13, 13, 13)),
}

FALLBACK_PARCEL = {
    "length": 7,
    "width": 7,
    "height": 14,
    "distance_unit": "in",
    "weight": 16,
    "mass_unit": "oz",
}

DEFAULT_DAYS_MIN = 2
DEFAULT_DAYS_MAX = 5

ERR_COUNTRY = "We currently only ship within the United States."
ERR_ZIP = "Please enter a valid U.S. ZIP code."
ERR_GENERIC = "quote failed"


def count_units(items: Iterable[Unit]) -> Tuple[int, int]:
    """Split the cart into (bottles, gallons) by product name."""
    bottles = gallons = 0
    for it in items:
        qty = max(1, it.qty)
        if "gallon" in (it.name or "").lower():
            gallons += qty
        else:
            # everything that isn't a gallon ships as a bottle so it always has weight
            bottles += qty
    return bottles, gallons


def _parcel(weight_lbs: float, box: Tuple[float, float, float]) -> Dict:
    length, width, height = box
    return {
        "length": length,
        "width": width,
        "height": height,
        "distance_unit": "in",
        "weight": max(1, round_half_up(weight_lbs * 16)),
        "mass_unit": "oz",
    }


def _chunk(count: int, rules: Dict) -> List[Dict]:
    parcels = []
    biggest = max(rules)
    left = max(0, int(count))
    while left > 0:
        n = min(left, biggest)
        weight, box = rules.get(n, rules[biggest])
        parcels.append(_parcel(weight, box))
        left -= n
    return parcels


def build_parcels(bottles: int, gallons: int) -> List[Dict]:
    """
    Gallons and bottles never share a box: gallons are packed first, up to four
    per box, then bottles up to twelve per box.
    """
    parcels = _chunk(gallons, GALLON_RULES) + _chunk(bottles, BOTTLE_RULES)
    return parcels or [dict(FALLBACK_PARCEL)]


def origin_address() -> Dict:
    addr = {
        "name": settings.SHIP_FROM_NAME,
        "street1": settings.SHIP_FROM_STREET,
        "city": settings.SHIP_FROM_CITY,
        "state": settings.SHIP_FROM_STATE,
        "zip": settings.SHIP_FROM_ZIP,
        "country": "US",
    }
    if settings.SHIP_FROM_PHONE:
        addr["phone"] = settings.SHIP_FROM_PHONE
    if settings.SHIP_FROM_EMAIL:
        addr["email"] = settings.SHIP_FROM_EMAIL
    return addr


class ShippingQuoteService:
    def __init__(
        self,
        client,
        carrier: Optional[str] = None,
        service_token: Optional[str] = None,
        carrier_account: Optional[str] = None,
    ):
        self.client = client
        self.carrier = (carrier or settings.SHIPPING_CARRIER).upper()
        self.service_token = (service_token or settings.SHIPPING_SERVICE_TOKEN).lower()
        self.carrier_account = carrier_account if carrier_account is not None else settings.SHIPPO_UPS_ACCOUNT_ID

    def _usable(self, raw_rates: List[Dict]) -> List[Dict]:
        usd = [r for r in raw_rates if str(r.get("currency") or "").upper() == "USD"]
        preferred = [
            r
            for r in usd
            if str((r.get("servicelevel") or {}).get("token") or "").lower() == self.service_token
        ]
        if preferred:
            return preferred
        # no preferred service level; any rate from the same carrier will do
        return [r for r in usd if self.carrier in str(r.get("provider") or "").upper()]

    def _to_rate(self, r: Dict) -> ShippingRate:
        level = r.get("servicelevel") or {}
        if level.get("name"):
            label = f"{self.carrier} {level['name']}"
        elif level.get("token"):
            label = f"{self.carrier} {level['token']}"
        else:
            label = self.carrier
        try:
            est = int(r.get("estimated_days") or 0)
        except (TypeError, ValueError):
            est = 0
        return ShippingRate(
            id=str(r.get("object_id")),
            label=label,
            amount=max(0, round_half_up(Decimal(str(r.get("amount") or 0)) * 100)),
            days_min=est if est else DEFAULT_DAYS_MIN,
            days_max=est + 1 if est else DEFAULT_DAYS_MAX,
        )

    @staticmethod
    def _messages(shipment: Dict) -> str:
        msgs = shipment.get("messages")
        if not isinstance(msgs, list):
            return "No messages from Shippo"
        return " | ".join(str(m.get("text") or m.get("code") or m) if isinstance(m, dict) else str(m) for m in msgs)

    def quote(self, address: Address, items: Iterable[Unit]) -> RateQuote:
        """
        Quote carrier rates for the cart to `address`. Never raises: every
        failure comes back as an empty rate list plus a displayable error.
        """
        if address.country != "US":
            return RateQuote(rates=[], error=ERR_COUNTRY)
        if not address.postal_code:
            return RateQuote(rates=[], error=ERR_ZIP)

        items = list(items)
        bottles, gallons = count_units(items)
        parcels = build_parcels(bottles, gallons)
        payload = {
            "address_from": origin_address(),
            "address_to": address.to_shippo(),
            "parcels": parcels,
        }
        if self.carrier_account:
            payload["carrier_accounts"] = [self.carrier_account]

        try:
            shipment = self.client.create_shipment(payload)
            raw_rates = shipment.get("rates") if isinstance(shipment.get("rates"), list) else []
            usable = self._usable(raw_rates)
            if not usable:
                log.error(
                    f"no usable {self.carrier} rates: zip={address.postal_code} "
                    f"parcels={len(parcels)} raw_rates={len(raw_rates)} "
                    f"messages={shipment.get('messages')}"
                )
                return RateQuote(
                    rates=[],
                    error=f"No {self.carrier} shipping rates were returned for this address. "
                    f"Error: {self._messages(shipment)}",
                )
            rates = sorted((self._to_rate(r) for r in usable), key=lambda r: r.amount)
            return RateQuote(rates=rates)
        except ShippoError as e:
            return RateQuote(rates=[], error=e.message or "Shippo error")
        except Exception as e:
            log.exception(f"quote failed: {e}")
            return RateQuote(rates=[], error=ERR_GENERIC)
