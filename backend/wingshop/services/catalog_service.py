from typing import List

from wingshop.adapters.payment_gateway import PaymentGatewayError
from wingshop.schemas.product_schema import ProductOut
from wingshop.utils.log import get_logger

log = get_logger("catalog")

BAR_CLASSES = {"maroon": "bg-maroon", "fire": "bg-fire", "rooster": "bg-rooster"}
DEFAULT_BAR_CLASS = "bg-maroon"


class CatalogService:
    def __init__(self, gateway):
        self.gateway = gateway

    def list_products(self) -> List[ProductOut]:
        """Active products with their default price. An unreachable catalog lists as empty."""
        try:
            products = self.gateway.list_products(limit=100)
        except PaymentGatewayError as e:
            log.error(f"products.list error: {e}")
            return []
        log.debug(f"fetched {len(products)} products")
        return [self._to_out(p) for p in products]

    @staticmethod
    def _to_out(p: dict) -> ProductOut:
        md = p.get("metadata") or {}
        default_price = p.get("default_price")
        if not isinstance(default_price, dict):
            default_price = {}
        images = p.get("images") or []
        return ProductOut(
            id=p["id"],
            name=p.get("name") or "",
            desc=md.get("flavor_description") or p.get("description") or "",
            bar_class=BAR_CLASSES.get((md.get("bar_color") or "").lower(), DEFAULT_BAR_CLASS),
            price=default_price.get("unit_amount"),
            currency=default_price.get("currency"),
            price_id=default_price.get("id"),
            image=images[0] if images else None,
        )
