from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class OrderTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal: int = Field(0, ge=0)
    shipping: int = Field(0, ge=0)
    tax: int = Field(0, ge=0)
    total: int = Field(0, ge=0)


class OrderLineView(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    quantity: int = Field(1, ge=1)
    unit_amount: int = Field(0, alias="unitAmount")
    image: Optional[str] = None
    price_id: Optional[str] = Field(None, alias="priceId")


class OrderView(BaseModel):
    """Normalized order as rendered on the confirmation page."""

    id: str
    amount: int
    currency: str
    shipping: Optional[Dict[str, Any]] = None
    subtotal: int = 0
    shipping_cents: int = 0
    tax: int = 0
    rate_id: str = ""
    cart: List[OrderLineView] = []
    status: str

    def to_response(self) -> dict:
        body = self.model_dump()
        body["cart"] = [line.model_dump(by_alias=True) for line in self.cart]
        return body
