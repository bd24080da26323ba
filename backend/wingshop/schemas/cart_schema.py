from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CartLine(BaseModel):
    """A product variant chosen by the shopper. Money is in minor units (cents)."""

    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(..., alias="productId", min_length=1)
    price_id: Optional[str] = Field(None, alias="priceId")
    name: str = ""
    price: Optional[int] = Field(None, ge=0)
    currency: Optional[str] = None
    image: Optional[str] = None
    qty: int = Field(1, ge=1)

    @property
    def key(self):
        return (self.product_id, self.price_id)

    @property
    def line_total(self) -> int:
        return (self.price or 0) * self.qty

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True)
