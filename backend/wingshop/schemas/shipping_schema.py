from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ParcelItem(BaseModel):
    name: str = ""
    qty: int = Field(1, ge=1)


class ShippingRate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    label: str
    amount: int = Field(..., ge=0)  # cents
    days_min: int = Field(2, alias="daysMin")
    days_max: int = Field(5, alias="daysMax")


class RateQuote(BaseModel):
    rates: List[ShippingRate] = []
    error: Optional[str] = None

    def to_response(self) -> dict:
        body = {"rates": [r.model_dump(by_alias=True) for r in self.rates]}
        if self.error:
            body["error"] = self.error
        return body
