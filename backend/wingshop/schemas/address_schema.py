from typing import Any, Dict, Optional

from pydantic import BaseModel, field_validator

# accepted request shapes: {"address": {...}}, {"toAddress": {...}}, {"addr": {...}},
# {"address_to": {...}}, optionally nested once more under "address"
_ADDRESS_KEYS = ("address", "toAddress", "addr", "address_to")
_POSTAL_KEYS = ("postal_code", "postalCode", "zip")


class Address(BaseModel):
    name: str = ""
    line1: str = ""
    line2: Optional[str] = None
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = "US"

    @field_validator("name", "line1", "city", "state", "postal_code", mode="before")
    @classmethod
    def _text(cls, v):
        # json numbers (zip 10001, city 123) arrive as ints
        return "" if v is None else str(v).strip()

    @field_validator("line2", mode="before")
    @classmethod
    def _optional_text(cls, v):
        if v is None:
            return None
        return str(v).strip() or None

    @field_validator("country", mode="before")
    @classmethod
    def _upper_country(cls, v):
        return str(v or "US").strip().upper()

    @classmethod
    def from_payload(cls, body: Optional[Dict[str, Any]]) -> "Address":
        """
        Build an Address from an inbound request body. This is the one place
        where alternate field names are mapped onto the address contract.
        """
        body = body or {}
        raw: Any = {}
        for k in _ADDRESS_KEYS:
            if isinstance(body.get(k), dict):
                raw = body[k]
                break
        if isinstance(raw.get("address"), dict):
            # stripe address element shape: {"name": ..., "address": {...}}
            raw = {"name": raw.get("name"), **raw["address"]}

        postal = next((raw.get(k) for k in _POSTAL_KEYS if raw.get(k)), "")
        return cls(
            name=body.get("name") or raw.get("name") or "",
            line1=raw.get("line1") or raw.get("street1") or "",
            line2=raw.get("line2") or raw.get("street2") or None,
            city=raw.get("city") or "",
            state=raw.get("state") or "",
            postal_code=str(postal).strip(),
            country=raw.get("country") or "US",
        )

    def to_shippo(self) -> dict:
        return {
            "name": self.name,
            "street1": self.line1,
            "street2": self.line2 or "",
            "city": self.city,
            "state": self.state,
            "zip": self.postal_code,
            "country": self.country,
        }

    def to_stripe_shipping(self) -> dict:
        address = {
            "line1": self.line1,
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "country": self.country or "US",
        }
        if self.line2:
            address["line2"] = self.line2
        return {"name": self.name, "address": address}
