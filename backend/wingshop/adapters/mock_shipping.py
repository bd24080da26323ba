from typing import Dict, List, Optional
from uuid import uuid4


class MockRateClient:
    """
    Stand-in for the quoting service. Answers create_shipment() with a fixed set
    of carrier rates whose price scales with parcel count, or with `rates` when
    given explicitly.
    """

    def __init__(self, rates: Optional[List[Dict]] = None, messages: Optional[List[Dict]] = None):
        self.rates = rates
        self.messages = messages or []
        self.requests: List[Dict] = []

    def _default_rates(self, parcels: int) -> List[Dict]:
        n = max(1, parcels)
        return [
            {
                "object_id": f"rate_{uuid4().hex[:12]}",
                "provider": "UPS",
                "currency": "USD",
                "amount": f"{12.35 * n:.2f}",
                "estimated_days": 3,
                "servicelevel": {"name": "Ground", "token": "ups_ground"},
            },
            {
                "object_id": f"rate_{uuid4().hex[:12]}",
                "provider": "UPS",
                "currency": "USD",
                "amount": f"{24.10 * n:.2f}",
                "estimated_days": 2,
                "servicelevel": {"name": "2nd Day Air", "token": "ups_second_day_air"},
            },
            {
                "object_id": f"rate_{uuid4().hex[:12]}",
                "provider": "USPS",
                "currency": "USD",
                "amount": f"{9.80 * n:.2f}",
                "estimated_days": 4,
                "servicelevel": {"name": "Ground Advantage", "token": "usps_ground_advantage"},
            },
        ]

    def create_shipment(self, payload: Dict) -> Dict:
        self.requests.append(payload)
        rates = self.rates if self.rates is not None else self._default_rates(len(payload.get("parcels") or []))
        return {
            "object_id": f"shp_{uuid4().hex[:12]}",
            "status": "SUCCESS",
            "rates": rates,
            "messages": self.messages,
        }

    def health_check(self) -> bool:
        return True
