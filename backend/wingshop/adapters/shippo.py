from typing import Dict, Optional

import requests

from wingshop.utils.log import get_logger

log = get_logger("shipping")


class ShippoError(Exception):
    """Upstream quoting failure. `message` carries the service's own diagnostic text."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ShippoClient:
    """Thin client for the Shippo shipments endpoint (synchronous rate shopping)."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.goshippo.com",
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def create_shipment(self, payload: Dict) -> Dict:
        try:
            resp = self.session.post(
                f"{self.base_url}/shipments/",
                json={**payload, "async": False},
                headers={
                    "Authorization": f"ShippoToken {self.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ShippoError(f"Shippo request failed: {e}") from e
        if not resp.ok:
            log.warning(f"shipments returned HTTP {resp.status_code}")
            raise ShippoError(resp.text or "Shippo error", status_code=resp.status_code)
        return resp.json()

    def health_check(self) -> bool:
        return bool(self.api_key)
