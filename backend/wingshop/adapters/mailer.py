from typing import Dict, List, Optional

import requests

from wingshop.utils.log import get_logger

log = get_logger("contact")


class MailerError(Exception):
    pass


class ResendMailer:
    """Transactional email over the Resend HTTP API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.resend.com",
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def send(self, sender: str, to: str, subject: str, text: str, reply_to: Optional[str] = None) -> Dict:
        body = {"from": sender, "to": [to], "subject": subject, "text": text}
        if reply_to:
            body["reply_to"] = reply_to
        try:
            resp = self.session.post(
                f"{self.base_url}/emails",
                json=body,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise MailerError(f"email request failed: {e}") from e
        if not resp.ok:
            raise MailerError(f"email rejected (HTTP {resp.status_code}): {resp.text}")
        return resp.json()

    def health_check(self) -> bool:
        return bool(self.api_key)


class MockMailer:
    """Records messages instead of sending them."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.outbox: List[Dict] = []

    def send(self, sender: str, to: str, subject: str, text: str, reply_to: Optional[str] = None) -> Dict:
        if self.fail:
            raise MailerError("Simulated email failure")
        msg = {"from": sender, "to": to, "subject": subject, "text": text, "reply_to": reply_to}
        self.outbox.append(msg)
        log.info(f"mock email to={to} subject={subject!r}")
        return {"id": f"mock-{len(self.outbox)}"}

    def health_check(self) -> bool:
        return True
