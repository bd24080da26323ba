from functools import lru_cache

from wingshop.adapters.mailer import MockMailer, ResendMailer
from wingshop.adapters.mock_payment import MockPaymentGateway
from wingshop.adapters.mock_shipping import MockRateClient
from wingshop.adapters.payment_gateway import StripeGateway
from wingshop.adapters.shippo import ShippoClient
from wingshop.config import settings
from wingshop.utils.log import get_logger

log = get_logger("app")

# Vendor adapters are process-wide. Without a key configured the mock adapter is
# used, which keeps local development working offline. Tests replace these via
# app.dependency_overrides.


@lru_cache(maxsize=1)
def get_payment_gateway():
    if settings.STRIPE_SECRET_KEY:
        return StripeGateway(settings.STRIPE_SECRET_KEY)
    log.warning("STRIPE_SECRET_KEY not set; using mock payment gateway")
    return MockPaymentGateway()


@lru_cache(maxsize=1)
def get_rate_client():
    if settings.SHIPPO_API_KEY:
        return ShippoClient(
            settings.SHIPPO_API_KEY,
            base_url=settings.SHIPPO_BASE_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
    log.warning("SHIPPO_API_KEY not set; using mock rate client")
    return MockRateClient()


@lru_cache(maxsize=1)
def get_mailer():
    if settings.RESEND_API_KEY:
        return ResendMailer(
            settings.RESEND_API_KEY,
            base_url=settings.RESEND_BASE_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
    log.warning("RESEND_API_KEY not set; using mock mailer")
    return MockMailer()
