import asyncio
from typing import List, Optional, Protocol

from wingshop.checkout.machine import (
    AddressChanged,
    CheckoutState,
    ConfirmAddress,
    EditAddress,
    PaymentCreated,
    PaymentDeclined,
    PaymentHandle,
    PaymentSetupFailed,
    PaymentSucceeded,
    Phase,
    RatesLoaded,
    SelectRate,
    SubmitPayment,
    transition,
)
from wingshop.schemas.address_schema import Address
from wingshop.schemas.cart_schema import CartLine
from wingshop.schemas.shipping_schema import RateQuote
from wingshop.services.payment_service import PaymentService, PaymentServiceException
from wingshop.services.shipping_service import ShippingQuoteService
from wingshop.utils.log import get_logger

log = get_logger("checkout")


class CheckoutBackendError(Exception):
    pass


class CheckoutBackend(Protocol):
    async def quote_rates(self, address: Address, lines: List[CartLine]) -> RateQuote: ...

    async def create_payment(
        self,
        lines: List[CartLine],
        currency: str,
        ship_cents: int,
        address: Address,
        rate_id: str,
    ) -> PaymentHandle: ...

    async def confirm_payment(self, intent_id: str, payment_method: str) -> str: ...


class ServiceCheckoutBackend:
    """CheckoutBackend over the in-process services; blocking calls run in worker threads."""

    def __init__(self, quotes: ShippingQuoteService, payments: PaymentService):
        self.quotes = quotes
        self.payments = payments

    async def quote_rates(self, address: Address, lines: List[CartLine]) -> RateQuote:
        return await asyncio.to_thread(self.quotes.quote, address, lines)

    async def create_payment(self, lines, currency, ship_cents, address, rate_id) -> PaymentHandle:
        try:
            res = await asyncio.to_thread(
                self.payments.create_payment_intent,
                lines,
                currency,
                ship_cents,
                address,
                rate_id,
            )
        except PaymentServiceException as e:
            raise CheckoutBackendError(str(e)) from e
        return PaymentHandle(
            intent_id=res["payment_intent_id"],
            client_secret=res["client_secret"],
            rate_id=rate_id,
            amount=res["amount"],
        )

    async def confirm_payment(self, intent_id: str, payment_method: str) -> str:
        try:
            res = await asyncio.to_thread(self.payments.confirm_payment, intent_id, payment_method)
        except PaymentServiceException as e:
            raise CheckoutBackendError(str(e)) from e
        if res.get("status") not in ("succeeded", "processing"):
            raise CheckoutBackendError(f"Payment not completed ({res.get('status')})")
        return res["payment_intent_id"]


class CheckoutFlow:
    """
    Drives the checkout state machine against a backend.

    Each async step records the generation it was started under and feeds its
    result back through transition(), which drops results whose generation is
    stale. Overlapping calls are therefore safe: the latest request wins.
    """

    def __init__(self, backend: CheckoutBackend, lines: List[CartLine], currency: str = "usd"):
        self.backend = backend
        self.lines = list(lines)
        self.currency = (currency or "usd").lower()
        self.state = CheckoutState()

    def dispatch(self, event) -> CheckoutState:
        self.state = transition(self.state, event)
        return self.state

    @property
    def redirect_url(self) -> Optional[str]:
        if self.state.phase != Phase.SUCCEEDED:
            return None
        return f"/checkout/confirmation?pi={self.state.payment_reference}"

    def change_address(self, address: Address, complete: bool) -> CheckoutState:
        return self.dispatch(AddressChanged(address, complete))

    def edit_address(self) -> CheckoutState:
        return self.dispatch(EditAddress())

    async def confirm_address(self) -> CheckoutState:
        state = self.dispatch(ConfirmAddress())
        generation = state.rates_generation
        address = state.address
        try:
            quote = await self.backend.quote_rates(address, self.lines)
        except Exception as e:
            log.exception(f"rate fetch failed: {e}")
            quote = RateQuote(rates=[], error="Could not get rates.")
        self.dispatch(RatesLoaded(generation, tuple(quote.rates), quote.error))
        if self.state.rates_generation != generation:
            log.debug(f"discarded rates for stale generation {generation}")
            return self.state
        if self.state.phase == Phase.CREATING_PAYMENT:
            await self._create_payment()
        return self.state

    async def select_rate(self, rate_id: str) -> CheckoutState:
        self.dispatch(SelectRate(rate_id))
        await self._create_payment()
        return self.state

    async def _create_payment(self):
        state = self.state
        generation = state.payment_generation
        rate = state.selected_rate
        try:
            handle = await self.backend.create_payment(
                self.lines, self.currency, rate.amount, state.address, rate.id
            )
        except CheckoutBackendError as e:
            self.dispatch(PaymentSetupFailed(generation, str(e) or "Payment setup failed."))
            return
        except Exception as e:
            log.exception(f"payment setup failed: {e}")
            self.dispatch(PaymentSetupFailed(generation, "Payment setup failed."))
            return
        self.dispatch(PaymentCreated(generation, handle))

    async def submit(self, payment_method: str) -> CheckoutState:
        state = self.dispatch(SubmitPayment())
        try:
            reference = await self.backend.confirm_payment(state.payment.intent_id, payment_method)
        except CheckoutBackendError as e:
            return self.dispatch(PaymentDeclined(str(e) or "Payment failed. Please try again."))
        except Exception as e:
            log.exception(f"payment confirm failed: {e}")
            return self.dispatch(PaymentDeclined("Payment failed. Please try again."))
        return self.dispatch(PaymentSucceeded(reference))
