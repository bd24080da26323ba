"""
Checkout as an explicit finite state machine.

    ENTERING_ADDRESS -> FETCHING_RATES -> CREATING_PAYMENT -> PAYMENT_READY
        -> SUBMITTING -> SUCCEEDED | (PAYMENT_READY with error)

transition() is pure: it takes the current state and an event and returns the
next state. Results of asynchronous work (rates, payment intents) carry the
generation they were requested under; a result whose generation is no longer
current is ignored, so nothing fetched for an old address or an old rate can
reach the state.
"""
import enum
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from wingshop.schemas.address_schema import Address
from wingshop.schemas.shipping_schema import ShippingRate


class Phase(str, enum.Enum):
    ENTERING_ADDRESS = "entering_address"
    FETCHING_RATES = "fetching_rates"
    CREATING_PAYMENT = "creating_payment"
    PAYMENT_READY = "payment_ready"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class CheckoutTransitionError(Exception):
    def __init__(self, phase: Phase, event: object):
        super().__init__(f"{type(event).__name__} not allowed in {phase.value}")
        self.phase = phase
        self.event = event


@dataclass(frozen=True)
class PaymentHandle:
    intent_id: str
    client_secret: str
    rate_id: str
    amount: int


@dataclass(frozen=True)
class CheckoutState:
    phase: Phase = Phase.ENTERING_ADDRESS
    address: Optional[Address] = None
    address_complete: bool = False
    rates: Tuple[ShippingRate, ...] = field(default_factory=tuple)
    selected_rate: Optional[ShippingRate] = None
    payment: Optional[PaymentHandle] = None
    error: Optional[str] = None
    rates_generation: int = 0
    payment_generation: int = 0
    payment_reference: Optional[str] = None

    @property
    def can_confirm_address(self) -> bool:
        return self.address_complete and self.phase in (Phase.ENTERING_ADDRESS, Phase.FAILED)


# events

@dataclass(frozen=True)
class AddressChanged:
    address: Address
    complete: bool


@dataclass(frozen=True)
class ConfirmAddress:
    pass


@dataclass(frozen=True)
class EditAddress:
    pass


@dataclass(frozen=True)
class RatesLoaded:
    generation: int
    rates: Tuple[ShippingRate, ...]
    error: Optional[str] = None


@dataclass(frozen=True)
class SelectRate:
    rate_id: str


@dataclass(frozen=True)
class PaymentCreated:
    generation: int
    handle: PaymentHandle


@dataclass(frozen=True)
class PaymentSetupFailed:
    generation: int
    error: str


@dataclass(frozen=True)
class SubmitPayment:
    pass


@dataclass(frozen=True)
class PaymentSucceeded:
    reference: str


@dataclass(frozen=True)
class PaymentDeclined:
    error: str


def _reset_downstream(state: CheckoutState, **changes) -> CheckoutState:
    """Drop rates and payment; bump both generations so in-flight results go stale."""
    return replace(
        state,
        rates=(),
        selected_rate=None,
        payment=None,
        error=None,
        rates_generation=state.rates_generation + 1,
        payment_generation=state.payment_generation + 1,
        **changes,
    )


def transition(state: CheckoutState, event: object) -> CheckoutState:
    phase = state.phase

    if phase == Phase.SUCCEEDED:
        raise CheckoutTransitionError(phase, event)

    if isinstance(event, AddressChanged):
        if phase == Phase.SUBMITTING:
            raise CheckoutTransitionError(phase, event)
        if phase == Phase.ENTERING_ADDRESS:
            return replace(state, address=event.address, address_complete=event.complete)
        # editing after confirmation reverts and invalidates everything downstream
        return _reset_downstream(
            state,
            phase=Phase.ENTERING_ADDRESS,
            address=event.address,
            address_complete=event.complete,
        )

    if isinstance(event, EditAddress):
        if phase == Phase.SUBMITTING:
            raise CheckoutTransitionError(phase, event)
        return _reset_downstream(state, phase=Phase.ENTERING_ADDRESS)

    if isinstance(event, ConfirmAddress):
        if not state.can_confirm_address or state.address is None:
            raise CheckoutTransitionError(phase, event)
        return _reset_downstream(state, phase=Phase.FETCHING_RATES)

    if isinstance(event, RatesLoaded):
        if phase != Phase.FETCHING_RATES or event.generation != state.rates_generation:
            return state
        rates = tuple(sorted(event.rates, key=lambda r: r.amount))
        if not rates:
            return replace(
                state,
                phase=Phase.FAILED,
                rates=(),
                error=event.error or "No rates available. Try editing your address.",
            )
        # cheapest rate is chosen until the shopper picks another
        return replace(
            state,
            phase=Phase.CREATING_PAYMENT,
            rates=rates,
            selected_rate=rates[0],
            payment=None,
            error=None,
            payment_generation=state.payment_generation + 1,
        )

    if isinstance(event, SelectRate):
        if phase not in (Phase.CREATING_PAYMENT, Phase.PAYMENT_READY, Phase.FAILED) or not state.rates:
            raise CheckoutTransitionError(phase, event)
        rate = next((r for r in state.rates if r.id == event.rate_id), None)
        if rate is None:
            raise CheckoutTransitionError(phase, event)
        # a new rate means a new intent; the old handle is never reused
        return replace(
            state,
            phase=Phase.CREATING_PAYMENT,
            selected_rate=rate,
            payment=None,
            error=None,
            payment_generation=state.payment_generation + 1,
        )

    if isinstance(event, PaymentCreated):
        if (
            phase != Phase.CREATING_PAYMENT
            or event.generation != state.payment_generation
            or state.selected_rate is None
            or event.handle.rate_id != state.selected_rate.id
        ):
            return state
        return replace(state, phase=Phase.PAYMENT_READY, payment=event.handle, error=None)

    if isinstance(event, PaymentSetupFailed):
        if phase != Phase.CREATING_PAYMENT or event.generation != state.payment_generation:
            return state
        return replace(state, phase=Phase.FAILED, payment=None, error=event.error)

    if isinstance(event, SubmitPayment):
        if phase != Phase.PAYMENT_READY or state.payment is None:
            raise CheckoutTransitionError(phase, event)
        return replace(state, phase=Phase.SUBMITTING, error=None)

    if isinstance(event, PaymentSucceeded):
        if phase != Phase.SUBMITTING:
            raise CheckoutTransitionError(phase, event)
        return replace(state, phase=Phase.SUCCEEDED, payment_reference=event.reference)

    if isinstance(event, PaymentDeclined):
        if phase != Phase.SUBMITTING:
            raise CheckoutTransitionError(phase, event)
        # stays payable; the shopper can retry against the same intent
        return replace(state, phase=Phase.PAYMENT_READY, error=event.error)

    raise CheckoutTransitionError(phase, event)
