"""Ports for the checkout engine's external collaborators.

Postal lookup, document generation, order persistence and the payment provider
are all reached through these interfaces, so fakes (tests, development) and
HTTP adapters (production) can be swapped without touching the engine.
Adapters report failures through the result objects instead of raising.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class PostalLookupResult:
    success: bool
    city: str | None = None
    state: str | None = None
    status: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class DocumentResult:
    success: bool
    url: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class PaymentOrder:
    """Provider-side order the hosted checkout is opened for; amount in minor units."""

    id: str
    amount: int
    currency: str


@dataclass(frozen=True)
class OrderSubmissionResult:
    success: bool
    order_handle: str | None = None
    payment_order: PaymentOrder | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class VerificationResult:
    success: bool
    failure_reason: str | None = None


@dataclass(frozen=True)
class PaymentConfirmation:
    """Delivered by the provider callback when the customer completes payment."""

    payment_id: str
    signature: str


@dataclass(frozen=True)
class PaymentFailure:
    """Structured failure reason delivered by the provider callback."""

    code: str
    description: str


class PostalLookup(ABC):
    @abstractmethod
    def lookup(self, postal_code: str) -> PostalLookupResult:
        """Resolve a postal code to its city and state."""
        ...


class DocumentGenerator(ABC):
    @abstractmethod
    def generate(self, customer: dict, items: list[dict]) -> DocumentResult:
        """Generate a delivery document for one recipient and return its URL."""
        ...


class OrderApi(ABC):
    @abstractmethod
    def submit_order(self, payload: dict) -> OrderSubmissionResult:
        """Persist an order and create the provider-side payment order."""
        ...

    @abstractmethod
    def verify_payment(self, order_handle: str, payment_id: str, signature: str) -> VerificationResult:
        """Verify a provider confirmation against the persisted order."""
        ...


class PaymentProvider(ABC):
    @abstractmethod
    def is_available(self) -> bool:
        """Whether the hosted checkout can be opened right now."""
        ...

    @abstractmethod
    def open_checkout(self, payment_order: PaymentOrder, prefill: dict) -> None:
        """Open the hosted checkout; the outcome arrives later through a callback."""
        ...


@dataclass
class CheckoutGateways:
    postal: PostalLookup
    documents: DocumentGenerator
    orders: OrderApi
    payments: PaymentProvider
