"""Configurable fake collaborators for development and testing.

No network calls. Each fake can be told to succeed or fail and records every
call it receives, so tests can assert on exactly what the engine sent.
Payment signatures are HMAC-SHA256 over ``"<payment order id>|<payment id>"``,
the same scheme the provider uses, keyed with a shared test secret.
"""

import hashlib
import hmac
from uuid import uuid4

from checkout.gateways.port import (
    CheckoutGateways,
    DocumentGenerator,
    DocumentResult,
    OrderApi,
    OrderSubmissionResult,
    PaymentConfirmation,
    PaymentOrder,
    PaymentProvider,
    PostalLookup,
    PostalLookupResult,
    VerificationResult,
)
from checkout.pricing.calculator import to_minor_units

TEST_SECRET = "test-secret"


def sign(payment_order_id: str, payment_id: str, secret: str = TEST_SECRET) -> str:
    message = f"{payment_order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


class FakePostalLookup(PostalLookup):
    def __init__(self, directory: dict[str, tuple[str, str]] | None = None) -> None:
        self.directory = directory if directory is not None else {"411001": ("Pune", "Maharashtra")}
        self.should_succeed: bool = True
        self.failure_reason: str = "Postal service unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Postal service unavailable") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def lookup(self, postal_code: str) -> PostalLookupResult:
        self.calls.append({"method": "lookup", "postal_code": postal_code})

        if not self.should_succeed:
            return PostalLookupResult(success=False, status="Error", failure_reason=self.failure_reason)
        if postal_code not in self.directory:
            return PostalLookupResult(success=False, status="Error", failure_reason="No records found")

        city, state = self.directory[postal_code]
        return PostalLookupResult(success=True, status="Success", city=city, state=state)


class FakeDocumentGenerator(DocumentGenerator):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Document service unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Document service unavailable") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def generate(self, customer: dict, items: list[dict]) -> DocumentResult:
        self.calls.append({"method": "generate", "customer": customer, "items": items})

        if not self.should_succeed:
            return DocumentResult(success=False, failure_reason=self.failure_reason)
        return DocumentResult(
            success=True,
            url=f"https://documents.example.com/delivery/{uuid4().hex[:12]}.pdf",
        )


class FakeOrderApi(OrderApi):
    def __init__(self, currency: str = "INR", secret: str = TEST_SECRET) -> None:
        self.currency = currency
        self.secret = secret
        self.should_succeed: bool = True
        self.omit_payment_order: bool = False
        self.failure_reason: str = "Order service unavailable"
        self.calls: list[dict] = []
        self.orders: dict[str, PaymentOrder] = {}
        self.verified: list[str] = []

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Order service unavailable",
        omit_payment_order: bool = False,
    ) -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.omit_payment_order = omit_payment_order

    def submit_order(self, payload: dict) -> OrderSubmissionResult:
        self.calls.append({"method": "submit_order", "payload": payload})

        if not self.should_succeed:
            return OrderSubmissionResult(success=False, failure_reason=self.failure_reason)

        order_handle = f"fake_order_{uuid4().hex[:12]}"
        if self.omit_payment_order:
            return OrderSubmissionResult(success=True, order_handle=order_handle)

        payment_order = PaymentOrder(
            id=f"fake_pay_order_{uuid4().hex[:12]}",
            amount=to_minor_units(payload["total_amount"]),
            currency=self.currency,
        )
        self.orders[order_handle] = payment_order
        return OrderSubmissionResult(success=True, order_handle=order_handle, payment_order=payment_order)

    def verify_payment(self, order_handle: str, payment_id: str, signature: str) -> VerificationResult:
        self.calls.append(
            {
                "method": "verify_payment",
                "order_handle": order_handle,
                "payment_id": payment_id,
                "signature": signature,
            }
        )

        payment_order = self.orders.get(order_handle)
        if payment_order is None:
            return VerificationResult(success=False, failure_reason="Order not found")
        if not hmac.compare_digest(sign(payment_order.id, payment_id, self.secret), signature):
            return VerificationResult(success=False, failure_reason="Signature mismatch")

        self.verified.append(order_handle)
        return VerificationResult(success=True)


class FakePaymentProvider(PaymentProvider):
    def __init__(self, secret: str = TEST_SECRET) -> None:
        self.secret = secret
        self.available: bool = True
        self.opened: list[dict] = []

    def configure(self, available: bool) -> None:
        self.available = available

    def is_available(self) -> bool:
        return self.available

    def open_checkout(self, payment_order: PaymentOrder, prefill: dict) -> None:
        self.opened.append({"payment_order": payment_order, "prefill": prefill})

    def complete(self, payment_order: PaymentOrder, payment_id: str | None = None) -> PaymentConfirmation:
        """Simulate the customer paying: returns the confirmation the callback would deliver."""
        payment_id = payment_id or f"fake_pay_{uuid4().hex[:12]}"
        return PaymentConfirmation(payment_id=payment_id, signature=sign(payment_order.id, payment_id, self.secret))


def fake_gateways() -> CheckoutGateways:
    return CheckoutGateways(
        postal=FakePostalLookup(),
        documents=FakeDocumentGenerator(),
        orders=FakeOrderApi(),
        payments=FakePaymentProvider(),
    )
