"""Checkout flow: drives the external collaborators around the composition engine.

Flow:
    1. lookup_postal_code()  → prefill city/state for an address form
    2. generate_document()   → per dropship group, needed before a dropship checkout
    3. submit()              → gate → payload → order API → open hosted checkout
    4a. confirm_payment()    → verify with the order API → clear cart and groups
    4b. fail_payment()       → surface the provider's failure, state untouched

Only one submission may be in flight; the ``processing`` flag is set by
``submit()`` and cleared by confirmation, failure, or any error on the way.
"""

from dataclasses import dataclass

import structlog
from protean.utils.logging import add_context, clear_context

from checkout.cart.service import CartService
from checkout.config import CheckoutSettings
from checkout.dropship.allocator import ShipmentAllocator
from checkout.errors import ExternalFailure, InvalidOperationError, ValidationError
from checkout.gate.validator import CheckoutValidator
from checkout.gateways import get_gateways
from checkout.gateways.port import CheckoutGateways, PaymentConfirmation, PaymentFailure, PaymentOrder
from checkout.payload.builder import OrderPayloadBuilder, format_shipping_address
from checkout.pricing.calculator import CartTotals, cart_totals
from checkout.session.service import SessionService
from checkout.shared.customer import CustomerDetails

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PendingPayment:
    order_handle: str
    payment_order: PaymentOrder
    payload: dict


@dataclass(frozen=True)
class CheckoutResult:
    order_handle: str
    payment_id: str
    total_amount: float


class CheckoutFlow:
    def __init__(
        self,
        cart_service: CartService,
        session_service: SessionService,
        allocator: ShipmentAllocator | None = None,
        gateways: CheckoutGateways | None = None,
        settings: CheckoutSettings | None = None,
    ) -> None:
        self.settings = settings or CheckoutSettings()
        self.cart_service = cart_service
        self.session_service = session_service
        self.gateways = gateways or get_gateways(self.settings)
        self.allocator = allocator or ShipmentAllocator(cart_service, session_service, self.settings)
        self.validator = CheckoutValidator(
            cart_service,
            session_service,
            self.allocator,
            self.gateways.payments,
            self.settings,
        )
        self.builder = OrderPayloadBuilder(cart_service, session_service, self.allocator, self.settings)
        self._processing = False
        self._pending: PendingPayment | None = None

    @property
    def processing(self) -> bool:
        return self._processing

    @property
    def pending(self) -> PendingPayment | None:
        return self._pending

    def totals(self) -> CartTotals:
        return cart_totals(
            self.cart_service.cart,
            self.session_service.role,
            shipping=self.settings.shipping_fee,
            default_tax_percentage=self.settings.default_tax_percentage,
        )

    # -------------------------------------------------------------------
    # Address prefill
    # -------------------------------------------------------------------
    def lookup_postal_code(self, details: CustomerDetails) -> CustomerDetails:
        """Return a copy of ``details`` with city and state filled from the postal code."""
        code = details.postal_code
        length = self.settings.postal_code_length
        if not (code.isdigit() and len(code) == length):
            raise ValidationError({"postal_code": [f"Postal code must be exactly {length} digits"]})

        result = self.gateways.postal.lookup(code)
        if not result.success:
            logger.warning("postal_lookup_failed", postal_code=code, reason=result.failure_reason)
            raise ExternalFailure("postal_lookup", result.failure_reason or "Postal code lookup failed")

        return details.model_copy(update={"city": result.city, "state": result.state})

    # -------------------------------------------------------------------
    # Delivery documents
    # -------------------------------------------------------------------
    def generate_document(self, group_id: str) -> str | None:
        """Generate and attach a delivery document; returns None if the group changed meanwhile."""
        group = self.allocator.group(group_id)
        if not group.has_items:
            raise ValidationError({"items": ["Assign at least one item before generating a document"]})

        revision = group.revision
        customer = group.customer
        result = self.gateways.documents.generate(
            customer={
                "name": customer.name,
                "email": customer.email,
                "phone": customer.phone,
                "address": format_shipping_address(customer),
            },
            items=[{"name": item.product_name, "quantity": item.quantity} for item in group.items],
        )
        if not result.success:
            logger.warning("document_generation_failed", group_id=group.id, reason=result.failure_reason)
            raise ExternalFailure("document_generation", result.failure_reason or "Document generation failed")

        if not group.attach_document(result.url, revision=revision):
            logger.warning("stale_document_discarded", group_id=group.id, revision=revision)
            return None

        logger.info("document_attached", group_id=group.id, url=result.url)
        return result.url

    # -------------------------------------------------------------------
    # Submission and payment
    # -------------------------------------------------------------------
    def submit(self, shipping_details: CustomerDetails | None = None) -> PendingPayment:
        if self._processing:
            raise InvalidOperationError({"checkout": ["A checkout is already in progress"]})

        self.validator.ensure_can_proceed(shipping_details)

        self._processing = True
        try:
            payload = self.builder.build(shipping_details).model_dump(mode="json")
            result = self.gateways.orders.submit_order(payload)
            if not result.success:
                raise ExternalFailure("order_api", result.failure_reason or "Order submission failed")
            if result.payment_order is None or not result.order_handle:
                raise ExternalFailure("order_api", "Order response did not include a payment order")

            actor = self.session_service.current_actor
            self.gateways.payments.open_checkout(
                result.payment_order,
                prefill={"name": actor.name, "email": actor.email},
            )
        except Exception:
            self._processing = False
            raise

        self._pending = PendingPayment(
            order_handle=result.order_handle,
            payment_order=result.payment_order,
            payload=payload,
        )
        add_context(order_handle=result.order_handle)
        logger.info(
            "checkout_submitted",
            order_handle=result.order_handle,
            payment_order_id=result.payment_order.id,
            amount=result.payment_order.amount,
            currency=result.payment_order.currency,
        )
        return self._pending

    def confirm_payment(self, confirmation: PaymentConfirmation) -> CheckoutResult:
        pending = self._take_pending()

        result = self.gateways.orders.verify_payment(
            pending.order_handle,
            confirmation.payment_id,
            confirmation.signature,
        )
        if not result.success:
            logger.warning("payment_verification_failed", order_handle=pending.order_handle, reason=result.failure_reason)
            raise ExternalFailure("order_api", result.failure_reason or "Payment verification failed")

        self.cart_service.clear()
        self.allocator.disable_dropship()
        logger.info("checkout_completed", order_handle=pending.order_handle, payment_id=confirmation.payment_id)
        return CheckoutResult(
            order_handle=pending.order_handle,
            payment_id=confirmation.payment_id,
            total_amount=pending.payload["total_amount"],
        )

    def fail_payment(self, failure: PaymentFailure) -> None:
        """Relay the provider's failure callback; always raises ``ExternalFailure``."""
        pending = self._take_pending()
        logger.warning(
            "payment_failed",
            order_handle=pending.order_handle,
            code=failure.code,
            description=failure.description,
        )
        raise ExternalFailure("payment_provider", failure.description)

    def _take_pending(self) -> PendingPayment:
        if not self._processing or self._pending is None:
            raise InvalidOperationError({"checkout": ["No checkout is awaiting payment"]})

        pending = self._pending
        self._pending = None
        self._processing = False
        clear_context()
        return pending
