"""Checkout validator: business rules that gate checkout.

Rules run in a fixed order and the first one that blocks wins:

    1. identity              → requires_auth
    2. bulk quote threshold  → requires_quote
    3. direct purchase cap   → exceeds_direct_limit(product, max)
    4. address completeness  → incomplete_address        (single destination)
    5. dropship completeness → missing_groups / over_allocated(product) /
                               missing_document(group)   (dropship)
    6. payment channel       → payment_unavailable

The bulk quote rule counts distinct cart *lines*, not units.
"""

from dataclasses import dataclass
from enum import Enum

import structlog

from checkout.cart.service import CartService
from checkout.config import CheckoutSettings
from checkout.dropship.allocator import ShipmentAllocator
from checkout.errors import GateError
from checkout.gateways.port import PaymentProvider
from checkout.session.service import ActorRole, SessionService
from checkout.shared.customer import DELIVERY_REQUIRED_FIELDS, CustomerDetails, missing_fields

logger = structlog.get_logger(__name__)


class GateReason(Enum):
    PROCEED = "proceed"
    REQUIRES_AUTH = "requires_auth"
    REQUIRES_QUOTE = "requires_quote"
    EXCEEDS_DIRECT_LIMIT = "exceeds_direct_limit"
    INCOMPLETE_ADDRESS = "incomplete_address"
    MISSING_GROUPS = "missing_groups"
    OVER_ALLOCATED = "over_allocated"
    MISSING_DOCUMENT = "missing_document"
    PAYMENT_UNAVAILABLE = "payment_unavailable"


@dataclass(frozen=True)
class GateOutcome:
    reason: GateReason
    message: str = ""
    product_id: str | None = None
    limit: int | None = None
    group_id: str | None = None
    missing_fields: tuple[str, ...] = ()

    @property
    def proceed(self) -> bool:
        return self.reason == GateReason.PROCEED


PROCEED = GateOutcome(reason=GateReason.PROCEED)


class CheckoutValidator:
    def __init__(
        self,
        cart_service: CartService,
        session_service: SessionService,
        allocator: ShipmentAllocator,
        payment_provider: PaymentProvider,
        settings: CheckoutSettings | None = None,
    ) -> None:
        self.cart_service = cart_service
        self.session_service = session_service
        self.allocator = allocator
        self.payment_provider = payment_provider
        self.settings = settings or CheckoutSettings()

    def evaluate(self, shipping_details: CustomerDetails | None = None) -> GateOutcome:
        checks = (
            self._check_identity,
            self._check_quote_threshold,
            self._check_direct_purchase_caps,
            lambda: self._check_address(shipping_details),
            self._check_dropship_completeness,
            self._check_payment_channel,
        )
        for check in checks:
            outcome = check()
            if outcome is not None:
                logger.info(
                    "checkout_blocked",
                    reason=outcome.reason.value,
                    product_id=outcome.product_id,
                    group_id=outcome.group_id,
                )
                return outcome
        return PROCEED

    def ensure_can_proceed(self, shipping_details: CustomerDetails | None = None) -> GateOutcome:
        outcome = self.evaluate(shipping_details)
        if not outcome.proceed:
            raise GateError(outcome)
        return outcome

    # -------------------------------------------------------------------
    # Rules
    # -------------------------------------------------------------------
    def _check_identity(self) -> GateOutcome | None:
        if not self.session_service.is_authenticated:
            return GateOutcome(GateReason.REQUIRES_AUTH, message="Please sign in to check out")
        return None

    def _check_quote_threshold(self) -> GateOutcome | None:
        limit = self.settings.bulk_quote_line_limit
        if self.session_service.role == ActorRole.USER and len(self.cart_service.cart.lines) > limit:
            return GateOutcome(
                GateReason.REQUIRES_QUOTE,
                message=f"You have more than {limit} items in your cart. Please request a quote for bulk orders.",
                limit=limit,
            )
        return None

    def _check_direct_purchase_caps(self) -> GateOutcome | None:
        if self.session_service.role == ActorRole.RETAILER:
            return None

        cart = self.cart_service.cart
        for product_id in cart.product_ids():
            product = cart.product(product_id)
            cap = product.max_direct_purchase_qty
            if product.is_telecom and cap is not None and cart.quantity_of(product_id) > cap:
                return GateOutcome(
                    GateReason.EXCEEDS_DIRECT_LIMIT,
                    message=f"{product.name} can only be purchased directly up to {cap} units. "
                    "Please request a quote for larger quantities.",
                    product_id=product_id,
                    limit=cap,
                )
        return None

    def _check_address(self, shipping_details: CustomerDetails | None) -> GateOutcome | None:
        if self.allocator.dropship_enabled:
            return None

        errors = missing_fields(shipping_details, DELIVERY_REQUIRED_FIELDS, self.settings.postal_code_length)
        if errors:
            return GateOutcome(
                GateReason.INCOMPLETE_ADDRESS,
                message="Please complete the shipping address",
                missing_fields=tuple(errors),
            )
        return None

    def _check_dropship_completeness(self) -> GateOutcome | None:
        if not self.allocator.dropship_enabled:
            return None

        groups = self.allocator.groups
        if not groups:
            return GateOutcome(GateReason.MISSING_GROUPS, message="Add at least one dropship customer")
        if not any(group.has_items for group in groups):
            return GateOutcome(GateReason.MISSING_GROUPS, message="Assign items to at least one dropship customer")

        over = self.allocator.over_allocations()
        if over:
            product_id = next(iter(over))
            return GateOutcome(
                GateReason.OVER_ALLOCATED,
                message=f"{over[product_id]} more unit(s) of {product_id} are assigned than are in the cart",
                product_id=product_id,
            )

        for group in groups:
            if group.has_items and not group.document_url:
                return GateOutcome(
                    GateReason.MISSING_DOCUMENT,
                    message=f"Generate the delivery document for {group.customer.name}",
                    group_id=group.id,
                )
        return None

    def _check_payment_channel(self) -> GateOutcome | None:
        if not self.payment_provider.is_available():
            return GateOutcome(
                GateReason.PAYMENT_UNAVAILABLE,
                message="Payment gateway is not loaded. Please refresh the page and try again.",
            )
        return None
