"""Composition root: wires one checkout session's services together.

Usage:
    engine = build_checkout(actor=Actor(id="u-1", name="Asha", email="asha@example.com"))
    engine.cart.add(product, 2)
    pending = engine.flow.submit(shipping_details)
"""

from dataclasses import dataclass

import structlog
from protean.domain.context import has_domain_context

from checkout.cart.service import CartService
from checkout.config import CheckoutSettings
from checkout.domain import checkout
from checkout.dropship.allocator import ShipmentAllocator
from checkout.gate.validator import CheckoutValidator
from checkout.gateways import get_gateways
from checkout.gateways.port import CheckoutGateways
from checkout.payload.builder import OrderPayloadBuilder
from checkout.session.service import Actor, SessionService
from checkout.submission.flow import CheckoutFlow
from checkout.utils.logging import configure_logging

logger = structlog.get_logger(__name__)


@dataclass
class CheckoutEngine:
    settings: CheckoutSettings
    session: SessionService
    cart: CartService
    allocator: ShipmentAllocator
    flow: CheckoutFlow

    @property
    def validator(self) -> CheckoutValidator:
        return self.flow.validator

    @property
    def builder(self) -> OrderPayloadBuilder:
        return self.flow.builder


def build_checkout(
    settings: CheckoutSettings | None = None,
    actor: Actor | None = None,
    gateways: CheckoutGateways | None = None,
    log_dir: str | None = None,
) -> CheckoutEngine:
    if not has_domain_context():
        checkout.init()
        checkout.domain_context().push()
    configure_logging(checkout, log_dir)

    settings = settings or CheckoutSettings.from_env()
    session = SessionService(actor)
    cart = CartService()
    allocator = ShipmentAllocator(cart, session, settings)
    flow = CheckoutFlow(cart, session, allocator, gateways or get_gateways(settings), settings)

    logger.info("checkout_engine_built", gateway_adapter=settings.gateway_adapter, currency=settings.currency)
    return CheckoutEngine(settings=settings, session=session, cart=cart, allocator=allocator, flow=flow)
