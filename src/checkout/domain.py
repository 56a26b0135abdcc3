"""Checkout bounded context: cart composition, dropship allocation and order submission.

Holds the Cart and ShipmentGroup aggregates. Pricing, gating and payload
assembly are plain services over them.
"""

import structlog
from protean.domain import Domain

checkout = Domain(name="checkout")

logger = structlog.get_logger(__name__)
