"""Shipment allocator: splits cart quantities across dropship destinations.

Quantities not assigned to any group implicitly ship to the purchaser ("self").
Remaining quantities are always recomputed from the live cart; nothing is cached,
so shrinking a cart line after allocation shows up as an over-allocation rather
than being silently clamped.

Assignments are taken from one cart line at a time. A product with a quoted and
an unquoted line is allocated per line, so an assignment never draws on the
other line's units and always carries that line's price.
"""

import structlog

from checkout.cart.cart import CartLine
from checkout.cart.service import CartService
from checkout.config import CheckoutSettings
from checkout.dropship.group import AssignedItem, ShipmentGroup
from checkout.errors import AllocationError, InvalidOperationError, ValidationError
from checkout.pricing.calculator import unit_price, warranty_surcharge
from checkout.session.service import SessionService
from checkout.shared.customer import RECIPIENT_REQUIRED_FIELDS, CustomerDetails, missing_fields

logger = structlog.get_logger(__name__)


class ShipmentAllocator:
    def __init__(
        self,
        cart_service: CartService,
        session_service: SessionService,
        settings: CheckoutSettings | None = None,
    ) -> None:
        self.cart_service = cart_service
        self.session_service = session_service
        self.settings = settings or CheckoutSettings()
        self._dropship = False
        self._groups: list[ShipmentGroup] = []

    # -------------------------------------------------------------------
    # Mode
    # -------------------------------------------------------------------
    @property
    def dropship_enabled(self) -> bool:
        return self._dropship

    def enable_dropship(self) -> None:
        """Turn dropship on with no groups: the whole cart starts self-shipped."""
        self._dropship = True
        self._groups = []
        logger.info("dropship_enabled")

    def disable_dropship(self) -> None:
        discarded = len(self._groups)
        self._dropship = False
        self._groups = []
        logger.info("dropship_disabled", discarded_groups=discarded)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def groups(self) -> list[ShipmentGroup]:
        return list(self._groups)

    def group(self, group_id: str) -> ShipmentGroup:
        found = next((group for group in self._groups if str(group.id) == str(group_id)), None)
        if found is None:
            raise ValidationError({"group_id": [f"Unknown shipment group {group_id}"]})
        return found

    def assigned_quantity(self, product_id: str) -> int:
        return sum(group.product_quantity(product_id) for group in self._groups)

    def remaining_quantity(self, product_id: str) -> int:
        """Unassigned quantity of a product across all its lines; never negative."""
        return max(self.cart_service.cart.quantity_of(product_id) - self.assigned_quantity(product_id), 0)

    def line_remaining(self, product_id: str, quote_id: str | None = None) -> int:
        """Unassigned quantity of one cart line; never negative."""
        line = self.cart_service.cart.line_for(product_id, quote_id)
        if line is None:
            return 0
        return self._remaining_on(line)

    def unassigned(self) -> dict[str, int]:
        """Quantities that ship to the purchaser, keyed by product id."""
        cart = self.cart_service.cart
        return {
            product_id: self.remaining_quantity(product_id)
            for product_id in cart.product_ids()
            if self.remaining_quantity(product_id) > 0
        }

    def over_allocations(self) -> dict[str, int]:
        """Products assigned beyond their cart lines' quantities, with the excess."""
        cart = self.cart_service.cart
        keys = {item.key for group in self._groups for item in group.items}
        excess: dict[str, int] = {}
        for product_id, quote_id in sorted(keys, key=lambda key: (key[0], key[1] or "")):
            line = cart.line_for(product_id, quote_id)
            available = line.quantity if line else 0
            over = self._assigned_on(product_id, quote_id) - available
            if over > 0:
                excess[product_id] = excess.get(product_id, 0) + over
        return excess

    # -------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------
    def create_group(self, customer: CustomerDetails) -> str:
        if not self._dropship:
            raise InvalidOperationError({"dropship": ["Shipment groups require dropship mode"]})

        errors = missing_fields(customer, RECIPIENT_REQUIRED_FIELDS, self.settings.postal_code_length)
        if errors:
            raise ValidationError(errors)

        group = ShipmentGroup.create(customer)
        self._groups.append(group)
        logger.info("shipment_group_created", group_id=group.id, recipient=customer.name)
        return group.id

    def assign(self, group_id: str, product_id: str, quantity: int, quote_id: str | None = None) -> ShipmentGroup:
        """Assign units of one cart line to a group.

        Without ``quote_id`` the product's unquoted line is used; a product
        whose only line is quoted is assigned from that line.
        """
        group = self.group(group_id)

        if quantity is None or quantity <= 0:
            raise AllocationError({"quantity": ["Quantity to assign must be positive"]})

        line = self._line_for(product_id, quote_id)
        remaining = self._remaining_on(line)
        if quantity > remaining:
            source = f"{product_id} (quote {line.quote_id})" if line.quote_id else product_id
            raise AllocationError(
                {"quantity": [f"Only {remaining} unit(s) of {source} are left to assign, requested {quantity}"]}
            )

        choice = self.cart_service.cart.warranty_for(product_id)
        group.add_item(
            AssignedItem(
                product_id=product_id,
                product_name=line.product.name,
                quantity=quantity,
                unit_price=unit_price(line, self.session_service.role),
                warranty_surcharge=warranty_surcharge(line, choice),
                warranty=choice.value,
                quote_id=line.quote_id,
            )
        )
        logger.info(
            "item_assigned",
            group_id=group.id,
            product_id=product_id,
            quote_id=line.quote_id,
            quantity=quantity,
            remaining=self._remaining_on(line),
        )
        return group

    def unassign(self, group_id: str, product_id: str, quote_id: str | None = None) -> ShipmentGroup:
        group = self.group(group_id)
        if quote_id is None and group.item_for(product_id) is None:
            items = group.items_for(product_id)
            if len(items) == 1:
                quote_id = items[0].quote_id

        item = group.remove_item(product_id, quote_id)
        logger.info(
            "item_unassigned",
            group_id=group.id,
            product_id=product_id,
            quote_id=quote_id,
            quantity=item.quantity,
        )
        return group

    def remove_group(self, group_id: str) -> None:
        group = self.group(group_id)
        self._groups = [existing for existing in self._groups if existing.id != group.id]
        logger.info("shipment_group_removed", group_id=group.id, items=len(group.items))

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _assigned_on(self, product_id: str, quote_id: str | None) -> int:
        return sum(group.quantity_of(product_id, quote_id) for group in self._groups)

    def _remaining_on(self, line: CartLine) -> int:
        return max(line.quantity - self._assigned_on(line.product_id, line.quote_id), 0)

    def _line_for(self, product_id: str, quote_id: str | None) -> CartLine:
        cart = self.cart_service.cart
        lines = cart.lines_for(product_id)
        if not lines:
            raise AllocationError({"product_id": [f"Product {product_id} is not in the cart"]})

        line = cart.line_for(product_id, quote_id)
        if line is not None:
            return line
        if quote_id is not None:
            raise AllocationError({"quote_id": [f"No line of {product_id} carries quote {quote_id}"]})
        if len(lines) == 1:
            return lines[0]
        raise AllocationError({"quote_id": [f"{product_id} has several quoted lines; name the quote to assign from"]})
