"""ShipmentGroup aggregate: one dropship destination and the cart quantities sent to it.

Items are keyed by ``(product id, quote id)``, mirroring the cart line they
were taken from. Each assigned item snapshots the unit price, warranty
surcharge and warranty choice at the moment of assignment. The delivery
document is a snapshot of the group's items too: any change to the items
clears ``document_url`` and bumps ``revision`` so a document generated for an
older composition is never shown.
"""

from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Decimal, HasMany, Integer, String

from checkout.cart.product import WarrantyChoice
from checkout.domain import checkout
from checkout.errors import AllocationError
from checkout.shared.customer import CustomerDetails


@checkout.entity(part_of="ShipmentGroup")
class AssignedItem:
    product_id = String(required=True, max_length=100)
    product_name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Decimal(required=True, min_value=0)
    warranty_surcharge = Decimal(min_value=0, default=0)
    warranty = String(choices=WarrantyChoice, default=WarrantyChoice.STANDARD.value)
    quote_id = String(max_length=100)

    @property
    def key(self) -> tuple[str, str | None]:
        return (self.product_id, self.quote_id)


@checkout.aggregate
class ShipmentGroup:
    customer: CustomerDetails
    items = HasMany(AssignedItem)
    document_url = String(max_length=2048)
    revision = Integer(default=0, min_value=0)
    created_at = DateTime()

    @invariant.post
    def items_must_have_distinct_keys(self):
        keys = [item.key for item in self.items]
        if len(keys) != len(set(keys)):
            raise ValidationError({"items": ["A product can be assigned once per quote reference"]})

    @invariant.post
    def document_requires_items(self):
        if self.document_url and not self.items:
            raise ValidationError({"document_url": ["An empty group cannot carry a delivery document"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, customer: CustomerDetails):
        return cls(customer=customer, items=[], revision=0, created_at=datetime.now(UTC))

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def has_items(self) -> bool:
        return bool(self.items)

    def item_for(self, product_id: str, quote_id: str | None = None) -> AssignedItem | None:
        return next((item for item in self.items if item.key == (product_id, quote_id)), None)

    def items_for(self, product_id: str) -> list[AssignedItem]:
        return [item for item in self.items if item.product_id == product_id]

    def quantity_of(self, product_id: str, quote_id: str | None = None) -> int:
        item = self.item_for(product_id, quote_id)
        return item.quantity if item else 0

    def product_quantity(self, product_id: str) -> int:
        """Quantity of a product across all of its quote references."""
        return sum(item.quantity for item in self.items_for(product_id))

    # -------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------
    def add_item(self, item: AssignedItem) -> AssignedItem:
        """Append a new item, or add to the quantity of the matching item."""
        existing = self.item_for(item.product_id, item.quote_id)
        with atomic_change(self):
            if existing:
                # The first snapshot's prices stay authoritative
                existing.quantity += item.quantity
                item = existing
            else:
                self.add_items(item)
            self._invalidate_document()
        return item

    def remove_item(self, product_id: str, quote_id: str | None = None) -> AssignedItem:
        item = self.item_for(product_id, quote_id)
        if item is None:
            raise AllocationError({"product_id": [f"Product {product_id} is not assigned to this group"]})

        with atomic_change(self):
            self.remove_items(item)
            self._invalidate_document()
        return item

    def attach_document(self, url: str, revision: int | None = None) -> bool:
        """Attach a generated document; ignored when generated for an older revision."""
        if revision is not None and revision != self.revision:
            return False
        if not self.items:
            raise ValidationError({"items": ["Assign at least one item before attaching a document"]})
        self.document_url = url
        return True

    def _invalidate_document(self) -> None:
        self.document_url = None
        self.revision += 1
