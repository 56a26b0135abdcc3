"""Product and warranty value objects, as supplied by the catalogue."""

from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, Decimal, Integer, String, ValueObject

from checkout.domain import checkout


class WarrantyChoice(Enum):
    STANDARD = "standard"
    EXTENDED = "extended"


@checkout.value_object(part_of="Cart")
class WarrantyTerms:
    """Warranty offered with a product: a standard period and an optional paid extension."""

    standard_months: Integer(min_value=0, default=12)
    extended_available: Boolean(default=False)
    extended_months: Integer(min_value=0)
    extended_price: Decimal(min_value=0)

    @property
    def offers_extended(self) -> bool:
        return bool(self.extended_available) and self.extended_price is not None


@checkout.value_object(part_of="Cart")
class Product:
    """Immutable product snapshot used for pricing and purchase rules.

    ``tax_percentage`` is optional; pricing falls back to the configured default
    (18%) when a product does not declare one.
    """

    id: String(required=True, max_length=100)
    name: String(required=True, max_length=255)
    category: String(max_length=100)
    base_price: Decimal(min_value=0)
    retailer_price: Decimal(min_value=0)
    tax_percentage: Decimal(min_value=0, max_value=100)
    warranty: ValueObject(WarrantyTerms)
    is_telecom: Boolean(default=False)
    max_direct_purchase_qty: Integer(min_value=1)

    def defaults(self):
        if self.warranty is None:
            self.warranty = WarrantyTerms()

    @invariant.post
    def direct_purchase_cap_applies_to_telecom_products(self):
        if self.max_direct_purchase_qty is not None and not self.is_telecom:
            raise ValidationError(
                {"max_direct_purchase_qty": ["A direct purchase cap can only be set on telecom products"]}
            )
