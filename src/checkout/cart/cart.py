"""Cart aggregate: the session's ordered collection of cart lines.

A line is keyed by ``(product id, quote id)``: the same product may appear twice
only when one line is quote-priced and the other is not. Warranty choices are
held per product id, not per line.
"""

from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Dict, HasMany, Integer, String, ValueObject
from protean.fields import Decimal as DecimalField

from checkout.cart.product import Product, WarrantyChoice
from checkout.domain import checkout


def _to_price(value) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValidationError({"quoted_price": [f"'{value}' is not a valid price"]}) from None


def _to_choice(value) -> WarrantyChoice:
    try:
        return WarrantyChoice(value)
    except ValueError:
        raise ValidationError({"warranty": [f"'{value}' is not a warranty option"]}) from None


@checkout.entity(part_of="Cart")
class CartLine:
    product = ValueObject(Product, required=True)
    quantity = Integer(required=True, min_value=1)
    quote_id = String(max_length=100)
    quoted_price = DecimalField(min_value=0)
    use_retailer_price = Boolean(default=False)
    added_at = DateTime()

    @invariant.post
    def quoted_price_and_quote_go_together(self):
        if (self.quote_id is None) != (self.quoted_price is None):
            raise ValidationError({"quote_id": ["A quoted price requires a quote reference and vice versa"]})

    @property
    def product_id(self) -> str:
        return self.product.id

    @property
    def key(self) -> tuple[str, str | None]:
        return (self.product.id, self.quote_id)

    @property
    def is_quoted(self) -> bool:
        return self.quote_id is not None and self.quoted_price is not None


@checkout.aggregate
class Cart:
    lines = HasMany(CartLine)
    warranty_choices = Dict()  # product id -> WarrantyChoice value
    updated_at = DateTime()

    @invariant.post
    def lines_must_have_distinct_keys(self):
        keys = [line.key for line in self.lines]
        if len(keys) != len(set(keys)):
            raise ValidationError({"lines": ["A product can appear once per quote reference"]})

    @invariant.post
    def warranty_choices_must_refer_to_cart_products(self):
        in_cart = {line.product_id for line in self.lines}
        for product_id in self.warranty_choices or {}:
            if product_id not in in_cart:
                raise ValidationError({"warranty": [f"Product {product_id} is not in the cart"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls):
        return cls(lines=[], warranty_choices={}, updated_at=datetime.now(UTC))

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def line(self, line_id: str) -> CartLine:
        found = next((line for line in self.lines if str(line.id) == str(line_id)), None)
        if found is None:
            raise ValidationError({"line_id": ["Line not found in cart"]})
        return found

    def lines_for(self, product_id: str) -> list[CartLine]:
        return [line for line in self.lines if line.product_id == product_id]

    def line_for(self, product_id: str, quote_id: str | None = None) -> CartLine | None:
        return next((line for line in self.lines if line.key == (product_id, quote_id)), None)

    def quantity_of(self, product_id: str) -> int:
        return sum(line.quantity for line in self.lines_for(product_id))

    def product_ids(self) -> list[str]:
        """Distinct product ids in cart order."""
        seen: list[str] = []
        for line in self.lines:
            if line.product_id not in seen:
                seen.append(line.product_id)
        return seen

    def product(self, product_id: str) -> Product | None:
        lines = self.lines_for(product_id)
        return lines[0].product if lines else None

    def warranty_for(self, product_id: str) -> WarrantyChoice:
        return WarrantyChoice((self.warranty_choices or {}).get(product_id, WarrantyChoice.STANDARD.value))

    @property
    def is_empty(self) -> bool:
        return not self.lines

    # -------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------
    def add_line(
        self,
        product: Product,
        quantity: int,
        quote_id: str | None = None,
        quoted_price=None,
        use_retailer_price: bool = False,
    ) -> CartLine:
        """Add a product to the cart, or increase the quantity of its matching line."""
        if quantity is None or quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if (quote_id is None) != (quoted_price is None):
            raise ValidationError({"quote_id": ["A quoted price requires a quote reference and vice versa"]})
        if quoted_price is not None:
            quoted_price = _to_price(quoted_price)
            if quoted_price < 0:
                raise ValidationError({"quoted_price": ["Quoted price cannot be negative"]})

        now = datetime.now(UTC)
        existing = self.line_for(product.id, quote_id)
        if existing:
            existing.quantity += quantity
            existing.use_retailer_price = use_retailer_price
            if quoted_price is not None:
                existing.quoted_price = quoted_price
            line = existing
        else:
            line = CartLine(
                product=product,
                quantity=quantity,
                quote_id=quote_id,
                quoted_price=quoted_price,
                use_retailer_price=use_retailer_price,
                added_at=now,
            )
            self.add_lines(line)

        self.updated_at = now
        return line

    def update_quantity(self, line_id: str, quantity: int) -> CartLine:
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        line = self.line(line_id)
        line.quantity = quantity
        self.updated_at = datetime.now(UTC)
        return line

    def remove_line(self, line_id: str) -> CartLine:
        line = self.line(line_id)

        # The choice goes first so no intermediate state refers to a missing product
        if len(self.lines_for(line.product_id)) == 1 and line.product_id in (self.warranty_choices or {}):
            self.warranty_choices = {
                product_id: choice
                for product_id, choice in self.warranty_choices.items()
                if product_id != line.product_id
            }

        self.remove_lines(line)
        self.updated_at = datetime.now(UTC)
        return line

    def choose_warranty(self, product_id: str, choice) -> None:
        product = self.product(product_id)
        if product is None:
            raise ValidationError({"product_id": ["Product is not in the cart"]})

        choice = _to_choice(choice)
        if choice == WarrantyChoice.EXTENDED and not product.warranty.offers_extended:
            raise ValidationError({"warranty": [f"Extended warranty is not offered for {product.name}"]})

        self.warranty_choices = {**(self.warranty_choices or {}), product_id: choice.value}
        self.updated_at = datetime.now(UTC)

    def clear(self) -> None:
        self.warranty_choices = {}
        if self.lines:
            self.remove_lines(list(self.lines))
        self.updated_at = datetime.now(UTC)
