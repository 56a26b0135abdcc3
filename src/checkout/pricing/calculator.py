"""Pricing calculator: pure functions over cart lines.

Unit price precedence, strongest first:

    quoted price  >  retailer price (retailer actor + line opted in)  >  base price

Amounts are ``Decimal``. Line totals and line taxes are rounded to 2 decimals
(half up) before they are summed, so ``total == subtotal + tax + shipping``
holds exactly.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from checkout.cart.cart import Cart, CartLine
from checkout.cart.product import WarrantyChoice
from checkout.session.service import ActorRole

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
DEFAULT_TAX_PERCENTAGE = Decimal("18")
DEFAULT_SHIPPING = Decimal("0")


class PriceTier(Enum):
    QUOTED = "quoted"
    RETAILER = "retailer"
    BASE = "base"


@dataclass(frozen=True)
class CartTotals:
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal


def to_money(value) -> Decimal:
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor_units(amount) -> int:
    """Amount in the currency's smallest unit (paise for INR)."""
    return int((to_money(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def price_tier(line: CartLine, acting_role: ActorRole | None) -> PriceTier:
    if line.quoted_price is not None:
        return PriceTier.QUOTED
    if acting_role == ActorRole.RETAILER and line.use_retailer_price and line.product.retailer_price is not None:
        return PriceTier.RETAILER
    return PriceTier.BASE


def unit_price(line: CartLine, acting_role: ActorRole | None) -> Decimal:
    tier = price_tier(line, acting_role)
    if tier == PriceTier.QUOTED:
        return to_money(line.quoted_price)
    if tier == PriceTier.RETAILER:
        return to_money(line.product.retailer_price)
    return to_money(line.product.base_price)


def warranty_surcharge(line: CartLine, warranty_choice: WarrantyChoice) -> Decimal:
    """Per-unit extended warranty price, or zero."""
    terms = line.product.warranty
    if WarrantyChoice(warranty_choice) == WarrantyChoice.EXTENDED and terms.offers_extended:
        return to_money(terms.extended_price)
    return ZERO


def line_total(line: CartLine, warranty_choice: WarrantyChoice, acting_role: ActorRole | None) -> Decimal:
    return to_money((unit_price(line, acting_role) + warranty_surcharge(line, warranty_choice)) * line.quantity)


def tax_percentage(line: CartLine, default_tax_percentage=DEFAULT_TAX_PERCENTAGE) -> Decimal:
    pct = line.product.tax_percentage
    return Decimal(str(pct if pct is not None else default_tax_percentage))


def line_tax(
    line: CartLine,
    warranty_choice: WarrantyChoice,
    acting_role: ActorRole | None,
    default_tax_percentage=DEFAULT_TAX_PERCENTAGE,
) -> Decimal:
    total = line_total(line, warranty_choice, acting_role)
    return to_money(total * tax_percentage(line, default_tax_percentage) / Decimal(100))


def cart_subtotal(cart: Cart, acting_role: ActorRole | None) -> Decimal:
    return to_money(
        sum(
            (line_total(line, cart.warranty_for(line.product_id), acting_role) for line in cart.lines),
            ZERO,
        )
    )


def cart_tax(cart: Cart, acting_role: ActorRole | None, default_tax_percentage=DEFAULT_TAX_PERCENTAGE) -> Decimal:
    return to_money(
        sum(
            (
                line_tax(line, cart.warranty_for(line.product_id), acting_role, default_tax_percentage)
                for line in cart.lines
            ),
            ZERO,
        )
    )


def cart_total(
    cart: Cart,
    acting_role: ActorRole | None,
    shipping=DEFAULT_SHIPPING,
    default_tax_percentage=DEFAULT_TAX_PERCENTAGE,
) -> Decimal:
    return cart_totals(cart, acting_role, shipping, default_tax_percentage).total


def cart_totals(
    cart: Cart,
    acting_role: ActorRole | None,
    shipping=DEFAULT_SHIPPING,
    default_tax_percentage=DEFAULT_TAX_PERCENTAGE,
) -> CartTotals:
    subtotal = cart_subtotal(cart, acting_role)
    tax = cart_tax(cart, acting_role, default_tax_percentage)
    shipping = to_money(shipping)
    return CartTotals(subtotal=subtotal, tax=tax, shipping=shipping, total=subtotal + tax + shipping)
