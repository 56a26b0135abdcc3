"""Pydantic schemas for the order persistence request body.

These are the external contract with the order API, kept separate from the
internal cart and shipment group models. A payload is either a direct order
(one formatted shipping address) or a dropship order (a sentinel address plus
the shipment groups), discriminated by ``kind``.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter

from checkout.cart.product import WarrantyChoice
from checkout.pricing.calculator import PriceTier

DROPSHIP_SHIPPING_ADDRESS = "DROPSHIP: delivered to shipment group customers"


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class OrderLineSchema(BaseModel):
    product_id: str
    quantity: int = Field(ge=1)
    unit_price: float = Field(ge=0)
    price_tier: PriceTier
    use_retailer_price: bool = False
    quote_id: str | None = None
    warranty: WarrantyChoice = WarrantyChoice.STANDARD
    warranty_surcharge: float = Field(ge=0, default=0.0)


class RecipientSchema(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=1)
    phone: str = ""
    address: str = Field(min_length=1)


class AssignedItemSchema(BaseModel):
    product_id: str
    product_name: str
    quantity: int = Field(ge=1)
    unit_price: float = Field(ge=0)
    warranty: WarrantyChoice = WarrantyChoice.STANDARD
    warranty_surcharge: float = Field(ge=0, default=0.0)
    quote_id: str | None = None


class ShipmentGroupSchema(BaseModel):
    group_id: str
    customer: RecipientSchema
    items: list[AssignedItemSchema] = Field(min_length=1)
    document_url: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Order payloads
# ---------------------------------------------------------------------------
class DirectOrderPayload(BaseModel):
    kind: Literal["direct"] = "direct"
    products: list[OrderLineSchema] = Field(min_length=1)
    total_amount: float = Field(ge=0)
    shipping_address: str = Field(min_length=1)
    is_retailer_direct_purchase: bool = False


class DropshipOrderPayload(BaseModel):
    kind: Literal["dropship"] = "dropship"
    products: list[OrderLineSchema] = Field(min_length=1)
    total_amount: float = Field(ge=0)
    shipping_address: Literal[DROPSHIP_SHIPPING_ADDRESS] = DROPSHIP_SHIPPING_ADDRESS
    is_retailer_direct_purchase: bool = False
    shipment_groups: list[ShipmentGroupSchema] = Field(min_length=1)


OrderPayload = Annotated[DirectOrderPayload | DropshipOrderPayload, Field(discriminator="kind")]

order_payload_adapter = TypeAdapter(OrderPayload)
