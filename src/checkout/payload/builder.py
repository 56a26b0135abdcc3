"""Order payload builder: turns validated cart and allocation state into the order request body."""

import structlog
from pydantic import ValidationError as SchemaValidationError

from checkout.cart.service import CartService
from checkout.config import CheckoutSettings
from checkout.dropship.allocator import ShipmentAllocator
from checkout.dropship.group import ShipmentGroup
from checkout.errors import ValidationError
from checkout.payload.schemas import (
    AssignedItemSchema,
    DirectOrderPayload,
    DropshipOrderPayload,
    OrderLineSchema,
    RecipientSchema,
    ShipmentGroupSchema,
)
from checkout.pricing.calculator import PriceTier, cart_totals, price_tier, unit_price, warranty_surcharge
from checkout.session.service import ActorRole, SessionService
from checkout.shared.customer import CustomerDetails

logger = structlog.get_logger(__name__)


def format_shipping_address(details: CustomerDetails) -> str:
    return details.formatted_address()


class OrderPayloadBuilder:
    def __init__(
        self,
        cart_service: CartService,
        session_service: SessionService,
        allocator: ShipmentAllocator,
        settings: CheckoutSettings | None = None,
    ) -> None:
        self.cart_service = cart_service
        self.session_service = session_service
        self.allocator = allocator
        self.settings = settings or CheckoutSettings()

    def build(self, shipping_details: CustomerDetails | None = None) -> DirectOrderPayload | DropshipOrderPayload:
        cart = self.cart_service.cart
        if cart.is_empty:
            raise ValidationError({"products": ["No order items"]})

        role = self.session_service.role
        totals = cart_totals(
            cart,
            role,
            shipping=self.settings.shipping_fee,
            default_tax_percentage=self.settings.default_tax_percentage,
        )
        common = {
            "products": self.order_lines(),
            "total_amount": float(totals.total),
            "is_retailer_direct_purchase": role == ActorRole.RETAILER,
        }

        try:
            if self.allocator.dropship_enabled:
                payload = DropshipOrderPayload(
                    **common,
                    shipment_groups=[self._group_entry(group) for group in self.allocator.groups if group.has_items],
                )
            else:
                if shipping_details is None:
                    raise ValidationError({"shipping_address": ["A shipping address is required"]})
                payload = DirectOrderPayload(**common, shipping_address=format_shipping_address(shipping_details))
        except SchemaValidationError as exc:
            raise ValidationError({"payload": [str(error["msg"]) for error in exc.errors()]}) from exc

        logger.info(
            "order_payload_built",
            kind=payload.kind,
            lines=len(payload.products),
            total_amount=payload.total_amount,
        )
        return payload

    def order_lines(self) -> list[OrderLineSchema]:
        cart = self.cart_service.cart
        role = self.session_service.role
        entries = []
        for line in cart.lines:
            choice = cart.warranty_for(line.product_id)
            tier = price_tier(line, role)
            entries.append(
                OrderLineSchema(
                    product_id=line.product_id,
                    quantity=line.quantity,
                    unit_price=float(unit_price(line, role)),
                    price_tier=tier,
                    use_retailer_price=tier == PriceTier.RETAILER,
                    quote_id=line.quote_id,
                    warranty=choice,
                    warranty_surcharge=float(warranty_surcharge(line, choice)),
                )
            )
        return entries

    def _group_entry(self, group: ShipmentGroup) -> ShipmentGroupSchema:
        customer = group.customer
        return ShipmentGroupSchema(
            group_id=group.id,
            customer=RecipientSchema(
                name=customer.name,
                email=customer.email,
                phone=customer.phone,
                address=format_shipping_address(customer),
            ),
            items=[
                AssignedItemSchema(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    unit_price=float(item.unit_price),
                    warranty=item.warranty,
                    warranty_surcharge=float(item.warranty_surcharge),
                    quote_id=item.quote_id,
                )
                for item in group.items
            ],
            document_url=group.document_url or "",
        )
