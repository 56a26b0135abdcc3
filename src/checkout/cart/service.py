"""The CartService is the only way the session's cart is mutated."""

import structlog

from checkout.cart.cart import Cart, CartLine
from checkout.cart.product import Product, WarrantyChoice

logger = structlog.get_logger(__name__)


class CartService:
    """Owns one Cart for the session and logs every mutation."""

    def __init__(self, cart: Cart | None = None) -> None:
        self._cart = cart if cart is not None else Cart.create()

    @property
    def cart(self) -> Cart:
        return self._cart

    def add(
        self,
        product: Product,
        quantity: int = 1,
        quote_id: str | None = None,
        quoted_price=None,
        use_retailer_price: bool = False,
    ) -> CartLine:
        line = self._cart.add_line(
            product,
            quantity,
            quote_id=quote_id,
            quoted_price=quoted_price,
            use_retailer_price=use_retailer_price,
        )
        logger.info(
            "cart_line_added",
            cart_id=self._cart.id,
            line_id=line.id,
            product_id=product.id,
            quantity=quantity,
            quote_id=quote_id,
        )
        return line

    def update_quantity(self, line_id: str, quantity: int) -> CartLine:
        previous = self._cart.line(line_id).quantity
        line = self._cart.update_quantity(line_id, quantity)
        logger.info(
            "cart_quantity_updated",
            cart_id=self._cart.id,
            line_id=line.id,
            previous_quantity=previous,
            new_quantity=quantity,
        )
        return line

    def remove(self, line_id: str) -> CartLine:
        line = self._cart.remove_line(line_id)
        logger.info("cart_line_removed", cart_id=self._cart.id, line_id=line.id, product_id=line.product_id)
        return line

    def remove_product(self, product_id: str) -> list[CartLine]:
        """Remove every line of a product, quoted or not."""
        removed = [self._cart.remove_line(line.id) for line in self._cart.lines_for(product_id)]
        logger.info("cart_product_removed", cart_id=self._cart.id, product_id=product_id, lines=len(removed))
        return removed

    def choose_warranty(self, product_id: str, choice: WarrantyChoice) -> None:
        self._cart.choose_warranty(product_id, choice)
        logger.info("cart_warranty_chosen", cart_id=self._cart.id, product_id=product_id, choice=WarrantyChoice(choice).value)

    def clear(self) -> None:
        self._cart.clear()
        logger.info("cart_cleared", cart_id=self._cart.id)
