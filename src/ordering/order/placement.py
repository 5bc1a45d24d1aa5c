"""Order placement: converts a customer's cart into an order snapshot.

The cart is read once, its lines are copied by value into order items, the
order is added, and then the cart is cleared. All of it happens inside the
command's unit of work, so either the order exists and the cart is empty, or
nothing changed.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.config import get_settings
from ordering.customer.management import load_customer
from ordering.domain import ordering
from ordering.exceptions import EmptyCartError
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        customer = load_customer(command.customer_id)
        if not customer.is_active:
            raise ValidationError({"customer": ["Deactivated accounts cannot place orders"]})
        if not customer.has_delivery_address:
            raise ValidationError({"delivery_address": ["A delivery address is required to place an order"]})

        cart_repo = current_domain.repository_for(Cart)
        try:
            cart = cart_repo.get(command.customer_id)
        except ObjectNotFoundError:
            cart = None

        if cart is None or not cart.lines:
            raise EmptyCartError({"cart": ["Cannot place an order from an empty cart"]})

        lines = [
            {
                "menu_item_id": str(line.menu_item_id),
                "name": line.name or "",
                "quantity": line.quantity,
                "unit_price_cents": line.unit_price_cents,
            }
            for line in cart.lines
        ]

        order = Order.place(
            customer_id=command.customer_id,
            delivery_address=customer.delivery_address,
            lines=lines,
            currency=get_settings().currency,
        )
        current_domain.repository_for(Order).add(order)

        cart.clear(reason="order_placed")
        cart_repo.add(cart)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            customer_id=str(command.customer_id),
            total_cents=order.total_cents,
            item_count=len(lines),
        )
        return str(order.id)
