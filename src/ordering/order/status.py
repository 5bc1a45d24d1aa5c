"""Administrative order status changes: commands and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order, OrderStatus
from ordering.order.payment import load_order


@ordering.command(part_of="Order")
class AdvanceOrderStatus:
    order_id = Identifier(required=True)
    new_status = String(required=True, max_length=30)
    reason = String(max_length=500)


@ordering.command_handler(part_of=Order)
class AdvanceOrderStatusHandler:
    @handle(AdvanceOrderStatus)
    def advance_order_status(self, command):
        try:
            target = OrderStatus(command.new_status)
        except ValueError:
            raise ValidationError({"new_status": [f"Unknown order status: {command.new_status}"]}) from None

        order = load_order(command.order_id)
        order.advance_to(target, reason=command.reason)
        current_domain.repository_for(Order).add(order)
        return order.order_status
