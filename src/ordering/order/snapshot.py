"""Order Snapshot Builder: turns the owner's cart into a placed order."""

import structlog
from protean.utils.globals import current_domain

from ordering.order.placement import PlaceOrder
from ordering.utils.locks import cart_locks

logger = structlog.get_logger(__name__)


class OrderSnapshotBuilder:
    def place_order(self, owner_id) -> str:
        """Place an order from ``owner_id``'s cart and return the new order id.

        Holds the owner's cart lock so no cart mutation can interleave
        between reading the lines and clearing them.
        """
        with cart_locks.hold(owner_id):
            order_id = current_domain.process(PlaceOrder(customer_id=owner_id), asynchronous=False)

        logger.debug("Cart converted to order", owner_id=str(owner_id), order_id=order_id)
        return order_id
