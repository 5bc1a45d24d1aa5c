"""Orders per customer: one row per customer who has ever placed an order."""

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, Integer
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.events import OrderPlaced
from ordering.order.order import Order


@ordering.projection
class CustomerOrderCount:
    customer_id = Identifier(identifier=True, required=True)
    order_count = Integer(default=0)
    first_order_at = DateTime()
    last_order_at = DateTime()


@ordering.projector(projector_for=CustomerOrderCount, aggregates=[Order])
class CustomerOrderCountProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        repo = current_domain.repository_for(CustomerOrderCount)
        try:
            record = repo.get(event.customer_id)
        except ObjectNotFoundError:
            record = CustomerOrderCount(
                customer_id=event.customer_id,
                order_count=0,
                first_order_at=event.placed_at,
            )

        record.order_count = (record.order_count or 0) + 1
        record.last_order_at = event.placed_at
        repo.add(record)
