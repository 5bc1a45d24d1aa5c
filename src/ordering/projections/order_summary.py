"""Order summary: the list view behind order listings and customer history.

``sort_key`` combines placement time and order id so a single descending
sort gives most-recent-first with ties broken by id descending.
"""

from protean.core.projector import on
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.events import (
    OrderCancelled,
    OrderPlaced,
    OrderStatusAdvanced,
    PaymentFailed,
    PaymentSucceeded,
)
from ordering.order.order import Order, OrderStatus, PaymentStatus


def summary_sort_key(placed_at, order_id) -> str:
    return f"{placed_at:%Y%m%d%H%M%S%f}:{order_id}"


@ordering.projection
class OrderSummary:
    order_id = Identifier(identifier=True, required=True)
    customer_id = Identifier(required=True)
    total_cents = Integer(default=0)
    currency = String(max_length=3)
    order_status = String(required=True)
    payment_status = String(required=True)
    item_count = Integer(default=0)
    placed_at = DateTime()
    updated_at = DateTime()
    sort_key = String(max_length=100)


@ordering.projector(projector_for=OrderSummary, aggregates=[Order])
class OrderSummaryProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        current_domain.repository_for(OrderSummary).add(
            OrderSummary(
                order_id=event.order_id,
                customer_id=event.customer_id,
                total_cents=event.total_cents,
                currency=event.currency,
                order_status=OrderStatus.INITIALIZED.value,
                payment_status=PaymentStatus.PENDING.value,
                item_count=event.item_count,
                placed_at=event.placed_at,
                updated_at=event.placed_at,
                sort_key=summary_sort_key(event.placed_at, event.order_id),
            )
        )

    def _update(self, order_id, updated_at, **changes):
        repo = current_domain.repository_for(OrderSummary)
        record = repo.get(order_id)
        for field, value in changes.items():
            setattr(record, field, value)
        record.updated_at = updated_at
        repo.add(record)

    @on(PaymentSucceeded)
    def on_payment_succeeded(self, event):
        self._update(
            event.order_id,
            event.paid_at,
            order_status=OrderStatus.CONFIRMED.value,
            payment_status=PaymentStatus.COMPLETED.value,
        )

    @on(PaymentFailed)
    def on_payment_failed(self, event):
        self._update(
            event.order_id,
            event.failed_at,
            order_status=OrderStatus.CANCELLED.value,
            payment_status=PaymentStatus.FAILED.value,
        )

    @on(OrderStatusAdvanced)
    def on_order_status_advanced(self, event):
        self._update(event.order_id, event.changed_at, order_status=event.new_status)

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        self._update(event.order_id, event.cancelled_at, order_status=OrderStatus.CANCELLED.value)
