"""Order detail: a single order with its item snapshot, for order pages and emails."""

from protean.core.projector import on
from protean.fields import DateTime, Identifier, Integer, String, Text
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


@ordering.projection
class OrderDetail:
    order_id = Identifier(identifier=True, required=True)
    customer_id = Identifier(required=True)
    items = Text()  # JSON: list of item snapshots
    total_cents = Integer(default=0)
    currency = String(max_length=3)
    delivery_address = Text()
    order_status = String(required=True)
    payment_status = String(required=True)
    transaction_id = String(max_length=255)
    failure_reason = String(max_length=500)
    cancellation_reason = String(max_length=500)
    placed_at = DateTime()
    paid_at = DateTime()
    updated_at = DateTime()


@ordering.projector(projector_for=OrderDetail, aggregates=[Order])
class OrderDetailProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        current_domain.repository_for(OrderDetail).add(
            OrderDetail(
                order_id=event.order_id,
                customer_id=event.customer_id,
                items=event.items,
                total_cents=event.total_cents,
                currency=event.currency,
                delivery_address=event.delivery_address,
                order_status=OrderStatus.INITIALIZED.value,
                payment_status=PaymentStatus.PENDING.value,
                placed_at=event.placed_at,
                updated_at=event.placed_at,
            )
        )

    @on(PaymentSucceeded)
    def on_payment_succeeded(self, event):
        repo = current_domain.repository_for(OrderDetail)
        record = repo.get(event.order_id)
        record.order_status = OrderStatus.CONFIRMED.value
        record.payment_status = PaymentStatus.COMPLETED.value
        record.transaction_id = event.transaction_id
        record.paid_at = event.paid_at
        record.updated_at = event.paid_at
        repo.add(record)

    @on(PaymentFailed)
    def on_payment_failed(self, event):
        repo = current_domain.repository_for(OrderDetail)
        record = repo.get(event.order_id)
        record.order_status = OrderStatus.CANCELLED.value
        record.payment_status = PaymentStatus.FAILED.value
        record.transaction_id = event.transaction_id
        record.failure_reason = event.failure_reason
        record.cancellation_reason = event.failure_reason
        record.updated_at = event.failed_at
        repo.add(record)

    @on(OrderStatusAdvanced)
    def on_order_status_advanced(self, event):
        repo = current_domain.repository_for(OrderDetail)
        record = repo.get(event.order_id)
        record.order_status = event.new_status
        record.updated_at = event.changed_at
        repo.add(record)

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        repo = current_domain.repository_for(OrderDetail)
        record = repo.get(event.order_id)
        record.order_status = OrderStatus.CANCELLED.value
        record.cancellation_reason = event.reason
        record.updated_at = event.cancelled_at
        repo.add(record)
