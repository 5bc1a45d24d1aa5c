"""Customer notifications for order lifecycle events.

Runs after the triggering transaction has committed. Rendering and queueing
failures are logged and swallowed here so they can never undo an order or a
payment. Delivery happens later, on the dispatcher's worker thread.
"""

import json

import structlog
from notifications.kinds import NotificationKind
from notifications.templates import render_message
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from ordering.config import get_settings
from ordering.customer.customer import Customer
from ordering.domain import ordering
from ordering.money import format_amount
from ordering.notification.queueing import queue_notification
from ordering.order.events import OrderPlaced, PaymentFailed, PaymentSucceeded
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


def payment_link(order_id, total_cents) -> str:
    return f"{get_settings().payment_link_base}{order_id}&amount={format_amount(total_cents)}"


def notify_customer(customer_id, kind: NotificationKind, context: dict, reference: str) -> None:
    """Render and store a message for ``customer_id``; never raises."""
    try:
        customer = current_domain.repository_for(Customer).get(customer_id)
    except ObjectNotFoundError:
        logger.warning("No customer to notify", customer_id=str(customer_id), kind=kind.value)
        return

    try:
        message = render_message(
            kind.value,
            recipient=customer.email,
            context={"customer_name": customer.name, **context},
            reference=reference,
        )
        queue_notification(message)
    except Exception as e:
        logger.error(
            "Failed to queue notification",
            customer_id=str(customer_id),
            kind=kind.value,
            reference=reference,
            error=str(e),
        )


@ordering.event_handler(part_of=Order)
class OrderNotificationHandler:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        items = [
            {
                "name": item.get("name"),
                "menu_item_id": item.get("menu_item_id"),
                "quantity": item.get("quantity"),
                "unit_price": format_amount(item.get("unit_price_cents", 0)),
                "subtotal": format_amount(item.get("subtotal_cents", 0)),
            }
            for item in json.loads(event.items or "[]")
        ]
        notify_customer(
            event.customer_id,
            NotificationKind.ORDER_PLACED,
            {
                "order_id": str(event.order_id),
                "items": items,
                "total": format_amount(event.total_cents),
                "currency": event.currency,
                "delivery_address": event.delivery_address,
                "payment_link": payment_link(event.order_id, event.total_cents),
            },
            reference=str(event.order_id),
        )

    @handle(PaymentSucceeded)
    def on_payment_succeeded(self, event: PaymentSucceeded) -> None:
        notify_customer(
            event.customer_id,
            NotificationKind.PAYMENT_SUCCEEDED,
            {
                "order_id": str(event.order_id),
                "amount": format_amount(event.amount_cents),
                "currency": event.currency,
                "transaction_id": event.transaction_id,
            },
            reference=str(event.order_id),
        )

    @handle(PaymentFailed)
    def on_payment_failed(self, event: PaymentFailed) -> None:
        notify_customer(
            event.customer_id,
            NotificationKind.PAYMENT_FAILED,
            {
                "order_id": str(event.order_id),
                "amount": format_amount(event.amount_cents),
                "currency": event.currency,
                "failure_reason": event.failure_reason,
            },
            reference=str(event.order_id),
        )
