"""Domain events for the Order aggregate.

Amounts are carried in minor units.
"""

from protean.fields import DateTime, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A cart was converted into an order awaiting payment."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    total_cents = Integer(required=True)
    currency = String(required=True, max_length=3)
    delivery_address = Text(required=True)
    items = Text(required=True)  # JSON: list of item snapshots
    item_count = Integer(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentSucceeded:
    """The gateway confirmed payment; the order is now CONFIRMED."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    payment_id = Identifier(required=True)
    transaction_id = String(required=True, max_length=255)
    gateway = String(max_length=50)
    amount_cents = Integer(required=True)
    currency = String(required=True, max_length=3)
    paid_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentFailed:
    """The gateway reported a failed payment; the order is CANCELLED."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    payment_id = Identifier(required=True)
    transaction_id = String(required=True, max_length=255)
    amount_cents = Integer(required=True)
    currency = String(required=True, max_length=3)
    failure_reason = String(max_length=500)
    failed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusAdvanced:
    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String(max_length=500)
    cancelled_at = DateTime(required=True)
