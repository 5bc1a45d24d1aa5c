"""Order aggregate (CQRS): the immutable snapshot of a cart plus its lifecycle.

Items are value copies of the cart lines taken at placement; nothing on an
order is ever re-derived from the cart or the catalog afterwards. Order status
and payment status are separate state machines, coupled by the rule that an
order leaves INITIALIZED for CONFIRMED only through a completed payment.

Order status:
    INITIALIZED → CONFIRMED → PREPARING → OUT_FOR_DELIVERY → DELIVERED
    any non-terminal state → CANCELLED

Payment status:
    PENDING → COMPLETED
    PENDING → FAILED
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text

from ordering.domain import ordering
from ordering.exceptions import AlreadyPaidError, InvalidTransitionError
from ordering.order.events import (
    OrderCancelled,
    OrderPlaced,
    OrderStatusAdvanced,
    PaymentFailed,
    PaymentSucceeded,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    INITIALIZED = "INITIALIZED"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class PaymentStatus(Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.INITIALIZED: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED},
    OrderStatus.OUT_FOR_DELIVERY: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

TERMINAL_STATUSES = {status for status, targets in _VALID_TRANSITIONS.items() if not targets}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    menu_item_id = Identifier(required=True)
    name = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price_cents = Integer(required=True, min_value=0)
    subtotal_cents = Integer(required=True, min_value=0)


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    customer_id = Identifier(required=True)
    items = HasMany(OrderItem)
    total_cents = Integer(required=True, min_value=0)
    currency = String(max_length=3, default="USD")
    delivery_address = Text(required=True)
    order_status = String(choices=OrderStatus, default=OrderStatus.INITIALIZED.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    cancellation_reason = String(max_length=500)
    placed_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_equal_sum_of_items(self):
        if self.items and self.total_cents != sum(item.subtotal_cents for item in self.items):
            raise ValidationError({"total_amount": ["Order total must equal the sum of its item subtotals"]})

    @invariant.post
    def confirmed_orders_must_be_paid(self):
        if (
            self.order_status != OrderStatus.INITIALIZED.value
            and self.order_status != OrderStatus.CANCELLED.value
            and self.payment_status != PaymentStatus.COMPLETED.value
        ):
            raise ValidationError({"order_status": ["An order can only progress once its payment has completed"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, customer_id, delivery_address, lines, currency="USD"):
        """Create an order from a value copy of cart lines.

        ``lines`` is a sequence of dicts with ``menu_item_id``, ``name``,
        ``quantity`` and ``unit_price_cents``.
        """
        if not lines:
            raise ValidationError({"items": ["An order needs at least one item"]})

        items = [
            OrderItem(
                menu_item_id=line["menu_item_id"],
                name=line.get("name", ""),
                quantity=line["quantity"],
                unit_price_cents=line["unit_price_cents"],
                subtotal_cents=line["unit_price_cents"] * line["quantity"],
            )
            for line in lines
        ]
        now = datetime.now(UTC)

        order = cls(
            customer_id=customer_id,
            items=items,
            total_cents=sum(item.subtotal_cents for item in items),
            currency=currency,
            delivery_address=delivery_address,
            order_status=OrderStatus.INITIALIZED.value,
            payment_status=PaymentStatus.PENDING.value,
            placed_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id),
                total_cents=order.total_cents,
                currency=currency,
                delivery_address=delivery_address,
                items=json.dumps(
                    [
                        {
                            "item_id": str(item.id),
                            "menu_item_id": str(item.menu_item_id),
                            "name": item.name or "",
                            "quantity": item.quantity,
                            "unit_price_cents": item.unit_price_cents,
                            "subtotal_cents": item.subtotal_cents,
                        }
                        for item in items
                    ]
                ),
                item_count=len(items),
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State machine helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.order_status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransitionError(
                {"order_status": [f"Cannot transition from {current.value} to {target_status.value}"]}
            )

    @property
    def is_terminal(self) -> bool:
        return OrderStatus(self.order_status) in TERMINAL_STATUSES

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def record_payment_success(self, payment_id, transaction_id, gateway):
        if PaymentStatus(self.payment_status) == PaymentStatus.COMPLETED:
            raise AlreadyPaidError({"payment_status": ["Payment is already completed"]})
        if PaymentStatus(self.payment_status) != PaymentStatus.PENDING:
            raise InvalidTransitionError(
                {"payment_status": [f"Cannot complete a payment from {self.payment_status}"]}
            )
        self._assert_can_transition(OrderStatus.CONFIRMED)

        now = datetime.now(UTC)
        with atomic_change(self):
            self.payment_status = PaymentStatus.COMPLETED.value
            self.order_status = OrderStatus.CONFIRMED.value
            self.updated_at = now

        self.raise_(
            PaymentSucceeded(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                payment_id=str(payment_id),
                transaction_id=transaction_id,
                gateway=gateway,
                amount_cents=self.total_cents,
                currency=self.currency,
                paid_at=now,
            )
        )

    def record_payment_failure(self, payment_id, transaction_id, reason):
        if PaymentStatus(self.payment_status) != PaymentStatus.PENDING:
            raise InvalidTransitionError({"payment_status": [f"Cannot fail a payment from {self.payment_status}"]})
        self._assert_can_transition(OrderStatus.CANCELLED)

        now = datetime.now(UTC)
        with atomic_change(self):
            self.payment_status = PaymentStatus.FAILED.value
            self.order_status = OrderStatus.CANCELLED.value
            self.cancellation_reason = reason
            self.updated_at = now

        self.raise_(
            PaymentFailed(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                payment_id=str(payment_id),
                transaction_id=transaction_id,
                amount_cents=self.total_cents,
                currency=self.currency,
                failure_reason=reason,
                failed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Fulfillment
    # -------------------------------------------------------------------
    def advance_to(self, target_status, reason=None):
        """Move the order one step along the fulfillment path, or cancel it."""
        target_status = OrderStatus(target_status)
        self._assert_can_transition(target_status)

        if target_status == OrderStatus.CONFIRMED:
            # Confirmation belongs to the payment path
            raise InvalidTransitionError({"order_status": ["Orders are confirmed by a completed payment"]})

        previous = self.order_status
        now = datetime.now(UTC)
        self.order_status = target_status.value
        self.updated_at = now

        if target_status == OrderStatus.CANCELLED:
            self.cancellation_reason = reason or "Cancelled by administrator"
            self.raise_(
                OrderCancelled(
                    order_id=str(self.id),
                    customer_id=str(self.customer_id),
                    previous_status=previous,
                    reason=self.cancellation_reason,
                    cancelled_at=now,
                )
            )
        else:
            self.raise_(
                OrderStatusAdvanced(
                    order_id=str(self.id),
                    customer_id=str(self.customer_id),
                    previous_status=previous,
                    new_status=target_status.value,
                    changed_at=now,
                )
            )
