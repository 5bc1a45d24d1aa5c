"""Payment outcome recording: applies a gateway callback to an order.

Callbacks come from outside the trust boundary and may be replayed. The
amount is checked against the stored total before anything is written, and
the order's payment status decides whether the callback is new or a repeat.
"""

from enum import Enum

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.exceptions import InvalidTransitionError, NotFoundError
from ordering.money import format_amount
from ordering.order.order import Order, PaymentStatus
from ordering.payment.payment import Payment

logger = structlog.get_logger(__name__)

DEFAULT_FAILURE_REASON = "Payment failed"


class PaymentOutcome(Enum):
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    DUPLICATE = "DUPLICATE"


@ordering.command(part_of="Order")
class RecordPaymentOutcome:
    order_id = Identifier(required=True)
    transaction_id = String(required=True, max_length=255)
    amount_cents = Integer(required=True, min_value=0)
    succeeded = Boolean(default=False)
    failure_reason = String(max_length=500)
    gateway = String(max_length=50, default="STRIPE")


def load_order(order_id):
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        raise NotFoundError({"order": [f"Order {order_id} does not exist"]}) from None


@ordering.command_handler(part_of=Order)
class RecordPaymentOutcomeHandler:
    @handle(RecordPaymentOutcome)
    def record_payment_outcome(self, command):
        order = load_order(command.order_id)

        if command.amount_cents != order.total_cents:
            logger.warning(
                "Payment callback amount mismatch",
                order_id=str(order.id),
                expected=format_amount(order.total_cents),
                received=format_amount(command.amount_cents),
            )
            raise ValidationError(
                {
                    "amount": [
                        f"Payment amount {format_amount(command.amount_cents)} does not match "
                        f"order total {format_amount(order.total_cents)}"
                    ]
                }
            )

        status = PaymentStatus(order.payment_status)
        if status == PaymentStatus.COMPLETED:
            logger.info(
                "Ignoring payment callback for an already paid order",
                order_id=str(order.id),
                transaction_id=command.transaction_id,
            )
            return PaymentOutcome.DUPLICATE

        if status == PaymentStatus.FAILED:
            if not command.succeeded:
                logger.info(
                    "Ignoring repeated payment failure",
                    order_id=str(order.id),
                    transaction_id=command.transaction_id,
                )
                return PaymentOutcome.DUPLICATE
            raise InvalidTransitionError(
                {"payment_status": ["Payment already failed and the order was cancelled; place a new order"]}
            )

        payment = Payment.record(
            order,
            transaction_id=command.transaction_id,
            gateway=command.gateway,
            succeeded=command.succeeded,
            failure_reason=command.failure_reason or DEFAULT_FAILURE_REASON,
        )

        if command.succeeded:
            order.record_payment_success(payment.id, command.transaction_id, command.gateway)
        else:
            order.record_payment_failure(
                payment.id, command.transaction_id, command.failure_reason or DEFAULT_FAILURE_REASON
            )

        current_domain.repository_for(Payment).add(payment)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Payment outcome recorded",
            order_id=str(order.id),
            payment_id=str(payment.id),
            transaction_id=command.transaction_id,
            succeeded=command.succeeded,
        )
        return PaymentOutcome.COMPLETED if command.succeeded else PaymentOutcome.FAILED
