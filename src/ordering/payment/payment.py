"""Payment aggregate (CQRS): one record per payment attempt reported by the gateway.

Payments are an audit trail: they reference their order by id and are never
deleted with it. At most one payment per order ends up COMPLETED.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Identifier, Integer, String

from ordering.domain import ordering
from ordering.payment.events import PaymentRecorded


class PaymentRecordStatus(Enum):
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


@ordering.aggregate
class Payment:
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    amount_cents = Integer(required=True, min_value=0)
    currency = String(max_length=3, default="USD")
    gateway = String(max_length=50, required=True)
    transaction_id = String(max_length=255, required=True)
    payment_status = String(choices=PaymentRecordStatus, required=True)
    failure_reason = String(max_length=500)
    paid_at = DateTime()

    @classmethod
    def record(cls, order, transaction_id, gateway, succeeded, failure_reason=None):
        payment = cls(
            order_id=str(order.id),
            customer_id=str(order.customer_id),
            amount_cents=order.total_cents,
            currency=order.currency,
            gateway=gateway,
            transaction_id=transaction_id,
            payment_status=(PaymentRecordStatus.COMPLETED if succeeded else PaymentRecordStatus.FAILED).value,
            failure_reason=None if succeeded else failure_reason,
            paid_at=datetime.now(UTC),
        )
        payment.raise_(
            PaymentRecorded(
                payment_id=str(payment.id),
                order_id=payment.order_id,
                customer_id=payment.customer_id,
                amount_cents=payment.amount_cents,
                currency=payment.currency,
                gateway=payment.gateway,
                transaction_id=payment.transaction_id,
                payment_status=payment.payment_status,
                failure_reason=payment.failure_reason,
                paid_at=payment.paid_at,
            )
        )
        return payment
