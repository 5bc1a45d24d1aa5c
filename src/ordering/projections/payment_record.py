"""Payment records: admin listing of every payment attempt."""

from protean.core.projector import on
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.payment.events import PaymentRecorded
from ordering.payment.payment import Payment


@ordering.projection
class PaymentRecord:
    payment_id = Identifier(identifier=True, required=True)
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    amount_cents = Integer(default=0)
    currency = String(max_length=3)
    gateway = String(max_length=50)
    transaction_id = String(max_length=255)
    payment_status = String(required=True)
    failure_reason = String(max_length=500)
    paid_at = DateTime()
    sort_key = String(max_length=100)


@ordering.projector(projector_for=PaymentRecord, aggregates=[Payment])
class PaymentRecordProjector:
    @on(PaymentRecorded)
    def on_payment_recorded(self, event):
        current_domain.repository_for(PaymentRecord).add(
            PaymentRecord(
                payment_id=event.payment_id,
                order_id=event.order_id,
                customer_id=event.customer_id,
                amount_cents=event.amount_cents,
                currency=event.currency,
                gateway=event.gateway,
                transaction_id=event.transaction_id,
                payment_status=event.payment_status,
                failure_reason=event.failure_reason,
                paid_at=event.paid_at,
                sort_key=f"{event.paid_at:%Y%m%d%H%M%S%f}:{event.payment_id}",
            )
        )
