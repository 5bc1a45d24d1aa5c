"""Domain events for the Payment aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Payment")
class PaymentRecorded:
    """A payment attempt outcome was written to the audit trail."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    amount_cents = Integer(required=True)
    currency = String(required=True, max_length=3)
    gateway = String(required=True, max_length=50)
    transaction_id = String(required=True, max_length=255)
    payment_status = String(required=True)
    failure_reason = String(max_length=500)
    paid_at = DateTime(required=True)
