"""Daily order stats projection: dashboard counters for order activity.

Maintains daily counts of orders placed, confirmed (paid) and cancelled,
along with confirmed revenue in minor units. Keyed by date (YYYY-MM-DD).
"""

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.events import OrderCancelled, OrderPlaced, PaymentFailed, PaymentSucceeded
from ordering.order.order import Order


@ordering.projection
class DailyOrderStats:
    date = String(identifier=True, required=True, max_length=10)  # YYYY-MM-DD
    orders_placed = Integer(default=0)
    orders_confirmed = Integer(default=0)
    orders_cancelled = Integer(default=0)
    payments_failed = Integer(default=0)
    revenue_cents = Integer(default=0)


def _get_or_create(date_key):
    repo = current_domain.repository_for(DailyOrderStats)
    try:
        return repo.get(date_key)
    except ObjectNotFoundError:
        return DailyOrderStats(
            date=date_key,
            orders_placed=0,
            orders_confirmed=0,
            orders_cancelled=0,
            payments_failed=0,
            revenue_cents=0,
        )


@ordering.projector(projector_for=DailyOrderStats, aggregates=[Order])
class DailyOrderStatsProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        record = _get_or_create(event.placed_at.date().isoformat())
        record.orders_placed = (record.orders_placed or 0) + 1
        current_domain.repository_for(DailyOrderStats).add(record)

    @on(PaymentSucceeded)
    def on_payment_succeeded(self, event):
        record = _get_or_create(event.paid_at.date().isoformat())
        record.orders_confirmed = (record.orders_confirmed or 0) + 1
        record.revenue_cents = (record.revenue_cents or 0) + event.amount_cents
        current_domain.repository_for(DailyOrderStats).add(record)

    @on(PaymentFailed)
    def on_payment_failed(self, event):
        record = _get_or_create(event.failed_at.date().isoformat())
        record.payments_failed = (record.payments_failed or 0) + 1
        record.orders_cancelled = (record.orders_cancelled or 0) + 1
        current_domain.repository_for(DailyOrderStats).add(record)

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        record = _get_or_create(event.cancelled_at.date().isoformat())
        record.orders_cancelled = (record.orders_cancelled or 0) + 1
        current_domain.repository_for(DailyOrderStats).add(record)
