"""Lifecycle Coordinator: payment initiation, gateway callbacks, status changes and reads.

Writes go through Protean commands so each runs in its own unit of work;
the coordinator adds per-order serialization and the checks that must happen
before a command is even issued. Reads come from projections.
"""

import json
from dataclasses import dataclass
from decimal import Decimal

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ordering.config import get_settings
from ordering.exceptions import AlreadyPaidError, GatewayError, InvalidTransitionError, NotFoundError
from ordering.gateway import get_gateway
from ordering.gateway.port import PaymentIntent
from ordering.money import format_amount, from_minor_units, to_minor_units
from ordering.order.order import OrderStatus, PaymentStatus
from ordering.order.payment import PaymentOutcome, RecordPaymentOutcome, load_order
from ordering.order.status import AdvanceOrderStatus
from ordering.payment.payment import PaymentRecordStatus
from ordering.projections.customer_order_count import CustomerOrderCount
from ordering.projections.order_detail import OrderDetail
from ordering.projections.order_summary import OrderSummary
from ordering.projections.payment_record import PaymentRecord
from ordering.utils.locks import order_locks
from ordering.utils.timeouts import call_with_timeout

logger = structlog.get_logger(__name__)

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class Page:
    items: list
    page: int
    page_size: int
    total: int


@dataclass(frozen=True)
class OrderItemView:
    item_id: str
    order_id: str
    menu_item_id: str
    name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


def _validate_paging(page, page_size):
    errors = {}
    if page is None or page < 0:
        errors["page"] = ["Page must be zero or greater"]
    if page_size is None or not 1 <= page_size <= MAX_PAGE_SIZE:
        errors["page_size"] = [f"Page size must be between 1 and {MAX_PAGE_SIZE}"]
    if errors:
        raise ValidationError(errors)


def _paginate(query, page, page_size) -> Page:
    result = query.order_by("-sort_key").offset(page * page_size).limit(page_size).all()
    return Page(items=list(result.items), page=page, page_size=page_size, total=result.total)


class LifecycleCoordinator:
    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def initiate_payment(self, order_id, amount) -> PaymentIntent:
        """Ask the gateway for a client-side payment handle. Persists nothing."""
        order = load_order(order_id)

        if PaymentStatus(order.payment_status) == PaymentStatus.COMPLETED:
            raise AlreadyPaidError({"payment_status": ["Payment is already completed"]})
        if OrderStatus(order.order_status) == OrderStatus.CANCELLED:
            raise InvalidTransitionError({"order_status": ["Cannot pay for a cancelled order"]})

        amount_cents = to_minor_units(amount)
        if amount_cents != order.total_cents:
            raise ValidationError(
                {
                    "amount": [
                        f"Payment amount {format_amount(amount_cents)} does not match "
                        f"order total {format_amount(order.total_cents)}"
                    ]
                }
            )

        gateway = get_gateway()
        intent = call_with_timeout(
            lambda: gateway.create_intent(order.total_cents, order.currency, {"order_id": str(order.id)}),
            timeout=get_settings().gateway_timeout_seconds,
            error_cls=GatewayError,
            operation="payment intent creation",
        )

        logger.info(
            "Payment initiated",
            order_id=str(order.id),
            amount=format_amount(order.total_cents),
            gateway=gateway.name,
            intent_id=intent.intent_id,
        )
        return intent

    def record_payment_outcome(
        self,
        order_id,
        transaction_id,
        amount,
        succeeded,
        failure_reason=None,
        gateway=None,
    ) -> PaymentOutcome:
        """Apply a gateway callback. Repeats of an applied outcome return ``DUPLICATE``."""
        if not transaction_id or not str(transaction_id).strip():
            raise ValidationError({"transaction_id": ["Transaction id is required"]})

        amount_cents = to_minor_units(amount)

        with order_locks.hold(order_id):
            outcome = current_domain.process(
                RecordPaymentOutcome(
                    order_id=order_id,
                    transaction_id=str(transaction_id).strip(),
                    amount_cents=amount_cents,
                    succeeded=bool(succeeded),
                    failure_reason=failure_reason,
                    gateway=gateway or get_gateway().name,
                ),
                asynchronous=False,
            )
        return PaymentOutcome(outcome)

    # -------------------------------------------------------------------
    # Fulfillment
    # -------------------------------------------------------------------
    def advance_order_status(self, order_id, new_status, reason=None) -> str:
        if isinstance(new_status, OrderStatus):
            new_status = new_status.value

        with order_locks.hold(order_id):
            status = current_domain.process(
                AdvanceOrderStatus(order_id=order_id, new_status=new_status, reason=reason),
                asynchronous=False,
            )

        logger.info("Order status changed", order_id=str(order_id), new_status=status)
        return status

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def list_orders(self, status=None, page=0, page_size=20) -> Page:
        """Orders most recent first, ties broken by id descending."""
        _validate_paging(page, page_size)

        query = current_domain.repository_for(OrderSummary)._dao.query
        if status:
            try:
                status = OrderStatus(status).value
            except ValueError:
                raise ValidationError({"status": [f"Unknown order status: {status}"]}) from None
            query = query.filter(order_status=status)
        return _paginate(query, page, page_size)

    def list_customer_orders(self, customer_id, page=0, page_size=20) -> Page:
        _validate_paging(page, page_size)
        query = current_domain.repository_for(OrderSummary)._dao.query.filter(customer_id=str(customer_id))
        return _paginate(query, page, page_size)

    def get_order(self, order_id) -> OrderDetail:
        try:
            return current_domain.repository_for(OrderDetail).get(order_id)
        except ObjectNotFoundError:
            raise NotFoundError({"order": [f"Order {order_id} does not exist"]}) from None

    def get_order_item(self, order_id, item_id) -> OrderItemView:
        detail = self.get_order(order_id)
        for item in json.loads(detail.items or "[]"):
            if item["item_id"] == str(item_id):
                return OrderItemView(
                    item_id=item["item_id"],
                    order_id=str(order_id),
                    menu_item_id=item["menu_item_id"],
                    name=item.get("name", ""),
                    quantity=item["quantity"],
                    unit_price=from_minor_units(item["unit_price_cents"]),
                    subtotal=from_minor_units(item["subtotal_cents"]),
                )
        raise NotFoundError({"item": [f"Order item {item_id} does not exist on order {order_id}"]})

    def list_payments(self, status=None, page=0, page_size=100) -> Page:
        _validate_paging(page, page_size)

        query = current_domain.repository_for(PaymentRecord)._dao.query
        if status:
            try:
                status = PaymentRecordStatus(status).value
            except ValueError:
                raise ValidationError({"status": [f"Unknown payment status: {status}"]}) from None
            query = query.filter(payment_status=status)
        return _paginate(query, page, page_size)

    def get_payment(self, payment_id) -> PaymentRecord:
        try:
            return current_domain.repository_for(PaymentRecord).get(payment_id)
        except ObjectNotFoundError:
            raise NotFoundError({"payment": [f"Payment {payment_id} does not exist"]}) from None

    def count_unique_customers(self) -> int:
        """Number of distinct customers who have placed at least one order."""
        return current_domain.repository_for(CustomerOrderCount)._dao.query.all().total
