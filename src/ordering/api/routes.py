"""FastAPI routes for the Ordering domain: customers, carts, orders and payments.

Endpoints are plain functions, so FastAPI runs them in its threadpool: they
wait on per-cart and per-order locks and on catalog and gateway calls.
"""

import json

from fastapi import APIRouter, Header, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from protean.utils.globals import current_domain
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from ordering.api.schemas import (
    AddCartItemRequest,
    AdjustQuantityRequest,
    AdvanceOrderStatusRequest,
    CartLineIdResponse,
    CartLineResponse,
    CartResponse,
    CustomerIdResponse,
    InitiatePaymentRequest,
    InitiatePaymentResponse,
    OrderDetailResponse,
    OrderIdResponse,
    OrderItemResponse,
    OrderPageResponse,
    OrderStatusResponse,
    OrderSummaryResponse,
    PaymentCallbackRequest,
    PaymentOutcomeResponse,
    PaymentPageResponse,
    PaymentResponse,
    RegisterCustomerRequest,
    StatusResponse,
    UniqueCustomersResponse,
    UpdateDeliveryAddressRequest,
)
from ordering.cart.store import CartStore
from ordering.customer.management import DeactivateAccount, RegisterCustomer, UpdateDeliveryAddress
from ordering.gateway import get_gateway
from ordering.money import format_amount
from ordering.order.lifecycle import LifecycleCoordinator
from ordering.order.snapshot import OrderSnapshotBuilder

cart_store = CartStore()
snapshot_builder = OrderSnapshotBuilder()
coordinator = LifecycleCoordinator()


def _isoformat(value):
    return value.isoformat() if value else None


def _order_summary(record) -> OrderSummaryResponse:
    return OrderSummaryResponse(
        order_id=str(record.order_id),
        customer_id=str(record.customer_id),
        total_amount=format_amount(record.total_cents or 0),
        currency=record.currency,
        order_status=record.order_status,
        payment_status=record.payment_status,
        item_count=record.item_count or 0,
        placed_at=_isoformat(record.placed_at),
    )


def _order_page(page) -> OrderPageResponse:
    return OrderPageResponse(
        items=[_order_summary(record) for record in page.items],
        page=page.page,
        page_size=page.page_size,
        total=page.total,
    )


def _payment(record) -> PaymentResponse:
    return PaymentResponse(
        payment_id=str(record.payment_id),
        order_id=str(record.order_id),
        customer_id=str(record.customer_id),
        amount=format_amount(record.amount_cents or 0),
        currency=record.currency,
        gateway=record.gateway,
        transaction_id=record.transaction_id,
        payment_status=record.payment_status,
        failure_reason=record.failure_reason,
        paid_at=_isoformat(record.paid_at),
    )


# ---------------------------------------------------------------------------
# Customer Router (profile, cart, order placement and history)
# ---------------------------------------------------------------------------
customer_router = APIRouter(prefix="/customers", tags=["customers"])


@customer_router.post("", status_code=201, response_model=CustomerIdResponse)
def register_customer(body: RegisterCustomerRequest) -> CustomerIdResponse:
    command = RegisterCustomer(
        customer_id=body.customer_id,
        name=body.name,
        email=body.email,
        delivery_address=body.delivery_address,
    )
    result = current_domain.process(command, asynchronous=False)
    return CustomerIdResponse(customer_id=result)


@customer_router.put("/{customer_id}/address", response_model=StatusResponse)
def update_delivery_address(customer_id: str, body: UpdateDeliveryAddressRequest) -> StatusResponse:
    command = UpdateDeliveryAddress(customer_id=customer_id, delivery_address=body.delivery_address)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@customer_router.post("/{customer_id}/deactivate", response_model=StatusResponse)
def deactivate_account(customer_id: str) -> StatusResponse:
    current_domain.process(DeactivateAccount(customer_id=customer_id), asynchronous=False)
    return StatusResponse(status="deactivated")


@customer_router.get("/{customer_id}/cart", response_model=CartResponse)
def get_cart(customer_id: str) -> CartResponse:
    snapshot = cart_store.snapshot(customer_id)
    return CartResponse(
        owner_id=snapshot.owner_id,
        lines=[
            CartLineResponse(
                line_id=line.line_id,
                menu_item_id=line.menu_item_id,
                name=line.name,
                quantity=line.quantity,
                unit_price=str(line.unit_price),
                line_subtotal=str(line.line_subtotal),
            )
            for line in snapshot.lines
        ],
        total=str(snapshot.total),
    )


@customer_router.post("/{customer_id}/cart/items", response_model=CartLineIdResponse)
def add_cart_item(customer_id: str, body: AddCartItemRequest) -> CartLineIdResponse:
    line_id = cart_store.add_item(customer_id, body.menu_item_id, body.quantity)
    return CartLineIdResponse(line_id=line_id)


@customer_router.patch("/{customer_id}/cart/items/{menu_item_id}", response_model=StatusResponse)
def adjust_cart_item(customer_id: str, menu_item_id: str, body: AdjustQuantityRequest) -> StatusResponse:
    cart_store.adjust_quantity(customer_id, menu_item_id, body.delta)
    return StatusResponse()


@customer_router.delete("/{customer_id}/cart/lines/{line_id}", response_model=StatusResponse)
def remove_cart_line(customer_id: str, line_id: str) -> StatusResponse:
    cart_store.remove_item(customer_id, line_id)
    return StatusResponse()


@customer_router.delete("/{customer_id}/cart", response_model=StatusResponse)
def clear_cart(customer_id: str) -> StatusResponse:
    cart_store.clear(customer_id)
    return StatusResponse(status="cleared")


@customer_router.post("/{customer_id}/orders", status_code=201, response_model=OrderIdResponse)
def place_order(customer_id: str) -> OrderIdResponse:
    order_id = snapshot_builder.place_order(customer_id)
    return OrderIdResponse(order_id=order_id)


@customer_router.get("/{customer_id}/orders", response_model=OrderPageResponse)
def list_customer_orders(
    customer_id: str,
    page: int = Query(default=0),
    size: int = Query(default=20),
) -> OrderPageResponse:
    return _order_page(coordinator.list_customer_orders(customer_id, page=page, page_size=size))


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("", response_model=OrderPageResponse)
def list_orders(
    status: str | None = Query(default=None),
    page: int = Query(default=0),
    size: int = Query(default=20),
) -> OrderPageResponse:
    return _order_page(coordinator.list_orders(status=status, page=page, page_size=size))


@order_router.get("/stats/unique-customers", response_model=UniqueCustomersResponse)
def count_unique_customers() -> UniqueCustomersResponse:
    return UniqueCustomersResponse(count=coordinator.count_unique_customers())


@order_router.get("/{order_id}", response_model=OrderDetailResponse)
def get_order(order_id: str) -> OrderDetailResponse:
    detail = coordinator.get_order(order_id)
    return OrderDetailResponse(
        order_id=str(detail.order_id),
        customer_id=str(detail.customer_id),
        items=[
            OrderItemResponse(
                item_id=item["item_id"],
                menu_item_id=item["menu_item_id"],
                name=item.get("name", ""),
                quantity=item["quantity"],
                unit_price=format_amount(item["unit_price_cents"]),
                subtotal=format_amount(item["subtotal_cents"]),
            )
            for item in json.loads(detail.items or "[]")
        ],
        total_amount=format_amount(detail.total_cents or 0),
        currency=detail.currency,
        delivery_address=detail.delivery_address,
        order_status=detail.order_status,
        payment_status=detail.payment_status,
        transaction_id=detail.transaction_id,
        failure_reason=detail.failure_reason,
        cancellation_reason=detail.cancellation_reason,
        placed_at=_isoformat(detail.placed_at),
        paid_at=_isoformat(detail.paid_at),
    )


@order_router.get("/{order_id}/items/{item_id}", response_model=OrderItemResponse)
def get_order_item(order_id: str, item_id: str) -> OrderItemResponse:
    item = coordinator.get_order_item(order_id, item_id)
    return OrderItemResponse(
        item_id=item.item_id,
        menu_item_id=item.menu_item_id,
        name=item.name,
        quantity=item.quantity,
        unit_price=str(item.unit_price),
        subtotal=str(item.subtotal),
    )


@order_router.put("/{order_id}/status", response_model=OrderStatusResponse)
def advance_order_status(order_id: str, body: AdvanceOrderStatusRequest) -> OrderStatusResponse:
    status = coordinator.advance_order_status(order_id, body.new_status, reason=body.reason)
    return OrderStatusResponse(order_id=order_id, order_status=status)


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/initiate", response_model=InitiatePaymentResponse)
def initiate_payment(body: InitiatePaymentRequest) -> InitiatePaymentResponse:
    """Create a gateway payment intent for an order awaiting payment."""
    intent = coordinator.initiate_payment(body.order_id, body.amount)
    return InitiatePaymentResponse(
        order_id=body.order_id,
        client_secret=intent.client_secret,
        intent_id=intent.intent_id,
    )


@payment_router.post("/webhook", response_model=PaymentOutcomeResponse)
async def payment_webhook(
    request: Request,
    x_gateway_signature: str = Header(default=""),
) -> PaymentOutcomeResponse:
    """Process a payment gateway outcome callback.

    The signature is checked against the raw body before anything parses it,
    so an unsigned request gets a 401 whatever its shape.
    """
    payload = (await request.body()).decode("utf-8", errors="replace")
    if not get_gateway().verify_webhook_signature(payload, x_gateway_signature):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    try:
        body = PaymentCallbackRequest.model_validate_json(payload)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False), body=payload) from None

    outcome = await run_in_threadpool(
        coordinator.record_payment_outcome,
        order_id=body.order_id,
        transaction_id=body.transaction_id,
        amount=body.amount,
        succeeded=body.succeeded,
        failure_reason=body.failure_reason,
    )
    return PaymentOutcomeResponse(order_id=body.order_id, outcome=outcome.value)


@payment_router.get("", response_model=PaymentPageResponse)
def list_payments(
    status: str | None = Query(default=None),
    page: int = Query(default=0),
    size: int = Query(default=100),
) -> PaymentPageResponse:
    result = coordinator.list_payments(status=status, page=page, page_size=size)
    return PaymentPageResponse(
        items=[_payment(record) for record in result.items],
        page=result.page,
        page_size=result.page_size,
        total=result.total,
    )


@payment_router.get("/{payment_id}", response_model=PaymentResponse)
def get_payment(payment_id: str) -> PaymentResponse:
    return _payment(coordinator.get_payment(payment_id))
