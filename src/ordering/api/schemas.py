"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), kept separate from
internal Protean commands. Money is exchanged as decimal strings.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, StrictBool


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------
class RegisterCustomerRequest(BaseModel):
    customer_id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=150)
    email: str = Field(min_length=3, max_length=254)
    delivery_address: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_id": "cust-001",
                    "name": "Ada Lovelace",
                    "email": "ada@example.com",
                    "delivery_address": "12 Analytical Row, London",
                }
            ]
        }
    }


class UpdateDeliveryAddressRequest(BaseModel):
    delivery_address: str


class CustomerIdResponse(BaseModel):
    customer_id: str


class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddCartItemRequest(BaseModel):
    menu_item_id: str = Field(min_length=1)
    quantity: int

    model_config = {"json_schema_extra": {"examples": [{"menu_item_id": "7", "quantity": 2}]}}


class AdjustQuantityRequest(BaseModel):
    delta: int


class CartLineResponse(BaseModel):
    line_id: str
    menu_item_id: str
    name: str
    quantity: int
    unit_price: str
    line_subtotal: str


class CartResponse(BaseModel):
    owner_id: str
    lines: list[CartLineResponse]
    total: str


class CartLineIdResponse(BaseModel):
    line_id: str


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderIdResponse(BaseModel):
    order_id: str


class OrderSummaryResponse(BaseModel):
    order_id: str
    customer_id: str
    total_amount: str
    currency: str
    order_status: str
    payment_status: str
    item_count: int
    placed_at: str | None = None


class OrderPageResponse(BaseModel):
    items: list[OrderSummaryResponse]
    page: int
    page_size: int
    total: int


class OrderItemResponse(BaseModel):
    item_id: str
    menu_item_id: str
    name: str
    quantity: int
    unit_price: str
    subtotal: str


class OrderDetailResponse(BaseModel):
    order_id: str
    customer_id: str
    items: list[OrderItemResponse]
    total_amount: str
    currency: str
    delivery_address: str | None = None
    order_status: str
    payment_status: str
    transaction_id: str | None = None
    failure_reason: str | None = None
    cancellation_reason: str | None = None
    placed_at: str | None = None
    paid_at: str | None = None


class AdvanceOrderStatusRequest(BaseModel):
    new_status: str
    reason: str | None = Field(default=None, max_length=500)


class OrderStatusResponse(BaseModel):
    order_id: str
    order_status: str


class UniqueCustomersResponse(BaseModel):
    count: int


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class InitiatePaymentRequest(BaseModel):
    order_id: str = Field(min_length=1)
    amount: Decimal

    model_config = {"json_schema_extra": {"examples": [{"order_id": "ord-001", "amount": "10.00"}]}}


class InitiatePaymentResponse(BaseModel):
    order_id: str
    client_secret: str
    intent_id: str | None = None


class PaymentCallbackRequest(BaseModel):
    """Gateway callback. Originates outside the trust boundary, so nothing loose is accepted."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    order_id: str = Field(min_length=1, max_length=64)
    transaction_id: str = Field(min_length=1, max_length=255)
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    succeeded: StrictBool
    failure_reason: str | None = Field(default=None, max_length=500)


class PaymentOutcomeResponse(BaseModel):
    order_id: str
    outcome: str


class PaymentResponse(BaseModel):
    payment_id: str
    order_id: str
    customer_id: str
    amount: str
    currency: str
    gateway: str
    transaction_id: str
    payment_status: str
    failure_reason: str | None = None
    paid_at: str | None = None


class PaymentPageResponse(BaseModel):
    items: list[PaymentResponse]
    page: int
    page_size: int
    total: int
