from enum import Enum


class NotificationKind(Enum):
    ORDER_PLACED = "OrderPlaced"
    PAYMENT_SUCCEEDED = "PaymentSucceeded"
    PAYMENT_FAILED = "PaymentFailed"
    ACCOUNT_DEACTIVATED = "AccountDeactivated"
