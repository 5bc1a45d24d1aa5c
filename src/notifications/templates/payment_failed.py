"""Payment failed template: tells the customer why the payment did not go through."""

from html import escape

from notifications.kinds import NotificationKind


class PaymentFailedTemplate:
    kind = NotificationKind.PAYMENT_FAILED.value
    is_html = True

    @staticmethod
    def render(context: dict) -> dict:
        order_id = escape(str(context.get("order_id", "N/A")))
        name = escape(context.get("customer_name") or "there")
        amount = escape(str(context.get("amount", "0.00")))
        currency = escape(context.get("currency", "USD"))
        reason = escape(context.get("failure_reason") or "Unknown reason")
        return {
            "subject": f"Payment Failed - Order #{order_id}",
            "body": (
                "<html><body>"
                f"<p>Hi {name},</p>"
                f"<p>Your payment of {currency} {amount} for order #{order_id} could not be completed.</p>"
                f"<p>Reason: {reason}</p>"
                "<p>The order has been cancelled. You can place it again from your cart.</p>"
                "</body></html>"
            ),
        }
