"""Payment succeeded template: sent once the gateway confirms payment."""

from html import escape

from notifications.kinds import NotificationKind


class PaymentSucceededTemplate:
    kind = NotificationKind.PAYMENT_SUCCEEDED.value
    is_html = True

    @staticmethod
    def render(context: dict) -> dict:
        order_id = escape(str(context.get("order_id", "N/A")))
        name = escape(context.get("customer_name") or "there")
        amount = escape(str(context.get("amount", "0.00")))
        currency = escape(context.get("currency", "USD"))
        transaction_id = escape(context.get("transaction_id") or "")
        return {
            "subject": f"Payment Successful - Order #{order_id}",
            "body": (
                "<html><body>"
                f"<p>Hi {name},</p>"
                f"<p>We received your payment of {currency} {amount} for order #{order_id}.</p>"
                f"<p>Transaction reference: {transaction_id}</p>"
                "<p>Your order is confirmed and the kitchen will start preparing it shortly.</p>"
                "</body></html>"
            ),
        }
