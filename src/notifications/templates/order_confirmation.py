"""Order confirmation template: sent when an order is placed, with the payment link."""

from html import escape

from notifications.kinds import NotificationKind


class OrderConfirmationTemplate:
    kind = NotificationKind.ORDER_PLACED.value
    is_html = True

    @staticmethod
    def render(context: dict) -> dict:
        order_id = escape(str(context.get("order_id", "N/A")))
        name = escape(context.get("customer_name") or "there")
        currency = escape(context.get("currency", "USD"))
        total = escape(str(context.get("total", "0.00")))
        address = escape(context.get("delivery_address") or "")
        payment_link = escape(context.get("payment_link") or "", quote=True)

        rows = "".join(
            "<tr>"
            f"<td>{escape(item.get('name') or str(item.get('menu_item_id', '')))}</td>"
            f"<td>{item.get('quantity', 0)}</td>"
            f"<td>{escape(str(item.get('unit_price', '')))}</td>"
            f"<td>{escape(str(item.get('subtotal', '')))}</td>"
            "</tr>"
            for item in context.get("items", [])
        )

        return {
            "subject": f"Your Order Confirmation - Order #{order_id}",
            "body": (
                "<html><body>"
                f"<p>Hi {name},</p>"
                f"<p>Thank you for your order #{order_id}. Here is what you ordered:</p>"
                "<table><tr><th>Item</th><th>Qty</th><th>Price</th><th>Subtotal</th></tr>"
                f"{rows}</table>"
                f"<p><strong>Total: {currency} {total}</strong></p>"
                f"<p>Delivering to: {address}</p>"
                f'<p><a href="{payment_link}">Complete your payment</a></p>'
                "</body></html>"
            ),
        }
