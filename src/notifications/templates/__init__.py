"""Template registry: maps NotificationKind to template classes.

Each template renders a subject and an HTML body from event context data.
"""

from notifications.kinds import NotificationKind
from notifications.message import NotificationMessage
from notifications.templates.account_deactivated import AccountDeactivatedTemplate
from notifications.templates.order_confirmation import OrderConfirmationTemplate
from notifications.templates.payment_failed import PaymentFailedTemplate
from notifications.templates.payment_succeeded import PaymentSucceededTemplate

TEMPLATE_REGISTRY: dict[str, type] = {
    NotificationKind.ORDER_PLACED.value: OrderConfirmationTemplate,
    NotificationKind.PAYMENT_SUCCEEDED.value: PaymentSucceededTemplate,
    NotificationKind.PAYMENT_FAILED.value: PaymentFailedTemplate,
    NotificationKind.ACCOUNT_DEACTIVATED.value: AccountDeactivatedTemplate,
}


def get_template(kind: str):
    """Look up a template class by notification kind string."""
    template_cls = TEMPLATE_REGISTRY.get(kind)
    if template_cls is None:
        raise ValueError(f"No template registered for notification kind: {kind}")
    return template_cls


def render_message(kind: str, recipient: str, context: dict, reference: str = "") -> NotificationMessage:
    """Render a template into a message ready to be queued."""
    template_cls = get_template(kind)
    rendered = template_cls.render(context)
    return NotificationMessage(
        recipient=recipient,
        subject=rendered["subject"],
        body=rendered["body"],
        is_html=template_cls.is_html,
        kind=kind,
        reference=reference,
    )
