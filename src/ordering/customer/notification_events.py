"""Customer notifications for account events."""

import structlog
from notifications.kinds import NotificationKind
from notifications.templates import render_message
from protean.utils.mixins import handle

from ordering.customer.customer import Customer
from ordering.customer.events import AccountDeactivated
from ordering.domain import ordering
from ordering.notification.queueing import queue_notification

logger = structlog.get_logger(__name__)


@ordering.event_handler(part_of=Customer)
class AccountNotificationHandler:
    @handle(AccountDeactivated)
    def on_account_deactivated(self, event: AccountDeactivated) -> None:
        try:
            message = render_message(
                NotificationKind.ACCOUNT_DEACTIVATED.value,
                recipient=event.email,
                context={"customer_name": event.name},
                reference=str(event.customer_id),
            )
            queue_notification(message)
        except Exception as e:
            logger.error(
                "Failed to queue account deactivation email",
                customer_id=str(event.customer_id),
                error=str(e),
            )
