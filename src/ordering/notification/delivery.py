"""Notification delivery: one send attempt per command.

``DeliverNotification`` makes a single attempt and records its outcome on the
aggregate, so a crash between attempts loses nothing. ``RetryNotification``
moves a FAILED notification back to PENDING once its backoff has elapsed.
"""

from datetime import timedelta

import structlog
from notifications.channel import get_email_channel
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.config import get_settings
from ordering.domain import ordering
from ordering.exceptions import NotFoundError
from ordering.notification.notification import Notification, NotificationStatus

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Notification")
class DeliverNotification:
    notification_id = Identifier(required=True)


@ordering.command(part_of="Notification")
class RetryNotification:
    notification_id = Identifier(required=True)


def retry_delay(attempt: int) -> timedelta:
    """Exponential backoff after the ``attempt``-th failure, capped by settings."""
    settings = get_settings()
    seconds = settings.notification_backoff_seconds * (2 ** max(attempt - 1, 0))
    return timedelta(seconds=min(seconds, settings.notification_max_backoff_seconds))


def load_notification(notification_id) -> Notification:
    try:
        return current_domain.repository_for(Notification).get(notification_id)
    except ObjectNotFoundError:
        raise NotFoundError({"notification": [f"Notification {notification_id} does not exist"]}) from None


@ordering.command_handler(part_of=Notification)
class NotificationDeliveryHandler:
    @handle(DeliverNotification)
    def deliver(self, command):
        notification = load_notification(command.notification_id)
        if NotificationStatus(notification.status) != NotificationStatus.PENDING:
            logger.debug(
                "Notification not pending, skipping",
                notification_id=str(notification.id),
                status=notification.status,
            )
            return notification.status

        try:
            result = get_email_channel().send(
                to=notification.recipient,
                subject=notification.subject,
                body=notification.body,
                is_html=notification.is_html,
            )
            error = None if result.get("status") == "sent" else result.get("error") or "Unknown delivery error"
        except Exception as exc:
            error = str(exc) or exc.__class__.__name__

        if error is None:
            notification.mark_sent()
            logger.info(
                "Notification delivered",
                notification_id=str(notification.id),
                kind=notification.kind,
                reference=notification.reference,
                attempts=notification.attempts,
            )
        else:
            notification.record_failure(error, retry_in=retry_delay(notification.attempts + 1))
            if NotificationStatus(notification.status) == NotificationStatus.ABANDONED:
                logger.error(
                    "Notification abandoned after retries",
                    notification_id=str(notification.id),
                    kind=notification.kind,
                    reference=notification.reference,
                    recipient=notification.recipient,
                    error=error,
                )
            else:
                logger.warning(
                    "Notification delivery failed",
                    notification_id=str(notification.id),
                    kind=notification.kind,
                    attempt=notification.attempts,
                    max_attempts=notification.max_attempts,
                    error=error,
                )

        current_domain.repository_for(Notification).add(notification)
        return notification.status

    @handle(RetryNotification)
    def retry(self, command):
        notification = load_notification(command.notification_id)
        notification.retry()
        current_domain.repository_for(Notification).add(notification)
        return notification.status
