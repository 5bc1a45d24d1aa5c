"""Queueing customer notifications.

A rendered message is stored as a ``Notification`` in the same unit of work
as the handler that produced it; once that commits, ``NotificationQueued``
hands the id to the dispatcher's worker.
"""

import structlog
from notifications.dispatcher import get_dispatcher
from notifications.message import NotificationMessage
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from ordering.config import get_settings
from ordering.domain import ordering
from ordering.notification.events import NotificationQueued
from ordering.notification.notification import Notification

logger = structlog.get_logger(__name__)


def queue_notification(message: NotificationMessage) -> Notification:
    notification = Notification.queue(
        kind=message.kind,
        recipient=message.recipient,
        subject=message.subject,
        body=message.body,
        is_html=message.is_html,
        reference=message.reference or None,
        max_attempts=get_settings().notification_max_attempts,
    )
    current_domain.repository_for(Notification).add(notification)
    return notification


@ordering.event_handler(part_of=Notification)
class NotificationQueueHandler:
    @handle(NotificationQueued)
    def on_notification_queued(self, event: NotificationQueued) -> None:
        try:
            get_dispatcher().dispatch(event.notification_id)
        except Exception as e:
            # Stays PENDING in the store for the dispatcher's recovery sweep
            logger.error(
                "Failed to hand notification to dispatcher",
                notification_id=str(event.notification_id),
                error=str(e),
            )
