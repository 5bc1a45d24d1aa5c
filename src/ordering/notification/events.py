"""Domain events for the Notification aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Notification")
class NotificationQueued:
    """A notification was stored and is waiting for delivery."""

    __version__ = 1

    notification_id = Identifier(required=True)
    kind = String(required=True, max_length=50)
    reference = String(max_length=100)
    queued_at = DateTime(required=True)


@ordering.event(part_of="Notification")
class NotificationSent:
    __version__ = 1

    notification_id = Identifier(required=True)
    kind = String(required=True, max_length=50)
    reference = String(max_length=100)
    attempts = Integer(required=True)
    sent_at = DateTime(required=True)


@ordering.event(part_of="Notification")
class NotificationFailed:
    """A delivery attempt failed; another attempt is due at ``next_attempt_at``."""

    __version__ = 1

    notification_id = Identifier(required=True)
    reason = String(required=True, max_length=500)
    attempts = Integer(required=True)
    max_attempts = Integer(required=True)
    next_attempt_at = DateTime(required=True)


@ordering.event(part_of="Notification")
class NotificationAbandoned:
    """Every allowed attempt failed; the notification is parked as a dead letter."""

    __version__ = 1

    notification_id = Identifier(required=True)
    kind = String(required=True, max_length=50)
    reference = String(max_length=100)
    reason = String(required=True, max_length=500)
    attempts = Integer(required=True)
    abandoned_at = DateTime(required=True)


@ordering.event(part_of="Notification")
class NotificationRetried:
    __version__ = 1

    notification_id = Identifier(required=True)
    attempts = Integer(required=True)
    retried_at = DateTime(required=True)
