"""Notification aggregate (CQRS): one outbound customer email and its delivery history.

A notification is stored before anything tries to send it, so delivery state
outlives the process: attempts, the last error and the time of the next retry
are all persisted. The dispatcher's in-memory queue only carries ids.

State Machine:
    PENDING → SENT
    PENDING → FAILED → (retry) → PENDING
    PENDING → ABANDONED          (last allowed attempt failed)
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Integer, String, Text

from ordering.domain import ordering
from ordering.notification.events import (
    NotificationAbandoned,
    NotificationFailed,
    NotificationQueued,
    NotificationRetried,
    NotificationSent,
)


class NotificationStatus(Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"
    ABANDONED = "ABANDONED"


_VALID_TRANSITIONS = {
    NotificationStatus.PENDING: {
        NotificationStatus.SENT,
        NotificationStatus.FAILED,
        NotificationStatus.ABANDONED,
    },
    NotificationStatus.FAILED: {NotificationStatus.PENDING},  # Via retry
    NotificationStatus.SENT: set(),  # Terminal
    NotificationStatus.ABANDONED: set(),  # Terminal
}

UNDELIVERED_STATUSES = (NotificationStatus.PENDING.value, NotificationStatus.FAILED.value)


@ordering.aggregate
class Notification:
    kind = String(max_length=50, required=True)
    recipient = String(max_length=254, required=True)
    subject = String(max_length=500)
    body = Text(required=True)
    is_html = Boolean(default=True)
    reference = String(max_length=100)  # the order or customer the message is about

    status = String(choices=NotificationStatus, default=NotificationStatus.PENDING.value)
    attempts = Integer(default=0)
    max_attempts = Integer(default=3, min_value=1)
    last_error = String(max_length=500)
    next_attempt_at = DateTime()

    created_at = DateTime()
    sent_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def queue(cls, kind, recipient, subject, body, is_html=True, reference=None, max_attempts=3):
        now = datetime.now(UTC)
        notification = cls(
            kind=kind,
            recipient=recipient,
            subject=subject,
            body=body,
            is_html=is_html,
            reference=reference,
            status=NotificationStatus.PENDING.value,
            attempts=0,
            max_attempts=max(1, max_attempts),
            created_at=now,
            updated_at=now,
        )
        notification.raise_(
            NotificationQueued(
                notification_id=str(notification.id),
                kind=kind,
                reference=reference,
                queued_at=now,
            )
        )
        return notification

    @property
    def is_undelivered(self) -> bool:
        return self.status in UNDELIVERED_STATUSES

    def _assert_can_transition(self, target_status):
        current = NotificationStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def mark_sent(self):
        self._assert_can_transition(NotificationStatus.SENT)

        now = datetime.now(UTC)
        self.attempts = self.attempts + 1
        self.status = NotificationStatus.SENT.value
        self.last_error = None
        self.next_attempt_at = None
        self.sent_at = now
        self.updated_at = now

        self.raise_(
            NotificationSent(
                notification_id=str(self.id),
                kind=self.kind,
                reference=self.reference,
                attempts=self.attempts,
                sent_at=now,
            )
        )

    def record_failure(self, reason, retry_in: timedelta):
        """Count a failed attempt. The last allowed attempt abandons the notification."""
        now = datetime.now(UTC)
        reason = (reason or "Unknown delivery error")[:500]

        if self.attempts + 1 >= self.max_attempts:
            self._assert_can_transition(NotificationStatus.ABANDONED)
            self.attempts = self.attempts + 1
            self.status = NotificationStatus.ABANDONED.value
            self.last_error = reason
            self.next_attempt_at = None
            self.updated_at = now
            self.raise_(
                NotificationAbandoned(
                    notification_id=str(self.id),
                    kind=self.kind,
                    reference=self.reference,
                    reason=reason,
                    attempts=self.attempts,
                    abandoned_at=now,
                )
            )
            return

        self._assert_can_transition(NotificationStatus.FAILED)
        self.attempts = self.attempts + 1
        self.status = NotificationStatus.FAILED.value
        self.last_error = reason
        self.next_attempt_at = now + retry_in
        self.updated_at = now
        self.raise_(
            NotificationFailed(
                notification_id=str(self.id),
                reason=reason,
                attempts=self.attempts,
                max_attempts=self.max_attempts,
                next_attempt_at=self.next_attempt_at,
            )
        )

    def retry(self):
        if NotificationStatus(self.status) != NotificationStatus.FAILED:
            raise ValidationError({"status": ["Only failed notifications can be retried"]})

        now = datetime.now(UTC)
        self.status = NotificationStatus.PENDING.value
        self.updated_at = now

        self.raise_(
            NotificationRetried(
                notification_id=str(self.id),
                attempts=self.attempts,
                retried_at=now,
            )
        )

    def retry_due(self, as_of=None) -> bool:
        """True when a FAILED notification's backoff has elapsed."""
        if NotificationStatus(self.status) != NotificationStatus.FAILED or self.next_attempt_at is None:
            return False
        as_of = as_of or datetime.now(UTC)
        due = self.next_attempt_at
        if due.tzinfo is None:
            due = due.replace(tzinfo=UTC)
        return due <= as_of
