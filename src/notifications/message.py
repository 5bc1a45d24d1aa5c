"""A rendered notification, ready to be stored as a ``Notification``."""

from dataclasses import dataclass


@dataclass(frozen=True)
class NotificationMessage:
    recipient: str
    subject: str
    body: str
    is_html: bool = True
    kind: str = ""
    reference: str = ""  # e.g. the order id the message is about
