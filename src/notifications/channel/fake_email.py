"""Fake email adapter: records sent emails for testing."""

import threading
from uuid import uuid4

from notifications.channel.email_port import EmailPort


class FakeEmailAdapter(EmailPort):
    """Email adapter that records messages in memory for test assertions.

    ``fail_times`` makes the next N sends fail before succeeding, which is
    how retry behaviour is exercised.
    """

    def __init__(self):
        self.sent_emails: list[dict] = []
        self.attempts = 0
        self.should_succeed = True
        self.fail_times = 0
        self.failure_reason = "Email delivery failed"
        self._lock = threading.Lock()

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Email delivery failed",
        fail_times: int = 0,
    ):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.fail_times = fail_times

    def send(
        self,
        to: str,
        subject: str,
        body: str,
        is_html: bool = False,
    ) -> dict:
        with self._lock:
            self.attempts += 1
            if not self.should_succeed or self.fail_times > 0:
                self.fail_times = max(self.fail_times - 1, 0)
                return {
                    "message_id": None,
                    "status": "failed",
                    "error": self.failure_reason,
                }

            message_id = f"email-{uuid4().hex[:12]}"
            self.sent_emails.append(
                {
                    "message_id": message_id,
                    "to": to,
                    "subject": subject,
                    "body": body,
                    "is_html": is_html,
                }
            )

        return {"message_id": message_id, "status": "sent"}

    def reset(self):
        """Clear sent emails (useful between tests)."""
        with self._lock:
            self.sent_emails.clear()
            self.attempts = 0
            self.should_succeed = True
            self.fail_times = 0
            self.failure_reason = "Email delivery failed"
