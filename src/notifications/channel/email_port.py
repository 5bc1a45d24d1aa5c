"""Email channel port: abstract interface for email delivery."""

from abc import ABC, abstractmethod


class EmailPort(ABC):
    """Abstract interface for email delivery adapters."""

    @abstractmethod
    def send(
        self,
        to: str,
        subject: str,
        body: str,
        is_html: bool = False,
    ) -> dict:
        """Deliver one email.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)

        Adapters may also raise; the dispatcher treats an exception the same
        as a "failed" status and retries.
        """
        ...
