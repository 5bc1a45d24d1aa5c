"""SMTP email adapter backed by aiosmtplib.

The dispatcher's worker is a plain thread, so each send runs its own short
event loop.
"""

import asyncio
from email.message import EmailMessage
from email.utils import make_msgid

import aiosmtplib
import structlog

from notifications.channel.email_port import EmailPort

logger = structlog.get_logger(__name__)


class SmtpEmailAdapter(EmailPort):
    def __init__(
        self,
        host: str,
        port: int = 25,
        sender: str = "orders@localhost",
        username: str | None = None,
        password: str | None = None,
        start_tls: bool = False,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.start_tls = start_tls
        self.timeout = timeout

    def build_message(self, to: str, subject: str, body: str, is_html: bool) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message["Message-ID"] = make_msgid()
        if is_html:
            message.set_content("This message requires an HTML capable mail client.")
            message.add_alternative(body, subtype="html")
        else:
            message.set_content(body)
        return message

    def send(
        self,
        to: str,
        subject: str,
        body: str,
        is_html: bool = False,
    ) -> dict:
        message = self.build_message(to, subject, body, is_html)
        try:
            asyncio.run(
                aiosmtplib.send(
                    message,
                    hostname=self.host,
                    port=self.port,
                    username=self.username,
                    password=self.password,
                    start_tls=self.start_tls,
                    timeout=self.timeout,
                )
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.warning("SMTP delivery failed", to=to, host=self.host, error=str(exc))
            return {"message_id": None, "status": "failed", "error": str(exc)}

        return {"message_id": message["Message-ID"], "status": "sent"}
