"""Email channel registry.

Uses the fake adapter by default; an SMTP adapter is built when SMTP_HOST is
configured.
"""

from notifications.channel.email_port import EmailPort

_email_channel: EmailPort | None = None


def get_email_channel() -> EmailPort:
    """Return the configured email adapter (process-wide singleton)."""
    global _email_channel
    if _email_channel is None:
        from ordering.config import get_settings

        settings = get_settings()
        if settings.smtp_host:
            from notifications.channel.smtp_email import SmtpEmailAdapter

            _email_channel = SmtpEmailAdapter(
                host=settings.smtp_host,
                port=settings.smtp_port,
                sender=settings.smtp_sender,
            )
        else:
            from notifications.channel.fake_email import FakeEmailAdapter

            _email_channel = FakeEmailAdapter()
    return _email_channel


def set_email_channel(channel: EmailPort) -> None:
    global _email_channel
    _email_channel = channel


def reset_channels() -> None:
    """Drop the channel singleton (useful for testing)."""
    global _email_channel
    _email_channel = None
