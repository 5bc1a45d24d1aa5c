import pytest
from notifications.channel import set_email_channel
from notifications.channel.fake_email import FakeEmailAdapter
from notifications.dispatcher import NotificationDispatcher, set_dispatcher
from ordering.config import reset_settings


@pytest.fixture()
def email(monkeypatch):
    """Fake mailbox; failed attempts become due again immediately."""
    monkeypatch.setenv("NOTIFICATION_BACKOFF_SECONDS", "0")
    reset_settings()
    fake = FakeEmailAdapter()
    set_email_channel(fake)
    return fake


@pytest.fixture()
def dispatcher(email):
    """The process-wide dispatcher, wired to the fake mailbox."""
    instance = NotificationDispatcher(poll_interval=0.05)
    set_dispatcher(instance)
    return instance
