from decimal import Decimal

import pytest
from notifications.channel import set_email_channel
from notifications.channel.fake_email import FakeEmailAdapter
from notifications.dispatcher import NotificationDispatcher, set_dispatcher
from ordering.catalog import set_catalog
from ordering.catalog.memory_adapter import InMemoryCatalog
from ordering.config import reset_settings
from ordering.customer.management import RegisterCustomer
from ordering.gateway import set_gateway
from ordering.gateway.fake_adapter import FakeGateway
from protean import current_domain

MENU = {
    "burger": ("Classic Burger", Decimal("8.50")),
    "fries": ("Fries", Decimal("3.25")),
    "cola": ("Cola", Decimal("1.99")),
}


@pytest.fixture(autouse=True)
def catalog():
    menu = InMemoryCatalog(MENU)
    set_catalog(menu)
    return menu


@pytest.fixture(autouse=True)
def gateway():
    fake = FakeGateway()
    set_gateway(fake)
    return fake


@pytest.fixture(autouse=True)
def email(monkeypatch):
    """Fake mailbox behind a dispatcher that retries without waiting."""
    monkeypatch.setenv("NOTIFICATION_BACKOFF_SECONDS", "0")
    reset_settings()
    fake = FakeEmailAdapter()
    set_email_channel(fake)
    set_dispatcher(NotificationDispatcher(poll_interval=0.05))
    return fake


def register_customer(customer_id, address="1 Main St, Springfield", email=None):
    current_domain.process(
        RegisterCustomer(
            customer_id=customer_id,
            name="Test Customer",
            email=email or f"{customer_id}@example.com",
            delivery_address=address,
        ),
        asynchronous=False,
    )
    return customer_id


@pytest.fixture
def make_customer():
    return register_customer


@pytest.fixture
def customer():
    return register_customer("cust-001")
