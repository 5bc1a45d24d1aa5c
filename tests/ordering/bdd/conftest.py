"""Shared BDD fixtures and step definitions for the Ordering domain."""

import pytest
from notifications.dispatcher import get_dispatcher
from ordering.cart.store import CartStore
from ordering.money import to_minor_units
from ordering.order.lifecycle import LifecycleCoordinator
from ordering.order.order import Order
from ordering.order.snapshot import OrderSnapshotBuilder
from protean import current_domain
from pytest_bdd import given, parsers, then


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def coordinator():
    return LifecycleCoordinator()


@pytest.fixture()
def cart_store():
    return CartStore()


@pytest.fixture()
def context():
    """Mutable scenario state: the current order id and any captured error."""
    return {"order_id": None, "exc": None, "outcome": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a registered customer "{customer_id}"'))
def _(make_customer, customer_id):
    make_customer(customer_id)


@given(parsers.cfparse('menu item "{menu_item_id}" costs {price}'))
def _(catalog, menu_item_id, price):
    catalog.set_item(menu_item_id, price, menu_item_id.title())


@given(parsers.cfparse('"{customer_id}" has {quantity:d} x "{menu_item_id}" in the cart'))
def _(cart_store, customer_id, quantity, menu_item_id):
    cart_store.add_item(customer_id, menu_item_id, quantity)


@given(parsers.cfparse('"{customer_id}" has placed an order'))
def _(context, customer_id):
    context["order_id"] = OrderSnapshotBuilder().place_order(customer_id)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
def _order(context):
    return current_domain.repository_for(Order).get(context["order_id"])


@then(parsers.cfparse('the order status is "{status}"'))
def _(context, status):
    assert _order(context).order_status == status


@then(parsers.cfparse('the payment status is "{status}"'))
def _(context, status):
    assert _order(context).payment_status == status


@then(parsers.cfparse("the order total is {amount}"))
def _(context, amount):
    assert _order(context).total_cents == to_minor_units(amount)


@then(parsers.cfparse('the request is rejected with "{error_name}"'))
def _(context, error_name):
    assert context["exc"] is not None
    assert type(context["exc"]).__name__ == error_name


@then(parsers.cfparse('the customer receives an email with subject starting "{prefix}"'))
def _(email, prefix):
    assert get_dispatcher().drain(timeout=5.0)
    assert any(sent["subject"].startswith(prefix) for sent in email.sent_emails)

