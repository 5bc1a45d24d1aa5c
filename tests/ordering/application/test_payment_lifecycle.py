"""Application tests for payment initiation and gateway callbacks."""

import threading
from decimal import Decimal

import pytest
from ordering.cart.store import CartStore
from ordering.config import reset_settings
from ordering.domain import ordering
from ordering.exceptions import AlreadyPaidError, GatewayError, InvalidTransitionError, NotFoundError
from ordering.order.lifecycle import LifecycleCoordinator
from ordering.order.order import Order, OrderStatus, PaymentStatus
from ordering.order.payment import PaymentOutcome
from ordering.order.snapshot import OrderSnapshotBuilder
from ordering.payment.payment import Payment, PaymentRecordStatus
from ordering.utils.locks import order_locks
from protean import current_domain
from protean.exceptions import ValidationError


@pytest.fixture
def coordinator():
    return LifecycleCoordinator()


@pytest.fixture
def order_id(customer):
    """A placed order for 2 x burger at 8.50."""
    CartStore().add_item(customer, "burger", 2)
    return OrderSnapshotBuilder().place_order(customer)


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


def _payments(order_id):
    return current_domain.repository_for(Payment)._dao.query.filter(order_id=order_id).all().items


class TestInitiatePayment:
    def test_returns_client_secret(self, coordinator, order_id, gateway):
        intent = coordinator.initiate_payment(order_id, Decimal("17.00"))
        assert intent.client_secret
        assert gateway.calls[0]["amount_minor_units"] == 1700
        assert gateway.calls[0]["metadata"] == {"order_id": order_id}

    def test_persists_nothing(self, coordinator, order_id):
        coordinator.initiate_payment(order_id, "17.00")
        order = _order(order_id)
        assert order.payment_status == PaymentStatus.PENDING.value
        assert _payments(order_id) == []

    def test_amount_mismatch(self, coordinator, order_id, gateway):
        with pytest.raises(ValidationError):
            coordinator.initiate_payment(order_id, "16.99")
        assert gateway.calls == []

    def test_unknown_order(self, coordinator):
        with pytest.raises(NotFoundError):
            coordinator.initiate_payment("missing", "1.00")

    def test_already_paid(self, coordinator, order_id):
        coordinator.record_payment_outcome(order_id, "txn-001", "17.00", succeeded=True)
        with pytest.raises(AlreadyPaidError):
            coordinator.initiate_payment(order_id, "17.00")

    def test_cancelled_order(self, coordinator, order_id):
        coordinator.advance_order_status(order_id, "CANCELLED")
        with pytest.raises(InvalidTransitionError):
            coordinator.initiate_payment(order_id, "17.00")

    def test_gateway_failure_leaves_order_pending(self, coordinator, order_id, gateway):
        gateway.configure(should_succeed=False, failure_reason="Stripe is down")
        with pytest.raises(GatewayError):
            coordinator.initiate_payment(order_id, "17.00")
        assert _order(order_id).payment_status == PaymentStatus.PENDING.value

    def test_gateway_timeout(self, coordinator, order_id, gateway, monkeypatch):
        monkeypatch.setenv("GATEWAY_TIMEOUT_SECONDS", "0.05")
        reset_settings()
        gateway.configure(should_succeed=True, delay=0.5)
        with pytest.raises(GatewayError):
            coordinator.initiate_payment(order_id, "17.00")


class TestSuccessfulPayment:
    def test_completes_and_confirms(self, coordinator, order_id):
        outcome = coordinator.record_payment_outcome(order_id, "txn-001", Decimal("17.00"), succeeded=True)
        assert outcome == PaymentOutcome.COMPLETED

        order = _order(order_id)
        assert order.payment_status == PaymentStatus.COMPLETED.value
        assert order.order_status == OrderStatus.CONFIRMED.value

        payments = _payments(order_id)
        assert len(payments) == 1
        assert payments[0].transaction_id == "txn-001"
        assert payments[0].payment_status == PaymentRecordStatus.COMPLETED.value
        assert payments[0].amount_cents == 1700

    def test_duplicate_callback_is_noop(self, coordinator, order_id):
        coordinator.record_payment_outcome(order_id, "txn-001", "17.00", succeeded=True)
        outcome = coordinator.record_payment_outcome(order_id, "txn-001", "17.00", succeeded=True)
        assert outcome == PaymentOutcome.DUPLICATE
        assert len(_payments(order_id)) == 1

    def test_late_failure_after_success_is_duplicate(self, coordinator, order_id):
        coordinator.record_payment_outcome(order_id, "txn-001", "17.00", succeeded=True)
        outcome = coordinator.record_payment_outcome(order_id, "txn-002", "17.00", succeeded=False)
        assert outcome == PaymentOutcome.DUPLICATE
        assert _order(order_id).order_status == OrderStatus.CONFIRMED.value

    def test_uses_gateway_name(self, coordinator, order_id):
        coordinator.record_payment_outcome(order_id, "txn-001", "17.00", succeeded=True)
        assert _payments(order_id)[0].gateway == "FAKE"


class TestFailedPayment:
    def test_fails_and_cancels(self, coordinator, order_id):
        outcome = coordinator.record_payment_outcome(
            order_id, "txn-001", "17.00", succeeded=False, failure_reason="Card declined"
        )
        assert outcome == PaymentOutcome.FAILED

        order = _order(order_id)
        assert order.payment_status == PaymentStatus.FAILED.value
        assert order.order_status == OrderStatus.CANCELLED.value

        payment = _payments(order_id)[0]
        assert payment.payment_status == PaymentRecordStatus.FAILED.value
        assert payment.failure_reason == "Card declined"

    def test_default_failure_reason(self, coordinator, order_id):
        coordinator.record_payment_outcome(order_id, "txn-001", "17.00", succeeded=False)
        assert _payments(order_id)[0].failure_reason == "Payment failed"

    def test_repeated_failure_is_duplicate(self, coordinator, order_id):
        coordinator.record_payment_outcome(order_id, "txn-001", "17.00", succeeded=False)
        outcome = coordinator.record_payment_outcome(order_id, "txn-001", "17.00", succeeded=False)
        assert outcome == PaymentOutcome.DUPLICATE
        assert len(_payments(order_id)) == 1

    def test_success_after_failure_rejected(self, coordinator, order_id):
        coordinator.record_payment_outcome(order_id, "txn-001", "17.00", succeeded=False)
        with pytest.raises(InvalidTransitionError):
            coordinator.record_payment_outcome(order_id, "txn-002", "17.00", succeeded=True)


class TestCallbackValidation:
    def test_amount_mismatch_changes_nothing(self, coordinator, order_id):
        with pytest.raises(ValidationError):
            coordinator.record_payment_outcome(order_id, "txn-001", "1.00", succeeded=True)
        assert _order(order_id).payment_status == PaymentStatus.PENDING.value
        assert _payments(order_id) == []

    def test_amount_mismatch_checked_before_duplicate(self, coordinator, order_id):
        coordinator.record_payment_outcome(order_id, "txn-001", "17.00", succeeded=True)
        with pytest.raises(ValidationError):
            coordinator.record_payment_outcome(order_id, "txn-001", "1.00", succeeded=True)

    def test_more_than_two_decimals(self, coordinator, order_id):
        with pytest.raises(ValidationError):
            coordinator.record_payment_outcome(order_id, "txn-001", "17.001", succeeded=True)

    def test_blank_transaction_id(self, coordinator, order_id):
        with pytest.raises(ValidationError):
            coordinator.record_payment_outcome(order_id, "  ", "17.00", succeeded=True)

    def test_unknown_order(self, coordinator):
        with pytest.raises(NotFoundError):
            coordinator.record_payment_outcome("missing", "txn-001", "17.00", succeeded=True)


class TestConcurrentCallbacks:
    def test_only_one_success_is_applied(self, coordinator, order_id):
        outcomes = []
        errors = []
        barrier = threading.Barrier(6)

        def deliver(n):
            barrier.wait()
            try:
                with ordering.domain_context():
                    outcomes.append(coordinator.record_payment_outcome(order_id, f"txn-{n}", "17.00", succeeded=True))
            except Exception as exc:  # noqa: BLE001
                errors.append(exc)

        threads = [threading.Thread(target=deliver, args=(n,)) for n in range(6)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert outcomes.count(PaymentOutcome.COMPLETED) == 1
        assert outcomes.count(PaymentOutcome.DUPLICATE) == 5
        assert len(_payments(order_id)) == 1
        assert len(order_locks) == 0
