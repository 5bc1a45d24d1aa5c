"""Application tests for the Cart Store: catalog pricing, per-owner carts and reads."""

import threading
from decimal import Decimal

import pytest
from ordering.cart.cart import Cart
from ordering.cart.store import CartStore
from ordering.config import reset_settings
from ordering.domain import ordering
from ordering.exceptions import CatalogUnavailableError, NotFoundError
from ordering.utils.locks import cart_locks
from protean import current_domain
from protean.exceptions import ValidationError


@pytest.fixture
def store():
    return CartStore()


class TestAddItem:
    def test_creates_cart_on_first_add(self, store):
        line_id = store.add_item("cust-001", "burger", 2)
        cart = current_domain.repository_for(Cart).get("cust-001")
        assert len(cart.lines) == 1
        assert str(cart.lines[0].id) == line_id

    def test_captures_catalog_price(self, store):
        store.add_item("cust-001", "burger", 2)
        snapshot = store.snapshot("cust-001")
        assert snapshot.lines[0].unit_price == Decimal("8.50")
        assert snapshot.lines[0].line_subtotal == Decimal("17.00")
        assert snapshot.lines[0].name == "Classic Burger"

    def test_same_item_merges(self, store):
        first = store.add_item("cust-001", "burger", 1)
        second = store.add_item("cust-001", "burger", 2)
        snapshot = store.snapshot("cust-001")
        assert first == second
        assert len(snapshot.lines) == 1
        assert snapshot.lines[0].quantity == 3

    def test_later_price_change_does_not_touch_existing_line(self, store, catalog):
        store.add_item("cust-001", "burger", 1)
        catalog.set_item("burger", "12.00", "Classic Burger")
        store.add_item("cust-001", "burger", 1)
        assert store.snapshot("cust-001").lines[0].unit_price == Decimal("8.50")

    @pytest.mark.parametrize("quantity", [0, -2])
    def test_rejects_non_positive_quantity(self, store, catalog, quantity):
        with pytest.raises(ValidationError):
            store.add_item("cust-001", "burger", quantity)
        assert catalog.lookups == []

    def test_unknown_menu_item(self, store):
        with pytest.raises(NotFoundError):
            store.add_item("cust-001", "pizza", 1)

    def test_slow_catalog_times_out(self, store, catalog, monkeypatch):
        monkeypatch.setenv("CATALOG_TIMEOUT_SECONDS", "0.05")
        reset_settings()
        catalog.delay = 0.5
        with pytest.raises(CatalogUnavailableError):
            store.add_item("cust-001", "burger", 1)

    def test_carts_are_per_owner(self, store):
        store.add_item("cust-001", "burger", 1)
        store.add_item("cust-002", "fries", 3)
        assert store.snapshot("cust-001").lines[0].menu_item_id == "burger"
        assert store.snapshot("cust-002").lines[0].quantity == 3


class TestAdjustQuantity:
    def test_adjust(self, store):
        store.add_item("cust-001", "burger", 1)
        store.adjust_quantity("cust-001", "burger", 2)
        assert store.snapshot("cust-001").lines[0].quantity == 3

    def test_adjust_to_zero_removes_line(self, store):
        store.add_item("cust-001", "burger", 1)
        store.adjust_quantity("cust-001", "burger", -1)
        assert store.snapshot("cust-001").is_empty

    def test_zero_delta_rejected(self, store):
        store.add_item("cust-001", "burger", 1)
        with pytest.raises(ValidationError):
            store.adjust_quantity("cust-001", "burger", 0)

    def test_missing_cart(self, store):
        with pytest.raises(NotFoundError):
            store.adjust_quantity("nobody", "burger", 1)

    def test_missing_line(self, store):
        store.add_item("cust-001", "burger", 1)
        with pytest.raises(NotFoundError):
            store.adjust_quantity("cust-001", "fries", 1)


class TestRemoveItem:
    def test_remove(self, store):
        line_id = store.add_item("cust-001", "burger", 1)
        store.add_item("cust-001", "fries", 1)
        store.remove_item("cust-001", line_id)
        snapshot = store.snapshot("cust-001")
        assert [line.menu_item_id for line in snapshot.lines] == ["fries"]

    def test_line_of_another_owner(self, store):
        line_id = store.add_item("cust-001", "burger", 1)
        store.add_item("cust-002", "fries", 1)
        with pytest.raises(NotFoundError):
            store.remove_item("cust-002", line_id)


class TestClearAndSnapshot:
    def test_clear(self, store):
        store.add_item("cust-001", "burger", 1)
        store.clear("cust-001")
        assert store.snapshot("cust-001").is_empty

    def test_clear_is_idempotent(self, store):
        store.add_item("cust-001", "burger", 1)
        store.clear("cust-001")
        store.clear("cust-001")
        store.clear("never-had-a-cart")

    def test_snapshot_total(self, store):
        store.add_item("cust-001", "burger", 2)
        store.add_item("cust-001", "cola", 1)
        assert store.snapshot("cust-001").total == Decimal("18.99")

    def test_snapshot_without_cart(self, store):
        with pytest.raises(NotFoundError):
            store.snapshot("nobody")

    def test_locks_are_released(self, store):
        store.add_item("cust-001", "burger", 1)
        assert len(cart_locks) == 0


class TestConcurrentMutations:
    def test_parallel_adds_for_one_owner_are_not_lost(self, store):
        errors = []

        def add():
            try:
                with ordering.domain_context():
                    store.add_item("cust-001", "fries", 1)
            except Exception as exc:  # noqa: BLE001
                errors.append(exc)

        threads = [threading.Thread(target=add) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        snapshot = store.snapshot("cust-001")
        assert len(snapshot.lines) == 1
        assert snapshot.lines[0].quantity == 8
