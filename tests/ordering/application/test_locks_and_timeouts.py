"""Tests for per-key locking and bounded external calls."""

import threading
import time

import pytest
from ordering.exceptions import CatalogUnavailableError, GatewayError
from ordering.utils.locks import KeyedLocks
from ordering.utils.timeouts import call_with_timeout


class TestKeyedLocks:
    def test_same_key_is_serialized(self):
        locks = KeyedLocks("test")
        active = []
        overlaps = []

        def work():
            with locks.hold("a"):
                active.append(1)
                if len(active) > 1:
                    overlaps.append(True)
                time.sleep(0.01)
                active.pop()

        threads = [threading.Thread(target=work) for _ in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert overlaps == []

    def test_different_keys_do_not_block(self):
        locks = KeyedLocks("test")
        entered = threading.Event()

        def other():
            with locks.hold("b"):
                entered.set()

        with locks.hold("a"):
            thread = threading.Thread(target=other)
            thread.start()
            assert entered.wait(1.0)
            thread.join()

    def test_entries_are_released(self):
        locks = KeyedLocks("test")
        with locks.hold("a"):
            assert len(locks) == 1
        assert len(locks) == 0

    def test_released_on_error(self):
        locks = KeyedLocks("test")
        with pytest.raises(RuntimeError):
            with locks.hold("a"):
                raise RuntimeError("boom")
        assert len(locks) == 0


class TestCallWithTimeout:
    def test_returns_result(self):
        assert call_with_timeout(lambda: 42, timeout=1.0, error_cls=GatewayError, operation="answer") == 42

    def test_times_out(self):
        with pytest.raises(GatewayError, match="timed out"):
            call_with_timeout(lambda: time.sleep(0.5), timeout=0.05, error_cls=GatewayError, operation="slow")

    def test_typed_error_passes_through(self):
        def fail():
            raise CatalogUnavailableError("catalog down")

        with pytest.raises(CatalogUnavailableError, match="catalog down"):
            call_with_timeout(fail, timeout=1.0, error_cls=CatalogUnavailableError, operation="lookup")

    def test_other_errors_are_wrapped(self):
        def fail():
            raise ConnectionError("reset")

        with pytest.raises(GatewayError) as exc:
            call_with_timeout(fail, timeout=1.0, error_cls=GatewayError, operation="charge")
        assert isinstance(exc.value.__cause__, ConnectionError)
