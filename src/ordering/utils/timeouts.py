"""Bounded calls to external collaborators.

Adapters set their own transport timeouts where they can; this wrapper is the
outer bound for every catalog and gateway call, whatever adapter is plugged in.
"""

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")

_executor = ThreadPoolExecutor(max_workers=8, thread_name_prefix="external-call")


def call_with_timeout(
    fn: Callable[[], T],
    *,
    timeout: float,
    error_cls: type[Exception],
    operation: str,
) -> T:
    """Run ``fn`` and return its result, or raise ``error_cls`` after ``timeout`` seconds.

    Exceptions that are already ``error_cls`` propagate unchanged; any other
    failure is wrapped so callers only ever see the typed error.
    """
    future = _executor.submit(fn)
    try:
        return future.result(timeout=timeout)
    except FutureTimeout:
        future.cancel()
        logger.warning("External call timed out", operation=operation, timeout=timeout)
        raise error_cls(f"{operation} timed out after {timeout}s") from None
    except error_cls:
        raise
    except Exception as exc:
        logger.error("External call failed", operation=operation, error=str(exc))
        raise error_cls(f"{operation} failed: {exc}") from exc
