"""Notification dispatcher: background trigger for persisted notifications.

Delivery state lives on the ``Notification`` aggregate. The dispatcher only
moves notification ids from an in-memory queue to a worker thread, which
processes ``DeliverNotification`` for each id inside its own domain context.
A failed attempt is scheduled again for the aggregate's ``next_attempt_at``.

Stopping the worker loses nothing: undelivered notifications stay PENDING or
FAILED in the store and are picked up again by the recovery sweep that runs
when the worker starts and periodically while it idles.
"""

import heapq
import itertools
import queue
import threading
import time
from datetime import UTC, datetime

import structlog
from ordering.notification.delivery import DeliverNotification, RetryNotification
from ordering.notification.notification import UNDELIVERED_STATUSES, Notification, NotificationStatus
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

logger = structlog.get_logger(__name__)


class NotificationDispatcher:
    def __init__(
        self,
        domain=None,
        poll_interval: float = 0.2,
        recovery_interval: float = 60.0,
        queue_size: int = 1000,
    ) -> None:
        self._domain = domain
        self.poll_interval = poll_interval
        self.recovery_interval = recovery_interval

        self._queue: queue.Queue[str] = queue.Queue(maxsize=queue_size)
        self._retries: list[tuple[float, int, str]] = []
        self._sequence = itertools.count()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.RLock()
        self._idle = threading.Condition(self._lock)
        self._pending: set[str] = set()
        self._recovering = False

        self.delivered = 0
        self.abandoned = 0

    @property
    def domain(self):
        if self._domain is None:
            from ordering.domain import ordering

            self._domain = ordering
        return self._domain

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def start(self) -> None:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._stop_event.clear()
            self._recovering = True
            self._thread = threading.Thread(target=self._run, name="notification-dispatcher", daemon=True)
            self._thread.start()
        logger.debug("Notification dispatcher started")

    def stop(self, join: bool = True, timeout: float = 5.0) -> None:
        """Ask the worker to stop and forget in-flight ids; the store keeps their state."""
        self._stop_event.set()
        thread = self._thread
        if join and thread is not None:
            thread.join(timeout)
        with self._idle:
            while True:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    break
            self._retries.clear()
            self._pending.clear()
            self._recovering = False
            self._idle.notify_all()
        logger.debug("Notification dispatcher stopped", pending=len(self._pending))

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # -------------------------------------------------------------------
    # Producer side
    # -------------------------------------------------------------------
    def dispatch(self, notification_id) -> bool:
        """Queue a stored notification for delivery.

        Returns False when the queue is full; the notification then waits in
        the store for the next recovery sweep.
        """
        notification_id = str(notification_id)
        with self._lock:
            if notification_id in self._pending:
                return True
            try:
                self._queue.put_nowait(notification_id)
            except queue.Full:
                logger.warning("Notification queue full, left for recovery", notification_id=notification_id)
                return False
            self._pending.add(notification_id)

        if not self.is_running():
            self.start()
        return True

    def drain(self, timeout: float = 5.0) -> bool:
        """Block until every known notification is sent or abandoned."""
        deadline = time.monotonic() + timeout
        with self._idle:
            while self._pending or self._recovering:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._idle.wait(remaining)
        return True

    def stats(self) -> dict:
        with self._lock:
            return {
                "running": self.is_running(),
                "pending": len(self._pending),
                "scheduled_retries": len(self._retries),
                "delivered": self.delivered,
                "abandoned": self.abandoned,
            }

    # -------------------------------------------------------------------
    # Worker
    # -------------------------------------------------------------------
    def _run(self) -> None:
        with self.domain.domain_context():
            self._recover()
            next_recovery = time.monotonic() + self.recovery_interval

            while not self._stop_event.is_set():
                notification_id = self._next_id()
                if notification_id is not None:
                    self._attempt(notification_id)
                elif time.monotonic() >= next_recovery:
                    self._recover()
                    next_recovery = time.monotonic() + self.recovery_interval

    def _next_id(self) -> str | None:
        with self._lock:
            wait = self.poll_interval
            if self._retries:
                due_at = self._retries[0][0]
                if due_at <= time.monotonic():
                    return heapq.heappop(self._retries)[2]
                wait = min(wait, due_at - time.monotonic())
        try:
            return self._queue.get(timeout=max(wait, 0.0))
        except queue.Empty:
            return None

    def _recover(self) -> None:
        """Queue every PENDING or FAILED notification found in the store."""
        try:
            undelivered = (
                current_domain.repository_for(Notification)
                ._dao.query.filter(status__in=list(UNDELIVERED_STATUSES))
                .limit(None)
                .all()
                .items
            )
        except Exception as e:
            logger.error("Notification recovery sweep failed", error=str(e))
            undelivered = []

        with self._idle:
            for notification in undelivered:
                notification_id = str(notification.id)
                if notification_id in self._pending:
                    continue
                self._pending.add(notification_id)
                self._schedule(notification_id, notification.next_attempt_at)
            self._recovering = False
            self._idle.notify_all()

        if undelivered:
            logger.info("Recovered undelivered notifications", count=len(undelivered))

    def _attempt(self, notification_id: str) -> None:
        try:
            notification = current_domain.repository_for(Notification).get(notification_id)
            if not notification.is_undelivered:
                self._settle(notification_id)
                return
            if NotificationStatus(notification.status) == NotificationStatus.FAILED:
                if not notification.retry_due():
                    self._schedule(notification_id, notification.next_attempt_at)
                    return
                current_domain.process(RetryNotification(notification_id=notification_id), asynchronous=False)
            status = current_domain.process(DeliverNotification(notification_id=notification_id), asynchronous=False)
        except ObjectNotFoundError:
            logger.warning("Queued notification no longer exists", notification_id=notification_id)
            self._settle(notification_id)
            return
        except Exception as e:
            # The record keeps its state; the next recovery sweep resumes it.
            logger.error("Notification delivery errored", notification_id=notification_id, error=str(e))
            self._settle(notification_id)
            return

        if status == NotificationStatus.FAILED.value:
            notification = current_domain.repository_for(Notification).get(notification_id)
            self._schedule(notification_id, notification.next_attempt_at)
            return
        self._settle(notification_id, status)

    def _schedule(self, notification_id: str, next_attempt_at) -> None:
        delay = 0.0
        if next_attempt_at is not None:
            if next_attempt_at.tzinfo is None:
                next_attempt_at = next_attempt_at.replace(tzinfo=UTC)
            delay = max((next_attempt_at - datetime.now(UTC)).total_seconds(), 0.0)
        with self._lock:
            heapq.heappush(self._retries, (time.monotonic() + delay, next(self._sequence), notification_id))

    def _settle(self, notification_id: str, status: str | None = None) -> None:
        with self._idle:
            if status == NotificationStatus.SENT.value:
                self.delivered += 1
            elif status == NotificationStatus.ABANDONED.value:
                self.abandoned += 1
            self._pending.discard(notification_id)
            self._idle.notify_all()


_dispatcher: NotificationDispatcher | None = None
_dispatcher_lock = threading.Lock()


def get_dispatcher() -> NotificationDispatcher:
    """Return the process-wide dispatcher, creating it on first use."""
    global _dispatcher
    with _dispatcher_lock:
        if _dispatcher is None:
            _dispatcher = NotificationDispatcher()
        return _dispatcher


def set_dispatcher(dispatcher: NotificationDispatcher) -> None:
    global _dispatcher
    with _dispatcher_lock:
        _dispatcher = dispatcher


def reset_dispatcher() -> None:
    """Stop and forget the current dispatcher (useful for testing)."""
    global _dispatcher
    with _dispatcher_lock:
        dispatcher, _dispatcher = _dispatcher, None
    if dispatcher is not None:
        dispatcher.stop(join=True, timeout=1.0)
