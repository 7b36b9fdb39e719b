"""Background worker pool for concurrent notification processing."""

import logging
import queue
import threading
from typing import Optional

from .ingress import IncomingMessage, IngressOutcome, NotificationIngress

logger = logging.getLogger(__name__)


class IngressWorkerPool:
    """Processes notifications on worker threads, unordered.

    Usage:
        pool = IngressWorkerPool(ingress, num_workers=4)
        pool.start()

        # From the transport callback:
        if not pool.submit(message):
            ...  # leave the message unacknowledged for redelivery

        # On shutdown:
        pool.stop()
    """

    def __init__(
        self,
        ingress: NotificationIngress,
        num_workers: int = 4,
        max_size: int = 1000,
        drain_timeout: float = 10.0,
    ):
        """Initialize the worker pool.

        Args:
            ingress: Ingress that handles each message.
            num_workers: Number of worker threads.
            max_size: Maximum number of pending messages.
            drain_timeout: Seconds to wait for pending messages on shutdown.
        """
        self.ingress = ingress
        self.num_workers = num_workers
        self.max_size = max_size
        self.drain_timeout = drain_timeout

        self._queue: queue.Queue[Optional[IncomingMessage]] = queue.Queue(maxsize=max_size)
        self._workers: list[threading.Thread] = []
        self._running = False
        self._lock = threading.Lock()

        # Stats
        self.processed = 0
        self.failed = 0
        self.skipped = 0
        self.rejected = 0

    def start(self) -> None:
        """Start the worker threads."""
        with self._lock:
            if self._running:
                return
            self._running = True

            for i in range(self.num_workers):
                worker = threading.Thread(
                    target=self._worker_loop,
                    name=f"advisory-ingress-worker-{i}",
                    daemon=True,
                )
                worker.start()
                self._workers.append(worker)

        logger.debug("Ingress worker pool started with %d workers", self.num_workers)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop accepting messages, drain the queue and join the workers.

        Args:
            timeout: Max seconds to wait. Uses drain_timeout if None.
        """
        with self._lock:
            if not self._running:
                return
            self._running = False
            timeout = timeout or self.drain_timeout
            workers = list(self._workers)

        # Stop signals queue up behind pending messages
        for _ in workers:
            try:
                self._queue.put(None, timeout=timeout)
            except queue.Full:
                logger.warning("Ingress queue still full on shutdown")
                break

        for worker in workers:
            worker.join(timeout=timeout / max(1, len(workers)))

        with self._lock:
            self._workers.clear()

        logger.info(
            "Ingress worker pool stopped. Processed: %d, Failed: %d, Skipped: %d, Rejected: %d",
            self.processed,
            self.failed,
            self.skipped,
            self.rejected,
        )

    def submit(self, message: IncomingMessage) -> bool:
        """Queue a message for processing.

        Returns:
            True if queued, False if the pool is stopped or full.
        """
        with self._lock:
            if not self._running:
                self.rejected += 1
                logger.warning("Ingress worker pool is not running, rejecting message")
                return False

            try:
                self._queue.put_nowait(message)
                return True
            except queue.Full:
                self.rejected += 1
                logger.warning("Ingress queue full, rejecting message")
                return False

    def join(self) -> None:
        """Block until every queued message has been handled."""
        self._queue.join()

    def _worker_loop(self) -> None:
        while True:
            message = self._queue.get()
            try:
                if message is None:
                    break
                result = self.ingress.process(message)
                with self._lock:
                    if result.outcome == IngressOutcome.PROCESSED:
                        self.processed += 1
                    elif result.outcome == IngressOutcome.FAILED:
                        self.failed += 1
                    else:
                        self.skipped += 1
            except Exception as e:
                with self._lock:
                    self.failed += 1
                logger.error("Ingress worker error: %s", e, exc_info=True)
            finally:
                self._queue.task_done()

    @property
    def pending_count(self) -> int:
        """Number of messages waiting to be processed."""
        return self._queue.qsize()

    @property
    def stats(self) -> dict:
        """Get pool statistics."""
        return {
            "pending": self.pending_count,
            "processed": self.processed,
            "failed": self.failed,
            "skipped": self.skipped,
            "rejected": self.rejected,
        }
