"""Scan cycles: dispatch detections to a worker pool and join them.

Each call to start_cycle() creates an independent ScanCycle. Workers
count down its pending total under the cycle lock; the single completion
that reaches zero sends the batch notification.
"""

import itertools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from typing import Callable, List, Optional, Sequence, Set

from core.detector import HybridDetector
from core.models import DetectionResult, FileRecord, ReconversionStatus
from core.notification import NotificationInvoker

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 4

_cycle_ids = itertools.count(1)


class ScanCycle:
    """Join state for one batch of records."""

    def __init__(self, records: Sequence[FileRecord]) -> None:
        self.cycle_id = next(_cycle_ids)
        self.records: List[FileRecord] = list(records)
        self.total = len(self.records)
        self.suspicious: List[FileRecord] = []
        self.notified = False
        self.completed = threading.Event()
        self._pending = self.total
        self._lock = threading.Lock()
        if self.total == 0:
            self.completed.set()

    @property
    def pending(self) -> int:
        with self._lock:
            return self._pending

    def record_completion(self, record: FileRecord) -> bool:
        """Count one finished detection. True only for the last one."""
        with self._lock:
            if self._pending <= 0:
                logger.warning(
                    "Cycle %d got an extra completion for %s", self.cycle_id, record.name
                )
                return False
            if record.is_suspicious:
                self.suspicious.append(record)
            self._pending -= 1
            return self._pending == 0

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self.completed.wait(timeout)


class ScanOrchestrator:
    """Run HybridDetector over each scan cycle on a shared thread pool."""

    def __init__(
        self,
        detector: HybridDetector,
        notifier: Optional[NotificationInvoker] = None,
        max_workers: int = DEFAULT_WORKERS,
        on_detection: Optional[Callable[[FileRecord], None]] = None,
        on_cycle_finished: Optional[Callable[[ScanCycle], None]] = None,
    ) -> None:
        self._detector = detector
        self._notifier = notifier
        self._on_detection = on_detection
        self._on_cycle_finished = on_cycle_finished
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_workers), thread_name_prefix="detector"
        )
        self._closed = threading.Event()
        self._reconversions: Set[Future] = set()
        self._reconversions_lock = threading.Lock()

    @property
    def is_closed(self) -> bool:
        return self._closed.is_set()

    def start_cycle(self, records: Sequence[FileRecord]) -> ScanCycle:
        """Dispatch one detection per record and return the cycle handle.

        Raises:
            RuntimeError: If the orchestrator has been shut down.
        """
        if self._closed.is_set():
            raise RuntimeError("ScanOrchestrator is shut down")

        cycle = ScanCycle(records)
        if cycle.total == 0:
            logger.debug("Cycle %d: nothing to detect", cycle.cycle_id)
            return cycle

        logger.info("Cycle %d: detecting %d file(s)", cycle.cycle_id, cycle.total)
        for record in cycle.records:
            self._executor.submit(self._run_detection, cycle, record)
        return cycle

    def wait_for_reconversions(self, timeout: Optional[float] = None) -> bool:
        """Block until queued reconversions finish. False on timeout."""
        with self._reconversions_lock:
            outstanding = set(self._reconversions)
        if not outstanding:
            return True
        _, not_done = wait_futures(outstanding, timeout=timeout)
        return not not_done

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting cycles. Results still in flight are ignored."""
        if self._closed.is_set():
            return
        self._closed.set()
        logger.info("Shutting down detector pool")
        self._executor.shutdown(wait=wait, cancel_futures=True)

    def _run_detection(self, cycle: ScanCycle, record: FileRecord) -> None:
        try:
            self._detector.process(record)
        except Exception as exc:
            logger.exception("Detection worker failed on %s", record.name)
            record.detection_result = DetectionResult.FAILED
            record.error_message = f"detection failed: {exc}"

        if self._closed.is_set():
            logger.debug("Ignoring result for %s after shutdown", record.name)
            return

        if record.reconversion_status is ReconversionStatus.PENDING:
            self._submit_reconversion(record)

        self._emit(self._on_detection, record)

        if cycle.record_completion(record):
            self._finish_cycle(cycle)

    def _submit_reconversion(self, record: FileRecord) -> None:
        try:
            future = self._executor.submit(self._run_reconversion, record)
        except RuntimeError:
            logger.debug("Pool closed, reconversion of %s not queued", record.name)
            return
        with self._reconversions_lock:
            self._reconversions.add(future)
        future.add_done_callback(self._forget_reconversion)

    def _forget_reconversion(self, future: Future) -> None:
        with self._reconversions_lock:
            self._reconversions.discard(future)

    def _run_reconversion(self, record: FileRecord) -> None:
        if self._closed.is_set():
            return
        try:
            self._detector.run_reconversion(record)
        except Exception:
            logger.exception("Reconversion worker failed on %s", record.name)
        self._emit(self._on_detection, record)

    def _finish_cycle(self, cycle: ScanCycle) -> None:
        suspicious = list(cycle.suspicious)
        logger.info(
            "Cycle %d finished: %d of %d file(s) suspicious",
            cycle.cycle_id, len(suspicious), cycle.total,
        )
        try:
            if suspicious and self._notifier is not None:
                cycle.notified = self._notifier.send_batch(suspicious, cycle.total)
        except Exception:
            logger.exception("Batch notification for cycle %d failed", cycle.cycle_id)
        try:
            self._emit(self._on_cycle_finished, cycle)
        finally:
            cycle.completed.set()

    @staticmethod
    def _emit(callback: Optional[Callable], payload) -> None:
        if callback is None:
            return
        try:
            callback(payload)
        except Exception:
            logger.exception("Orchestrator callback failed")
