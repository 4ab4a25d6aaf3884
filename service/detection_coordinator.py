"""Qt adapter around ScanOrchestrator.

Turns every scan_completed batch into one detection cycle and re-emits
worker-thread callbacks as Qt signals.
"""

import logging
from typing import List, Optional

from PySide6.QtCore import QObject, Signal

from core.config import Config
from core.detector import HybridDetector
from core.models import FileRecord, describe_reconversion, describe_result
from core.notification import NotificationInvoker
from core.reconversion import ReconversionInvoker
from core.scan_orchestrator import ScanCycle, ScanOrchestrator

logger = logging.getLogger(__name__)


class DetectionCoordinator(QObject):
    """Coordinates detection cycles and the follow-up actions."""

    detection_finished = Signal(object)  # FileRecord
    cycle_finished = Signal(object)  # ScanCycle
    status_updated = Signal(str)

    def __init__(
        self,
        config: Config,
        detector: Optional[HybridDetector] = None,
        notifier: Optional[NotificationInvoker] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            config: Application configuration
            detector: Detector to use; built from config when omitted
            notifier: Batch notifier; built from config when omitted
            parent: Optional parent QObject
        """
        super().__init__(parent)
        self._config = config

        if notifier is None:
            notifier = NotificationInvoker(config)
        notifier.set_status_sink(self.status_updated.emit)

        if detector is None:
            reconverter = None
            if config.enable_reconversion:
                reconverter = ReconversionInvoker(config, status_sink=self.status_updated.emit)
            detector = HybridDetector(config, reconverter=reconverter)

        self._orchestrator = ScanOrchestrator(
            detector,
            notifier=notifier,
            max_workers=config.detection_workers,
            on_detection=self._on_detection,
            on_cycle_finished=self._on_cycle_finished,
        )

    @property
    def orchestrator(self) -> ScanOrchestrator:
        return self._orchestrator

    def on_scan_completed(self, records: List[FileRecord]) -> None:
        """Slot for ScanMonitor.scan_completed."""
        self.start_cycle(records)

    def start_cycle(self, records: List[FileRecord]) -> Optional[ScanCycle]:
        if self._orchestrator.is_closed:
            logger.debug("Coordinator shut down, dropping %d file(s)", len(records))
            return None
        cycle = self._orchestrator.start_cycle(records)
        if cycle.total:
            self.status_updated.emit(f"Checking {cycle.total} file(s)")
        return cycle

    def shutdown(self, wait: bool = True) -> None:
        self._orchestrator.shutdown(wait=wait)

    # ── Worker-thread callbacks ──────────────────────────────────────

    def _on_detection(self, record: FileRecord) -> None:
        message = f"{record.status_icon} {record.name}: {describe_result(record.detection_result)}"
        if record.error_message:
            message += f" ({record.error_message})"
        if record.is_suspicious:
            message += f", reconversion {describe_reconversion(record.reconversion_status)}"
        self.status_updated.emit(message)
        self.detection_finished.emit(record)

    def _on_cycle_finished(self, cycle: ScanCycle) -> None:
        self.status_updated.emit(
            f"Scan finished: {len(cycle.suspicious)} of {cycle.total} file(s) suspicious"
        )
        self.cycle_finished.emit(cycle)
