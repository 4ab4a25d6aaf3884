"""Qt adapter for PDF discovery.

Runs the initial full scan, re-arms a single-shot QTimer for fixed-delay
incremental scans, and owns the background watch thread. Every batch of
newly found files is emitted once through scan_completed.
"""

import logging
import threading
from typing import List, Optional

from PySide6.QtCore import QObject, QTimer, Signal

from core.config import Config
from core.config_validator import ConfigValidator
from core.directory_watcher import DirectoryScanner
from core.models import FileRecord

logger = logging.getLogger(__name__)

_WATCH_JOIN_SECONDS = 5.0


class ScanMonitor(QObject):
    """Watch monitor_dir and emit batches of PDFs to be checked.

    Signals:
        scan_completed(list): One list of FileRecord per scan or watch event.
        status_updated(str): Human-readable progress messages.
    """

    scan_completed = Signal(object)
    status_updated = Signal(str)

    def __init__(
        self,
        config: Config,
        scanner: Optional[DirectoryScanner] = None,
        enable_watch: bool = True,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._config = config
        self._scanner = scanner or DirectoryScanner(config)
        self._enable_watch = enable_watch
        self._running = False

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._on_scheduled_scan)

        self._stop_event = threading.Event()
        self._watch_thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def scanner(self) -> DirectoryScanner:
        return self._scanner

    def start(self) -> bool:
        """Validate settings, scan everything once, then keep watching.

        Returns False (and stays stopped) when the settings are unusable.
        """
        if self._running:
            logger.debug("ScanMonitor already running")
            return True

        is_valid, error = ConfigValidator.validate_for_monitoring(self._config)
        if not is_valid:
            logger.error("Cannot start monitoring: %s", error)
            self.status_updated.emit(f"Monitoring not started: {error}")
            return False

        self._running = True
        self._stop_event.clear()
        logger.info("ScanMonitor started: %s", self._config.monitor_dir)
        self.status_updated.emit(f"Monitoring {self._config.monitor_dir}")

        self._emit_batch(self._scanner.scan_all(), "initial scan")
        self._arm_timer()
        if self._enable_watch:
            self._start_watch_thread()
        return True

    def stop(self) -> None:
        """Stop the timer and the watch thread. Safe to call twice."""
        self._timer.stop()
        self._stop_event.set()

        thread, self._watch_thread = self._watch_thread, None
        if thread is not None and thread.is_alive():
            thread.join(timeout=_WATCH_JOIN_SECONDS)
            if thread.is_alive():
                logger.warning("Watch thread did not stop within %.0fs", _WATCH_JOIN_SECONDS)

        if self._running:
            logger.info("ScanMonitor stopped")
            self.status_updated.emit("Monitoring stopped")
        self._running = False

    def rescan_all(self) -> List[FileRecord]:
        """Forget every known file and check the whole tree again."""
        logger.info("Full rescan requested")
        self._scanner.registry.clear()
        records = self._scanner.scan_all()
        self._emit_batch(records, "full rescan")
        return records

    # ── Internal ─────────────────────────────────────────────────────

    def _arm_timer(self) -> None:
        if self._running:
            self._timer.start(int(self._config.scan_interval_seconds * 1000))

    def _on_scheduled_scan(self) -> None:
        if not self._running:
            return
        try:
            self._emit_batch(self._scanner.scan_for_new(), "scheduled scan")
        except Exception:
            logger.exception("Scheduled scan failed")
        finally:
            self._arm_timer()

    def _start_watch_thread(self) -> None:
        self._watch_thread = threading.Thread(
            target=self._scanner.watch_loop,
            args=(self._stop_event, self._on_watched_file),
            name="pdf-watch",
            daemon=True,
        )
        self._watch_thread.start()

    def _on_watched_file(self, record: FileRecord) -> None:
        """Called on the watch thread; the signal is queued to receivers."""
        self._emit_batch([record], "file watch")

    def _emit_batch(self, records: List[FileRecord], source: str) -> None:
        if not records:
            logger.debug("%s: no files to check", source)
            return
        logger.info("%s: %d file(s) to check", source, len(records))
        self.status_updated.emit(f"{source}: {len(records)} file(s) queued")
        self.scan_completed.emit(list(records))
