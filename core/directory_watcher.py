"""Pure-logic PDF discovery: directory walks, a known-files registry, and
an event-driven watch loop.

No Qt imports. The service adapter (service/scan_monitor.py) schedules
the periodic scans and owns the watch thread.
"""

import logging
import os
import queue
import threading
import time
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from core.config import Config
from core.models import FileRecord

logger = logging.getLogger(__name__)

_PDF_SUFFIX = ".pdf"
_EVENT_POLL_SECONDS = 0.5

NewFileCallback = Callable[[FileRecord], None]


def is_pdf_name(name: str) -> bool:
    """True for names ending in .pdf, any case."""
    return name.lower().endswith(_PDF_SUFFIX)


def is_within_age_window(
    modified_ts: float, age_hours: float, now_ts: Optional[float] = None
) -> bool:
    """True if a file modified at modified_ts is no older than age_hours.

    age_hours <= 0 means no limit.
    """
    if age_hours <= 0:
        return True
    now_ts = time.time() if now_ts is None else now_ts
    return now_ts - modified_ts <= age_hours * 3600


class FileRegistry:
    """Thread-safe map of absolute path to FileRecord.

    Shared by the initial scan, the scheduled scans and the watch thread.
    A path is registered at most once; later registrations return the
    existing record.
    """

    def __init__(self) -> None:
        self._records: Dict[Path, FileRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._records

    def register(self, record: FileRecord) -> FileRecord:
        """Store record unless its path is known; return the live record."""
        with self._lock:
            return self._records.setdefault(record.path, record)

    def register_new(self, record: FileRecord) -> bool:
        """Store record only if its path is unknown. True if it was stored."""
        with self._lock:
            if record.path in self._records:
                return False
            self._records[record.path] = record
            return True

    def records(self) -> List[FileRecord]:
        with self._lock:
            return list(self._records.values())

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
        logger.debug("FileRegistry cleared")


class _PDFEventHandler(FileSystemEventHandler):
    """Forward create/move-into events for PDFs onto a queue."""

    def __init__(self, events: "queue.Queue[Path]") -> None:
        super().__init__()
        self._events = events

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory and is_pdf_name(os.fsdecode(event.src_path)):
            self._events.put(Path(os.fsdecode(event.src_path)))

    def on_moved(self, event: FileSystemEvent) -> None:
        dest = os.fsdecode(getattr(event, "dest_path", "") or "")
        if not event.is_directory and dest and is_pdf_name(dest):
            self._events.put(Path(dest))


class DirectoryScanner:
    """Find PDFs under the configured root and track which are known."""

    def __init__(self, config: Config, registry: Optional[FileRegistry] = None) -> None:
        self._config = config
        self._registry = registry if registry is not None else FileRegistry()
        self._settle_timers: List[threading.Timer] = []
        self._timers_lock = threading.Lock()

    @property
    def registry(self) -> FileRegistry:
        return self._registry

    @property
    def root(self) -> Path:
        return Path(self._config.monitor_dir)

    # ── Polling ──────────────────────────────────────────────────────

    def scan_all(self) -> List[FileRecord]:
        """Return every matching PDF, registering the ones not yet known.

        Known paths yield their existing record, so repeated calls never
        duplicate registry entries.
        """
        found = [self._registry.register(record) for record in self._walk()]
        logger.info("Scan of %s found %d PDF(s)", self.root, len(found))
        return found

    def scan_for_new(self) -> List[FileRecord]:
        """Return only matching PDFs not already in the registry."""
        new_files = [record for record in self._walk() if self._registry.register_new(record)]
        if new_files:
            logger.info("Found %d new PDF(s) in %s", len(new_files), self.root)
        else:
            logger.debug(
                "No new PDFs in %s, %d known", self.root, len(self._registry)
            )
        return new_files

    def matches(self, path: Path, now_ts: Optional[float] = None) -> bool:
        """Extension and age-window filter against the file on disk."""
        if not is_pdf_name(path.name):
            return False
        try:
            modified = path.stat().st_mtime
        except OSError:
            return False
        return is_within_age_window(modified, self._config.file_age_hours, now_ts)

    def _walk(self) -> Iterator[FileRecord]:
        root = self.root
        if not root.is_dir():
            logger.warning("Monitor directory does not exist: %s", root)
            return

        now_ts = time.time()
        for dirpath, dirnames, filenames in os.walk(root, onerror=self._on_walk_error):
            if not self._config.include_subdirectories:
                dirnames.clear()
            dirnames.sort()
            for filename in sorted(filenames):
                path = Path(dirpath) / filename
                if not self.matches(path, now_ts):
                    continue
                record = self._make_record(path)
                if record is not None:
                    yield record

    @staticmethod
    def _on_walk_error(exc: OSError) -> None:
        logger.error("Cannot read %s: %s", exc.filename, exc)

    @staticmethod
    def _make_record(path: Path) -> Optional[FileRecord]:
        try:
            return FileRecord.from_path(path)
        except OSError as exc:
            logger.warning("File vanished while scanning: %s (%s)", path, exc)
            return None

    # ── Event watch ──────────────────────────────────────────────────

    def watch_loop(self, stop_event: threading.Event, on_new_file: NewFileCallback) -> None:
        """Emit newly created PDFs until stop_event is set.

        Blocks the calling thread. A create event is only acted on after
        the settle delay, and only if the file still exists and is inside
        the age window. Observer failures are logged and the observer is
        restarted after watch_retry_seconds.
        """
        events: "queue.Queue[Path]" = queue.Queue()
        logger.info("Watching %s for new PDFs", self.root)

        while not stop_event.is_set():
            observer = Observer()
            try:
                observer.schedule(
                    _PDFEventHandler(events),
                    str(self.root),
                    recursive=self._config.include_subdirectories,
                )
                observer.start()
                self._drain_events(events, observer, stop_event, on_new_file)
            except Exception as exc:
                if stop_event.is_set():
                    break
                logger.error("File watch failed on %s: %s", self.root, exc)
            finally:
                self._stop_observer(observer)

            if not stop_event.is_set():
                logger.info(
                    "Restarting file watch in %.1fs", self._config.watch_retry_seconds
                )
                stop_event.wait(self._config.watch_retry_seconds)

        self._cancel_settle_timers()
        logger.info("File watch on %s stopped", self.root)

    def handle_created(self, path: Path, on_new_file: NewFileCallback) -> Optional[FileRecord]:
        """Re-check a settled file and emit it if it is a new match."""
        if not path.exists() or not self.matches(path):
            logger.debug("Ignoring settled file %s", path)
            return None

        record = self._make_record(path)
        if record is None or not self._registry.register_new(record):
            return None

        logger.info("New PDF detected: %s", record.name)
        on_new_file(record)
        return record

    def _drain_events(
        self,
        events: "queue.Queue[Path]",
        observer: Observer,
        stop_event: threading.Event,
        on_new_file: NewFileCallback,
    ) -> None:
        while not stop_event.is_set():
            if not observer.is_alive():
                raise RuntimeError("watch observer stopped unexpectedly")
            try:
                path = events.get(timeout=_EVENT_POLL_SECONDS)
            except queue.Empty:
                continue
            if path in self._registry:
                continue
            self._schedule_settle(path, stop_event, on_new_file)

    def _schedule_settle(
        self, path: Path, stop_event: threading.Event, on_new_file: NewFileCallback
    ) -> None:
        def settled() -> None:
            if stop_event.is_set():
                return
            try:
                self.handle_created(path, on_new_file)
            except Exception as exc:
                logger.error("Handling new file %s failed: %s", path, exc)

        timer = threading.Timer(self._config.watch_settle_seconds, settled)
        timer.daemon = True
        with self._timers_lock:
            self._settle_timers = [t for t in self._settle_timers if t.is_alive()]
            self._settle_timers.append(timer)
        timer.start()

    def _cancel_settle_timers(self) -> None:
        with self._timers_lock:
            timers, self._settle_timers = self._settle_timers, []
        for timer in timers:
            timer.cancel()

    @staticmethod
    def _stop_observer(observer: Observer) -> None:
        if observer.is_alive():
            observer.stop()
            observer.join(timeout=5)

