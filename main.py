"""PDF Sentinel entry point: composition root, no business logic."""

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from PySide6.QtCore import QCoreApplication, QTimer

from core.config import CONFIG_PATH, Config, load_config
from core.config_validator import ConfigValidator
from core.directory_watcher import DirectoryScanner
from core.notification import NotificationInvoker
from core.reconversion import ReconversionInvoker
from service.detection_coordinator import DetectionCoordinator
from service.scan_monitor import ScanMonitor

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(threadName)s] %(name)s: %(message)s"
# Lets the Python interpreter run signal handlers while Qt owns the loop.
_SIGNAL_POLL_MS = 500


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pdf-sentinel",
        description="Watch a directory tree and flag PDFs that were rendered empty.",
    )
    parser.add_argument(
        "--config", type=Path, default=CONFIG_PATH,
        help=f"settings file (default: {CONFIG_PATH})",
    )
    parser.add_argument("--verbose", action="store_true", help="log at DEBUG level")
    parser.add_argument(
        "--once", action="store_true", help="check every PDF once, then exit"
    )
    parser.add_argument(
        "--test-notification", action="store_true",
        help="send a test notification and exit",
    )
    parser.add_argument(
        "--test-reconversion", metavar="TASKID",
        help="run the reconversion script for TASKID and exit",
    )
    return parser.parse_args(argv)


def run_once(config: Config) -> int:
    """Scan and check every PDF a single time."""
    is_valid, error = ConfigValidator.validate_for_monitoring(config)
    if not is_valid:
        logger.error("Cannot scan: %s", error)
        return 2

    coordinator = DetectionCoordinator(config)
    try:
        records = DirectoryScanner(config).scan_all()
        cycle = coordinator.start_cycle(records)
        if cycle is not None:
            cycle.wait()
            coordinator.orchestrator.wait_for_reconversions()
    finally:
        coordinator.shutdown()

    suspicious = [record for record in records if record.is_suspicious]
    failed = [record for record in records if record.is_failed]
    for record in suspicious:
        logger.warning("Suspected empty: %s (%s)", record.path, record.formatted_size)
    for record in failed:
        logger.error("Could not check %s: %s", record.path, record.error_message)
    logger.info(
        "Checked %d PDF(s): %d normal, %d suspicious, %d failed",
        len(records),
        sum(1 for record in records if record.is_normal),
        len(suspicious),
        len(failed),
    )
    return 1 if suspicious else 0


def run_monitor(config: Config) -> int:
    """Monitor until SIGINT or SIGTERM."""
    app = QCoreApplication(sys.argv)
    app.setApplicationName("PDF Sentinel")
    app.setOrganizationName("PDF Sentinel")
    app.setApplicationVersion("0.1.0")

    monitor = ScanMonitor(config)
    coordinator = DetectionCoordinator(config)
    monitor.scan_completed.connect(coordinator.on_scan_completed)
    monitor.status_updated.connect(lambda message: logger.debug("monitor: %s", message))
    coordinator.status_updated.connect(lambda message: logger.debug("status: %s", message))

    def shutdown() -> None:
        monitor.stop()
        coordinator.shutdown(wait=True)

    app.aboutToQuit.connect(shutdown)

    def request_quit(signum: int, _frame) -> None:
        logger.info("Received signal %d, shutting down", signum)
        app.quit()

    signal.signal(signal.SIGINT, request_quit)
    signal.signal(signal.SIGTERM, request_quit)
    ticker = QTimer()
    ticker.timeout.connect(lambda: None)
    ticker.start(_SIGNAL_POLL_MS)

    if not monitor.start():
        coordinator.shutdown(wait=False)
        return 2
    return app.exec()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
    )
    config = load_config(args.config)

    if args.test_notification:
        return 0 if NotificationInvoker(config).test_notification() else 1
    if args.test_reconversion is not None:
        invoker = ReconversionInvoker(config)
        return 0 if invoker.test_reconversion(args.test_reconversion) else 1
    if args.once:
        return run_once(config)
    return run_monitor(config)


if __name__ == "__main__":
    sys.exit(main())
