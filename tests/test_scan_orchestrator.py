"""
Tests for the per-cycle join barrier and batch notification.
"""

import threading
import time
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from conftest import FakeRasterizer, blank_page, text_page, write_pdf
from core.detector import HybridDetector
from core.models import DetectionResult, FileRecord, ReconversionStatus
from core.scan_orchestrator import ScanCycle, ScanOrchestrator

WAIT_SECONDS = 10


def _record(name: str) -> FileRecord:
    return FileRecord(path=Path("/data") / name, name=name, size=100, modified=None)


class StubDetector:
    """Marks every name starting with 'empty' as suspicious."""

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.processed = []
        self.reconverted = []
        self._lock = threading.Lock()

    def process(self, record):
        time.sleep(self.delay)
        if record.name.startswith("empty"):
            record.detection_result = DetectionResult.SUSPICIOUS_BOTH
        elif record.name.startswith("broken"):
            raise RuntimeError("renderer crashed")
        else:
            record.detection_result = DetectionResult.NORMAL
        with self._lock:
            self.processed.append(record)
        return record.detection_result

    def run_reconversion(self, record):
        record.reconversion_status = ReconversionStatus.SUCCESS
        with self._lock:
            self.reconverted.append(record)
        return True


@pytest.fixture
def notifier():
    mock = MagicMock()
    mock.send_batch.return_value = True
    return mock


class TestScanCycle:

    def test_only_last_completion_reports_done(self):
        records = [_record("a.pdf"), _record("b.pdf")]
        cycle = ScanCycle(records)

        assert cycle.record_completion(records[0]) is False
        assert cycle.record_completion(records[1]) is True
        assert cycle.pending == 0

    def test_extra_completion_is_ignored(self):
        record = _record("a.pdf")
        cycle = ScanCycle([record])
        cycle.record_completion(record)

        assert cycle.record_completion(record) is False

    def test_empty_cycle_is_complete_immediately(self):
        assert ScanCycle([]).completed.is_set()

    def test_cycles_get_distinct_ids(self):
        assert ScanCycle([]).cycle_id != ScanCycle([]).cycle_id


class TestScanOrchestrator:

    def test_empty_cycle_fires_nothing(self, notifier):
        finished = []
        orchestrator = ScanOrchestrator(StubDetector(), notifier, on_cycle_finished=finished.append)
        try:
            cycle = orchestrator.start_cycle([])
        finally:
            orchestrator.shutdown()

        assert cycle.completed.is_set()
        assert cycle.total == 0
        notifier.send_batch.assert_not_called()
        assert finished == []

    def test_single_file_fires_once(self, notifier):
        orchestrator = ScanOrchestrator(StubDetector(), notifier)
        record = _record("empty.pdf")
        try:
            cycle = orchestrator.start_cycle([record])
            assert cycle.wait(WAIT_SECONDS)
        finally:
            orchestrator.shutdown()

        notifier.send_batch.assert_called_once_with([record], 1)
        assert cycle.notified is True

    def test_fifty_files_fire_exactly_once(self, notifier):
        finished = []
        detector = StubDetector(delay=0.001)
        orchestrator = ScanOrchestrator(
            detector, notifier, max_workers=4, on_cycle_finished=finished.append
        )
        records = [_record(f"{'empty' if i % 2 else 'ok'}_{i}.pdf") for i in range(50)]
        try:
            cycle = orchestrator.start_cycle(records)
            assert cycle.wait(WAIT_SECONDS)
        finally:
            orchestrator.shutdown()

        assert len(detector.processed) == 50
        assert notifier.send_batch.call_count == 1
        batch, total = notifier.send_batch.call_args[0]
        assert total == 50
        assert sorted(r.name for r in batch) == sorted(r.name for r in records if r.is_suspicious)
        assert finished == [cycle]

    def test_no_suspicious_files_sends_nothing(self, notifier):
        orchestrator = ScanOrchestrator(StubDetector(), notifier)
        try:
            cycle = orchestrator.start_cycle([_record("ok1.pdf"), _record("ok2.pdf")])
            assert cycle.wait(WAIT_SECONDS)
        finally:
            orchestrator.shutdown()

        notifier.send_batch.assert_not_called()
        assert cycle.suspicious == []

    def test_detector_crash_counts_as_failed(self, notifier):
        orchestrator = ScanOrchestrator(StubDetector(), notifier)
        broken = _record("broken.pdf")
        try:
            cycle = orchestrator.start_cycle([broken, _record("empty.pdf")])
            assert cycle.wait(WAIT_SECONDS)
        finally:
            orchestrator.shutdown()

        assert broken.detection_result is DetectionResult.FAILED
        assert "renderer crashed" in broken.error_message
        batch, total = notifier.send_batch.call_args[0]
        assert [r.name for r in batch] == ["empty.pdf"]
        assert total == 2

    def test_concurrent_cycles_are_independent(self, notifier):
        orchestrator = ScanOrchestrator(StubDetector(delay=0.005), notifier)
        try:
            first = orchestrator.start_cycle([_record(f"empty_a{i}.pdf") for i in range(5)])
            second = orchestrator.start_cycle([_record(f"empty_b{i}.pdf") for i in range(3)])
            assert first.wait(WAIT_SECONDS)
            assert second.wait(WAIT_SECONDS)
        finally:
            orchestrator.shutdown()

        totals = sorted(call.args[1] for call in notifier.send_batch.call_args_list)
        assert totals == [3, 5]
        assert len(first.suspicious) == 5
        assert len(second.suspicious) == 3

    def test_pending_reconversions_are_run(self, notifier):
        class ReconvertingDetector(StubDetector):
            def process(self, record):
                result = super().process(record)
                if record.is_suspicious:
                    record.reconversion_status = ReconversionStatus.PENDING
                return result

        detector = ReconvertingDetector()
        orchestrator = ScanOrchestrator(detector, notifier)
        record = _record("empty.pdf")
        try:
            assert orchestrator.start_cycle([record]).wait(WAIT_SECONDS)
            assert orchestrator.wait_for_reconversions(WAIT_SECONDS)
        finally:
            orchestrator.shutdown()

        assert detector.reconverted == [record]
        assert record.reconversion_status is ReconversionStatus.SUCCESS

    def test_start_after_shutdown_raises(self, notifier):
        orchestrator = ScanOrchestrator(StubDetector(), notifier)
        orchestrator.shutdown()

        with pytest.raises(RuntimeError):
            orchestrator.start_cycle([_record("a.pdf")])

    def test_results_after_shutdown_are_ignored(self, notifier):
        release = threading.Event()

        class BlockingDetector(StubDetector):
            def process(self, record):
                release.wait(WAIT_SECONDS)
                return super().process(record)

        orchestrator = ScanOrchestrator(BlockingDetector(), notifier, max_workers=1)
        cycle = orchestrator.start_cycle([_record("empty.pdf")])
        orchestrator.shutdown(wait=False)
        release.set()
        orchestrator._executor.shutdown(wait=True)

        assert not cycle.completed.is_set()
        notifier.send_batch.assert_not_called()


class TestThreeFileScenario:
    """End to end over real files with a fake page renderer."""

    def test_one_blank_small_file_among_three(self, config, monitor_dir, notifier):
        write_pdf(monitor_dir / "a.pdf", 2 * 1024)
        write_pdf(monitor_dir / "b.pdf", 50 * 1024)
        write_pdf(monitor_dir / "c.pdf", 80 * 1024)
        rasterizer = FakeRasterizer(
            {"a.pdf": blank_page(), "b.pdf": text_page(), "c.pdf": text_page()}
        )
        orchestrator = ScanOrchestrator(HybridDetector(config, rasterizer=rasterizer), notifier)
        records = [FileRecord.from_path(monitor_dir / n) for n in ("a.pdf", "b.pdf", "c.pdf")]
        try:
            cycle = orchestrator.start_cycle(records)
            assert cycle.wait(WAIT_SECONDS)
        finally:
            orchestrator.shutdown()

        results = {r.name: r.detection_result for r in records}
        assert results == {
            "a.pdf": DetectionResult.SUSPICIOUS_BOTH,
            "b.pdf": DetectionResult.NORMAL,
            "c.pdf": DetectionResult.NORMAL,
        }
        notifier.send_batch.assert_called_once()
        batch, total = notifier.send_batch.call_args[0]
        assert [r.name for r in batch] == ["a.pdf"]
        assert total == 3
