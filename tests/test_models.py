"""
Tests for FileRecord identity and the display formatters.
"""

import pytest

from conftest import write_pdf
from core.models import (
    DetectionResult,
    FileRecord,
    ReconversionStatus,
    describe_reconversion,
    describe_result,
    format_file_size,
)


@pytest.mark.parametrize(
    "size,expected",
    [(0, "0 B"), (1023, "1023 B"), (1024, "1.0 KB"), (1536, "1.5 KB"), (5 * 1024 * 1024, "5.0 MB")],
)
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected


def test_suspicious_results():
    suspicious = {r for r in DetectionResult if r.is_suspicious}
    assert suspicious == {
        DetectionResult.SUSPICIOUS_SIZE,
        DetectionResult.SUSPICIOUS_PIXELS,
        DetectionResult.SUSPICIOUS_BOTH,
    }


def test_every_state_has_display_text():
    for result in DetectionResult:
        assert describe_result(result)
    for status in ReconversionStatus:
        assert describe_reconversion(status)


class TestFileRecord:

    def test_from_path_reads_stat(self, monitor_dir):
        path = write_pdf(monitor_dir / "a.pdf", 1536)
        record = FileRecord.from_path(path)

        assert record.path.is_absolute()
        assert record.name == "a.pdf"
        assert record.size == 1536
        assert record.formatted_size == "1.5 KB"
        assert record.detection_result is DetectionResult.PENDING
        assert record.reconversion_status is ReconversionStatus.NOT_NEEDED

    def test_identity_is_path_only(self, monitor_dir):
        path = write_pdf(monitor_dir / "a.pdf")
        first = FileRecord.from_path(path)
        second = FileRecord.from_path(path)
        second.detection_result = DetectionResult.FAILED

        assert first == second
        assert len({first, second}) == 1

    def test_missing_file_raises(self, monitor_dir):
        with pytest.raises(OSError):
            FileRecord.from_path(monitor_dir / "missing.pdf")

    def test_notification_status_text(self, monitor_dir):
        record = FileRecord.from_path(write_pdf(monitor_dir / "a.pdf"))
        assert record.notification_status_text == "-"

        record.detection_result = DetectionResult.SUSPICIOUS_SIZE
        assert record.notification_status_text == "Not notified"
        record.notification_sent = True
        assert record.notification_status_text == "Notified"
