"""Data model for discovered PDFs and their detection state."""

import os
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from pathlib import Path
from typing import Optional


class DetectionResult(Enum):
    """Outcome of one detection pass over a file."""

    PENDING = auto()
    NORMAL = auto()
    SUSPICIOUS_SIZE = auto()
    SUSPICIOUS_PIXELS = auto()
    SUSPICIOUS_BOTH = auto()
    FAILED = auto()

    @property
    def is_suspicious(self) -> bool:
        return self in _SUSPICIOUS_RESULTS


_SUSPICIOUS_RESULTS = frozenset({
    DetectionResult.SUSPICIOUS_SIZE,
    DetectionResult.SUSPICIOUS_PIXELS,
    DetectionResult.SUSPICIOUS_BOTH,
})


class ReconversionStatus(Enum):
    """Per-file state of the automatic reconversion action."""

    NOT_NEEDED = auto()
    PENDING = auto()
    IN_PROGRESS = auto()
    SUCCESS = auto()
    FAILED = auto()
    SKIPPED = auto()


_RESULT_TEXT = {
    DetectionResult.PENDING: ("Pending", ""),
    DetectionResult.NORMAL: ("Normal", "content looks complete"),
    DetectionResult.SUSPICIOUS_SIZE: ("Suspected empty", "below file size threshold"),
    DetectionResult.SUSPICIOUS_PIXELS: ("Suspected empty", "content density below threshold"),
    DetectionResult.SUSPICIOUS_BOTH: (
        "Suspected empty",
        "below file size threshold and content density below threshold",
    ),
    DetectionResult.FAILED: ("Detection failed", "an error occurred during detection"),
}

_RECONVERSION_TEXT = {
    ReconversionStatus.NOT_NEEDED: "Not needed",
    ReconversionStatus.PENDING: "Queued",
    ReconversionStatus.IN_PROGRESS: "Reconverting",
    ReconversionStatus.SUCCESS: "Reconverted",
    ReconversionStatus.FAILED: "Reconversion failed",
    ReconversionStatus.SKIPPED: "Skipped",
}

_RESULT_ICONS = {
    DetectionResult.PENDING: "⏳",
    DetectionResult.NORMAL: "✓",
    DetectionResult.SUSPICIOUS_SIZE: "⚠",
    DetectionResult.SUSPICIOUS_PIXELS: "⚠",
    DetectionResult.SUSPICIOUS_BOTH: "⚠",
    DetectionResult.FAILED: "✗",
}


def describe_result(result: DetectionResult) -> str:
    """Human-readable label, with the reason appended when there is one."""
    label, reason = _RESULT_TEXT[result]
    return f"{label} - {reason}" if reason else label


def describe_reconversion(status: ReconversionStatus) -> str:
    return _RECONVERSION_TEXT[status]


def format_file_size(size_bytes: int) -> str:
    """Format a byte count as B, KB or MB with one decimal place."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes / (1024 * 1024):.1f} MB"


@dataclass(eq=False)
class FileRecord:
    """One discovered PDF. Identity is the absolute path, nothing else."""

    path: Path
    name: str
    size: int
    modified: datetime
    task_id: Optional[str] = None
    detection_result: DetectionResult = DetectionResult.PENDING
    notification_sent: bool = False
    reconversion_status: ReconversionStatus = ReconversionStatus.NOT_NEEDED
    error_message: Optional[str] = field(default=None)

    @classmethod
    def from_path(cls, path: Path) -> "FileRecord":
        """Build a record from the file's current stat. Raises OSError if gone."""
        absolute = Path(os.path.abspath(path))
        stat = absolute.stat()
        return cls(
            path=absolute,
            name=absolute.name,
            size=stat.st_size,
            modified=datetime.fromtimestamp(stat.st_mtime),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FileRecord):
            return NotImplemented
        return self.path == other.path

    def __hash__(self) -> int:
        return hash(self.path)

    @property
    def is_suspicious(self) -> bool:
        return self.detection_result.is_suspicious

    @property
    def is_normal(self) -> bool:
        return self.detection_result is DetectionResult.NORMAL

    @property
    def is_failed(self) -> bool:
        return self.detection_result is DetectionResult.FAILED

    @property
    def formatted_size(self) -> str:
        return format_file_size(self.size)

    @property
    def status_icon(self) -> str:
        return _RESULT_ICONS[self.detection_result]

    @property
    def notification_status_text(self) -> str:
        if not self.is_suspicious:
            return "-"
        return "Notified" if self.notification_sent else "Not notified"
