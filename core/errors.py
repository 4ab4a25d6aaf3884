"""Typed exceptions raised inside the scan → detect → act pipeline.

None of these escape a component boundary: the detector turns them into
FAILED results, the invokers into a False return plus a log line.
"""

from typing import Optional


class PDFSentinelError(Exception):
    """Base exception for all pipeline errors."""


class NotFoundError(PDFSentinelError):
    """Raised when a file vanished between discovery and detection."""


class RenderError(PDFSentinelError):
    """Raised when a document cannot be opened or rasterized."""


class ConfigError(PDFSentinelError):
    """Raised when an enabled feature is missing a required setting."""


class ProcessError(PDFSentinelError):
    """Raised when an external program cannot be started or exits non-zero.

    exit_code is set only for the non-zero exit case.
    """

    def __init__(self, message: str, exit_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class PlatformUnsupportedError(PDFSentinelError):
    """Raised when an action needs a command interpreter this OS lacks."""
