"""Blocking subprocess execution with a merged, line-streamed output."""

import logging
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from core.errors import ProcessError

logger = logging.getLogger(__name__)

LAUNCH_RETRY_BACKOFF_SECONDS = 2.0
MAX_LAUNCH_RETRIES = 1

LineCallback = Callable[[str], None]


@dataclass(frozen=True)
class ProcessResult:
    """Exit code and captured output lines of a finished child process."""

    exit_code: int
    output: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    def check(self) -> None:
        """Raise ProcessError carrying the exit code if the child failed."""
        if not self.succeeded:
            raise ProcessError(
                f"Process exited with code {self.exit_code}", exit_code=self.exit_code
            )


def run_process(
    argv: Sequence[str],
    cwd: Optional[Union[str, Path]] = None,
    on_line: Optional[LineCallback] = None,
    max_launch_retries: int = MAX_LAUNCH_RETRIES,
    retry_backoff: float = LAUNCH_RETRY_BACKOFF_SECONDS,
) -> ProcessResult:
    """Run argv to completion, forwarding each output line as it arrives.

    stderr is merged into stdout so callers see one ordered stream. Only
    launch failures are retried: once the child has started it is never
    re-run, whatever its exit code.

    Raises:
        ProcessError: If the program is missing or the command line cannot be launched.
    """
    process = _launch(argv, cwd, max_launch_retries, retry_backoff)

    lines: List[str] = []
    with process:
        for raw_line in process.stdout:  # type: ignore[union-attr]
            line = raw_line.rstrip("\r\n")
            lines.append(line)
            if on_line is not None:
                on_line(line)
        exit_code = process.wait()

    logger.debug("%s exited with code %d", argv[0], exit_code)
    return ProcessResult(exit_code=exit_code, output=lines)


def _launch(
    argv: Sequence[str],
    cwd: Optional[Union[str, Path]],
    max_launch_retries: int,
    retry_backoff: float,
) -> "subprocess.Popen[str]":
    last_error: Optional[OSError] = None

    for attempt in range(1 + max_launch_retries):
        try:
            return subprocess.Popen(
                list(argv),
                cwd=str(cwd) if cwd is not None else None,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                text=True,
                errors="replace",
            )
        except FileNotFoundError as exc:
            raise ProcessError(f"Program not found: {argv[0]}") from exc
        except ValueError as exc:
            # Malformed argv, such as an embedded NUL byte.
            raise ProcessError(f"Invalid command line for {argv[0]}: {exc}") from exc
        except OSError as exc:
            last_error = exc
            if attempt >= max_launch_retries:
                break
            logger.warning(
                "Launching %s failed on attempt %d: %s, retrying...",
                argv[0], attempt + 1, exc,
            )
            time.sleep(retry_backoff)

    raise ProcessError(
        f"Failed to launch {argv[0]} after {1 + max_launch_retries} attempts: {last_error}"
    )
