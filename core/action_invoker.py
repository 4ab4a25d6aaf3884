"""Shared plumbing for actions that run an external program.

Subclasses build the command line; this base runs it, streams its output
to the logger and the optional status sink, and turns the exit code (or a
launch failure) into a plain bool.
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

from core.config import Config
from core.errors import ProcessError
from core.process_runner import ProcessResult, run_process

logger = logging.getLogger(__name__)

StatusSink = Callable[[str], None]
Runner = Callable[..., ProcessResult]


class ActionInvoker:
    """Run a configured external program and report success as a bool."""

    label = "action"

    def __init__(
        self,
        config: Config,
        runner: Runner = run_process,
        status_sink: Optional[StatusSink] = None,
    ) -> None:
        self._config = config
        self._runner = runner
        self._status_sink = status_sink

    def set_status_sink(self, sink: Optional[StatusSink]) -> None:
        self._status_sink = sink

    def _report(self, level: int, message: str) -> None:
        """Log message and forward it to the status sink, if any."""
        logger.log(level, "[%s] %s", self.label, message)
        if self._status_sink is None:
            return
        try:
            self._status_sink(message)
        except Exception as exc:
            logger.debug("Status sink rejected message: %s", exc)

    def _execute(self, argv: Sequence[str], cwd: Optional[Union[str, Path]]) -> bool:
        """Run argv in cwd; True only on exit code 0. Never raises."""
        self._report(logging.INFO, f"Running command: {' '.join(argv)}")

        def forward(line: str) -> None:
            self._report(logging.INFO, f"Output: {line}")

        try:
            self._runner(argv, cwd=cwd, on_line=forward).check()
        except ProcessError as exc:
            if exc.exit_code is None:
                self._report(logging.ERROR, f"Command failed to start: {exc}")
            else:
                self._report(logging.WARNING, f"Command failed, exit code {exc.exit_code}")
            return False
        except (OSError, ValueError) as exc:
            self._report(logging.ERROR, f"Command aborted: {exc}")
            return False

        self._report(logging.INFO, "Command succeeded, exit code 0")
        return True
