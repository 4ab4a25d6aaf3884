"""SMS-style notification through an external sender program."""

import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from core.action_invoker import ActionInvoker
from core.config_validator import ConfigValidator
from core.errors import ConfigError
from core.models import FileRecord, format_file_size

logger = logging.getLogger(__name__)

BATCH_SEPARATOR = "、"
DETECTED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"
SEND_TIME_FORMAT = "%Y/%m/%d"
INTEGRATION_NAME = "SendSMSMessage"
TEST_FILE_NAME = "test.pdf"


def build_single_message(name: str, size_bytes: int) -> str:
    return f"detected suspicious empty PDF: {name} (size: {format_file_size(size_bytes)})"


def build_batch_message(
    files: Sequence[FileRecord], total: int, detected_at: Optional[datetime] = None
) -> str:
    """One aggregate message for a whole scan cycle."""
    detected_at = detected_at or datetime.now()
    names = BATCH_SEPARATOR.join(record.name for record in files)
    return (
        f"scanned {total} PDFs; {len(files)} suspected empty: {names}; "
        f"detected at {detected_at.strftime(DETECTED_AT_FORMAT)}"
    )


class NotificationInvoker(ActionInvoker):
    """Invoke the configured SMS sender with a single message argument.

    Jar senders run through ``java -jar``; anything else is executed
    directly. The working directory is the sender's own directory.
    """

    label = "notify"

    def send_batch(self, files: Sequence[FileRecord], total: int) -> bool:
        """Send one aggregate notification covering every file in files.

        The single outcome is applied to every file in the batch.
        """
        if not files:
            logger.info("No suspicious files, batch notification not needed")
            return False
        if not self._config.enable_sms_notification:
            logger.info(
                "SMS notification disabled, %d suspicious file(s) not reported", len(files)
            )
            return False

        message = build_batch_message(files, total)
        self._report(
            logging.INFO,
            f"Sending batch notification for {len(files)} of {total} file(s): {message}",
        )
        ok = self.send_message(message)

        for record in files:
            record.notification_sent = ok

        if ok:
            self._report(logging.INFO, f"Batch notification sent for {len(files)} file(s)")
        else:
            self._report(logging.WARNING, f"Batch notification failed for {len(files)} file(s)")
        return ok

    def send_message(self, message: str) -> bool:
        """Invoke the sender with message verbatim. Never raises."""
        if not self._config.enable_sms_notification:
            logger.debug("SMS notification disabled, not sending: %s", message)
            return False

        try:
            program = self._require_program()
        except ConfigError as exc:
            self._report(logging.WARNING, f"Notification not sent: {exc}")
            return False

        argv = self.build_command(program, message)
        return self._execute(argv, cwd=program.parent)

    def build_command(
        self, program: Path, message: str, now: Optional[datetime] = None
    ) -> List[str]:
        now = now or datetime.now()
        return _launcher_for(program) + [
            f"-integname={INTEGRATION_NAME}",
            f"-Username={self._config.sms_username}",
            f"-msg={message}",
            f"-tel={self._config.sms_recipients}",
            f"-SendTime={now.strftime(SEND_TIME_FORMAT)}",
        ]

    def test_notification(self) -> bool:
        """Send a synthetic single-file notification, bypassing the enable flag."""
        self._report(logging.INFO, "Starting test notification...")
        try:
            program = self._require_program()
        except ConfigError as exc:
            self._report(logging.WARNING, f"Test notification not sent: {exc}")
            return False

        message = build_single_message(TEST_FILE_NAME, 0)
        ok = self._execute(self.build_command(program, message), cwd=program.parent)
        self._report(
            logging.INFO, f"Test notification finished: {'success' if ok else 'failure'}"
        )
        return ok

    def _require_program(self) -> Path:
        is_valid, error = ConfigValidator.validate_for_notification(self._config)
        if not is_valid:
            raise ConfigError(error)
        return Path(self._config.sms_program_path).resolve()


def _launcher_for(program: Path) -> List[str]:
    if program.suffix.lower() == ".jar":
        return [shutil.which("java") or "java", "-jar", str(program)]
    return [str(program)]
