"""Reconversion: run a script template with the task id substituted in."""

import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Tuple

from core.action_invoker import ActionInvoker, Runner, StatusSink
from core.config import Config
from core.config_validator import ConfigValidator
from core.errors import ConfigError, PlatformUnsupportedError
from core.process_runner import run_process

logger = logging.getLogger(__name__)

# Script suffix -> (os.name it needs, interpreter prefix)
_INTERPRETERS = {
    ".bat": ("nt", ["cmd", "/c"]),
    ".cmd": ("nt", ["cmd", "/c"]),
    ".sh": ("posix", ["/bin/sh"]),
}

_PLATFORM_DEFAULTS = {
    "nt": ["cmd", "/c"],
    "posix": ["/bin/sh"],
}


def interpreter_for(script: Path, platform: str = os.name) -> List[str]:
    """Return the interpreter prefix that runs script on platform.

    Raises:
        PlatformUnsupportedError: If this OS has no interpreter for the script.
    """
    suffix = script.suffix.lower()
    if suffix in _INTERPRETERS:
        required, prefix = _INTERPRETERS[suffix]
        if platform != required:
            raise PlatformUnsupportedError(
                f"{suffix} scripts cannot run on this platform ({platform})"
            )
        return list(prefix)

    if platform not in _PLATFORM_DEFAULTS:
        raise PlatformUnsupportedError(f"No command interpreter for platform {platform}")
    return list(_PLATFORM_DEFAULTS[platform])


class ReconversionInvoker(ActionInvoker):
    """Execute the reconversion script template for one task id.

    The template is read fresh on every call, the placeholder replaced,
    and the result written to a temporary script that is always removed.
    """

    label = "reconvert"

    def __init__(
        self,
        config: Config,
        runner: Runner = run_process,
        status_sink: Optional[StatusSink] = None,
        platform: str = os.name,
    ) -> None:
        super().__init__(config, runner=runner, status_sink=status_sink)
        self._platform = platform

    def validate_template(self) -> bool:
        """Check platform, template path and placeholder without running anything."""
        try:
            self._load_template()
        except (ConfigError, PlatformUnsupportedError) as exc:
            logger.warning("Reconversion template invalid: %s", exc)
            return False
        return True

    def execute(self, task_id: Optional[str]) -> bool:
        """Run the reconversion for task_id. Never raises."""
        if task_id is None or not task_id.strip():
            self._report(logging.WARNING, "Reconversion skipped: task id is empty")
            return False
        task_id = task_id.strip()

        try:
            template, script, interpreter = self._load_template()
        except PlatformUnsupportedError as exc:
            self._report(logging.ERROR, f"Reconversion unsupported platform: {exc}")
            return False
        except ConfigError as exc:
            self._report(logging.WARNING, f"Reconversion not run: {exc}")
            return False

        content = template.replace(self._config.reconversion_placeholder, task_id)
        try:
            temp_script = self._write_temp_script(content, script.suffix)
        except OSError as exc:
            self._report(logging.ERROR, f"Cannot create temporary script: {exc}")
            return False

        self._report(logging.INFO, f"Created temporary script: {temp_script}")
        try:
            ok = self._execute(interpreter + [str(temp_script)], cwd=script.parent)
        finally:
            self._remove_temp_script(temp_script)

        if ok:
            self._report(logging.INFO, f"Reconversion succeeded, task id: {task_id}")
        else:
            self._report(logging.WARNING, f"Reconversion failed, task id: {task_id}")
        return ok

    def test_reconversion(self, task_id: str) -> bool:
        self._report(logging.INFO, f"Starting test reconversion, task id: {task_id}")
        ok = self.execute(task_id)
        self._report(
            logging.INFO, f"Test reconversion finished: {'success' if ok else 'failure'}"
        )
        return ok

    def _load_template(self) -> Tuple[str, Path, List[str]]:
        """Return (template, script path, interpreter) or raise why it is unusable."""
        is_valid, error = ConfigValidator.validate_for_reconversion(self._config)
        if not is_valid:
            raise ConfigError(error)

        script = Path(self._config.reconversion_script_path).resolve()
        interpreter = interpreter_for(script, self._platform)

        try:
            template = script.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigError(f"Cannot read reconversion script {script}: {exc}") from exc

        if self._config.reconversion_placeholder not in template:
            raise ConfigError(
                f"Reconversion script lacks the {self._config.reconversion_placeholder} "
                f"placeholder: {script}"
            )
        return template, script, interpreter

    @staticmethod
    def _write_temp_script(content: str, suffix: str) -> Path:
        fd, name = tempfile.mkstemp(prefix="reconversion_", suffix=suffix)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        return Path(name)

    @staticmethod
    def _remove_temp_script(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
            logger.debug("Removed temporary script %s", path)
        except OSError as exc:
            logger.warning("Failed to remove temporary script %s: %s", path, exc)
