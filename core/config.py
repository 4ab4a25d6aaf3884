"""JSON-backed application settings for PDF Sentinel."""

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".pdf_sentinel"
CONFIG_PATH = CONFIG_DIR / "settings.json"

TASK_ID_PLACEHOLDER = "{TASKID}"


@dataclass
class Config:
    """All user-configurable settings with sensible defaults."""

    # Monitoring
    monitor_dir: str = ""
    include_subdirectories: bool = True
    file_age_hours: int = 0  # 0 = no age limit
    scan_interval_seconds: int = 30
    watch_settle_seconds: float = 2.0  # let writers finish before reading
    watch_retry_seconds: float = 1.0

    # Detection
    enable_size_detection: bool = True
    size_threshold_kb: int = 10
    enable_image_detection: bool = True
    detection_area_width_percent: float = 22.2  # ~200px on a 900px-wide page
    detection_area_height_percent: float = 33.3  # ~200px on a 600px-tall page
    horizontal_offset_percent: int = 0  # -100 = left edge, 100 = right edge
    content_density_threshold: float = 10.0  # percent
    render_dpi: int = 72
    detection_workers: int = 4

    # SMS notification
    enable_sms_notification: bool = False
    sms_program_path: str = ""
    sms_username: str = "TC"
    sms_recipients: str = ""  # comma-separated

    # Reconversion
    enable_reconversion: bool = False
    reconversion_script_path: str = ""
    reconversion_placeholder: str = TASK_ID_PLACEHOLDER

    def to_dict(self) -> Dict[str, Any]:
        """Serialize config to a plain dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dict, ignoring unknown keys."""
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in known_fields}
        return cls(**filtered)


def load_config(path: Path = CONFIG_PATH) -> Config:
    """Load config from JSON file. Returns defaults if file missing."""
    if not path.exists():
        logger.info("No config file at %s, using defaults", path)
        return Config()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        logger.info("Loaded config from %s", path)
        return Config.from_dict(raw)
    except (json.JSONDecodeError, TypeError) as exc:
        logger.warning("Corrupt config at %s: %s, using defaults", path, exc)
        return Config()


def save_config(config: Config, path: Path = CONFIG_PATH) -> None:
    """Write config to JSON file, creating parent dirs as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(config.to_dict(), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    logger.info("Saved config to %s", path)
