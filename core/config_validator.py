"""Configuration validation logic, one check per feature."""

from pathlib import Path
from typing import Optional, Tuple

from core.config import Config


class ConfigValidator:
    """Pure validation logic for configuration objects."""

    @staticmethod
    def validate_for_monitoring(config: Config) -> Tuple[bool, Optional[str]]:
        """Validate the settings needed to scan and classify PDFs.

        Args:
            config: Configuration object to validate

        Returns:
            Tuple of (is_valid, error_message).
            If valid, error_message is None.
            If invalid, error_message describes the problem.
        """
        if not config.monitor_dir.strip():
            return False, "Monitor directory is not set."

        if not Path(config.monitor_dir).is_dir():
            return False, f"Monitor directory does not exist: {config.monitor_dir}"

        if config.scan_interval_seconds <= 0:
            return False, "Scan interval must be a positive number of seconds."

        if config.file_age_hours < 0:
            return False, "File age window cannot be negative (use 0 for unlimited)."

        if not 1.0 <= config.detection_area_width_percent <= 100.0:
            return False, "Detection area width must be between 1% and 100%."

        if not 1.0 <= config.detection_area_height_percent <= 100.0:
            return False, "Detection area height must be between 1% and 100%."

        if not -100 <= config.horizontal_offset_percent <= 100:
            return False, "Horizontal offset must be between -100% and 100%."

        if config.detection_workers < 1:
            return False, "At least one detection worker is required."

        return True, None

    @staticmethod
    def validate_for_notification(config: Config) -> Tuple[bool, Optional[str]]:
        """Validate that the SMS sender can be invoked."""
        if not config.sms_program_path.strip():
            return False, "SMS program path is not configured."

        if not config.sms_username.strip():
            return False, "SMS username is not configured."

        if not config.sms_recipients.strip():
            return False, "SMS recipients are not configured."

        if not Path(config.sms_program_path).exists():
            return False, f"SMS program does not exist: {config.sms_program_path}"

        return True, None

    @staticmethod
    def validate_for_reconversion(config: Config) -> Tuple[bool, Optional[str]]:
        """Validate the reconversion template path and placeholder setting.

        Template contents are checked by ReconversionInvoker.validate_template.
        """
        if not config.reconversion_script_path.strip():
            return False, "Reconversion script path is not configured."

        if not Path(config.reconversion_script_path).is_file():
            return False, (
                f"Reconversion script does not exist: {config.reconversion_script_path}"
            )

        if not config.reconversion_placeholder:
            return False, "Reconversion placeholder token is empty."

        return True, None

    @staticmethod
    def can_notify(config: Config) -> bool:
        """Check if notification is both enabled and configured."""
        if not config.enable_sms_notification:
            return False
        is_valid, _ = ConfigValidator.validate_for_notification(config)
        return is_valid
