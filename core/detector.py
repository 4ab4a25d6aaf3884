"""Hybrid empty-PDF detection: file size plus rendered-page content density."""

import logging
from typing import Optional, Protocol

from PIL import Image

from core.config import Config
from core.detection_area import calculate_detection_area
from core.errors import NotFoundError, RenderError
from core.image_utils import content_density
from core.models import DetectionResult, FileRecord, ReconversionStatus
from core.pdf_processor import PDFProcessor
from core.reconversion import ReconversionInvoker
from core.task_id import extract_task_id

logger = logging.getLogger(__name__)

FIRST_PAGE = 0


class PageRasterizer(Protocol):
    def render_page(self, pdf_path, page_index: int = 0) -> Optional[Image.Image]:
        ...


def classify(by_size: bool, by_pixels: bool) -> DetectionResult:
    """Combine the two signals; both together take precedence."""
    if by_size and by_pixels:
        return DetectionResult.SUSPICIOUS_BOTH
    if by_size:
        return DetectionResult.SUSPICIOUS_SIZE
    if by_pixels:
        return DetectionResult.SUSPICIOUS_PIXELS
    return DetectionResult.NORMAL


class HybridDetector:
    """Classify one PDF at a time. Safe to share across worker threads."""

    def __init__(
        self,
        config: Config,
        rasterizer: Optional[PageRasterizer] = None,
        reconverter: Optional[ReconversionInvoker] = None,
    ) -> None:
        self._config = config
        self._rasterizer = rasterizer or PDFProcessor(dpi=config.render_dpi)
        self._reconverter = reconverter

    def process(self, record: FileRecord) -> DetectionResult:
        """Detect, store the result and task id, and plan reconversion."""
        result = self.detect(record)
        record.detection_result = result
        record.task_id = extract_task_id(record.path)
        self._plan_reconversion(record)
        return result

    def detect(self, record: FileRecord) -> DetectionResult:
        """Classify record. Errors resolve to FAILED with error_message set."""
        logger.debug("Detecting %s", record.name)
        try:
            result = self._classify_file(record)
        except NotFoundError as exc:
            logger.warning("File not found: %s (%s)", record.path, exc)
            record.error_message = "file not found"
            return DetectionResult.FAILED
        except RenderError as exc:
            logger.error("Cannot read PDF %s: %s", record.name, exc)
            record.error_message = f"detection failed: {exc}"
            return DetectionResult.FAILED
        except Exception as exc:
            logger.exception("Detection of %s failed", record.name)
            record.error_message = f"detection failed: {exc}"
            return DetectionResult.FAILED

        record.error_message = None
        if result.is_suspicious:
            logger.info(
                "Suspected empty PDF: %s (size: %s) - %s",
                record.name, record.formatted_size, result.name,
            )
        else:
            logger.debug("PDF looks normal: %s", record.name)
        return result

    def is_suspicious_by_size(self, size_bytes: int) -> bool:
        return size_bytes <= self._config.size_threshold_kb * 1024

    def is_suspicious_by_density(self, density: float) -> bool:
        return density < self._config.content_density_threshold / 100.0

    def measure_density(self, image: Image.Image) -> float:
        """Content density of the configured region of interest."""
        width, height = image.size
        area = calculate_detection_area(
            width,
            height,
            self._config.detection_area_width_percent,
            self._config.detection_area_height_percent,
            self._config.horizontal_offset_percent,
        )
        return content_density(image, area)

    def run_reconversion(self, record: FileRecord) -> bool:
        """Drive a PENDING record through IN_PROGRESS to SUCCESS or FAILED."""
        if record.reconversion_status is not ReconversionStatus.PENDING:
            return False
        if self._reconverter is None:
            record.reconversion_status = ReconversionStatus.SKIPPED
            return False

        record.reconversion_status = ReconversionStatus.IN_PROGRESS
        logger.info("Reconverting %s (task id %s)", record.name, record.task_id)
        try:
            ok = self._reconverter.execute(record.task_id)
        except Exception as exc:
            logger.exception("Reconversion of %s raised", record.name)
            record.error_message = f"reconversion failed: {exc}"
            ok = False

        record.reconversion_status = (
            ReconversionStatus.SUCCESS if ok else ReconversionStatus.FAILED
        )
        return ok

    def _classify_file(self, record: FileRecord) -> DetectionResult:
        try:
            record.size = record.path.stat().st_size
        except FileNotFoundError as exc:
            raise NotFoundError(str(record.path)) from exc
        except OSError as exc:
            raise RenderError(f"cannot stat {record.path}: {exc}") from exc

        by_size = self._config.enable_size_detection and self.is_suspicious_by_size(
            record.size
        )
        by_pixels = self._config.enable_image_detection and self._is_low_content(record)
        return classify(by_size, by_pixels)

    def _is_low_content(self, record: FileRecord) -> bool:
        image = self._rasterizer.render_page(record.path, FIRST_PAGE)
        if image is None:
            logger.info("PDF has no pages: %s", record.name)
            return True

        density = self.measure_density(image)
        threshold = self._config.content_density_threshold
        logger.info(
            "Content density of %s: %.2f%% (threshold %.2f%%)",
            record.name, density * 100, threshold,
        )
        return self.is_suspicious_by_density(density)

    def _plan_reconversion(self, record: FileRecord) -> None:
        if not record.is_suspicious:
            record.reconversion_status = ReconversionStatus.NOT_NEEDED
            return
        if not self._config.enable_reconversion:
            logger.debug("Reconversion disabled, skipping %s", record.name)
            record.reconversion_status = ReconversionStatus.SKIPPED
            return
        if self._reconverter is None:
            logger.warning("No reconversion configured, skipping %s", record.name)
            record.reconversion_status = ReconversionStatus.SKIPPED
            return
        if not record.task_id:
            logger.warning("No task id for %s, skipping reconversion", record.name)
            record.reconversion_status = ReconversionStatus.SKIPPED
            return

        logger.info("Reconversion queued for %s (task id %s)", record.name, record.task_id)
        record.reconversion_status = ReconversionStatus.PENDING
