"""Render PDF pages to PIL Images using pdf2image (poppler)."""

import logging
from pathlib import Path
from typing import Optional

from pdf2image import convert_from_path, pdfinfo_from_path
from pdf2image.exceptions import (
    PDFInfoNotInstalledError,
    PDFPageCountError,
    PDFPopplerTimeoutError,
    PDFSyntaxError,
)
from PIL import Image

from core.errors import NotFoundError, RenderError

logger = logging.getLogger(__name__)

_POPPLER_ERRORS = (
    PDFInfoNotInstalledError,
    PDFPageCountError,
    PDFPopplerTimeoutError,
    PDFSyntaxError,
)


class PDFProcessor:
    """Rasterize single pages from PDFs.

    render_page() distinguishes an unreadable document (RenderError) from
    a readable one with no pages (returns None).
    """

    def __init__(self, dpi: int = 72) -> None:
        self._dpi = dpi

    def get_page_count(self, pdf_path: Path) -> int:
        """Return total page count using poppler's pdfinfo."""
        self._validate_path(pdf_path)
        try:
            info = pdfinfo_from_path(str(pdf_path))
        except _POPPLER_ERRORS as exc:
            raise RenderError(f"Cannot read {pdf_path.name}: {exc}") from exc
        except (OSError, ValueError) as exc:
            raise RenderError(f"Cannot read {pdf_path.name}: {exc}") from exc

        count: int = int(info.get("Pages", 0))
        logger.debug("PDF %s has %d pages", pdf_path.name, count)
        return count

    def render_page(self, pdf_path: Path, page_index: int = 0) -> Optional[Image.Image]:
        """Render one page (0-indexed). Returns None if the document has no pages."""
        total = self.get_page_count(pdf_path)
        if total == 0:
            logger.debug("PDF %s has no pages", pdf_path.name)
            return None
        if not 0 <= page_index < total:
            raise RenderError(
                f"Page {page_index} out of range for {pdf_path.name} ({total} pages)"
            )

        page_num = page_index + 1  # poppler pages are 1-indexed
        try:
            images = convert_from_path(
                str(pdf_path),
                first_page=page_num,
                last_page=page_num,
                dpi=self._dpi,
            )
        except _POPPLER_ERRORS as exc:
            raise RenderError(f"Cannot render {pdf_path.name}: {exc}") from exc
        except (OSError, ValueError) as exc:
            raise RenderError(f"Cannot render {pdf_path.name}: {exc}") from exc

        if not images:
            raise RenderError(f"No image returned for page {page_num} of {pdf_path.name}")
        return images[0]

    @staticmethod
    def _validate_path(pdf_path: Path) -> None:
        """Raise NotFoundError if path doesn't exist."""
        if not pdf_path.exists():
            raise NotFoundError(f"PDF not found: {pdf_path}")
