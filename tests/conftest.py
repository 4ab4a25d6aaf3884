"""
Pytest configuration and shared fixtures for PDF Sentinel tests.
"""

from pathlib import Path
from typing import Dict, Optional

import pytest
from PIL import Image, ImageDraw

from core.config import Config
from core.errors import RenderError

PAGE_SIZE = (900, 600)


@pytest.fixture(scope="session")
def qapp():
    """Fixture providing one QCoreApplication for the whole session."""
    from PySide6.QtCore import QCoreApplication

    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def monitor_dir(tmp_path):
    """Fixture providing an empty directory to monitor."""
    root = tmp_path / "converted"
    root.mkdir()
    return root


@pytest.fixture
def config(monitor_dir):
    """Fixture providing a Config pointed at monitor_dir with fast timings."""
    return Config(
        monitor_dir=str(monitor_dir),
        watch_settle_seconds=0.05,
        watch_retry_seconds=0.05,
    )


def write_pdf(path: Path, size: int = 200) -> Path:
    """Write a placeholder file of exactly size bytes."""
    path.parent.mkdir(parents=True, exist_ok=True)
    header = b"%PDF-1.4\n"
    path.write_bytes(header + b"0" * max(0, size - len(header)))
    return path


def blank_page(size=PAGE_SIZE) -> Image.Image:
    return Image.new("RGB", size, "white")


def text_page(size=PAGE_SIZE) -> Image.Image:
    """A page whose middle is mostly covered by dark content."""
    image = blank_page(size)
    draw = ImageDraw.Draw(image)
    width, height = size
    draw.rectangle([width // 4, height // 4, width * 3 // 4, height * 3 // 4], fill="black")
    return image


class FakeRasterizer:
    """Maps file names to pre-built page images (None means zero pages)."""

    def __init__(self, pages: Dict[str, Optional[Image.Image]], broken=()) -> None:
        self._pages = pages
        self._broken = set(broken)
        self.calls = []

    def render_page(self, pdf_path, page_index=0):
        self.calls.append((Path(pdf_path).name, page_index))
        name = Path(pdf_path).name
        if name in self._broken:
            raise RenderError(f"Cannot read {name}: syntax error")
        return self._pages.get(name, blank_page())
