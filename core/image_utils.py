"""Pure pixel-analysis functions for content-density detection."""

from PIL import Image, ImageChops

from core.detection_area import DetectionArea

# Disable DecompressionBombWarning for large images
Image.MAX_IMAGE_PIXELS = None

WHITE_LEVEL = 240

_NEAR_WHITE_LUT = [255 if v > WHITE_LEVEL else 0 for v in range(256)]


def is_content_pixel(red: int, green: int, blue: int) -> bool:
    """A pixel is content unless all three channels are near-white."""
    return not (red > WHITE_LEVEL and green > WHITE_LEVEL and blue > WHITE_LEVEL)


def count_content_pixels(image: Image.Image, area: DetectionArea) -> int:
    """Count non-near-white pixels inside area. Alpha is ignored."""
    if area.pixel_count == 0:
        return 0

    region = image.convert("RGB").crop(area.box)
    red, green, blue = (band.point(_NEAR_WHITE_LUT) for band in region.split())
    near_white = ImageChops.multiply(ImageChops.multiply(red, green), blue)
    white_count = near_white.histogram()[255]
    return area.pixel_count - white_count


def content_density(image: Image.Image, area: DetectionArea) -> float:
    """Fraction of content pixels in area; 0.0 for a zero-area rectangle."""
    total = area.pixel_count
    if total == 0:
        return 0.0
    return count_content_pixels(image, area) / total
