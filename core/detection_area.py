"""Region-of-interest geometry for content-density sampling."""

import logging
import math
from dataclasses import dataclass
from typing import Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectionArea:
    """Pixel rectangle, end coordinates exclusive."""

    start_x: int
    start_y: int
    end_x: int
    end_y: int

    @property
    def width(self) -> int:
        return max(0, self.end_x - self.start_x)

    @property
    def height(self) -> int:
        return max(0, self.end_y - self.start_y)

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def box(self) -> Tuple[int, int, int, int]:
        """(left, upper, right, lower) as PIL's crop() expects."""
        return (self.start_x, self.start_y, self.end_x, self.end_y)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def calculate_detection_area(
    width: int,
    height: int,
    width_percent: float,
    height_percent: float,
    offset_percent: float = 0,
) -> DetectionArea:
    """Center a percentage-sized rectangle on the image, then clip it.

    offset_percent moves the center horizontally: -100 puts it on the
    left edge, 100 on the right edge. Clipping each edge on its own means
    an off-canvas center yields a smaller visible rectangle, possibly of
    zero area.
    """
    area_w = _clamp(_round_half_up(width * width_percent / 100.0), 1, max(1, width))
    area_h = _clamp(_round_half_up(height * height_percent / 100.0), 1, max(1, height))

    center_x = _round_half_up(width / 2.0 + (offset_percent / 100.0) * (width / 2.0))
    center_y = height // 2

    start_x = center_x - area_w // 2
    start_y = center_y - area_h // 2
    end_x = start_x + area_w
    end_y = start_y + area_h

    area = DetectionArea(
        start_x=_clamp(start_x, 0, width),
        start_y=_clamp(start_y, 0, height),
        end_x=_clamp(end_x, 0, width),
        end_y=_clamp(end_y, 0, height),
    )
    logger.debug(
        "Detection area for %dx%d at %.2f%%x%.2f%% offset %s%%: "
        "raw (%d,%d)->(%d,%d), clipped %s",
        width, height, width_percent, height_percent, offset_percent,
        start_x, start_y, end_x, end_y, area.box,
    )
    return area
