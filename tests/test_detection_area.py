"""
Tests for region-of-interest geometry.
"""

import pytest

from core.detection_area import DetectionArea, calculate_detection_area


class TestCalculateDetectionArea:
    """Tests for calculate_detection_area()."""

    def test_default_area_is_centered_square(self):
        """900x600 at 22.2% x 33.3% gives a 200x200 box in the middle."""
        area = calculate_detection_area(900, 600, 22.2, 33.3, 0)

        assert area == DetectionArea(350, 200, 550, 400)
        assert area.width == 200
        assert area.height == 200
        assert area.pixel_count == 40_000

    def test_sizes_round_half_up(self):
        """12.5% of 100 is 12.5 and rounds up to 13."""
        area = calculate_detection_area(100, 100, 12.5, 12.5, 0)
        assert area.width == 13
        assert area.height == 13

    def test_full_page(self):
        area = calculate_detection_area(900, 600, 100, 100, 0)
        assert area.box == (0, 0, 900, 600)

    def test_left_edge_offset_is_clipped(self):
        """Offset -100 centers the box on x=0, so only its right half remains."""
        area = calculate_detection_area(900, 600, 22.2, 33.3, -100)
        assert (area.start_x, area.end_x) == (0, 100)
        assert (area.start_y, area.end_y) == (200, 400)

    def test_right_edge_offset_is_clipped(self):
        area = calculate_detection_area(900, 600, 22.2, 33.3, 100)
        assert (area.start_x, area.end_x) == (800, 900)

    @pytest.mark.parametrize("width,height", [(900, 600), (1, 1), (37, 1001), (2480, 3508)])
    @pytest.mark.parametrize("percent", [1, 22.2, 50, 100])
    @pytest.mark.parametrize("offset", [-100, -60, -25, 0, 25, 60, 100])
    def test_area_always_within_image(self, width, height, percent, offset):
        """Clipping keeps every edge inside the image for any legal input."""
        area = calculate_detection_area(width, height, percent, percent, offset)

        assert 0 <= area.start_x <= area.end_x <= width
        assert 0 <= area.start_y <= area.end_y <= height
        assert area.pixel_count <= width * height


class TestDetectionArea:

    def test_box_matches_pil_crop_order(self):
        assert DetectionArea(1, 2, 3, 4).box == (1, 2, 3, 4)

    def test_degenerate_area_has_no_pixels(self):
        area = DetectionArea(5, 5, 5, 9)
        assert area.width == 0
        assert area.pixel_count == 0
