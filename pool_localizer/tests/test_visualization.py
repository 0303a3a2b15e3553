"""Tests for debug visualization helpers."""

import math

import numpy as np
import pytest

from ..models import Circle
from ..utils.visualization import DebugImageCollector, draw_circles, draw_lines


@pytest.mark.unit()
class TestDebugImageCollector:
    """Test the debug hook collector."""

    def test_stores_copies_in_order(self):
        collector = DebugImageCollector()
        image = np.zeros((5, 5), dtype=np.uint8)

        collector("first", image)
        image[0, 0] = 255
        collector("second", image)

        assert collector.names() == ["first", "second"]
        assert collector.get("first")[0, 0] == 0
        assert collector.get("second")[0, 0] == 255

    def test_get_returns_latest(self):
        collector = DebugImageCollector()
        collector("mask", np.zeros((2, 2), dtype=np.uint8))
        collector("mask", np.ones((2, 2), dtype=np.uint8))

        assert collector.get("mask")[0, 0] == 1

    def test_missing_name(self):
        with pytest.raises(KeyError):
            DebugImageCollector().get("nothing")

    def test_clear(self):
        collector = DebugImageCollector()
        collector("mask", np.zeros((2, 2), dtype=np.uint8))

        collector.clear()

        assert collector.get_debug_images() == []


@pytest.mark.unit()
class TestDrawing:
    """Test drawing helpers."""

    def test_draw_circles_on_copy(self):
        image = np.zeros((50, 50, 3), dtype=np.uint8)

        drawn = draw_circles(image, [Circle(25.0, 25.0, 10.0)])

        assert not image.any()
        assert drawn[25, 35].any()

    def test_draw_circles_converts_masks(self):
        mask = np.zeros((50, 50), dtype=np.uint8)

        drawn = draw_circles(mask, [Circle(25.0, 25.0, 10.0)])

        assert drawn.shape == (50, 50, 3)

    def test_draw_vertical_line(self):
        image = np.zeros((50, 60, 3), dtype=np.uint8)

        drawn = draw_lines(image, [(30.0, 0.0)], color=(0, 0, 255), thickness=1)

        assert tuple(drawn[10, 30]) == (0, 0, 255)
        assert not drawn[10, 10].any()

    def test_draw_horizontal_line(self):
        image = np.zeros((50, 60, 3), dtype=np.uint8)

        drawn = draw_lines(image, [(20.0, math.pi / 2)], thickness=1)

        assert drawn[20, 5].any()
        assert not image.any()
