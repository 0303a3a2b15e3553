"""Tests for seeded region growing."""

import numpy as np
import pytest

from ..detection.region_growing import extract_seed_points, grow_region


@pytest.mark.unit()
class TestSeedExtraction:
    """Test seed point extraction."""

    def test_row_major_order(self):
        mask = np.zeros((4, 5), dtype=np.uint8)
        mask[1, 3] = 255
        mask[0, 4] = 255
        mask[1, 0] = 255

        assert extract_seed_points(mask) == [(4, 0), (0, 1), (3, 1)]

    def test_empty_mask(self):
        assert extract_seed_points(np.zeros((3, 3), dtype=np.uint8)) == []


@pytest.mark.unit()
class TestGrowRegion:
    """Test region growing behaviour."""

    def test_uniform_image_fills_everything(self):
        hsv = np.full((40, 50, 3), (60, 180, 140), dtype=np.uint8)
        mask = np.zeros((40, 50), dtype=np.uint8)

        grow_region(hsv, mask, [(25, 20)])

        assert np.all(mask == 255)

    def test_stops_at_colour_edge(self):
        hsv = np.full((20, 40, 3), (60, 180, 140), dtype=np.uint8)
        hsv[:, 20:] = (100, 20, 240)
        mask = np.zeros((20, 40), dtype=np.uint8)

        grow_region(hsv, mask, [(0, 0)])

        assert np.all(mask[:, :20] == 255)
        assert not mask[:, 20:].any()

    def test_gradient_within_tolerance_of_seed_only(self):
        """Neighbours are compared with the seed colour, not their predecessor."""
        hsv = np.zeros((1, 10, 3), dtype=np.uint8)
        hsv[0, :, 0] = 60
        hsv[0, :, 1] = 100
        hsv[0, :, 2] = np.arange(100, 120, 2)
        mask = np.zeros((1, 10), dtype=np.uint8)

        grow_region(hsv, mask, [(0, 0)], tolerance=(3, 6, 4))

        # V steps by 2: 100, 102, 104 are within 4 of the seed, 106 is not
        assert mask[0].tolist() == [255, 255, 255] + [0] * 7

    def test_hue_distance_wraps(self):
        hsv = np.full((1, 2, 3), (100, 100, 100), dtype=np.uint8)
        hsv[0, 0, 0] = 179
        hsv[0, 1, 0] = 1
        mask = np.zeros((1, 2), dtype=np.uint8)

        grow_region(hsv, mask, [(0, 0)])

        assert mask[0, 1] == 255

    def test_max_depth_limits_growth(self):
        hsv = np.full((1, 10, 3), (60, 180, 140), dtype=np.uint8)
        mask = np.zeros((1, 10), dtype=np.uint8)

        grow_region(hsv, mask, [(0, 0)], max_depth=3)

        assert mask[0].tolist() == [255] * 4 + [0] * 6

    def test_eight_connectivity_crosses_diagonals(self):
        hsv = np.full((3, 3, 3), (0, 0, 0), dtype=np.uint8)
        for i in range(3):
            hsv[i, i] = (60, 180, 140)
        four = np.zeros((3, 3), dtype=np.uint8)
        eight = np.zeros((3, 3), dtype=np.uint8)

        grow_region(hsv, four, [(0, 0)], connectivity=4)
        grow_region(hsv, eight, [(0, 0)], connectivity=8)

        assert four.sum() == 255
        assert eight[1, 1] == 255 and eight[2, 2] == 255

    def test_empty_seed_list_is_noop(self):
        hsv = np.full((5, 5, 3), 10, dtype=np.uint8)
        mask = np.zeros((5, 5), dtype=np.uint8)
        mask[2, 2] = 255

        result = grow_region(hsv, mask, [])

        assert result is mask
        assert mask.sum() == 255

    def test_shape_mismatch_raises(self):
        with pytest.raises(ValueError, match="does not match"):
            grow_region(
                np.zeros((5, 5, 3), dtype=np.uint8),
                np.zeros((4, 5), dtype=np.uint8),
                [(0, 0)],
            )
