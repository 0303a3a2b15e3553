"""Tests for whole-table localization and multi-frame processing."""

import math

import numpy as np
import pytest

from ..detection.classifier import NoBallsDetectedError
from ..pipeline import TableLocalization, localize_frames, localize_table
from ..utils.visualization import DebugImageCollector
from .conftest import BLACK_POSITION, CUE_POSITION, FRAME_SHAPE


def _mirror(frame):
    return np.ascontiguousarray(frame[:, ::-1])


def _mirrored(position):
    x, y = position
    return (FRAME_SHAPE[1] - 1 - x, y)


def _distance(circle, position):
    return math.hypot(circle.x - position[0], circle.y - position[1])


@pytest.mark.integration()
class TestLocalizeTable:
    """Test single-frame localization."""

    def test_field_and_balls(self, config, table_frame):
        result = localize_table(table_frame, config)

        assert isinstance(result, TableLocalization)
        assert len(result.field.holes) == 6
        assert result.field.lines
        assert _distance(result.balls.cue.circle, CUE_POSITION) <= 4
        assert _distance(result.balls.black.circle, BLACK_POSITION) <= 4

    def test_default_config(self, table_frame):
        result = localize_table(table_frame)

        assert _distance(result.balls.cue.circle, CUE_POSITION) <= 4

    def test_debug_hook_gets_field_mask_first(self, config, table_frame):
        collector = DebugImageCollector()

        localize_table(table_frame, config, debug_hook=collector)

        assert collector.names()[0] == "field_mask"
        assert "repaired_mask" in collector.names()


@pytest.mark.integration()
class TestLocalizeFrames:
    """Test concurrent localization of several frames."""

    def test_order_preserved(self, config, table_frame):
        frames = [table_frame, _mirror(table_frame), table_frame]

        results = localize_frames(frames, config, max_workers=3)

        assert len(results) == 3
        assert _distance(results[0].balls.cue.circle, CUE_POSITION) <= 4
        assert _distance(results[1].balls.cue.circle, _mirrored(CUE_POSITION)) <= 4
        assert _distance(results[2].balls.cue.circle, CUE_POSITION) <= 4

    def test_matches_sequential_results(self, config, table_frame):
        sequential = localize_table(table_frame, config)

        concurrent = localize_frames([table_frame] * 4, config, max_workers=4)

        for result in concurrent:
            np.testing.assert_array_equal(result.field.mask, sequential.field.mask)
            assert result.balls == sequential.balls

    def test_empty_input(self, config):
        assert localize_frames([], config) == []

    def test_error_propagates(self, config, table_frame, empty_table_frame):
        with pytest.raises(NoBallsDetectedError):
            localize_frames([table_frame, empty_table_frame], config)
