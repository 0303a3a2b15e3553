"""Tests for configuration schemas and loading."""

import json

import pytest
from pydantic import ValidationError

from ..config import (
    CandidateMaskSettings,
    CircleSettings,
    ClassifierSettings,
    FieldSettings,
    LocalizerConfig,
    SegmentationSettings,
    load_config,
)


@pytest.mark.unit()
class TestLocalizerConfig:
    """Test configuration defaults and validation."""

    def test_defaults(self):
        config = LocalizerConfig()

        assert config.field.cluster_count == 4
        assert config.candidates.felt_sample_radius == 100
        assert config.candidates.shadow_value_offset == 90
        assert config.segmentation.tolerance == (3, 6, 4)
        assert config.segmentation.max_depth is None
        assert config.holes.small_hole_area == 90.0
        assert config.circles.min_radius == 8
        assert config.circles.max_radius == 16
        assert config.circles.hole_distance == 27.0
        assert config.classifier.cue_tie_margin == 0.1
        assert config.classifier.black_min_ratio == 0.5
        assert config.classifier.stripe_min_ratio == 0.17
        assert config.classifier.stripe_max_ratio == 0.81

    def test_from_dict_partial_sections(self):
        config = LocalizerConfig.from_dict(
            {"circles": {"min_radius": 10, "max_radius": 20}}
        )

        assert config.circles.min_radius == 10
        assert config.circles.max_radius == 20
        assert config.field.cluster_count == 4

    def test_even_kernel_rejected(self):
        with pytest.raises(ValidationError):
            FieldSettings(blur_kernel_size=4)

    def test_unknown_key_rejected(self):
        with pytest.raises(ValidationError):
            LocalizerConfig.from_dict({"circles": {"min_radus": 10}})

    def test_inverted_radius_band_rejected(self):
        with pytest.raises(ValidationError):
            CircleSettings(min_radius=20, max_radius=10)

    def test_connectivity_must_be_4_or_8(self):
        assert SegmentationSettings(connectivity=8).connectivity == 8
        with pytest.raises(ValidationError):
            SegmentationSettings(connectivity=6)

    def test_hsv_channel_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            ClassifierSettings(cue_white_upper=(110, 100, 300))

    def test_hue_above_179_rejected(self):
        with pytest.raises(ValidationError):
            ClassifierSettings(black_upper=(180, 255, 90))

    def test_negative_offset_rejected(self):
        with pytest.raises(ValidationError):
            CandidateMaskSettings(felt_lower_offset=(5, -1, 50))

    def test_tolerance_bounded(self):
        with pytest.raises(ValidationError):
            SegmentationSettings(tolerance=(3, 6, 256))
        assert SegmentationSettings(tolerance=(179, 255, 255)).tolerance == (179, 255, 255)

    def test_assignment_is_validated(self):
        settings = CircleSettings()

        with pytest.raises(ValidationError):
            settings.min_fill_ratio = 1.5


@pytest.mark.unit()
class TestLoadConfig:
    """Test loading configuration from JSON files."""

    def test_none_gives_defaults(self):
        assert load_config() == LocalizerConfig()

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(tmp_path / "missing.json") == LocalizerConfig()

    def test_load_json_file(self, tmp_path):
        path = tmp_path / "localizer.json"
        path.write_text(
            json.dumps(
                {
                    "segmentation": {"tolerance": [4, 8, 6], "max_depth": 50},
                    "classifier": {"black_min_ratio": 0.4},
                }
            )
        )

        config = load_config(path)

        assert config.segmentation.tolerance == (4, 8, 6)
        assert config.segmentation.max_depth == 50
        assert config.classifier.black_min_ratio == 0.4

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(json.JSONDecodeError):
            load_config(path)
