"""Configuration schemas for the pool localizer.

Every threshold used by the field extractor and the ball pipeline lives here
as a named, validated field with a documented default. Settings can be built
in code, from a nested dictionary, or loaded from a JSON file:

    config = load_config("localizer.json")
    min_radius = config.circles.min_radius
"""

import json
import logging
from pathlib import Path
from typing import Annotated, Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

# OpenCV 8-bit HSV: hue in [0, 179], saturation and value in [0, 255]
HueValue = Annotated[int, Field(ge=0, le=179)]
ChannelValue = Annotated[int, Field(ge=0, le=255)]
HSVTriple = tuple[HueValue, ChannelValue, ChannelValue]


class BaseConfig(BaseModel):
    """Base configuration class with common functionality."""

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )


def _validate_odd(value: int) -> int:
    if value % 2 == 0:
        raise ValueError("Kernel size must be odd")
    return value


# =============================================================================
# Playing field
# =============================================================================


class FieldSettings(BaseConfig):
    """Playing field boundary extraction settings."""

    blur_kernel_size: int = Field(
        default=3, ge=1, le=31, description="Gaussian blur kernel size (must be odd)"
    )
    blur_sigma: float = Field(default=12.0, ge=0.0, description="Gaussian blur sigma")

    cluster_count: int = Field(
        default=4, ge=2, le=16, description="Number of k-means colour clusters"
    )
    kmeans_max_iterations: int = Field(default=10, ge=1, le=1000)
    kmeans_epsilon: float = Field(default=1.0, gt=0.0)
    kmeans_attempts: int = Field(default=3, ge=1, le=50)
    kmeans_seed: int = Field(
        default=0, ge=0, description="Seed for the OpenCV RNG used by k-means++"
    )

    open_kernel_size: int = Field(
        default=5, ge=1, le=99, description="Cross kernel removing speckle"
    )
    close_kernel_size: int = Field(
        default=20, ge=1, le=199, description="Rectangular kernel filling small gaps"
    )

    canny_low_threshold: int = Field(default=50, ge=0, le=255)
    canny_high_threshold: int = Field(default=150, ge=0, le=255)

    hough_rho: float = Field(default=1.6, gt=0.0, description="Line accumulator rho step")
    hough_theta_degrees: float = Field(
        default=1.8, gt=0.0, le=90.0, description="Line accumulator theta step"
    )
    hough_threshold: int = Field(default=120, ge=1, description="Minimum line votes")

    merge_rho_tolerance: float = Field(default=25.0, ge=0.0)
    merge_theta_tolerance: float = Field(default=0.2, ge=0.0)

    pocket_epsilon_multipliers: list[float] = Field(
        default_factory=lambda: [0.01, 0.02, 0.03, 0.04, 0.05, 0.06, 0.08, 0.10],
        description="approxPolyDP epsilon factors tried to find the table quadrilateral",
    )

    @field_validator("blur_kernel_size")
    @classmethod
    def validate_odd_kernel_size(cls, v):
        """Validate kernel size is odd."""
        return _validate_odd(v)


# =============================================================================
# Ball pipeline
# =============================================================================


class CandidateMaskSettings(BaseConfig):
    """Felt, shadow and rail-band colour thresholds."""

    blur_kernel_size: int = Field(
        default=3, ge=1, le=31, description="Gaussian blur kernel size (must be odd)"
    )
    blur_sigma: float = Field(default=3.0, ge=0.0)

    felt_sample_radius: int = Field(
        default=100,
        ge=0,
        description="Radius of the disk sampled at the frame centre for the felt colour",
    )
    shadow_value_offset: int = Field(
        default=90, ge=0, le=255, description="Value drop from felt to shadow colour"
    )

    felt_lower_offset: HSVTriple = (5, 80, 50)
    felt_upper_offset: HSVTriple = (5, 60, 15)
    shadow_lower_offset: HSVTriple = (3, 30, 80)
    shadow_upper_offset: HSVTriple = (3, 100, 40)
    color_lower_offset: HSVTriple = (10, 255, 150)
    color_upper_offset: HSVTriple = (10, 255, 255)

    shadow_band_depth: int = Field(
        default=50, ge=0, description="Depth of the rail band where shadows count"
    )
    color_band_depth: int = Field(
        default=30, ge=0, description="Depth of the rail band where rail colours count"
    )

    @field_validator("blur_kernel_size")
    @classmethod
    def validate_odd_kernel_size(cls, v):
        """Validate kernel size is odd."""
        return _validate_odd(v)


class SegmentationSettings(BaseConfig):
    """Region growing and ball mask clean-up."""

    tolerance: HSVTriple = Field(
        default=(3, 6, 4), description="Per-channel HSV tolerance for region growing"
    )
    max_depth: Optional[int] = Field(
        default=None,
        ge=1,
        description="Maximum growth distance from a seed (None = unbounded)",
    )
    connectivity: int = Field(default=4, description="Pixel connectivity (4 or 8)")
    cleanup_kernel_size: int = Field(
        default=3, ge=0, le=31, description="Elliptic opening on the ball mask (0 = off)"
    )

    @field_validator("connectivity")
    @classmethod
    def validate_connectivity(cls, v):
        """Validate connectivity is 4 or 8."""
        if v not in (4, 8):
            raise ValueError("connectivity must be 4 or 8")
        return v


class HoleRepairSettings(BaseConfig):
    """Hole repair thresholds."""

    small_hole_area: float = Field(
        default=90.0, ge=0.0, description="Holes below this area are filled"
    )
    exterior_seed: tuple[int, int] = Field(
        default=(0, 0), description="Pixel known to lie outside every ball"
    )


class CircleSettings(BaseConfig):
    """Hough circle detection and false-positive filters."""

    min_radius: int = Field(default=8, ge=1)
    max_radius: int = Field(default=16, ge=1)
    dp: float = Field(default=1.0, ge=1.0, description="Inverse accumulator resolution")
    min_distance: float = Field(default=15.0, gt=0.0)
    canny_threshold: float = Field(default=100.0, gt=0.0)
    accumulator_threshold: float = Field(default=5.0, gt=0.0)

    min_fill_ratio: float = Field(
        default=0.60, ge=0.0, le=1.0, description="Minimum disk coverage by the ball mask"
    )
    boundary_margin: int = Field(
        default=20, ge=0, description="Erosion applied to the field before the centre test"
    )
    hole_distance: float = Field(default=27.0, ge=0.0)

    dedup_neighborhood: float = Field(default=25.0, ge=0.0)
    dedup_vertical_distance: float = Field(default=25.0, ge=0.0)
    dedup_radius_difference: float = Field(default=2.0, ge=0.0)

    @model_validator(mode="after")
    def validate_radius_band(self):
        """Validate the Hough radius band is not inverted."""
        if self.min_radius > self.max_radius:
            raise ValueError(
                f"min_radius ({self.min_radius}) must not exceed max_radius ({self.max_radius})"
            )
        return self


class ClassifierSettings(BaseConfig):
    """Colour-ratio heuristics used to label circles."""

    cue_white_lower: HSVTriple = (20, 0, 180)
    cue_white_upper: HSVTriple = (110, 100, 255)
    cue_tie_margin: float = Field(
        default=0.1, ge=0.0, le=1.0, description="Score gap below which the tie-break runs"
    )

    black_lower: HSVTriple = (35, 1, 0)
    black_upper: HSVTriple = (140, 255, 90)
    black_min_ratio: float = Field(default=0.5, ge=0.0, le=1.0)

    stripe_white_lower: HSVTriple = (0, 0, 95)
    stripe_white_upper: HSVTriple = (120, 100, 255)
    glint_min_diameter: float = Field(
        default=8.0, ge=0.0, description="White blobs narrower than this are glints"
    )
    stripe_min_ratio: float = Field(default=0.17, ge=0.0, le=1.0)
    stripe_max_ratio: float = Field(default=0.81, ge=0.0, le=1.0)


# =============================================================================
# Root configuration
# =============================================================================


class LocalizerConfig(BaseConfig):
    """Complete localizer configuration."""

    field: FieldSettings = Field(default_factory=FieldSettings)
    candidates: CandidateMaskSettings = Field(default_factory=CandidateMaskSettings)
    segmentation: SegmentationSettings = Field(default_factory=SegmentationSettings)
    holes: HoleRepairSettings = Field(default_factory=HoleRepairSettings)
    circles: CircleSettings = Field(default_factory=CircleSettings)
    classifier: ClassifierSettings = Field(default_factory=ClassifierSettings)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LocalizerConfig":
        """Create a validated configuration from a nested dictionary.

        Args:
            data: Nested dictionary with optional sections (field, candidates,
                  segmentation, holes, circles, classifier)

        Returns:
            LocalizerConfig instance
        """
        return cls.model_validate(data)


def load_config(config_path: Optional[Union[str, Path]] = None) -> LocalizerConfig:
    """Load configuration from a JSON file.

    Args:
        config_path: Path to the configuration file. None yields the defaults.

    Returns:
        Validated configuration. A missing file falls back to the defaults.

    Raises:
        json.JSONDecodeError: If the file is not valid JSON
        pydantic.ValidationError: If a value is out of range or unknown
    """
    if config_path is None:
        return LocalizerConfig()

    path = Path(config_path)
    if not path.exists():
        logger.warning(f"Config file not found: {path}, using defaults")
        return LocalizerConfig()

    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    logger.info(f"Loaded configuration from {path}")
    return LocalizerConfig.from_dict(data)
