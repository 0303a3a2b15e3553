"""Pool table localization from a single camera frame.

Locates the playing field (mask, pockets, boundary lines) and the balls on
it, classified as cue ball, eight-ball, stripes and solids.

Example:
    import cv2
    from pool_localizer import BallsLocalizer

    frame = cv2.imread("table.png")
    balls = BallsLocalizer().localize(frame)
    print(balls.cue.bounding_box)
"""

from .config import LocalizerConfig, load_config
from .detection import (
    BallsLocalizer,
    LocalizationError,
    NoBallsDetectedError,
    PlayingFieldLocalizer,
    localize_balls,
)
from .models import (
    NO_LOCALIZATION,
    BallLocalization,
    BallsLocalization,
    BallType,
    BoundingBox,
    Circle,
    FieldLocalization,
)
from .pipeline import TableLocalization, localize_frames, localize_table

__version__ = "0.1.0"

__all__ = [
    "LocalizerConfig",
    "load_config",
    "BallsLocalizer",
    "PlayingFieldLocalizer",
    "localize_balls",
    "localize_table",
    "localize_frames",
    "TableLocalization",
    "LocalizationError",
    "NoBallsDetectedError",
    "NO_LOCALIZATION",
    "BallLocalization",
    "BallsLocalization",
    "BallType",
    "BoundingBox",
    "Circle",
    "FieldLocalization",
]
