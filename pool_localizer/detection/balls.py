"""Ball localization for a single frame.

Composes the ball stages in order:
1. Candidate mask: felt, shadow and rail-band colours on the blurred field
2. Region growing: table surface expanded from the candidate pixels
3. Ball mask: field pixels the grown surface leaves unset
4. Hole repair: highlights and enclosed gaps inside balls filled
5. Circle detection and filtering
6. Classification into cue, eight-ball, stripes and solids
"""

import logging
from typing import Callable, Optional

import numpy as np
from numpy.typing import NDArray

from ..config import LocalizerConfig
from ..models import BallsLocalization, FieldLocalization
from ..utils.visualization import draw_circles
from .candidates import ball_mask_from_surface, build_candidate_mask, prepare_frame
from .circles import find_ball_circles
from .classifier import classify_balls
from .field import PlayingFieldLocalizer
from .holes import repair_holes
from .region_growing import extract_seed_points, grow_region
from .utils import validate_frame, validate_mask

logger = logging.getLogger(__name__)

DebugHook = Callable[[str, NDArray[np.uint8]], None]


def localize_balls(
    frame: NDArray[np.uint8],
    field: FieldLocalization,
    config: Optional[LocalizerConfig] = None,
    debug_hook: Optional[DebugHook] = None,
) -> BallsLocalization:
    """Locate and classify the balls in a frame.

    Args:
        frame: Input frame in BGR format
        field: Playing field localization for the same frame
        config: Localizer configuration, defaults when None
        debug_hook: Optional callable receiving (name, image) for every
            intermediate image

    Returns:
        Balls grouped by type

    Raises:
        ValueError: If the frame is empty or the field mask does not match it
        NoBallsDetectedError: If no circle survives the filters
    """
    validate_frame(frame)
    validate_mask(field.mask, frame.shape, "Field mask")
    config = config if config is not None else LocalizerConfig()

    masked_bgr, masked_hsv = prepare_frame(frame, field.mask, config.candidates)
    if debug_hook:
        debug_hook("masked_frame", masked_bgr)

    surface = build_candidate_mask(masked_hsv, field.mask, config.candidates)
    if debug_hook:
        debug_hook("candidate_mask", surface)

    segmentation = config.segmentation
    grow_region(
        masked_hsv,
        surface,
        extract_seed_points(surface),
        tolerance=segmentation.tolerance,
        max_depth=segmentation.max_depth,
        connectivity=segmentation.connectivity,
    )
    if debug_hook:
        debug_hook("grown_surface", surface)

    ball_mask = ball_mask_from_surface(
        surface, field.mask, segmentation.cleanup_kernel_size
    )
    if debug_hook:
        debug_hook("ball_mask", ball_mask)

    repaired = repair_holes(ball_mask, config.holes)
    if debug_hook:
        debug_hook("repaired_mask", repaired)

    circles = find_ball_circles(repaired, field, config.circles)
    if debug_hook:
        debug_hook("circles", draw_circles(masked_bgr, circles))

    balls = classify_balls(masked_bgr, masked_hsv, repaired, circles, config.classifier)
    logger.debug(
        f"Localized {len(balls)} balls: cue box {balls.cue.bounding_box.as_tuple()}, "
        f"eight-ball {'found' if balls.has_black else 'absent'}, "
        f"{len(balls.solids)} solids, {len(balls.stripes)} stripes"
    )
    return balls


class BallsLocalizer:
    """Ball localization with a fixed configuration.

    Holds only configuration and the optional debug hook, so one instance
    can be shared between threads.
    """

    def __init__(
        self,
        config: Optional[LocalizerConfig] = None,
        debug_hook: Optional[DebugHook] = None,
    ) -> None:
        """Initialize the localizer.

        Args:
            config: Localizer configuration, defaults when None
            debug_hook: Optional callable receiving intermediate images
        """
        self.config = config if config is not None else LocalizerConfig()
        self.debug_hook = debug_hook
        self.field_localizer = PlayingFieldLocalizer(self.config)
        logger.info(
            f"Balls localizer initialized (radius {self.config.circles.min_radius}-"
            f"{self.config.circles.max_radius}px)"
        )

    def localize(
        self,
        frame: NDArray[np.uint8],
        field: Optional[FieldLocalization] = None,
    ) -> BallsLocalization:
        """Locate and classify the balls in a frame.

        Args:
            frame: Input frame in BGR format
            field: Playing field of the frame; extracted when None

        Returns:
            Balls grouped by type

        Raises:
            ValueError: If the frame is empty or the field mask does not match it
            NoBallsDetectedError: If no circle survives the filters
        """
        if field is None:
            validate_frame(frame)
            field = self.field_localizer.localize(frame)
            if self.debug_hook:
                self.debug_hook("field_mask", field.mask)
        return localize_balls(frame, field, self.config, self.debug_hook)

