"""Ball type classification from colour ratios.

Each circle is scored by the fraction of its ball pixels falling in an HSV
range. Ball pixels are the disk pixels the ball mask claims; felt showing
through the disk edge does not count.

- Cue ball: highest "white" ratio, ties broken by closeness to pure white
- Eight-ball: highest "black" ratio above a threshold, otherwise absent
- Stripes: white ratio within a band, after discarding specular glints
- Solids: everything else
"""

import logging
import math
from typing import Optional, Sequence

import cv2
import numpy as np
from numpy.typing import NDArray

from ..config import ClassifierSettings
from ..models import NO_LOCALIZATION, BallLocalization, BallsLocalization, Circle
from .utils import disk_mask, in_range, safe_ratio

logger = logging.getLogger(__name__)


class LocalizationError(Exception):
    """Base error for localization failures."""


class NoBallsDetectedError(LocalizationError):
    """Raised when classification is asked to label an empty set of circles."""


def ball_region(ball_mask: NDArray[np.uint8], circle: Circle) -> NDArray[np.uint8]:
    """Disk pixels claimed by the ball mask."""
    return cv2.bitwise_and(disk_mask(ball_mask.shape, circle), ball_mask)


def remove_small_components(mask: NDArray[np.uint8], min_diameter: float) -> NDArray[np.uint8]:
    """Clear connected components whose enclosing circle is narrower than min_diameter.

    Args:
        mask: Binary mask (not modified)
        min_diameter: Minimum enclosing-circle diameter to keep a component

    Returns:
        New mask without the small components
    """
    cleaned = mask.copy()
    count, labels, _, _ = cv2.connectedComponentsWithStats(mask, connectivity=8)

    for label in range(1, count):
        component = labels == label
        rows, cols = np.nonzero(component)
        points = np.column_stack((cols, rows)).astype(np.float32)
        _, radius = cv2.minEnclosingCircle(points)
        if 2 * radius < min_diameter:
            cleaned[component] = 0

    return cleaned


def color_ratio_in_circle(
    hsv: NDArray[np.uint8],
    ball_mask: NDArray[np.uint8],
    circle: Circle,
    lower: Sequence[int],
    upper: Sequence[int],
    min_component_diameter: Optional[float] = None,
) -> float:
    """Fraction of a circle's ball pixels within an HSV range.

    Args:
        hsv: HSV frame
        ball_mask: Binary ball mask
        circle: Circle to score
        lower: Lower HSV bound
        upper: Upper HSV bound
        min_component_diameter: When set, matching blobs narrower than this
            are discarded before counting

    Returns:
        Ratio in [0, 1]; 0 when the circle has no ball pixels
    """
    region = ball_region(ball_mask, circle)
    matching = cv2.bitwise_and(in_range(hsv, lower, upper), region)
    if min_component_diameter is not None:
        matching = remove_small_components(matching, min_component_diameter)
    return safe_ratio(cv2.countNonZero(matching), cv2.countNonZero(region))


def mean_squared_white_distance(
    bgr: NDArray[np.uint8], ball_mask: NDArray[np.uint8], circle: Circle
) -> float:
    """Mean over ball pixels of the squared B/G/R distance from pure white.

    Returns infinity for a circle without ball pixels so it never wins a
    tie-break.
    """
    region = ball_region(ball_mask, circle) > 0
    if not np.any(region):
        return math.inf
    pixels = bgr[region].astype(np.float64)
    return float(np.mean(np.sum((255.0 - pixels) ** 2, axis=1)))


def _rank(scored: list[tuple[Circle, float]]) -> list[tuple[Circle, float]]:
    # Descending score; coordinates make equal scores order independent
    return sorted(scored, key=lambda item: (-item[1], item[0].sort_key()))


def find_cue_ball(
    bgr: NDArray[np.uint8],
    hsv: NDArray[np.uint8],
    ball_mask: NDArray[np.uint8],
    circles: Sequence[Circle],
    settings: ClassifierSettings,
) -> Circle:
    """Pick the cue ball among the circles.

    Raises:
        NoBallsDetectedError: If circles is empty
    """
    if not circles:
        raise NoBallsDetectedError("No ball candidates to classify")

    ranked = _rank(
        [
            (
                circle,
                color_ratio_in_circle(
                    hsv,
                    ball_mask,
                    circle,
                    settings.cue_white_lower,
                    settings.cue_white_upper,
                ),
            )
            for circle in circles
        ]
    )

    best, best_score = ranked[0]
    if len(ranked) == 1:
        return best

    runner_up, runner_up_score = ranked[1]
    if best_score - runner_up_score > settings.cue_tie_margin:
        return best

    best_distance = mean_squared_white_distance(bgr, ball_mask, best)
    runner_up_distance = mean_squared_white_distance(bgr, ball_mask, runner_up)
    logger.debug(
        f"Cue tie-break: {best} ({best_score:.2f}, mse={best_distance:.1f}) vs "
        f"{runner_up} ({runner_up_score:.2f}, mse={runner_up_distance:.1f})"
    )
    return runner_up if runner_up_distance < best_distance else best


def find_black_ball(
    hsv: NDArray[np.uint8],
    ball_mask: NDArray[np.uint8],
    circles: Sequence[Circle],
    settings: ClassifierSettings,
) -> BallLocalization:
    """Pick the eight-ball, or NO_LOCALIZATION when no circle is black enough."""
    if not circles:
        return NO_LOCALIZATION

    ranked = _rank(
        [
            (
                circle,
                color_ratio_in_circle(
                    hsv, ball_mask, circle, settings.black_lower, settings.black_upper
                ),
            )
            for circle in circles
        ]
    )

    best, best_score = ranked[0]
    if best_score > settings.black_min_ratio:
        return BallLocalization.from_circle(best)

    logger.debug(f"No eight-ball found (best black ratio {best_score:.2f})")
    return NO_LOCALIZATION


def split_stripes_and_solids(
    hsv: NDArray[np.uint8],
    ball_mask: NDArray[np.uint8],
    circles: Sequence[Circle],
    settings: ClassifierSettings,
) -> tuple[list[Circle], list[Circle]]:
    """Split circles into stripes and solids by their white ratio.

    Returns:
        Tuple of (stripes, solids), each ordered by descending white ratio
    """
    ranked = _rank(
        [
            (
                circle,
                color_ratio_in_circle(
                    hsv,
                    ball_mask,
                    circle,
                    settings.stripe_white_lower,
                    settings.stripe_white_upper,
                    min_component_diameter=settings.glint_min_diameter,
                ),
            )
            for circle in circles
        ]
    )

    stripes, solids = [], []
    for circle, ratio in ranked:
        if settings.stripe_min_ratio <= ratio <= settings.stripe_max_ratio:
            stripes.append(circle)
        else:
            solids.append(circle)
    return stripes, solids


def classify_balls(
    bgr: NDArray[np.uint8],
    hsv: NDArray[np.uint8],
    ball_mask: NDArray[np.uint8],
    circles: Sequence[Circle],
    settings: ClassifierSettings,
) -> BallsLocalization:
    """Assign every circle to cue, eight-ball, stripes or solids.

    Args:
        bgr: Blurred, field-masked frame in BGR format
        hsv: Same frame in HSV
        ball_mask: Repaired ball mask
        circles: Filtered circles
        settings: Classifier settings

    Returns:
        BallsLocalization with each circle in exactly one group

    Raises:
        NoBallsDetectedError: If circles is empty
    """
    cue = find_cue_ball(bgr, hsv, ball_mask, circles, settings)
    remaining = [circle for circle in circles if circle != cue]

    black = find_black_ball(hsv, ball_mask, remaining, settings)
    if black != NO_LOCALIZATION:
        remaining = [circle for circle in remaining if circle != black.circle]

    stripes, solids = split_stripes_and_solids(hsv, ball_mask, remaining, settings)

    return BallsLocalization(
        cue=BallLocalization.from_circle(cue),
        black=black,
        solids=[BallLocalization.from_circle(circle) for circle in solids],
        stripes=[BallLocalization.from_circle(circle) for circle in stripes],
    )
