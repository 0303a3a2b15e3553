"""Circle detection and false-positive filtering.

Detection runs a Hough transform over the repaired ball mask, tuned to
ball-sized radii. Four filters then remove false positives, in this order:
1. empty circles (disk mostly on background)
2. out-of-bound circles (centre on or over the rail)
3. circles next to a pocket (pockets look like dark balls)
4. small circles just below a larger one (rim/shadow artefacts)

The cheap filters run first so the quadratic de-duplication sees fewer
candidates.
"""

import logging
import math
from typing import Sequence

import cv2
import numpy as np
from numpy.typing import NDArray

from ..config import CircleSettings
from ..models import Circle, FieldLocalization, Point
from .utils import disk_mask, erode_mask, safe_ratio

logger = logging.getLogger(__name__)


def detect_circles(mask: NDArray[np.uint8], settings: CircleSettings) -> list[Circle]:
    """Detect ball-sized circles in a binary mask.

    Args:
        mask: Binary ball mask
        settings: Circle detection settings

    Returns:
        Detected circles in the order reported by the Hough transform
    """
    circles = cv2.HoughCircles(
        mask,
        cv2.HOUGH_GRADIENT,
        dp=settings.dp,
        minDist=settings.min_distance,
        param1=settings.canny_threshold,
        param2=settings.accumulator_threshold,
        minRadius=settings.min_radius,
        maxRadius=settings.max_radius,
    )

    if circles is None:
        return []

    return [
        Circle(float(x), float(y), float(r)) for x, y, r in circles[0, :].tolist()
    ]


def circle_fill_ratio(circle: Circle, mask: NDArray[np.uint8]) -> float:
    """Fraction of the circle's disk covered by the mask (0 for an empty disk)."""
    disk = disk_mask(mask.shape, circle)
    disk_area = cv2.countNonZero(disk)
    covered = cv2.countNonZero(cv2.bitwise_and(disk, mask))
    return safe_ratio(covered, disk_area)


def filter_empty_circles(
    circles: Sequence[Circle], mask: NDArray[np.uint8], min_fill_ratio: float
) -> list[Circle]:
    """Drop circles whose disk is covered by the mask less than min_fill_ratio."""
    return [
        circle for circle in circles if circle_fill_ratio(circle, mask) >= min_fill_ratio
    ]


def filter_out_of_bound_circles(
    circles: Sequence[Circle], field_mask: NDArray[np.uint8], margin: int
) -> list[Circle]:
    """Drop circles whose centre lies outside the field shrunk by margin."""
    shrunk = erode_mask(field_mask, margin)
    height, width = shrunk.shape

    kept = []
    for circle in circles:
        x, y = int(round(circle.x)), int(round(circle.y))
        if 0 <= x < width and 0 <= y < height and shrunk[y, x] == 255:
            kept.append(circle)
    return kept


def filter_near_hole_circles(
    circles: Sequence[Circle], holes: Sequence[Point], distance: float
) -> list[Circle]:
    """Drop circles whose centre is closer than distance to any pocket."""
    kept = []
    for circle in circles:
        x, y = int(circle.x), int(circle.y)
        if all(math.hypot(x - hx, y - hy) >= distance for hx, hy in holes):
            kept.append(circle)
    return kept


def filter_close_dissimilar_circles(
    circles: Sequence[Circle],
    neighborhood: float,
    vertical_distance: float,
    radius_difference: float,
) -> list[Circle]:
    """Drop small circles sitting just below a larger neighbour.

    For every ordered pair (i, j) of circles closer than ``neighborhood`` in
    (x, y, radius) space, j is dropped when it lies below i by less than
    ``vertical_distance`` and i's radius exceeds j's by more than
    ``radius_difference``.
    """
    to_remove = [False] * len(circles)
    for i, upper in enumerate(circles):
        for j, lower in enumerate(circles):
            if i == j or upper.distance_to(lower) >= neighborhood:
                continue
            if (
                lower.y > upper.y
                and abs(lower.y - upper.y) < vertical_distance
                and upper.radius - lower.radius > radius_difference
            ):
                to_remove[j] = True

    return [circle for circle, remove in zip(circles, to_remove) if not remove]


def find_ball_circles(
    mask: NDArray[np.uint8], field: FieldLocalization, settings: CircleSettings
) -> list[Circle]:
    """Detect circles and run the full filter chain.

    Args:
        mask: Repaired ball mask
        field: Playing field localization (mask and pockets)
        settings: Circle detection settings

    Returns:
        Surviving circles, in detection order
    """
    circles = detect_circles(mask, settings)
    logger.debug(f"Hough transform found {len(circles)} circles")

    circles = filter_empty_circles(circles, mask, settings.min_fill_ratio)
    logger.debug(f"{len(circles)} circles after empty-circle filter")

    circles = filter_out_of_bound_circles(circles, field.mask, settings.boundary_margin)
    logger.debug(f"{len(circles)} circles after out-of-bound filter")

    circles = filter_near_hole_circles(circles, field.holes, settings.hole_distance)
    logger.debug(f"{len(circles)} circles after near-hole filter")

    circles = filter_close_dissimilar_circles(
        circles,
        settings.dedup_neighborhood,
        settings.dedup_vertical_distance,
        settings.dedup_radius_difference,
    )
    logger.debug(f"{len(circles)} circles after close-circle filter")

    return circles
