"""Hole repair for ball masks.

Two independent steps close gaps inside ball blobs:
- small holes (specular highlights, felt-coloured spots) are filled by area
- any background not reachable from a known exterior pixel is filled
"""

import logging
from typing import Optional

import cv2
import numpy as np
from numpy.typing import NDArray

from ..config import HoleRepairSettings
from ..models import Point

logger = logging.getLogger(__name__)


def fill_small_holes(mask: NDArray[np.uint8], area_threshold: float) -> NDArray[np.uint8]:
    """Fill interior holes whose contour area is below the threshold.

    Args:
        mask: Binary mask (not modified)
        area_threshold: Holes with a smaller area are filled

    Returns:
        New mask with the small holes filled
    """
    filled = mask.copy()
    contours, hierarchy = cv2.findContours(
        mask, cv2.RETR_CCOMP, cv2.CHAIN_APPROX_SIMPLE
    )
    if hierarchy is None:
        return filled

    count = 0
    for index, contour in enumerate(contours):
        # With RETR_CCOMP, contours that have a parent are holes
        if hierarchy[0][index][3] == -1:
            continue
        if cv2.contourArea(contour) < area_threshold:
            cv2.drawContours(filled, contours, index, 255, -1)
            count += 1

    logger.debug(f"Filled {count} small holes")
    return filled


def find_exterior_seed(mask: NDArray[np.uint8], preferred: Point) -> Optional[Point]:
    """Background pixel to start the exterior flood fill from.

    The preferred point is used when it is background. Otherwise the image
    border is scanned (top row, bottom row, left column, right column) for
    the first background pixel. Returns None when the whole border is
    foreground.
    """
    height, width = mask.shape
    x, y = preferred
    if 0 <= x < width and 0 <= y < height and mask[y, x] == 0:
        return (x, y)

    border = (
        [(col, 0) for col in range(width)]
        + [(col, height - 1) for col in range(width)]
        + [(0, row) for row in range(height)]
        + [(width - 1, row) for row in range(height)]
    )
    for col, row in border:
        if mask[row, col] == 0:
            return (col, row)
    return None


def exterior_region(mask: NDArray[np.uint8], seed: Point) -> NDArray[np.uint8]:
    """Background pixels 4-connected to the seed, as a binary mask."""
    height, width = mask.shape
    # floodFill wants a mask two pixels larger than the image
    flood_mask = np.zeros((height + 2, width + 2), dtype=np.uint8)
    work = mask.copy()
    cv2.floodFill(
        work,
        flood_mask,
        seed,
        255,
        loDiff=0,
        upDiff=0,
        flags=4 | cv2.FLOODFILL_MASK_ONLY | (255 << 8),
    )
    return flood_mask[1:-1, 1:-1]


def fill_enclosed_background(
    mask: NDArray[np.uint8], seed: Point = (0, 0)
) -> NDArray[np.uint8]:
    """Fill every background region not reachable from the exterior seed.

    Args:
        mask: Binary mask (not modified)
        seed: Pixel known to lie outside every ball

    Returns:
        New mask: ``mask | ~exterior``
    """
    start = find_exterior_seed(mask, seed)
    if start is None:
        logger.warning("No background pixel on the image border, exterior marking skipped")
        return mask.copy()

    exterior = exterior_region(mask, start)
    return cv2.bitwise_or(mask, cv2.bitwise_not(exterior))


def repair_holes(mask: NDArray[np.uint8], settings: HoleRepairSettings) -> NDArray[np.uint8]:
    """Small-hole closing followed by exterior marking. Idempotent."""
    repaired = fill_small_holes(mask, settings.small_hole_area)
    repaired = fill_enclosed_background(repaired, settings.exterior_seed)
    logger.debug(
        f"Hole repair: {cv2.countNonZero(mask)} -> {cv2.countNonZero(repaired)} foreground pixels"
    )
    return repaired
