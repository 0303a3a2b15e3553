"""Seeded region growing on HSV frames.

Growth is breadth-first over an explicit work queue, so large regions never
touch the interpreter's recursion limit. Each queue entry carries the colour
of the seed it grew from; a neighbour joins when it stays within the
per-channel tolerance of that colour.
"""

import logging
from collections import deque
from typing import Optional, Sequence

import cv2
import numpy as np
from numpy.typing import NDArray

from ..models import Point

logger = logging.getLogger(__name__)

HUE_PERIOD = 180  # OpenCV 8-bit hue range

NEIGHBORS_4 = ((1, 0), (-1, 0), (0, 1), (0, -1))
NEIGHBORS_8 = NEIGHBORS_4 + ((1, 1), (1, -1), (-1, 1), (-1, -1))


def extract_seed_points(mask: NDArray[np.uint8]) -> list[Point]:
    """All foreground pixels of a mask as (x, y), in row-major scan order."""
    rows, cols = np.nonzero(mask)
    return list(zip(cols.tolist(), rows.tolist()))


def _within_tolerance(
    pixel: tuple[int, int, int],
    reference: tuple[int, int, int],
    tolerance: tuple[int, int, int],
) -> bool:
    hue_difference = abs(pixel[0] - reference[0])
    hue_difference = min(hue_difference, HUE_PERIOD - hue_difference)
    return (
        hue_difference <= tolerance[0]
        and abs(pixel[1] - reference[1]) <= tolerance[1]
        and abs(pixel[2] - reference[2]) <= tolerance[2]
    )


def grow_region(
    hsv: NDArray[np.uint8],
    mask: NDArray[np.uint8],
    seeds: Sequence[Point],
    tolerance: Sequence[int] = (3, 6, 4),
    max_depth: Optional[int] = None,
    connectivity: int = 4,
) -> NDArray[np.uint8]:
    """Expand a mask in place from seed pixels by colour similarity.

    Args:
        hsv: HSV frame, same height and width as the mask
        mask: Binary mask to grow (modified in place)
        seeds: Seed points (x, y); processed in the given order
        tolerance: Maximum per-channel (H, S, V) distance to the seed colour
        max_depth: Maximum number of steps away from a seed, None for unbounded
        connectivity: 4 or 8

    Returns:
        The grown mask (same object as ``mask``)
    """
    if len(seeds) == 0:
        return mask
    if hsv.shape[:2] != mask.shape:
        raise ValueError(
            f"HSV frame shape {hsv.shape[:2]} does not match mask shape {mask.shape}"
        )

    offsets = NEIGHBORS_8 if connectivity == 8 else NEIGHBORS_4
    tolerance = (int(tolerance[0]), int(tolerance[1]), int(tolerance[2]))
    height, width = mask.shape

    seed_array = np.asarray(seeds, dtype=np.int64).reshape(-1, 2)
    mask[seed_array[:, 1], seed_array[:, 0]] = 255

    # Seeds without a background neighbour cannot add anything
    background = (mask == 0).astype(np.uint8)
    if connectivity == 8:
        kernel = np.ones((3, 3), np.uint8)
    else:
        kernel = cv2.getStructuringElement(cv2.MORPH_CROSS, (3, 3))
    touches_background = cv2.dilate(background, kernel) > 0
    frontier = touches_background[seed_array[:, 1], seed_array[:, 0]]

    colors = hsv.tolist()
    queue: deque[tuple[int, int, int, tuple[int, int, int]]] = deque()
    for x, y in seed_array[frontier].tolist():
        queue.append((x, y, 0, tuple(colors[y][x])))

    grown = 0
    while queue:
        x, y, depth, reference = queue.popleft()
        if max_depth is not None and depth >= max_depth:
            continue
        for dx, dy in offsets:
            nx, ny = x + dx, y + dy
            if nx < 0 or ny < 0 or nx >= width or ny >= height:
                continue
            if mask[ny, nx]:
                continue
            if _within_tolerance(colors[ny][nx], reference, tolerance):
                mask[ny, nx] = 255
                grown += 1
                queue.append((nx, ny, depth + 1, reference))

    logger.debug(f"Region growing added {grown} pixels from {len(seeds)} seeds")
    return mask
