"""Candidate mask construction for ball detection.

The candidate mask marks everything that looks like the table surface:
- felt coloured pixels anywhere on the field
- shadow coloured pixels in a band along the rails
- broad felt-hued colours in a narrower band along the rails

Balls are the field pixels this mask leaves unset. Shadows and rail colours
are only trusted near the boundary, where cushions cast them; in the middle
of the table the same colours are usually balls.
"""

import logging

import cv2
import numpy as np
from numpy.typing import NDArray

from ..config import CandidateMaskSettings
from .utils import boundary_band, in_range, shift_color

logger = logging.getLogger(__name__)


def prepare_frame(
    frame: NDArray[np.uint8],
    field_mask: NDArray[np.uint8],
    settings: CandidateMaskSettings,
) -> tuple[NDArray[np.uint8], NDArray[np.uint8]]:
    """Blur the frame and black out everything off the field.

    Args:
        frame: Input frame in BGR format
        field_mask: Binary playing field mask
        settings: Candidate mask settings (blur parameters)

    Returns:
        Tuple of (masked BGR frame, masked HSV frame), both newly allocated
    """
    kernel = settings.blur_kernel_size
    blurred = cv2.GaussianBlur(
        frame, (kernel, kernel), settings.blur_sigma, settings.blur_sigma
    )
    masked = cv2.bitwise_and(blurred, blurred, mask=field_mask)
    masked_hsv = cv2.cvtColor(masked, cv2.COLOR_BGR2HSV)
    return masked, masked_hsv


def estimate_felt_color(hsv: NDArray[np.uint8], radius: int) -> tuple[int, int, int]:
    """Median colour of a disk at the frame centre.

    Pixels are ordered by their vector norm and the middle one is returned,
    so a ball or cue tip sitting on the exact centre does not shift the
    estimate. An empty sample yields black.
    """
    height, width = hsv.shape[:2]
    center_row, center_col = height // 2, width // 2

    rows = np.arange(center_row - radius, center_row + radius + 1)
    cols = np.arange(center_col - radius, center_col + radius + 1)
    offset_rows, offset_cols = np.meshgrid(
        rows - center_row, cols - center_col, indexing="ij"
    )
    inside_disk = offset_rows**2 + offset_cols**2 <= radius * radius

    grid_rows, grid_cols = np.meshgrid(rows, cols, indexing="ij")
    inside_image = (
        (grid_rows >= 0) & (grid_rows < height) & (grid_cols >= 0) & (grid_cols < width)
    )
    selected = inside_disk & inside_image

    if not np.any(selected):
        return (0, 0, 0)

    pixels = hsv[grid_rows[selected], grid_cols[selected]]
    norms = np.linalg.norm(pixels.astype(np.float64), axis=1)
    order = np.argsort(norms, kind="stable")
    median = pixels[order[len(order) // 2]]
    return (int(median[0]), int(median[1]), int(median[2]))


def build_candidate_mask(
    masked_hsv: NDArray[np.uint8],
    field_mask: NDArray[np.uint8],
    settings: CandidateMaskSettings,
) -> NDArray[np.uint8]:
    """Build the table-surface mask from felt, shadow and rail-band colours.

    Args:
        masked_hsv: HSV frame with everything off the field zeroed
        field_mask: Binary playing field mask
        settings: Candidate mask settings

    Returns:
        Binary mask, 255 where the pixel looks like table surface
    """
    felt = estimate_felt_color(masked_hsv, settings.felt_sample_radius)
    shadow = shift_color(felt, (0, 0, settings.shadow_value_offset), sign=-1)
    logger.debug(f"Felt colour (HSV): {felt}, shadow colour (HSV): {shadow}")

    felt_mask = in_range(
        masked_hsv,
        shift_color(felt, settings.felt_lower_offset, sign=-1),
        shift_color(felt, settings.felt_upper_offset),
    )

    shadow_mask = in_range(
        masked_hsv,
        shift_color(shadow, settings.shadow_lower_offset, sign=-1),
        shift_color(shadow, settings.shadow_upper_offset),
    )
    shadow_mask = cv2.bitwise_and(
        shadow_mask, boundary_band(field_mask, settings.shadow_band_depth)
    )

    color_mask = in_range(
        masked_hsv,
        shift_color(felt, settings.color_lower_offset, sign=-1),
        shift_color(shadow, settings.color_upper_offset),
    )
    color_mask = cv2.bitwise_and(
        color_mask, boundary_band(field_mask, settings.color_band_depth)
    )

    candidate_mask = cv2.bitwise_or(felt_mask, shadow_mask)
    candidate_mask = cv2.bitwise_or(candidate_mask, color_mask)

    logger.debug(
        f"Candidate mask: felt={cv2.countNonZero(felt_mask)}, "
        f"shadow={cv2.countNonZero(shadow_mask)}, "
        f"color={cv2.countNonZero(color_mask)} pixels"
    )
    return candidate_mask


def ball_mask_from_surface(
    surface_mask: NDArray[np.uint8],
    field_mask: NDArray[np.uint8],
    cleanup_kernel_size: int = 3,
) -> NDArray[np.uint8]:
    """Field pixels the surface mask does not claim, with speckle removed."""
    ball_mask = cv2.bitwise_and(field_mask, cv2.bitwise_not(surface_mask))
    if cleanup_kernel_size > 1:
        kernel = cv2.getStructuringElement(
            cv2.MORPH_ELLIPSE, (cleanup_kernel_size, cleanup_kernel_size)
        )
        ball_mask = cv2.morphologyEx(ball_mask, cv2.MORPH_OPEN, kernel)
    return ball_mask
