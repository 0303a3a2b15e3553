"""Playing field boundary extraction.

Finds the playing surface in a frame and describes it with:
- a binary field mask (largest felt-coloured component, holes filled)
- pocket centres derived from the field's outline
- boundary lines from a Hough line transform, near-duplicates merged
"""

import logging
import math
from typing import Optional

import cv2
import numpy as np
from numpy.typing import NDArray

from ..config import FieldSettings, LocalizerConfig
from ..models import FieldLocalization, Line, Point
from .utils import cross_kernel, validate_frame

logger = logging.getLogger(__name__)


def segment_colors(
    hsv: NDArray[np.uint8], settings: FieldSettings
) -> tuple[NDArray[np.int32], NDArray[np.float32]]:
    """Cluster the pixels of an HSV frame with k-means.

    Args:
        hsv: HSV frame
        settings: Field settings (cluster count and k-means criteria)

    Returns:
        Tuple of (per-pixel labels with the frame's height and width, cluster centres)
    """
    height, width = hsv.shape[:2]
    data = hsv.reshape(-1, 3).astype(np.float32)
    cluster_count = min(settings.cluster_count, len(data))

    criteria = (
        cv2.TERM_CRITERIA_MAX_ITER + cv2.TERM_CRITERIA_EPS,
        settings.kmeans_max_iterations,
        settings.kmeans_epsilon,
    )
    cv2.setRNGSeed(settings.kmeans_seed)
    _, labels, centers = cv2.kmeans(
        data,
        cluster_count,
        None,
        criteria,
        settings.kmeans_attempts,
        cv2.KMEANS_PP_CENTERS,
    )
    return labels.reshape(height, width), centers


def select_felt_cluster(labels: NDArray[np.int32]) -> NDArray[np.uint8]:
    """Mask of the pixels sharing the cluster of the frame centre pixel."""
    height, width = labels.shape
    felt_label = labels[height // 2, width // 2]
    return np.where(labels == felt_label, 255, 0).astype(np.uint8)


def clean_field_mask(mask: NDArray[np.uint8], settings: FieldSettings) -> NDArray[np.uint8]:
    """Open to remove speckle, then close to fill small gaps."""
    opened = cv2.morphologyEx(mask, cv2.MORPH_OPEN, cross_kernel(settings.open_kernel_size))
    close_kernel = cv2.getStructuringElement(
        cv2.MORPH_RECT, (settings.close_kernel_size, settings.close_kernel_size)
    )
    return cv2.morphologyEx(opened, cv2.MORPH_CLOSE, close_kernel)


def keep_largest_component(mask: NDArray[np.uint8]) -> NDArray[np.uint8]:
    """Keep only the largest connected component, with its interior filled.

    Balls resting on the felt leave holes in the colour mask; filling the
    component's outer contour gives them back to the field.
    """
    count, labels, stats, _ = cv2.connectedComponentsWithStats(mask, connectivity=8)
    result = np.zeros_like(mask)
    if count <= 1:
        return result

    largest = 1 + int(np.argmax(stats[1:, cv2.CC_STAT_AREA]))
    component = np.where(labels == largest, 255, 0).astype(np.uint8)

    contours, _ = cv2.findContours(component, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
    cv2.drawContours(result, contours, -1, 255, -1)
    return result


def detect_boundary_lines(mask: NDArray[np.uint8], settings: FieldSettings) -> list[Line]:
    """Edge detection followed by the standard Hough line transform."""
    edges = cv2.Canny(mask, settings.canny_low_threshold, settings.canny_high_threshold)
    lines = cv2.HoughLines(
        edges,
        settings.hough_rho,
        math.radians(settings.hough_theta_degrees),
        settings.hough_threshold,
    )
    if lines is None:
        return []
    return [(float(rho), float(theta)) for rho, theta in lines[:, 0, :].tolist()]


def merge_similar_lines(
    lines: list[Line], rho_tolerance: float, theta_tolerance: float
) -> list[Line]:
    """Collapse groups of near-identical lines into their mean.

    Repeatedly pops the last pending line, gathers every remaining line
    within both tolerances of it and replaces the group by its
    component-wise mean, until no line is pending.

    Args:
        lines: Lines as (rho, theta); not modified
        rho_tolerance: Maximum rho difference within a group
        theta_tolerance: Maximum theta difference within a group (radians)

    Returns:
        Merged lines, in the order the groups were formed
    """
    pending = list(lines)
    merged = []
    while pending:
        reference = pending.pop()
        group = [reference]
        remaining = []
        for line in pending:
            if (
                abs(line[0] - reference[0]) < rho_tolerance
                and abs(line[1] - reference[1]) < theta_tolerance
            ):
                group.append(line)
            else:
                remaining.append(line)
        pending = remaining

        mean_rho = sum(line[0] for line in group) / len(group)
        mean_theta = sum(line[1] for line in group) / len(group)
        merged.append((mean_rho, mean_theta))
    return merged


def _sort_corners(corners: NDArray[np.float64]) -> NDArray[np.float64]:
    """Sort corners to consistent order: top-left, top-right, bottom-left, bottom-right."""
    corners_by_y = sorted(corners.tolist(), key=lambda p: p[1])
    top_points = sorted(corners_by_y[:2], key=lambda p: p[0])
    bottom_points = sorted(corners_by_y[2:], key=lambda p: p[0])
    return np.array(top_points + bottom_points, dtype=np.float64)


def _find_quadrilateral(
    contour: NDArray[np.int32], settings: FieldSettings
) -> Optional[NDArray[np.float64]]:
    """Approximate the convex hull of a contour by four corners."""
    hull = cv2.convexHull(contour)
    perimeter = cv2.arcLength(hull, True)
    for epsilon_mult in settings.pocket_epsilon_multipliers:
        approx = cv2.approxPolyDP(hull, epsilon_mult * perimeter, True)
        if len(approx) == 4:
            return approx.reshape(-1, 2).astype(np.float64)
    return None


def _line_intersection(first: Line, second: Line) -> Optional[NDArray[np.float64]]:
    """Intersection of two (rho, theta) lines, None when they are parallel."""
    (rho1, theta1), (rho2, theta2) = first, second
    coefficients = np.array(
        [[math.cos(theta1), math.sin(theta1)], [math.cos(theta2), math.sin(theta2)]]
    )
    if abs(np.linalg.det(coefficients)) < 1e-6:
        return None
    return np.linalg.solve(coefficients, np.array([rho1, rho2]))


def corners_from_lines(
    lines: list[Line], shape: tuple[int, ...]
) -> Optional[NDArray[np.float64]]:
    """Field corners as intersections of the outermost boundary lines.

    Lines are split into near-horizontal and near-vertical ones; the two
    outermost of each group (measured through the image centre) bound the
    field.

    Args:
        lines: Merged boundary lines as (rho, theta)
        shape: Frame shape (height, width, ...)

    Returns:
        Four corners, unsorted; None when either group has fewer than two
        lines or a corner falls outside the image
    """
    height, width = shape[:2]
    center_x, center_y = width / 2.0, height / 2.0

    horizontal, vertical = [], []
    for rho, theta in lines:
        if abs(math.sin(theta)) > abs(math.cos(theta)):
            # y where the line crosses the vertical through the centre
            offset = (rho - center_x * math.cos(theta)) / math.sin(theta)
            horizontal.append((offset, (rho, theta)))
        else:
            offset = (rho - center_y * math.sin(theta)) / math.cos(theta)
            vertical.append((offset, (rho, theta)))

    if len(horizontal) < 2 or len(vertical) < 2:
        return None

    horizontal.sort(key=lambda item: item[0])
    vertical.sort(key=lambda item: item[0])
    bounding_lines = [horizontal[0][1], horizontal[-1][1]]
    side_lines = [vertical[0][1], vertical[-1][1]]

    corners = []
    for boundary in bounding_lines:
        for side in side_lines:
            point = _line_intersection(boundary, side)
            if point is None:
                return None
            if not (-1.0 <= point[0] <= width and -1.0 <= point[1] <= height):
                return None
            corners.append(point)
    return np.array(corners, dtype=np.float64)


def find_pocket_points(
    mask: NDArray[np.uint8],
    settings: FieldSettings,
    lines: Optional[list[Line]] = None,
) -> list[Point]:
    """Pocket centres from the outline of the field.

    Corner pockets sit on the field corners, side pockets at the midpoints
    of its two longer sides. Corners come from the intersections of the
    boundary lines when they bound the field on all four sides, otherwise
    from a quadrilateral fitted to the mask outline. The blurred felt edge
    and the mask clean-up move the outline by a few pixels, so pockets are
    accurate to about 5 px of the true felt corners.

    Args:
        mask: Binary field mask
        settings: Field settings (quadrilateral fit epsilons)
        lines: Merged boundary lines, if already detected

    Returns:
        Corner pockets (top-left, top-right, bottom-left, bottom-right)
        followed by the two side pockets; empty if no corners are found
    """
    corners = corners_from_lines(lines, mask.shape) if lines else None

    if corners is None:
        contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
        if not contours:
            return []

        largest_contour = max(contours, key=cv2.contourArea)
        corners = _find_quadrilateral(largest_contour, settings)
        if corners is None:
            logger.warning("Could not fit a quadrilateral to the field, no pockets derived")
            return []

    top_left, top_right, bottom_left, bottom_right = _sort_corners(corners)

    width = np.linalg.norm(top_right - top_left)
    height = np.linalg.norm(bottom_left - top_left)
    if width >= height:
        side_pockets = [(top_left + top_right) / 2, (bottom_left + bottom_right) / 2]
    else:
        side_pockets = [(top_left + bottom_left) / 2, (top_right + bottom_right) / 2]

    points = [top_left, top_right, bottom_left, bottom_right] + side_pockets
    return [(int(round(p[0])), int(round(p[1]))) for p in points]


class PlayingFieldLocalizer:
    """Playing field detection from a single frame.

    Holds only configuration; every call to :meth:`localize` works on its
    own buffers, so one instance can serve several threads.
    """

    def __init__(self, config: Optional[LocalizerConfig] = None) -> None:
        """Initialize the localizer.

        Args:
            config: Localizer configuration, defaults when None
        """
        self.config = config if config is not None else LocalizerConfig()
        logger.info(
            f"Playing field localizer initialized with {self.config.field.cluster_count} colour clusters"
        )

    def localize(self, frame: NDArray[np.uint8]) -> FieldLocalization:
        """Locate the playing field in a frame.

        Args:
            frame: Input frame in BGR format

        Returns:
            Field mask, pocket centres and merged boundary lines

        Raises:
            ValueError: If the frame is empty or not a 3-channel image
        """
        validate_frame(frame)
        settings = self.config.field

        kernel = settings.blur_kernel_size
        blurred = cv2.GaussianBlur(
            frame, (kernel, kernel), settings.blur_sigma, settings.blur_sigma
        )
        hsv = cv2.cvtColor(blurred, cv2.COLOR_BGR2HSV)

        labels, centers = segment_colors(hsv, settings)
        logger.debug(f"Colour cluster centres (HSV): {centers.tolist()}")

        mask = select_felt_cluster(labels)
        mask = clean_field_mask(mask, settings)
        mask = keep_largest_component(mask)

        field = FieldLocalization(mask=mask)
        if field.is_empty:
            logger.warning("No felt-coloured component found, field is empty")
            return field

        lines = detect_boundary_lines(mask, settings)
        merged_lines = merge_similar_lines(
            lines, settings.merge_rho_tolerance, settings.merge_theta_tolerance
        )
        holes = find_pocket_points(mask, settings, merged_lines)

        logger.debug(
            f"Field: {cv2.countNonZero(mask)} pixels, {len(lines)} lines merged into "
            f"{len(merged_lines)}, {len(holes)} pockets"
        )
        return FieldLocalization(mask=mask, holes=holes, lines=merged_lines)
