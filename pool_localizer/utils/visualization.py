"""Debug visualization helpers.

Drawing helpers render onto copies of the input image and never open
windows. ``DebugImageCollector`` can be passed as a ``debug_hook`` to the
localizers to keep every intermediate image of a run.
"""

import threading
from typing import Sequence

import cv2
import numpy as np
from numpy.typing import NDArray

from ..models import Circle, Line

Color = tuple[int, int, int]


class DebugImageCollector:
    """Debug hook storing (name, image) pairs in call order."""

    def __init__(self) -> None:
        self.debug_images: list[tuple[str, NDArray[np.uint8]]] = []
        self._lock = threading.Lock()

    def __call__(self, name: str, image: NDArray[np.uint8]) -> None:
        with self._lock:
            self.debug_images.append((name, image.copy()))

    def get_debug_images(self) -> list[tuple[str, NDArray[np.uint8]]]:
        """Get debug images."""
        with self._lock:
            return list(self.debug_images)

    def get(self, name: str) -> NDArray[np.uint8]:
        """Most recent image stored under a name.

        Raises:
            KeyError: If no image with that name was collected
        """
        with self._lock:
            for image_name, image in reversed(self.debug_images):
                if image_name == name:
                    return image
        raise KeyError(name)

    def names(self) -> list[str]:
        with self._lock:
            return [name for name, _ in self.debug_images]

    def clear(self) -> None:
        """Clear debug image storage."""
        with self._lock:
            self.debug_images.clear()


def _to_bgr(image: NDArray[np.uint8]) -> NDArray[np.uint8]:
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    return image.copy()


def draw_circles(
    image: NDArray[np.uint8],
    circles: Sequence[Circle],
    color: Color = (0, 255, 0),
    thickness: int = 2,
) -> NDArray[np.uint8]:
    """Draw circle outlines and centres on a copy of the image.

    Args:
        image: BGR or single-channel image (not modified)
        circles: Circles to draw
        color: BGR outline colour
        thickness: Outline thickness in pixels

    Returns:
        BGR copy with the circles drawn
    """
    canvas = _to_bgr(image)
    for circle in circles:
        center = (int(circle.x), int(circle.y))
        cv2.circle(canvas, center, int(circle.radius), color, thickness)
        cv2.circle(canvas, center, 2, (0, 0, 255), 3)
    return canvas


def draw_lines(
    image: NDArray[np.uint8],
    lines: Sequence[Line],
    color: Color = (0, 0, 255),
    thickness: int = 2,
) -> NDArray[np.uint8]:
    """Draw (rho, theta) lines across a copy of the image."""
    canvas = _to_bgr(image)
    extent = 2 * max(canvas.shape[:2])
    for rho, theta in lines:
        a, b = np.cos(theta), np.sin(theta)
        x0, y0 = a * rho, b * rho
        start = (int(x0 - extent * b), int(y0 + extent * a))
        end = (int(x0 + extent * b), int(y0 - extent * a))
        cv2.line(canvas, start, end, color, thickness)
    return canvas
