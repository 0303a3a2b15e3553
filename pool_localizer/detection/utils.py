"""Common detection utilities."""

from typing import Optional, Sequence

import cv2
import numpy as np
from numpy.typing import NDArray

from ..models import Circle

# HSV channel bounds once a colour has been shifted by an offset. uint8
# arithmetic saturates instead of wrapping, hue included.
_CHANNEL_MIN = 0
_CHANNEL_MAX = 255


def shift_color(
    color: Sequence[int], offset: Sequence[int], sign: int = 1
) -> tuple[int, int, int]:
    """Add (sign=1) or subtract (sign=-1) an offset with saturation."""
    shifted = np.asarray(color, dtype=np.int32) + sign * np.asarray(
        offset, dtype=np.int32
    )
    shifted = np.clip(shifted, _CHANNEL_MIN, _CHANNEL_MAX)
    return (int(shifted[0]), int(shifted[1]), int(shifted[2]))


def in_range(
    image: NDArray[np.uint8], lower: Sequence[int], upper: Sequence[int]
) -> NDArray[np.uint8]:
    """cv2.inRange with plain tuples as bounds."""
    return cv2.inRange(
        image,
        np.array(lower, dtype=np.uint8),
        np.array(upper, dtype=np.uint8),
    )


def cross_kernel(size: int) -> NDArray[np.uint8]:
    return cv2.getStructuringElement(cv2.MORPH_CROSS, (size, size))


def erode_mask(mask: NDArray[np.uint8], depth: int) -> NDArray[np.uint8]:
    """Shrink a mask with a cross kernel of the given size."""
    if depth <= 1:
        return mask.copy()
    return cv2.erode(mask, cross_kernel(depth))


def boundary_band(field_mask: NDArray[np.uint8], depth: int) -> NDArray[np.uint8]:
    """Field pixels within depth of the field edge (the band along the rails)."""
    return cv2.bitwise_and(field_mask, cv2.bitwise_not(erode_mask(field_mask, depth)))


def disk_mask(shape: tuple[int, ...], circle: Circle) -> NDArray[np.uint8]:
    """Rasterize a filled disk on a zero mask of the given (height, width)."""
    mask = np.zeros(shape[:2], dtype=np.uint8)
    radius = int(round(circle.radius))
    if radius < 0:
        return mask
    center = (int(round(circle.x)), int(round(circle.y)))
    cv2.circle(mask, center, radius, 255, -1)
    return mask


def safe_ratio(numerator: float, denominator: float) -> float:
    """Ratio that is zero instead of undefined for an empty denominator."""
    if denominator <= 0:
        return 0.0
    return float(numerator) / float(denominator)


def validate_frame(frame: Optional[NDArray[np.uint8]]) -> None:
    """Raise ValueError unless frame is a non-empty 3-channel image."""
    if frame is None or frame.size == 0:
        raise ValueError("Frame is empty")
    if frame.ndim != 3 or frame.shape[2] != 3:
        raise ValueError(f"Expected a 3-channel frame, got shape {frame.shape}")


def validate_mask(mask: NDArray[np.uint8], shape: tuple[int, ...], name: str) -> None:
    """Raise ValueError unless mask is a single-channel image matching shape."""
    if mask.shape != tuple(shape[:2]):
        raise ValueError(
            f"{name} shape {mask.shape} does not match frame shape {tuple(shape[:2])}"
        )
