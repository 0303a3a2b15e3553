"""Localization data models.

Provides the data structures produced by the localizers:
- Circles and the bounding boxes derived from them
- Per-ball localizations grouped by ball type
- Playing field localization (mask, pockets, boundary lines)

All coordinates are in pixel space of the input frame.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

import numpy as np
from numpy.typing import NDArray

Point = tuple[int, int]
Line = tuple[float, float]  # (rho, theta) in Hough normal form


class BallType(Enum):
    """Ball type classification."""

    CUE = "cue"
    EIGHT = "eight"
    SOLID = "solid"
    STRIPE = "stripe"


# =============================================================================
# Geometry
# =============================================================================


@dataclass(frozen=True)
class Circle:
    """Detected ball candidate."""

    x: float
    y: float
    radius: float

    @property
    def center(self) -> tuple[float, float]:
        return (self.x, self.y)

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.radius)

    def sort_key(self) -> tuple[float, float, float]:
        """Ordering used to break score ties independently of input order."""
        return (self.x, self.y, self.radius)

    def distance_to(self, other: "Circle") -> float:
        """Euclidean distance between the (x, y, radius) vectors."""
        return float(
            np.linalg.norm(np.subtract(self.as_tuple(), other.as_tuple()))
        )


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned rectangle in pixel coordinates."""

    x: int
    y: int
    width: int
    height: int

    @classmethod
    def from_circle(cls, circle: Circle) -> "BoundingBox":
        """Enclosing 2r x 2r square centred on the circle.

        Centre and radius are truncated to integers first, which keeps the
        box in the same integer grid as annotated ground truth.
        """
        center_x = int(circle.x)
        center_y = int(circle.y)
        radius = int(circle.radius)
        return cls(
            x=center_x - radius,
            y=center_y - radius,
            width=2 * radius,
            height=2 * radius,
        )

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.x, self.y, self.width, self.height)


# =============================================================================
# Ball localization
# =============================================================================


@dataclass(frozen=True)
class BallLocalization:
    """A located ball: its circle and derived bounding box."""

    circle: Circle
    bounding_box: BoundingBox

    @classmethod
    def from_circle(cls, circle: Circle) -> "BallLocalization":
        return cls(circle=circle, bounding_box=BoundingBox.from_circle(circle))


# Sentinel for a ball that was not found (e.g. no eight-ball on the table)
NO_LOCALIZATION = BallLocalization(
    circle=Circle(0.0, 0.0, 0.0), bounding_box=BoundingBox(0, 0, 0, 0)
)


@dataclass(frozen=True)
class BallsLocalization:
    """All balls located in one frame, grouped by type.

    A circle appears in at most one group; construction fails otherwise.
    """

    cue: BallLocalization
    black: BallLocalization = NO_LOCALIZATION
    solids: list[BallLocalization] = field(default_factory=list)
    stripes: list[BallLocalization] = field(default_factory=list)

    def __post_init__(self) -> None:
        seen: set[Circle] = set()
        for _, localization in self.items():
            if localization.circle in seen:
                raise ValueError(
                    f"Circle {localization.circle} assigned to more than one ball"
                )
            seen.add(localization.circle)

    @property
    def has_black(self) -> bool:
        return self.black != NO_LOCALIZATION

    def items(self) -> Iterator[tuple[BallType, BallLocalization]]:
        """Iterate over (ball type, localization) pairs, absent eight-ball skipped."""
        yield BallType.CUE, self.cue
        if self.has_black:
            yield BallType.EIGHT, self.black
        for solid in self.solids:
            yield BallType.SOLID, solid
        for stripe in self.stripes:
            yield BallType.STRIPE, stripe

    def all_localizations(self) -> list[BallLocalization]:
        return [localization for _, localization in self.items()]

    def __len__(self) -> int:
        return len(self.all_localizations())


# =============================================================================
# Field localization
# =============================================================================


@dataclass
class FieldLocalization:
    """Playing field found in one frame.

    Attributes:
        mask: Binary mask, 255 on the playing surface
        holes: Pocket centres (corner pockets TL, TR, BL, BR then side pockets)
        lines: Merged boundary lines as (rho, theta)
    """

    mask: NDArray[np.uint8]
    holes: list[Point] = field(default_factory=list)
    lines: list[Line] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not np.any(self.mask)
