"""Detection stages for the pool localizer."""

from .balls import BallsLocalizer, DebugHook, localize_balls
from .classifier import LocalizationError, NoBallsDetectedError, classify_balls
from .field import PlayingFieldLocalizer, merge_similar_lines

__all__ = [
    "BallsLocalizer",
    "DebugHook",
    "localize_balls",
    "LocalizationError",
    "NoBallsDetectedError",
    "classify_balls",
    "PlayingFieldLocalizer",
    "merge_similar_lines",
]
