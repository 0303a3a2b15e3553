"""Whole-table localization: playing field and balls.

``localize_table`` runs the field extractor and the ball pipeline on one
frame. ``localize_frames`` maps it over several frames on a thread pool;
OpenCV releases the GIL in its heavy calls, so frames overlap well.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np
from numpy.typing import NDArray

from .config import LocalizerConfig
from .detection.balls import DebugHook, localize_balls
from .detection.field import PlayingFieldLocalizer
from .models import BallsLocalization, FieldLocalization

logger = logging.getLogger(__name__)


@dataclass
class TableLocalization:
    """Field and balls located in one frame."""

    field: FieldLocalization
    balls: BallsLocalization


def localize_table(
    frame: NDArray[np.uint8],
    config: Optional[LocalizerConfig] = None,
    debug_hook: Optional[DebugHook] = None,
) -> TableLocalization:
    """Locate the playing field, then the balls on it.

    Args:
        frame: Input frame in BGR format
        config: Localizer configuration, defaults when None
        debug_hook: Optional callable receiving intermediate images

    Returns:
        TableLocalization for the frame

    Raises:
        ValueError: If the frame is empty
        NoBallsDetectedError: If no ball candidate survives the filters
    """
    config = config if config is not None else LocalizerConfig()

    field = PlayingFieldLocalizer(config).localize(frame)
    if debug_hook:
        debug_hook("field_mask", field.mask)

    balls = localize_balls(frame, field, config, debug_hook)
    logger.info(
        f"Table localized: {len(field.holes)} pockets, {len(field.lines)} boundary lines, "
        f"{len(balls)} balls"
    )
    return TableLocalization(field=field, balls=balls)


def localize_frames(
    frames: Iterable[NDArray[np.uint8]],
    config: Optional[LocalizerConfig] = None,
    max_workers: Optional[int] = None,
) -> list[TableLocalization]:
    """Localize several frames concurrently.

    Args:
        frames: Frames in BGR format
        config: Shared localizer configuration, defaults when None
        max_workers: Thread pool size (ThreadPoolExecutor default when None)

    Returns:
        One TableLocalization per frame, in input order

    Raises:
        The first exception raised by any frame, e.g. NoBallsDetectedError
    """
    config = config if config is not None else LocalizerConfig()
    frames = list(frames)
    logger.info(f"Localizing {len(frames)} frames")

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(lambda frame: localize_table(frame, config), frames))
