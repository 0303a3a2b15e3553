"""Shared fixtures: synthetic tables drawn with OpenCV primitives."""

import cv2
import numpy as np
import pytest

from ..config import LocalizerConfig

FRAME_SHAPE = (300, 400)  # height, width
FELT_TOP_LEFT = (50, 40)
FELT_BOTTOM_RIGHT = (350, 260)

BACKGROUND_BGR = (90, 90, 90)
FELT_BGR = (40, 140, 40)
CUE_BGR = (240, 235, 225)
BLACK_BGR = (40, 25, 20)
RED_BGR = (30, 30, 200)
STRIPE_WHITE_BGR = (235, 235, 235)

BALL_RADIUS = 12
CUE_POSITION = (130, 110)
BLACK_POSITION = (270, 110)
STRIPE_POSITION = (130, 190)
SOLID_POSITION = (270, 190)


def draw_stripe_ball(image, center, radius, color, band_color, band_half_height=5):
    """Solid disk with a horizontal band of another colour through its centre."""
    cv2.circle(image, center, radius, color, -1)
    band = np.zeros(image.shape[:2], dtype=np.uint8)
    cv2.circle(band, center, radius, 255, -1)
    x, y = center
    band[: y - band_half_height] = 0
    band[y + band_half_height + 1 :] = 0
    image[band > 0] = band_color


@pytest.fixture()
def config():
    """Default localizer configuration."""
    return LocalizerConfig()


@pytest.fixture()
def empty_table_frame():
    """Green felt rectangle on a grey background, no balls."""
    frame = np.full((*FRAME_SHAPE, 3), BACKGROUND_BGR, dtype=np.uint8)
    cv2.rectangle(frame, FELT_TOP_LEFT, FELT_BOTTOM_RIGHT, FELT_BGR, -1)
    return frame


@pytest.fixture()
def table_frame(empty_table_frame):
    """Felt with a cue ball, an eight-ball, a red stripe and a red solid."""
    frame = empty_table_frame.copy()
    cv2.circle(frame, CUE_POSITION, BALL_RADIUS, CUE_BGR, -1)
    cv2.circle(frame, BLACK_POSITION, BALL_RADIUS, BLACK_BGR, -1)
    draw_stripe_ball(frame, STRIPE_POSITION, BALL_RADIUS, RED_BGR, STRIPE_WHITE_BGR)
    cv2.circle(frame, SOLID_POSITION, BALL_RADIUS, RED_BGR, -1)
    return frame


@pytest.fixture()
def felt_field_mask():
    """Field mask matching the felt rectangle of the synthetic tables."""
    mask = np.zeros(FRAME_SHAPE, dtype=np.uint8)
    cv2.rectangle(mask, FELT_TOP_LEFT, FELT_BOTTOM_RIGHT, 255, -1)
    return mask
