"""Plane geometry on image-space points."""

import numpy as np
from typing import Tuple

Point = Tuple[float, float]


def distance(p1: Point, p2: Point) -> float:
    return float(np.hypot(p2[0] - p1[0], p2[1] - p1[1]))


def horizontal_tilt(left: Point, right: Point) -> float:
    """
    Signed tilt of the left-right line against the horizontal, in degrees.

    Positive when the left point sits lower in the image (larger y).
    """
    y_diff = left[1] - right[1]
    x_diff = abs(left[0] - right[0])
    return float(np.degrees(np.arctan2(y_diff, x_diff)))


def segment_angle(start: Point, end: Point) -> float:
    """Direction of start->end in degrees, image axes (y grows downward)."""
    return float(np.degrees(np.arctan2(end[1] - start[1], end[0] - start[0])))


def deviation_from_vertical(start: Point, end: Point) -> float:
    """Unsigned angle between start->end and the vertical axis, in degrees."""
    return abs(90.0 - abs(segment_angle(start, end)))
