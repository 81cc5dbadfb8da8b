"""Geometry helpers."""
from .geometry import distance, horizontal_tilt, segment_angle, deviation_from_vertical
