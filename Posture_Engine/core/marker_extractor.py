"""
Colour Marker Extraction
Scans raw pixel data for red adhesive markers placed on the subject.

A pixel is a candidate when R > 150, G < 100 and B < 100. The scan is
subsampled (every second row and column by default); pass step=1 for a full
scan at four times the cost.
"""

import logging
import numpy as np
from typing import List, Optional

from Clinical_Research.clinical_thresholds import MarkerDetectionConfig
from .landmarks import PixelCandidate

logger = logging.getLogger(__name__)


class ColorMarkerExtractor:
    """Threshold-based red pixel detector over RGB(A) arrays."""

    def __init__(self, config: Optional[MarkerDetectionConfig] = None, step: Optional[int] = None):
        self.config = config or MarkerDetectionConfig()
        self.step = max(1, int(step if step is not None else self.config.SCAN_STEP))

    def extract(self, pixels: np.ndarray) -> List[PixelCandidate]:
        """
        Return marker-coloured pixel coordinates in row-major order.

        Args:
            pixels: (H, W, C) array with C >= 3, channels in R, G, B(, A) order

        Returns:
            Candidates on the subsampling grid; empty when nothing matches or
            the input cannot be read as an image.
        """
        mask = self.mask(pixels)
        if mask is None:
            return []

        # np.nonzero walks row-major: y outer, x inner
        ys, xs = np.nonzero(mask)
        candidates = [PixelCandidate(int(x) * self.step, int(y) * self.step) for y, x in zip(ys, xs)]
        logger.debug("Marker scan (step=%d): %d candidate pixels", self.step, len(candidates))
        return candidates

    def extract_from_buffer(self, data: bytes, width: int, height: int) -> List[PixelCandidate]:
        """Extract from a flat RGBA buffer of width * height * 4 bytes."""
        try:
            buf = np.frombuffer(data, dtype=np.uint8)
        except (TypeError, ValueError) as e:
            logger.debug("Unreadable RGBA buffer: %s", e)
            return []
        if width <= 0 or height <= 0 or buf.size != width * height * 4:
            logger.debug("RGBA buffer of %d bytes does not match %dx%d", buf.size, width, height)
            return []
        return self.extract(buf.reshape(height, width, 4))

    def mask(self, pixels: np.ndarray) -> Optional[np.ndarray]:
        """Boolean match mask on the subsampled grid, or None for unreadable input."""
        try:
            arr = np.asarray(pixels)
        except (TypeError, ValueError) as e:
            logger.debug("Skipping marker scan: %s", e)
            return None
        if not np.issubdtype(arr.dtype, np.number):
            logger.debug("Skipping marker scan: non-numeric pixel dtype %s", arr.dtype)
            return None
        if arr.ndim != 3 or arr.shape[2] < 3 or arr.shape[0] == 0 or arr.shape[1] == 0:
            logger.debug("Skipping marker scan: unexpected pixel array shape %s", arr.shape)
            return None

        grid = arr[::self.step, ::self.step, :3].astype(np.int32)
        r, g, b = grid[..., 0], grid[..., 1], grid[..., 2]
        return (r > self.config.MIN_RED) & (g < self.config.MAX_GREEN) & (b < self.config.MAX_BLUE)
