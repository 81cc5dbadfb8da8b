import asyncio

import numpy as np
import pytest

from Posture_Engine.core.landmarks import Landmark, LandmarkSource, Keypoint

RED = (255, 0, 0)


@pytest.fixture
def blank_image():
    def _make(width=200, height=200, channels=3):
        image = np.zeros((height, width, channels), dtype=np.uint8)
        if channels == 4:
            image[..., 3] = 255
        return image
    return _make


@pytest.fixture
def paint_marker():
    """Paint a (2*half+1)^2 red square centred on (cx, cy)."""
    def _paint(image, cx, cy, half=3, color=RED):
        image[cy - half:cy + half + 1, cx - half:cx + half + 1, :3] = color
        return image
    return _paint


@pytest.fixture
def make_landmark():
    counter = {'n': 0}

    def _make(label, x, y, source=LandmarkSource.MODEL_KEYPOINT, confidence=0.9, id=None):
        counter['n'] += 1
        return Landmark(id=id or f"lm_{counter['n']}", x=x, y=y, source=source,
                        label=label, confidence=confidence)
    return _make


class FakePoseProvider:
    """Returns canned keypoints; optional hook runs while the call is in flight."""

    def __init__(self, keypoints=None, error=None, delay=0.0, on_call=None):
        self.keypoints = keypoints or []
        self.error = error
        self.delay = delay
        self.on_call = on_call
        self.calls = 0

    async def estimate_poses(self, image):
        self.calls += 1
        if self.on_call:
            self.on_call()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return [self.keypoints] if self.keypoints else []


@pytest.fixture
def fake_provider():
    return FakePoseProvider


def kp(name, x, y, score=0.9):
    return Keypoint(name=name, x=x, y=y, score=score)


@pytest.fixture
def keypoint():
    return kp
