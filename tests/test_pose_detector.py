from types import SimpleNamespace

import pytest

pytest.importorskip("mediapipe")

from Posture_Engine.core.anatomy import ViewType
from Posture_Engine.core.fusion import LandmarkFusion
from Posture_Engine.detectors.pose_detector import KEYPOINT_NAMES, landmarks_to_keypoints


def _pose(visibility):
    return [SimpleNamespace(x=0.5, y=0.25, visibility=visibility) for _ in range(33)]


def test_keypoints_are_named_and_scaled_to_pixels():
    keypoints = landmarks_to_keypoints(_pose(0.8), 200, 400)

    assert [kp.name for kp in keypoints] == list(KEYPOINT_NAMES.values())
    assert (keypoints[0].x, keypoints[0].y) == (100.0, 100.0)
    assert all(kp.score == 0.8 for kp in keypoints)


def test_missing_visibility_scores_zero_and_is_not_fused():
    keypoints = landmarks_to_keypoints(_pose(None), 200, 400)

    assert all(kp.score == 0.0 for kp in keypoints)
    assert LandmarkFusion().fuse(ViewType.FRONT, [], keypoints) == []
