import pytest

from Posture_Engine.core.anatomy import ViewType, AnatomicalLabel
from Posture_Engine.core.fusion import LandmarkFusion
from Posture_Engine.core.landmarks import Cluster, LandmarkSource


def test_clusters_become_numbered_colour_markers():
    fused = LandmarkFusion().fuse(ViewType.FRONT, [Cluster(10, 20, 9), Cluster(30, 40, 7)], [])

    assert [lm.label for lm in fused] == ["Marker 1", "Marker 2"]
    assert [lm.id for lm in fused] == ["marker_0", "marker_1"]
    assert all(lm.source == LandmarkSource.COLOR_MARKER for lm in fused)
    assert all(lm.confidence == 0.9 for lm in fused)
    assert (fused[1].x, fused[1].y) == (30, 40)


def test_marker_takes_precedence_over_nearby_keypoint(keypoint):
    fused = LandmarkFusion().fuse(
        ViewType.FRONT, [Cluster(100, 100, 9)], [keypoint('left_shoulder', 130, 130, 0.95)])

    assert len(fused) == 1
    assert fused[0].source == LandmarkSource.COLOR_MARKER


def test_distant_keypoint_survives_alongside_marker(keypoint):
    fused = LandmarkFusion().fuse(
        ViewType.FRONT, [Cluster(100, 100, 9)], [keypoint('left_shoulder', 160, 100, 0.8)])

    assert len(fused) == 2
    model = fused[1]
    assert model.source == LandmarkSource.MODEL_KEYPOINT
    assert model.label == AnatomicalLabel.LEFT_SHOULDER.value
    assert model.id == "model_left_shoulder"
    assert model.confidence == pytest.approx(0.8)
    assert (model.x, model.y) == (160, 100)


def test_keypoint_exactly_at_fusion_radius_is_kept(keypoint):
    fused = LandmarkFusion().fuse(
        ViewType.FRONT, [Cluster(100, 100, 9)], [keypoint('left_shoulder', 150, 100)])

    assert [lm.label for lm in fused] == ["Marker 1", "left shoulder"]


@pytest.mark.parametrize("score,kept", [(0.3, False), (0.31, True), (0.0, False)])
def test_keypoint_score_must_exceed_threshold(keypoint, score, kept):
    fused = LandmarkFusion().fuse(ViewType.FRONT, [], [keypoint('right_hip', 50, 50, score)])

    assert (len(fused) == 1) is kept


def test_unmapped_and_unknown_keypoints_are_dropped(keypoint):
    keypoints = [keypoint('nose', 10, 10), keypoint('tail', 20, 20), keypoint('left_ear', 30, 30)]

    # left_ear only matters for the side view
    assert LandmarkFusion().fuse(ViewType.FRONT, [], keypoints) == []


def test_side_view_uses_left_side_keypoints(keypoint):
    keypoints = [keypoint('left_ear', 300, 100), keypoint('right_ear', 310, 100),
                 keypoint('left_shoulder', 290, 200), keypoint('left_hip', 280, 400)]

    fused = LandmarkFusion().fuse(ViewType.SIDE, [], keypoints)

    assert [lm.label for lm in fused] == ['ear', 'shoulder', 'hip']
    assert fused[0].x == 300


def test_first_keypoint_with_a_name_wins(keypoint):
    fused = LandmarkFusion().fuse(ViewType.FRONT, [], [keypoint('left_knee', 1, 1), keypoint('left_knee', 2, 2)])

    assert len(fused) == 1
    assert fused[0].x == 1


def test_foot_views_only_use_markers(keypoint):
    keypoints = [keypoint('left_ankle', 10, 10), keypoint('right_ankle', 90, 10)]

    for view in (ViewType.FOOT_TOP, ViewType.FOOT_BACK):
        fused = LandmarkFusion().fuse(view, [Cluster(500, 500, 8)], keypoints)
        assert [lm.label for lm in fused] == ["Marker 1"]


def test_one_landmark_per_anatomical_label(keypoint):
    names = ['left_shoulder', 'right_shoulder', 'left_hip', 'right_hip',
             'left_knee', 'right_knee', 'left_ankle', 'right_ankle']
    keypoints = [keypoint(n, 100 * i, 100 * i) for i, n in enumerate(names)] * 2

    fused = LandmarkFusion().fuse(ViewType.FRONT, [], keypoints)
    labels = [lm.label for lm in fused]

    assert len(labels) == 8
    assert len(set(labels)) == 8


def test_empty_inputs_give_empty_set():
    assert LandmarkFusion().fuse(ViewType.SIDE, [], []) == []
