import numpy as np
import pytest

from Clinical_Research.clinical_thresholds import grade_by_thresholds, band_edges
from Posture_Engine.core.anatomy import ViewType
from Posture_Engine.core.landmarks import LandmarkSource
from Streamlit_App.components.overlay_renderer import OverlayRenderer


@pytest.mark.parametrize("magnitude,expected", [
    (0.0, "good"), (1.99, "good"), (2.0, "warning"), (4.99, "warning"), (5.0, "bad"),
])
def test_grade_bands_are_upper_exclusive(magnitude, expected):
    assert grade_by_thresholds(magnitude, 2.0, 5.0) == expected


def test_band_edges_per_metric_family():
    assert band_edges('shoulder') == (2.0, 5.0)
    assert band_edges('pelvis') == (2.0, 4.0)
    assert band_edges('kyphosis') == (10.0, 20.0)


def test_overlay_colours_markers_and_keypoints(blank_image, make_landmark):
    image = blank_image(100, 100)
    landmarks = [
        make_landmark('Marker 1', 50, 50, source=LandmarkSource.COLOR_MARKER),
        make_landmark('ear', 20, 20),
    ]

    out = OverlayRenderer().render(image, landmarks, ViewType.FOOT_TOP)

    assert out.shape == (100, 100, 3)
    assert np.allclose(out[50, 50], OverlayRenderer.COLORS['marker'], atol=2)
    assert np.allclose(out[20, 20], OverlayRenderer.COLORS['keypoint'], atol=2)
    assert not image.any()


def test_overlay_draws_connection_between_labelled_landmarks(blank_image, make_landmark):
    image = blank_image(200, 100)
    landmarks = [make_landmark('left shoulder', 20, 50), make_landmark('right shoulder', 180, 50)]

    out = OverlayRenderer().render(image, landmarks, ViewType.FRONT)

    assert np.allclose(out[50, 100], OverlayRenderer.COLORS['connection'], atol=2)
    assert not out[10, 100].any()
