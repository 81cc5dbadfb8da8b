"""
Clinical Thresholds & Reference Values
Grading bands for the image-relative postural metrics and the tuning constants
of the red-marker detection pipeline.

All values are in image space (pixels, degrees, or percent of image width).
No real-world calibration is applied anywhere.
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class ShoulderTiltThresholds:
    """
    Frontal-plane shoulder tilt (degrees)

    Angle of the line joining both shoulders against the horizontal.
    Based on:
    - Kendall et al. (2005): Muscle Testing and Function
    - Sahrmann (2002): Movement Impairment Syndromes
    """
    OPTIMAL: float = 2.0      # < 2° = level shoulders
    ACCEPTABLE: float = 5.0   # 2-5° = slight height difference, >= 5° = clear asymmetry


@dataclass(frozen=True)
class PelvisTiltThresholds:
    """Frontal-plane pelvic obliquity (degrees), measured hip to hip."""
    OPTIMAL: float = 2.0
    ACCEPTABLE: float = 4.0


@dataclass(frozen=True)
class LegAlignmentThresholds:
    """
    Knee-to-ankle separation ratio (front view)

    ratio = horizontal knee distance / horizontal ankle distance.
    Knees further apart than ankles suggest genu varum (bow legs), closer
    together suggest genu valgum (knock knees). Boundaries are exclusive.
    """
    BOW_LEG: float = 1.2
    KNOCK_KNEE: float = 0.8


@dataclass(frozen=True)
class ForwardHeadThresholds:
    """
    Forward Head Posture (side view)

    Horizontal ear-to-shoulder offset as a percentage of image width.
    Adapted from photogrammetric assessments (Silva et al. 2017) to a
    camera-relative proxy.
    """
    OPTIMAL: float = 2.0
    ACCEPTABLE: float = 5.0


@dataclass(frozen=True)
class KyphosisThresholds:
    """
    Thoracic rounding proxy (side view)

    Deviation from vertical of the shoulder-to-hip line, in degrees.
    """
    OPTIMAL: float = 10.0
    ACCEPTABLE: float = 20.0


@dataclass(frozen=True)
class ArchThresholds:
    """Foot-top view: minimum number of colour markers to assess the arch."""
    MIN_MARKERS: int = 3


@dataclass(frozen=True)
class MarkerDetectionConfig:
    """
    Red marker extraction, clustering and fusion constants.
    """
    # Colour rule: R > MIN_RED and G < MAX_GREEN and B < MAX_BLUE
    MIN_RED: int = 150
    MAX_GREEN: int = 100
    MAX_BLUE: int = 100
    SCAN_STEP: int = 2             # subsampling stride in both axes

    CLUSTER_RADIUS: float = 20.0
    MIN_CLUSTER_SIZE: int = 5      # clusters must have more members than this

    MARKER_CONFIDENCE: float = 0.9
    MIN_KEYPOINT_SCORE: float = 0.3
    FUSION_RADIUS: float = 50.0    # model keypoints this close to a marker are suppressed

    POINTER_RADIUS: float = 20.0   # manual correction pick radius

    PROVIDER_TIMEOUT: float = 10.0  # seconds to wait for the pose model


# Aggregate all thresholds
CLINICAL_THRESHOLDS = {
    'shoulder': ShoulderTiltThresholds(),
    'pelvis': PelvisTiltThresholds(),
    'legs': LegAlignmentThresholds(),
    'head_forward': ForwardHeadThresholds(),
    'kyphosis': KyphosisThresholds(),
    'arch': ArchThresholds(),
    'markers': MarkerDetectionConfig(),
}


def grade_by_thresholds(magnitude: float, optimal: float, acceptable: float) -> str:
    """
    Map a non-negative deviation onto the three-band grading scale.

    Args:
        magnitude: Absolute deviation (degrees or percent)
        optimal: Upper bound (exclusive) of the "good" band
        acceptable: Upper bound (exclusive) of the "warning" band

    Returns:
        One of "good", "warning", "bad"
    """
    if magnitude < optimal:
        return "good"
    elif magnitude < acceptable:
        return "warning"
    return "bad"


def band_edges(name: str) -> Tuple[float, float]:
    """Return (optimal, acceptable) for a graded metric family."""
    thresholds = CLINICAL_THRESHOLDS[name]
    return thresholds.OPTIMAL, thresholds.ACCEPTABLE
