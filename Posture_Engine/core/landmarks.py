"""
Landmark data model shared by the marker pipeline and the posture rules.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Optional, List, Dict, Any, Iterable

from ..utils.geometry import distance
from .anatomy import AnatomicalLabel


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class LandmarkSource(Enum):
    """Where a fused landmark came from."""
    COLOR_MARKER = "color_marker"
    MODEL_KEYPOINT = "model_keypoint"


class FindingStatus(Enum):
    """Grade of a single postural metric."""
    GOOD = "good"
    WARNING = "warning"
    BAD = "bad"
    UNKNOWN = "unknown"


# -----------------------------------------------------------------------------
# Pipeline records
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class PixelCandidate:
    """Image coordinate whose colour passed the marker rule."""
    x: int
    y: int


@dataclass(frozen=True)
class Cluster:
    """Group of nearby candidates reduced to its centroid."""
    centroid_x: float
    centroid_y: float
    member_count: int


@dataclass(frozen=True)
class Keypoint:
    """Named skeletal keypoint from the pose model, in image pixels."""
    name: str
    x: float
    y: float
    score: float


@dataclass
class Landmark:
    """
    Fused anatomical point.

    Mutable so that manual correction can move it in place; everything else
    treats it as read-only.
    """
    id: str
    x: float
    y: float
    source: LandmarkSource
    label: str
    confidence: float

    @property
    def is_color_marker(self) -> bool:
        return self.source == LandmarkSource.COLOR_MARKER

    def distance_to(self, x: float, y: float) -> float:
        return distance((self.x, self.y), (x, y))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'x': self.x,
            'y': self.y,
            'source': self.source.value,
            'label': self.label,
            'confidence': self.confidence,
        }


@dataclass(frozen=True)
class Finding:
    """Graded result of one postural metric."""
    metric_key: str
    status: FindingStatus
    value: Optional[str]
    message: str
    measurement: Optional[float] = None
    provisional: bool = False

    @property
    def needs_attention(self) -> bool:
        return self.status in [FindingStatus.WARNING, FindingStatus.BAD]

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['status'] = self.status.value
        return d


def find_by_label(landmarks: Iterable[Landmark], label: AnatomicalLabel) -> Optional[Landmark]:
    """First landmark carrying the given anatomical label, if any."""
    for landmark in landmarks:
        if landmark.label == label.value:
            return landmark
    return None


def color_markers(landmarks: Iterable[Landmark]) -> List[Landmark]:
    return [lm for lm in landmarks if lm.is_color_marker]
