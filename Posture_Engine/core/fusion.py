"""
Landmark Fusion Module

Merges clustered red markers with pose-model keypoints into one labelled
landmark set. Red markers always win: a model keypoint that falls near any
marker is dropped, since the marker was placed by hand on that spot.
"""

import logging
import numpy as np
from typing import List, Optional, Sequence, Dict

from Clinical_Research.clinical_thresholds import MarkerDetectionConfig
from .anatomy import ViewType, get_keypoint_mapping
from .landmarks import Cluster, Keypoint, Landmark, LandmarkSource

logger = logging.getLogger(__name__)


class LandmarkFusion:
    """Colour-marker-first fusion of markers and model keypoints."""

    def __init__(self, config: Optional[MarkerDetectionConfig] = None):
        self.config = config or MarkerDetectionConfig()

    def fuse(self, view_type: ViewType, clusters: Sequence[Cluster],
             keypoints: Sequence[Keypoint]) -> List[Landmark]:
        """
        Build the landmark set for one analysis pass.

        Args:
            view_type: Active view; selects the keypoint mapping
            clusters: Retained red-marker clusters
            keypoints: Keypoints of the (single) detected pose, possibly empty

        Returns:
            Markers first ("Marker 1", "Marker 2", ...), then one landmark per
            anatomical label whose keypoint was confident and not shadowed
            by a marker.
        """
        fused = self.markers_to_landmarks(clusters)

        by_name: Dict[str, Keypoint] = {}
        for kp in keypoints:
            by_name.setdefault(kp.name, kp)

        marker_xy = np.array([(c.centroid_x, c.centroid_y) for c in clusters], dtype=np.float64)
        suppressed = 0

        for label, keypoint_name in get_keypoint_mapping(view_type).items():
            kp = by_name.get(keypoint_name)
            if kp is None or not kp.score > self.config.MIN_KEYPOINT_SCORE:
                continue
            if self._near_marker(marker_xy, kp.x, kp.y):
                suppressed += 1
                continue
            fused.append(Landmark(
                id=f"model_{label.name.lower()}",
                x=float(kp.x),
                y=float(kp.y),
                source=LandmarkSource.MODEL_KEYPOINT,
                label=label.value,
                confidence=float(kp.score),
            ))

        logger.debug("Fused %d landmarks for %s view (%d markers, %d keypoints suppressed)",
                     len(fused), view_type.value, len(clusters), suppressed)
        return fused

    def markers_to_landmarks(self, clusters: Sequence[Cluster]) -> List[Landmark]:
        return [
            Landmark(
                id=f"marker_{idx}",
                x=c.centroid_x,
                y=c.centroid_y,
                source=LandmarkSource.COLOR_MARKER,
                label=f"Marker {idx + 1}",
                confidence=self.config.MARKER_CONFIDENCE,
            )
            for idx, c in enumerate(clusters)
        ]

    def _near_marker(self, marker_xy: np.ndarray, x: float, y: float) -> bool:
        if len(marker_xy) == 0:
            return False
        dist = np.hypot(marker_xy[:, 0] - x, marker_xy[:, 1] - y)
        return bool(np.any(dist < self.config.FUSION_RADIUS))
