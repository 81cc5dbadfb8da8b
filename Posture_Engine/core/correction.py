"""Manual correction of fused landmarks (pick, drag, move)."""

import logging
from typing import List, Optional

from .landmarks import Landmark

logger = logging.getLogger(__name__)


class ManualCorrectionStore:
    """
    Only write path into a fused landmark set after fusion.

    Coordinates are image-native; callers undo any display scaling first.
    """

    def __init__(self, landmarks: List[Landmark]):
        self._landmarks = landmarks
        self._dragged: Optional[Landmark] = None

    @property
    def landmarks(self) -> List[Landmark]:
        return self._landmarks

    def find_nearest(self, x: float, y: float, threshold_radius: float) -> Optional[Landmark]:
        """Closest landmark strictly inside threshold_radius; earlier one wins ties."""
        nearest = None
        min_dist = threshold_radius
        for landmark in self._landmarks:
            dist = landmark.distance_to(x, y)
            if dist < min_dist:
                min_dist = dist
                nearest = landmark
        return nearest

    def update_position(self, landmark_id: str, new_x: float, new_y: float) -> Landmark:
        """Move a landmark in place. Raises KeyError for an unknown id."""
        for landmark in self._landmarks:
            if landmark.id == landmark_id:
                logger.debug("Moved %s (%s) from (%.1f, %.1f) to (%.1f, %.1f)", landmark.id,
                             landmark.label, landmark.x, landmark.y, new_x, new_y)
                landmark.x = float(new_x)
                landmark.y = float(new_y)
                return landmark
        raise KeyError(landmark_id)

    # -------------------------------------------------------------------------
    # Drag interaction
    # -------------------------------------------------------------------------

    def begin_drag(self, x: float, y: float, radius: float) -> Optional[Landmark]:
        self._dragged = self.find_nearest(x, y, radius)
        return self._dragged

    def drag_to(self, x: float, y: float) -> Optional[Landmark]:
        if self._dragged is None:
            return None
        return self.update_position(self._dragged.id, x, y)

    def end_drag(self):
        self._dragged = None

    @property
    def is_dragging(self) -> bool:
        return self._dragged is not None
