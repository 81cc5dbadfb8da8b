"""
Overlay Renderer

Draws the fused landmark set on the analysed image: connection lines for the
active view, red dots for colour markers, blue dots for model keypoints and,
in correction mode, their labels. Uses OpenCV.
"""

import sys
from pathlib import Path
import cv2
import numpy as np
from typing import Sequence, Optional

sys.path.insert(0, str(Path(__file__).parent.parent.parent))
from Posture_Engine.core.anatomy import ViewType, get_connections
from Posture_Engine.core.landmarks import Landmark, find_by_label


class OverlayRenderer:
    """OpenCV overlay renderer for landmark visualization (RGB in, RGB out)."""

    COLORS = {
        'marker': (255, 0, 0), 'keypoint': (33, 150, 243), 'connection': (102, 126, 234),
        'outline': (255, 255, 255), 'text': (0, 0, 0), 'text_bg': (255, 255, 255),
    }
    RADIUS = 8

    def __init__(self, show_connections: bool = True, show_labels: bool = False):
        self.show_connections = show_connections
        self.show_labels = show_labels

    def render(self, image: np.ndarray, landmarks: Sequence[Landmark], view_type: ViewType,
               show_labels: Optional[bool] = None) -> np.ndarray:
        output = np.ascontiguousarray(image[..., :3]).copy()
        # Keep marks readable on large photos
        scale = max(1.0, max(output.shape[:2]) / 800.0)

        if self.show_connections:
            self._draw_connections(output, landmarks, view_type, scale)
        self._draw_landmarks(output, landmarks, scale,
                             self.show_labels if show_labels is None else show_labels)
        return output

    def _draw_connections(self, frame, landmarks, view_type, scale):
        thickness = max(1, int(round(3 * scale)))
        for a, b in get_connections(view_type):
            m1 = find_by_label(landmarks, a)
            m2 = find_by_label(landmarks, b)
            if m1 and m2:
                cv2.line(frame, _px(m1), _px(m2), self.COLORS['connection'], thickness, cv2.LINE_AA)
        return frame

    def _draw_landmarks(self, frame, landmarks, scale, show_labels):
        radius = int(round(self.RADIUS * scale))
        for lm in landmarks:
            p = _px(lm)
            color = self.COLORS['marker'] if lm.is_color_marker else self.COLORS['keypoint']
            cv2.circle(frame, p, radius, color, -1, cv2.LINE_AA)
            cv2.circle(frame, p, radius, self.COLORS['outline'], max(1, int(round(2 * scale))), cv2.LINE_AA)
            if show_labels:
                org = (p[0] + radius + 4, p[1] - 5)
                font_scale = 0.45 * scale
                cv2.putText(frame, lm.label, org, cv2.FONT_HERSHEY_SIMPLEX, font_scale,
                            self.COLORS['text_bg'], max(1, int(3 * scale)), cv2.LINE_AA)
                cv2.putText(frame, lm.label, org, cv2.FONT_HERSHEY_SIMPLEX, font_scale,
                            self.COLORS['text'], max(1, int(scale)), cv2.LINE_AA)
        return frame


def _px(landmark: Landmark):
    return int(round(landmark.x)), int(round(landmark.y))
