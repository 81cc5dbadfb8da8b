"""
Posture Engine
Red-marker detection, landmark fusion and rule-based posture grading.
"""

from .core.anatomy import ViewType, AnatomicalLabel
from .core.landmarks import Landmark, LandmarkSource, Finding, FindingStatus, Keypoint
from .core.session import AnalysisSession, NoImageError, AnalysisInProgressError

# Pose model adapter (pulls in mediapipe, import when needed)
# from .detectors.pose_detector import PoseDetector
