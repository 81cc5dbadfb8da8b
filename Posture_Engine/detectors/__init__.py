"""MediaPipe detection wrappers."""
from .pose_detector import PoseDetector, KEYPOINT_NAMES, landmarks_to_keypoints
