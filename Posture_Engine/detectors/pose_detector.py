"""
Pose Detector Module
MediaPipe Pose Landmarker wrapper acting as the session's pose provider.
Uses the MediaPipe Tasks API (0.10+) in single-image mode.
"""

import asyncio
import logging
import numpy as np
from typing import List
from pathlib import Path
import urllib.request
import ssl
import certifi

# MediaPipe Tasks API
import mediapipe as mp
from mediapipe.tasks import python as mp_python
from mediapipe.tasks.python import vision

from ..core.landmarks import Keypoint

logger = logging.getLogger(__name__)

# MediaPipe Pose Landmarker index -> COCO-style keypoint name
KEYPOINT_NAMES = {
    0: 'nose',
    2: 'left_eye',
    5: 'right_eye',
    7: 'left_ear',
    8: 'right_ear',
    11: 'left_shoulder',
    12: 'right_shoulder',
    13: 'left_elbow',
    14: 'right_elbow',
    15: 'left_wrist',
    16: 'right_wrist',
    23: 'left_hip',
    24: 'right_hip',
    25: 'left_knee',
    26: 'right_knee',
    27: 'left_ankle',
    28: 'right_ankle',
}


def landmarks_to_keypoints(landmarks, width: int, height: int) -> List[Keypoint]:
    """Normalised MediaPipe landmarks -> named pixel keypoints, visibility as score."""
    keypoints = []
    for idx, name in KEYPOINT_NAMES.items():
        lm = landmarks[idx]
        # No visibility means no reliability estimate; fusion drops score 0
        visibility = getattr(lm, 'visibility', None)
        score = float(visibility) if visibility is not None else 0.0
        keypoints.append(Keypoint(name=name, x=float(lm.x * width), y=float(lm.y * height), score=score))
    return keypoints


class PoseDetector:
    """MediaPipe Pose Landmarker - one pose per still image, pixel coordinates out."""

    MODEL_URL = "https://storage.googleapis.com/mediapipe-models/pose_landmarker/pose_landmarker_lite/float16/latest/pose_landmarker_lite.task"
    MODEL_PATH = Path(__file__).parent.parent.parent / "models" / "pose_landmarker.task"

    def __init__(self, min_detection_confidence: float = 0.5, model_path: Path = None):
        """
        Initialize the pose detector using MediaPipe Tasks API.

        Args:
            min_detection_confidence: Minimum confidence for detection
            model_path: Override for the .task model location
        """
        self.model_path = Path(model_path) if model_path else self.MODEL_PATH
        self._ensure_model()

        base_options = mp_python.BaseOptions(
            model_asset_path=str(self.model_path)
        )

        options = vision.PoseLandmarkerOptions(
            base_options=base_options,
            running_mode=vision.RunningMode.IMAGE,
            num_poses=1,
            min_pose_detection_confidence=min_detection_confidence,
            output_segmentation_masks=False
        )

        self.landmarker = vision.PoseLandmarker.create_from_options(options)

    def _ensure_model(self):
        """Download model if not present."""
        if self.model_path.exists():
            return

        logger.info("Downloading pose model to %s", self.model_path)
        self.model_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            with urllib.request.urlopen(self.MODEL_URL, context=ssl_context) as response:
                with open(self.model_path, 'wb') as f:
                    f.write(response.read())
        except Exception as e:
            raise RuntimeError(f"Failed to download model: {e}\n"
                               f"Please manually download from:\n{self.MODEL_URL}\n"
                               f"And save to: {self.model_path}")
        logger.info("Model saved to %s", self.model_path)

    def detect(self, image: np.ndarray) -> List[List[Keypoint]]:
        """
        Run the landmarker on an RGB(A) image.

        Returns:
            [] when no person is found, otherwise a single pose as a list of
            named keypoints in pixel coordinates with visibility as score.
        """
        rgb = np.ascontiguousarray(image[..., :3], dtype=np.uint8)
        h, w = rgb.shape[:2]
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb)

        result = self.landmarker.detect(mp_image)
        if not result.pose_landmarks or len(result.pose_landmarks) == 0:
            logger.debug("No pose detected")
            return []

        return [landmarks_to_keypoints(result.pose_landmarks[0], w, h)]

    async def estimate_poses(self, image: np.ndarray) -> List[List[Keypoint]]:
        """Pose provider entry point; inference runs in a worker thread."""
        return await asyncio.to_thread(self.detect, image)

    def close(self):
        """Release resources."""
        if hasattr(self, 'landmarker'):
            self.landmarker.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
