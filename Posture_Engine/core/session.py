"""
Analysis Session

Owns the current image, view and fused landmark set, and drives one pass of
the pipeline:

    image -> ColorMarkerExtractor -> SpatialClusterer --+
                                                        +-> LandmarkFusion -> PostureAnalyzer
    image -> pose provider (awaited once) --------------+

The pose provider is any object with an ``async estimate_poses(image)``
method returning a list of zero or one pose, each a list of ``Keypoint``.
A provider that raises or times out is treated as having found nothing.

Loading an image, switching view or resetting bumps a generation counter;
a pass that was waiting on the provider when that happened throws its result
away.
"""

import asyncio
import logging
import numpy as np
from typing import Optional, List, Dict, Tuple, Any

from Clinical_Research.clinical_thresholds import MarkerDetectionConfig
from .anatomy import ViewType, VIEW_SEQUENCE
from .clustering import SpatialClusterer
from .correction import ManualCorrectionStore
from .fusion import LandmarkFusion
from .landmarks import Landmark, Finding, Keypoint
from .marker_extractor import ColorMarkerExtractor
from .posture_analyzer import PostureAnalyzer

logger = logging.getLogger(__name__)


class NoImageError(RuntimeError):
    """Analysis requested before an image was loaded."""


class AnalysisInProgressError(RuntimeError):
    """A pass is already waiting on the pose provider."""


class AnalysisSession:
    """Single-user analysis state with explicit create/reset boundaries."""

    def __init__(self, pose_provider: Any = None, view_type: ViewType = ViewType.FRONT,
                 config: Optional[MarkerDetectionConfig] = None,
                 extractor: Optional[ColorMarkerExtractor] = None,
                 clusterer: Optional[SpatialClusterer] = None,
                 fusion: Optional[LandmarkFusion] = None,
                 analyzer: Optional[PostureAnalyzer] = None,
                 provider_timeout: Optional[float] = None):
        self.config = config or MarkerDetectionConfig()
        self.pose_provider = pose_provider
        self.extractor = extractor or ColorMarkerExtractor(self.config)
        self.clusterer = clusterer or SpatialClusterer(config=self.config)
        self.fusion = fusion or LandmarkFusion(self.config)
        self.analyzer = analyzer or PostureAnalyzer()
        self.provider_timeout = provider_timeout if provider_timeout is not None else self.config.PROVIDER_TIMEOUT

        self._view_type = view_type
        self._image: Optional[np.ndarray] = None
        self._landmarks: List[Landmark] = []
        self._corrections = ManualCorrectionStore(self._landmarks)
        self._findings: Dict[str, Finding] = {}
        self._generation = 0
        self._pending = False
        self.results_by_view: Dict[ViewType, Dict[str, Finding]] = {}

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def load_image(self, image: np.ndarray):
        """Set the current image (H, W, C) in RGB(A) order; drops previous results."""
        arr = np.asarray(image)
        if arr.ndim != 3 or arr.shape[2] < 3:
            raise ValueError(f"Expected an (H, W, 3|4) image, got shape {arr.shape}")
        self._discard()
        self._image = arr
        logger.debug("Loaded %dx%d image (generation %d)", arr.shape[1], arr.shape[0], self._generation)

    def set_view_type(self, view_type: ViewType):
        if view_type == self._view_type:
            return
        self._discard()
        self._view_type = view_type

    def reset(self):
        """Forget image, landmarks and findings. Per-view results are kept."""
        self._discard()
        self._image = None

    def next_view(self) -> Optional[ViewType]:
        """Advance the front -> side -> foot-top -> foot-back wizard; None when done."""
        idx = VIEW_SEQUENCE.index(self._view_type)
        if idx >= len(VIEW_SEQUENCE) - 1:
            return None
        self.reset()
        self._view_type = VIEW_SEQUENCE[idx + 1]
        return self._view_type

    def _discard(self):
        self._generation += 1
        self._landmarks = []
        self._corrections = ManualCorrectionStore(self._landmarks)
        self._findings = {}

    # -------------------------------------------------------------------------
    # Analysis
    # -------------------------------------------------------------------------

    async def analyze(self) -> Optional[Dict[str, Finding]]:
        """
        Run one full pass on the current image.

        Returns:
            Findings for the active view, or None when the image, view or
            session changed while waiting for the pose provider.

        Raises:
            NoImageError: no image loaded
            AnalysisInProgressError: another pass is still awaiting the provider
        """
        if self._image is None:
            raise NoImageError("Load an image before running the analysis")
        if self._pending:
            raise AnalysisInProgressError("An analysis pass is already running")

        generation = self._generation
        image = self._image
        view_type = self._view_type

        self._pending = True
        try:
            keypoints = await self._detect_keypoints(image)
        finally:
            self._pending = False

        if generation != self._generation:
            logger.info("Discarding stale pose result (generation %d, now %d)", generation, self._generation)
            return None

        candidates = self.extractor.extract(image)
        clusters = self.clusterer.cluster(candidates)
        self._landmarks = self.fusion.fuse(view_type, clusters, keypoints)
        self._corrections = ManualCorrectionStore(self._landmarks)
        logger.debug("Analysis pass: %d candidates, %d markers, %d keypoints, %d landmarks",
                     len(candidates), len(clusters), len(keypoints), len(self._landmarks))
        return self._grade()

    def confirm_correction(self) -> Dict[str, Finding]:
        """Re-grade every metric after manual correction."""
        if self._image is None:
            raise NoImageError("No image to re-analyse")
        self._corrections.end_drag()
        return self._grade()

    async def _detect_keypoints(self, image: np.ndarray) -> List[Keypoint]:
        if self.pose_provider is None:
            return []
        try:
            poses = await asyncio.wait_for(self.pose_provider.estimate_poses(image), self.provider_timeout)
        except asyncio.TimeoutError:
            logger.warning("Pose provider timed out after %.1fs; using colour markers only", self.provider_timeout)
            return []
        except Exception as e:
            logger.warning("Pose provider failed: %s; using colour markers only", e)
            return []
        if not poses:
            return []
        return list(poses[0])

    def _grade(self) -> Dict[str, Finding]:
        self._findings = self.analyzer.analyze(self._landmarks, self._view_type, self.image_size[0])
        self.results_by_view[self._view_type] = self._findings
        return self._findings

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def view_type(self) -> ViewType:
        return self._view_type

    @property
    def image(self) -> Optional[np.ndarray]:
        return self._image

    @property
    def image_size(self) -> Tuple[int, int]:
        """(width, height), or (0, 0) without an image."""
        if self._image is None:
            return 0, 0
        return int(self._image.shape[1]), int(self._image.shape[0])

    @property
    def landmarks(self) -> List[Landmark]:
        return self._landmarks

    @property
    def findings(self) -> Dict[str, Finding]:
        return self._findings

    @property
    def corrections(self) -> ManualCorrectionStore:
        return self._corrections

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_analyzing(self) -> bool:
        return self._pending
