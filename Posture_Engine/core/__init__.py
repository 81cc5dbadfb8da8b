"""Core analysis algorithms."""
from .anatomy import ViewType, AnatomicalLabel, get_keypoint_mapping, get_connections
from .landmarks import PixelCandidate, Cluster, Keypoint, Landmark, LandmarkSource, Finding, FindingStatus
from .marker_extractor import ColorMarkerExtractor
from .clustering import SpatialClusterer
from .fusion import LandmarkFusion
from .posture_analyzer import PostureAnalyzer
from .correction import ManualCorrectionStore
from .session import AnalysisSession, NoImageError, AnalysisInProgressError
