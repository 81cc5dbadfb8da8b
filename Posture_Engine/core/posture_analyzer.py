"""
Posture Analysis Module

Rule-based grading of fused landmarks, one rule set per photography view:

- front:     shoulder tilt, pelvis tilt, leg alignment (bow/knock knee)
- side:      forward head posture, kyphosis, pelvis posture
- foot-top:  arch type
- foot-back: heel alignment

Every rule tolerates missing landmarks by reporting an "unknown" finding.
Pelvis posture, arch type and heel alignment have no geometric criterion yet
and return fixed provisional findings.
"""

import logging
from typing import Dict, Sequence, Optional, Callable

from Clinical_Research.clinical_thresholds import (
    CLINICAL_THRESHOLDS, grade_by_thresholds, ShoulderTiltThresholds, PelvisTiltThresholds,
    LegAlignmentThresholds, ForwardHeadThresholds, KyphosisThresholds, ArchThresholds,
)
from ..utils.geometry import horizontal_tilt, deviation_from_vertical
from .anatomy import ViewType, AnatomicalLabel
from .landmarks import Landmark, Finding, FindingStatus, find_by_label, color_markers

logger = logging.getLogger(__name__)


class PostureAnalyzer:
    """
    Stateless posture rules over a landmark set.

    Calling analyze() twice on the same landmarks yields equal findings.
    """

    METRICS = {
        ViewType.FRONT: ['shoulder_tilt', 'pelvis_tilt', 'leg_alignment'],
        ViewType.SIDE: ['head_forward', 'kyphosis', 'pelvis_posture'],
        ViewType.FOOT_TOP: ['arch_type'],
        ViewType.FOOT_BACK: ['heel_alignment'],
    }

    TITLES = {
        'shoulder_tilt': 'Shoulder tilt',
        'pelvis_tilt': 'Pelvis tilt',
        'leg_alignment': 'Leg alignment',
        'head_forward': 'Forward head posture',
        'kyphosis': 'Upper back rounding',
        'pelvis_posture': 'Pelvis posture',
        'arch_type': 'Foot arch',
        'heel_alignment': 'Heel alignment',
    }

    def __init__(self, thresholds: Optional[Dict[str, object]] = None):
        t = {**CLINICAL_THRESHOLDS, **(thresholds or {})}
        self.shoulder: ShoulderTiltThresholds = t['shoulder']
        self.pelvis: PelvisTiltThresholds = t['pelvis']
        self.legs: LegAlignmentThresholds = t['legs']
        self.head_forward: ForwardHeadThresholds = t['head_forward']
        self.kyphosis: KyphosisThresholds = t['kyphosis']
        self.arch: ArchThresholds = t['arch']

    def analyze(self, landmarks: Sequence[Landmark], view_type: ViewType,
                image_width: Optional[float] = None) -> Dict[str, Finding]:
        """Grade every metric defined for the view."""
        rules: Dict[str, Callable[[], Finding]] = {
            'shoulder_tilt': lambda: self.analyze_shoulder(landmarks),
            'pelvis_tilt': lambda: self.analyze_pelvis(landmarks),
            'leg_alignment': lambda: self.analyze_leg_alignment(landmarks),
            'head_forward': lambda: self.analyze_head_forward(landmarks, image_width),
            'kyphosis': lambda: self.analyze_kyphosis(landmarks),
            'pelvis_posture': self.analyze_pelvis_posture,
            'arch_type': lambda: self.analyze_arch(landmarks),
            'heel_alignment': self.analyze_heel_alignment,
        }
        findings = {key: rules[key]() for key in self.METRICS.get(view_type, [])}
        logger.debug("%s view findings: %s", view_type.value,
                     {k: f.status.value for k, f in findings.items()})
        return findings

    # -------------------------------------------------------------------------
    # Front view
    # -------------------------------------------------------------------------

    def analyze_shoulder(self, landmarks: Sequence[Landmark]) -> Finding:
        left = find_by_label(landmarks, AnatomicalLabel.LEFT_SHOULDER)
        right = find_by_label(landmarks, AnatomicalLabel.RIGHT_SHOULDER)
        if not left or not right:
            return _unknown('shoulder_tilt', 'Shoulder landmarks could not be detected')

        angle = horizontal_tilt((left.x, left.y), (right.x, right.y))
        status = grade_by_thresholds(abs(angle), self.shoulder.OPTIMAL, self.shoulder.ACCEPTABLE)
        message = {
            'good': 'Shoulders are close to level',
            'warning': 'Slight difference in shoulder height',
            'bad': 'Clear difference in shoulder height',
        }[status]
        return Finding('shoulder_tilt', FindingStatus(status), f"{abs(angle):.1f}°", message, angle)

    def analyze_pelvis(self, landmarks: Sequence[Landmark]) -> Finding:
        left = find_by_label(landmarks, AnatomicalLabel.LEFT_HIP)
        right = find_by_label(landmarks, AnatomicalLabel.RIGHT_HIP)
        if not left or not right:
            return _unknown('pelvis_tilt', 'Pelvis landmarks could not be detected')

        angle = horizontal_tilt((left.x, left.y), (right.x, right.y))
        status = grade_by_thresholds(abs(angle), self.pelvis.OPTIMAL, self.pelvis.ACCEPTABLE)
        message = {
            'good': 'Pelvis height is even',
            'warning': 'Slight pelvic tilt',
            'bad': 'Marked pelvic tilt',
        }[status]
        return Finding('pelvis_tilt', FindingStatus(status), f"{abs(angle):.1f}°", message, angle)

    def analyze_leg_alignment(self, landmarks: Sequence[Landmark]) -> Finding:
        left_knee = find_by_label(landmarks, AnatomicalLabel.LEFT_KNEE)
        right_knee = find_by_label(landmarks, AnatomicalLabel.RIGHT_KNEE)
        left_ankle = find_by_label(landmarks, AnatomicalLabel.LEFT_ANKLE)
        right_ankle = find_by_label(landmarks, AnatomicalLabel.RIGHT_ANKLE)
        if not left_knee or not right_knee or not left_ankle or not right_ankle:
            return _unknown('leg_alignment', 'Not enough leg landmarks')

        knee_distance = abs(left_knee.x - right_knee.x)
        ankle_distance = abs(left_ankle.x - right_ankle.x)
        if ankle_distance == 0:
            return _unknown('leg_alignment', 'Ankle landmarks overlap; ratio is undefined')

        ratio = knee_distance / ankle_distance
        if ratio > self.legs.BOW_LEG:
            return Finding('leg_alignment', FindingStatus.WARNING, 'bow-leg tendency',
                           'Knees sit wider than ankles (bow-leg tendency)', ratio)
        elif ratio < self.legs.KNOCK_KNEE:
            return Finding('leg_alignment', FindingStatus.WARNING, 'knock-knee tendency',
                           'Knees sit closer than ankles (knock-knee tendency)', ratio)
        return Finding('leg_alignment', FindingStatus.GOOD, 'normal',
                       'Leg alignment is within the normal range', ratio)

    # -------------------------------------------------------------------------
    # Side view
    # -------------------------------------------------------------------------

    def analyze_head_forward(self, landmarks: Sequence[Landmark], image_width: Optional[float]) -> Finding:
        ear = find_by_label(landmarks, AnatomicalLabel.EAR)
        shoulder = find_by_label(landmarks, AnatomicalLabel.SHOULDER)
        if not ear or not shoulder:
            return _unknown('head_forward', 'Ear or shoulder landmark is missing')
        if not image_width or image_width <= 0:
            return _unknown('head_forward', 'Image width is required to normalise the offset')

        offset = (ear.x - shoulder.x) / image_width * 100
        status = grade_by_thresholds(abs(offset), self.head_forward.OPTIMAL, self.head_forward.ACCEPTABLE)
        message = {
            'good': 'Head is aligned over the shoulders',
            'warning': 'Head sits slightly forward',
            'bad': 'Pronounced forward head posture',
        }[status]
        return Finding('head_forward', FindingStatus(status), f"{abs(offset):.1f}%", message, offset)

    def analyze_kyphosis(self, landmarks: Sequence[Landmark]) -> Finding:
        shoulder = find_by_label(landmarks, AnatomicalLabel.SHOULDER)
        hip = find_by_label(landmarks, AnatomicalLabel.HIP)
        if not shoulder or not hip:
            return _unknown('kyphosis', 'Shoulder or hip landmark is missing')

        deviation = deviation_from_vertical((shoulder.x, shoulder.y), (hip.x, hip.y))
        status = grade_by_thresholds(deviation, self.kyphosis.OPTIMAL, self.kyphosis.ACCEPTABLE)
        message = {
            'good': 'Back posture looks upright',
            'warning': 'Mild rounding of the upper back',
            'bad': 'Marked rounding of the upper back',
        }[status]
        return Finding('kyphosis', FindingStatus(status), f"{deviation:.1f}°", message, deviation)

    def analyze_pelvis_posture(self) -> Finding:
        # TODO: anterior/posterior tilt needs ASIS and PSIS markers on the side view
        return Finding('pelvis_posture', FindingStatus.WARNING, 'needs review',
                       'Additional markers are needed for a detailed assessment', provisional=True)

    # -------------------------------------------------------------------------
    # Foot views
    # -------------------------------------------------------------------------

    def analyze_arch(self, landmarks: Sequence[Landmark]) -> Finding:
        markers = color_markers(landmarks)
        if len(markers) < self.arch.MIN_MARKERS:
            return _unknown('arch_type', f"At least {self.arch.MIN_MARKERS} foot markers are required")
        return Finding('arch_type', FindingStatus.GOOD, 'normal arch',
                       'Arch shape is within the normal range', float(len(markers)), provisional=True)

    def analyze_heel_alignment(self) -> Finding:
        return Finding('heel_alignment', FindingStatus.GOOD, 'normal',
                       'Heel alignment is normal', provisional=True)


def _unknown(metric_key: str, message: str) -> Finding:
    return Finding(metric_key, FindingStatus.UNKNOWN, None, message)
