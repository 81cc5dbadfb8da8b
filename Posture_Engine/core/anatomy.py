"""
Anatomy tables per photography view.

Each view selects which anatomical labels are expected, which external
keypoint feeds each label, and which pairs are joined when drawing.
"""

from enum import Enum
from typing import Dict, List, Tuple


class ViewType(Enum):
    """Photography angle of the current image."""
    FRONT = "front"
    SIDE = "side"
    FOOT_TOP = "foot-top"
    FOOT_BACK = "foot-back"


class AnatomicalLabel(Enum):
    """Anatomical locations a landmark can stand for."""
    # Front view (subject's left/right)
    LEFT_SHOULDER = "left shoulder"
    RIGHT_SHOULDER = "right shoulder"
    LEFT_HIP = "left hip"
    RIGHT_HIP = "right hip"
    LEFT_KNEE = "left knee"
    RIGHT_KNEE = "right knee"
    LEFT_ANKLE = "left ankle"
    RIGHT_ANKLE = "right ankle"
    # Side view (single visible side)
    EAR = "ear"
    SHOULDER = "shoulder"
    HIP = "hip"
    KNEE = "knee"
    ANKLE = "ankle"


# Wizard order for a full assessment
VIEW_SEQUENCE: List[ViewType] = [
    ViewType.FRONT, ViewType.SIDE, ViewType.FOOT_TOP, ViewType.FOOT_BACK
]

KEYPOINT_MAPPING: Dict[ViewType, Dict[AnatomicalLabel, str]] = {
    ViewType.FRONT: {
        AnatomicalLabel.LEFT_SHOULDER: 'left_shoulder',
        AnatomicalLabel.RIGHT_SHOULDER: 'right_shoulder',
        AnatomicalLabel.LEFT_HIP: 'left_hip',
        AnatomicalLabel.RIGHT_HIP: 'right_hip',
        AnatomicalLabel.LEFT_KNEE: 'left_knee',
        AnatomicalLabel.RIGHT_KNEE: 'right_knee',
        AnatomicalLabel.LEFT_ANKLE: 'left_ankle',
        AnatomicalLabel.RIGHT_ANKLE: 'right_ankle',
    },
    ViewType.SIDE: {
        AnatomicalLabel.EAR: 'left_ear',
        AnatomicalLabel.SHOULDER: 'left_shoulder',
        AnatomicalLabel.HIP: 'left_hip',
        AnatomicalLabel.KNEE: 'left_knee',
        AnatomicalLabel.ANKLE: 'left_ankle',
    },
    # Foot views rely on colour markers only
    ViewType.FOOT_TOP: {},
    ViewType.FOOT_BACK: {},
}

CONNECTIONS: Dict[ViewType, List[Tuple[AnatomicalLabel, AnatomicalLabel]]] = {
    ViewType.FRONT: [
        (AnatomicalLabel.LEFT_SHOULDER, AnatomicalLabel.RIGHT_SHOULDER),
        (AnatomicalLabel.LEFT_SHOULDER, AnatomicalLabel.LEFT_HIP),
        (AnatomicalLabel.RIGHT_SHOULDER, AnatomicalLabel.RIGHT_HIP),
        (AnatomicalLabel.LEFT_HIP, AnatomicalLabel.RIGHT_HIP),
        (AnatomicalLabel.LEFT_HIP, AnatomicalLabel.LEFT_KNEE),
        (AnatomicalLabel.RIGHT_HIP, AnatomicalLabel.RIGHT_KNEE),
        (AnatomicalLabel.LEFT_KNEE, AnatomicalLabel.LEFT_ANKLE),
        (AnatomicalLabel.RIGHT_KNEE, AnatomicalLabel.RIGHT_ANKLE),
    ],
    ViewType.SIDE: [
        (AnatomicalLabel.EAR, AnatomicalLabel.SHOULDER),
        (AnatomicalLabel.SHOULDER, AnatomicalLabel.HIP),
        (AnatomicalLabel.HIP, AnatomicalLabel.KNEE),
        (AnatomicalLabel.KNEE, AnatomicalLabel.ANKLE),
    ],
    ViewType.FOOT_TOP: [],
    ViewType.FOOT_BACK: [],
}


def get_keypoint_mapping(view_type: ViewType) -> Dict[AnatomicalLabel, str]:
    return KEYPOINT_MAPPING.get(view_type, {})


def get_connections(view_type: ViewType) -> List[Tuple[AnatomicalLabel, AnatomicalLabel]]:
    return CONNECTIONS.get(view_type, [])
