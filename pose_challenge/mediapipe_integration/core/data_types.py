"""
Data Types Module for Pose Challenge.

Data classes and lookup tables shared by the similarity engine and the
challenge state machine. Landmark indices follow the MediaPipe Pose
33-point schema and are only ever referenced through PoseLandmarkIndex.

Author: Pose Challenge Team
Version: 1.0.0
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Landmark:
    """
    A single tracked body-joint position.

    Attributes:
        x: Normalized image X coordinate (0-1).
        y: Normalized image Y coordinate (0-1).
        z: Relative depth, None if the detector did not provide it.
        visibility: Detector confidence that the point is visible (0-1).
        presence: Detector confidence that the point is in frame (0-1).
    """
    x: float
    y: float
    z: Optional[float] = None
    visibility: Optional[float] = None
    presence: Optional[float] = None

    def to_2d(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass
class LandmarkSet:
    """
    Ordered landmarks for one detected body in one frame or image.

    Attributes:
        landmarks: Landmarks indexed by PoseLandmarkIndex.
        timestamp_ms: Timestamp of the source frame (milliseconds).
    """
    landmarks: List[Landmark]
    timestamp_ms: int = 0

    def __len__(self) -> int:
        return len(self.landmarks)

    def __getitem__(self, index: int) -> Landmark:
        return self.landmarks[index]

    def __iter__(self):
        return iter(self.landmarks)

    @classmethod
    def from_mediapipe(cls, mp_landmarks, timestamp_ms: int = 0) -> "LandmarkSet":
        """Build a LandmarkSet from a MediaPipe NormalizedLandmark list."""
        return cls(
            landmarks=[
                Landmark(
                    x=float(lm.x),
                    y=float(lm.y),
                    z=float(lm.z) if lm.z is not None else None,
                    visibility=getattr(lm, 'visibility', None),
                    presence=getattr(lm, 'presence', None),
                )
                for lm in mp_landmarks
            ],
            timestamp_ms=timestamp_ms,
        )


class PoseLandmarkIndex:
    """
    Landmark indices of MediaPipe Pose.
    33 landmarks in total.
    """
    # Face
    NOSE = 0
    LEFT_EYE_INNER = 1
    LEFT_EYE = 2
    LEFT_EYE_OUTER = 3
    RIGHT_EYE_INNER = 4
    RIGHT_EYE = 5
    RIGHT_EYE_OUTER = 6
    LEFT_EAR = 7
    RIGHT_EAR = 8
    MOUTH_LEFT = 9
    MOUTH_RIGHT = 10

    # Upper body
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_PINKY = 17
    RIGHT_PINKY = 18
    LEFT_INDEX = 19
    RIGHT_INDEX = 20
    LEFT_THUMB = 21
    RIGHT_THUMB = 22

    # Lower body
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32

    TOTAL = 33


class JointType(Enum):
    """Joints whose angles are compared between two poses."""
    LEFT_ELBOW = "left_elbow"
    RIGHT_ELBOW = "right_elbow"
    LEFT_SHOULDER = "left_shoulder"
    RIGHT_SHOULDER = "right_shoulder"
    LEFT_KNEE = "left_knee"
    RIGHT_KNEE = "right_knee"
    LEFT_HIP = "left_hip"
    RIGHT_HIP = "right_hip"


@dataclass(frozen=True)
class JointDefinition:
    """
    A joint defined by three landmark indices.

    Attributes:
        proximal: Index of the first ray end point.
        vertex: Index of the angle vertex (the joint itself).
        distal: Index of the second ray end point.
        name: Human readable joint name.
    """
    proximal: int
    vertex: int
    distal: int
    name: str


JOINT_DEFINITIONS: Dict[JointType, JointDefinition] = {
    # Shoulder -> elbow -> wrist
    JointType.LEFT_ELBOW: JointDefinition(
        proximal=PoseLandmarkIndex.LEFT_SHOULDER,
        vertex=PoseLandmarkIndex.LEFT_ELBOW,
        distal=PoseLandmarkIndex.LEFT_WRIST,
        name="Left elbow",
    ),
    JointType.RIGHT_ELBOW: JointDefinition(
        proximal=PoseLandmarkIndex.RIGHT_SHOULDER,
        vertex=PoseLandmarkIndex.RIGHT_ELBOW,
        distal=PoseLandmarkIndex.RIGHT_WRIST,
        name="Right elbow",
    ),
    # Elbow -> shoulder -> hip
    JointType.LEFT_SHOULDER: JointDefinition(
        proximal=PoseLandmarkIndex.LEFT_ELBOW,
        vertex=PoseLandmarkIndex.LEFT_SHOULDER,
        distal=PoseLandmarkIndex.LEFT_HIP,
        name="Left shoulder",
    ),
    JointType.RIGHT_SHOULDER: JointDefinition(
        proximal=PoseLandmarkIndex.RIGHT_ELBOW,
        vertex=PoseLandmarkIndex.RIGHT_SHOULDER,
        distal=PoseLandmarkIndex.RIGHT_HIP,
        name="Right shoulder",
    ),
    # Hip -> knee -> ankle
    JointType.LEFT_KNEE: JointDefinition(
        proximal=PoseLandmarkIndex.LEFT_HIP,
        vertex=PoseLandmarkIndex.LEFT_KNEE,
        distal=PoseLandmarkIndex.LEFT_ANKLE,
        name="Left knee",
    ),
    JointType.RIGHT_KNEE: JointDefinition(
        proximal=PoseLandmarkIndex.RIGHT_HIP,
        vertex=PoseLandmarkIndex.RIGHT_KNEE,
        distal=PoseLandmarkIndex.RIGHT_ANKLE,
        name="Right knee",
    ),
    # Knee -> hip -> shoulder
    JointType.LEFT_HIP: JointDefinition(
        proximal=PoseLandmarkIndex.LEFT_KNEE,
        vertex=PoseLandmarkIndex.LEFT_HIP,
        distal=PoseLandmarkIndex.LEFT_SHOULDER,
        name="Left hip",
    ),
    JointType.RIGHT_HIP: JointDefinition(
        proximal=PoseLandmarkIndex.RIGHT_KNEE,
        vertex=PoseLandmarkIndex.RIGHT_HIP,
        distal=PoseLandmarkIndex.RIGHT_SHOULDER,
        name="Right hip",
    ),
}

# The eight joints compared by the pose comparator, in evaluation order
COMPARISON_JOINTS: List[JointType] = [
    JointType.LEFT_ELBOW,
    JointType.RIGHT_ELBOW,
    JointType.LEFT_SHOULDER,
    JointType.RIGHT_SHOULDER,
    JointType.LEFT_KNEE,
    JointType.RIGHT_KNEE,
    JointType.LEFT_HIP,
    JointType.RIGHT_HIP,
]

