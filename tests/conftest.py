import time
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import pytest

from pose_challenge.mediapipe_integration.core import Landmark, LandmarkSet, PoseLandmarkIndex

# Upright body, arms hanging slightly away from the torso (image coordinates)
STANDING = {
    PoseLandmarkIndex.LEFT_SHOULDER: (0.45, 0.30),
    PoseLandmarkIndex.RIGHT_SHOULDER: (0.55, 0.30),
    PoseLandmarkIndex.LEFT_ELBOW: (0.40, 0.45),
    PoseLandmarkIndex.RIGHT_ELBOW: (0.60, 0.45),
    PoseLandmarkIndex.LEFT_WRIST: (0.38, 0.60),
    PoseLandmarkIndex.RIGHT_WRIST: (0.62, 0.60),
    PoseLandmarkIndex.LEFT_HIP: (0.47, 0.60),
    PoseLandmarkIndex.RIGHT_HIP: (0.53, 0.60),
    PoseLandmarkIndex.LEFT_KNEE: (0.47, 0.75),
    PoseLandmarkIndex.RIGHT_KNEE: (0.53, 0.75),
    PoseLandmarkIndex.LEFT_ANKLE: (0.47, 0.90),
    PoseLandmarkIndex.RIGHT_ANKLE: (0.53, 0.90),
}

# Same body with both arms raised above the head
ARMS_RAISED = {
    **STANDING,
    PoseLandmarkIndex.LEFT_ELBOW: (0.35, 0.20),
    PoseLandmarkIndex.RIGHT_ELBOW: (0.65, 0.20),
    PoseLandmarkIndex.LEFT_WRIST: (0.33, 0.05),
    PoseLandmarkIndex.RIGHT_WRIST: (0.67, 0.05),
}


def make_pose(points: Dict[int, tuple], count: int = PoseLandmarkIndex.TOTAL,
              timestamp_ms: int = 0, z: Optional[float] = None) -> LandmarkSet:
    """Full landmark set; landmarks not listed sit at the head."""
    landmarks = []
    for index in range(count):
        x, y = points.get(index, (0.5, 0.2))
        landmarks.append(Landmark(x=x, y=y, z=z, visibility=0.9, presence=0.95))
    return LandmarkSet(landmarks=landmarks, timestamp_ms=timestamp_ms)


def transform_pose(landmarks: LandmarkSet, scale: float, dx: float, dy: float) -> LandmarkSet:
    return LandmarkSet(
        landmarks=[
            Landmark(x=lm.x * scale + dx, y=lm.y * scale + dy, z=lm.z,
                     visibility=lm.visibility, presence=lm.presence)
            for lm in landmarks
        ],
        timestamp_ms=landmarks.timestamp_ms,
    )


class FakeDetector:
    """
    Stand-in for VisionDetector.

    Reference stills resolve by file name through `references`; live frames
    all return `live` after an optional per-call delay. Setting `image_error`
    or `frame_error` makes the matching call raise.
    """

    def __init__(self, references: Optional[Dict[str, LandmarkSet]] = None,
                 default_reference: Optional[LandmarkSet] = None,
                 live: Optional[LandmarkSet] = None,
                 reference_delay: float = 0.0):
        self.references = references or {}
        self.default_reference = default_reference
        self.live = live
        self.reference_delay = reference_delay
        self.frame_delays: List[float] = []
        self.loaded: List[str] = []
        self.detected_frames: List[int] = []
        self.image_error: Optional[Exception] = None
        self.frame_error: Optional[Exception] = None

    def load_image(self, image_path) -> Optional[np.ndarray]:
        self.loaded.append(Path(image_path).name)
        return np.zeros((4, 4, 3), dtype=np.uint8)

    def detect_image(self, image: np.ndarray) -> Optional[LandmarkSet]:
        if self.image_error is not None:
            raise self.image_error
        if self.reference_delay:
            time.sleep(self.reference_delay)
        return self.references.get(self.loaded[-1], self.default_reference)

    def detect_frame(self, frame: np.ndarray, timestamp_ms: int) -> Optional[LandmarkSet]:
        if self.frame_error is not None:
            raise self.frame_error
        if self.frame_delays:
            time.sleep(self.frame_delays.pop(0))
        self.detected_frames.append(timestamp_ms)
        return self.live


@pytest.fixture
def standing_pose() -> LandmarkSet:
    return make_pose(STANDING)


@pytest.fixture
def raised_pose() -> LandmarkSet:
    return make_pose(ARMS_RAISED)


@pytest.fixture
def frame() -> np.ndarray:
    return np.zeros((48, 64, 3), dtype=np.uint8)
