"""
Kinematics Module for Pose Challenge.

Basic kinematic helpers:
- Angle at a joint formed by three landmarks (x/y plane)
- Translation/scale normalization of a landmark set

Angle between three points A, B, C (B is the vertex):

    Vector BA = A - B
    Vector BC = C - B

    cos(θ) = (BA · BC) / (|BA| × |BC|)
    θ = arccos(clamp(cos(θ), -1, 1))

Author: Pose Challenge Team
Version: 1.0.0
"""

from typing import List, Tuple, Union
import numpy as np

from .data_types import (
    Landmark, LandmarkSet, JointType, JOINT_DEFINITIONS, PoseLandmarkIndex
)

# Below this length a ray or torso is treated as degenerate
_EPSILON = 1e-10


def _to_xy(point: Union[Landmark, np.ndarray, Tuple[float, ...]]) -> np.ndarray:
    """Take the (x, y) components of a point, ignoring depth."""
    if isinstance(point, Landmark):
        return np.array(point.to_2d(), dtype=np.float64)
    return np.asarray(point, dtype=np.float64)[:2]


def calculate_joint_angle(
    point_a: Union[Landmark, np.ndarray, Tuple[float, ...]],
    point_b: Union[Landmark, np.ndarray, Tuple[float, ...]],
    point_c: Union[Landmark, np.ndarray, Tuple[float, ...]],
) -> float:
    """
    Calculate the angle at point_b formed by point_a - point_b - point_c.

    Only the x/y plane is used; z is ignored. A zero-length ray yields 0
    instead of raising, so noisy detections never interrupt a session.

    Args:
        point_a: First ray end point (proximal).
        point_b: Angle vertex.
        point_c: Second ray end point (distal).

    Returns:
        float: Angle in degrees, in [0, 180].

    Example:
        >>> calculate_joint_angle((1, 0), (0, 0), (0, 1))
        90.0
    """
    a = _to_xy(point_a)
    b = _to_xy(point_b)
    c = _to_xy(point_c)

    vector_ba = a - b
    vector_bc = c - b

    norm_ba = np.linalg.norm(vector_ba)
    norm_bc = np.linalg.norm(vector_bc)

    if norm_ba < _EPSILON or norm_bc < _EPSILON:
        return 0.0

    cos_angle = np.dot(vector_ba, vector_bc) / (norm_ba * norm_bc)
    cos_angle = np.clip(cos_angle, -1.0, 1.0)  # Handle floating point errors

    return float(np.degrees(np.arccos(cos_angle)))


def calculate_angle_from_landmarks(landmarks: LandmarkSet, joint_type: JointType) -> float:
    """
    Calculate a named joint angle from a landmark set.

    Args:
        landmarks: Landmark set in the MediaPipe Pose schema.
        joint_type: Joint to measure.

    Returns:
        Angle in degrees.
    """
    joint = JOINT_DEFINITIONS[joint_type]
    return calculate_joint_angle(
        landmarks[joint.proximal],
        landmarks[joint.vertex],
        landmarks[joint.distal],
    )


def _midpoint(p1: Landmark, p2: Landmark) -> Tuple[float, float]:
    return ((p1.x + p2.x) / 2.0, (p1.y + p2.y) / 2.0)


def torso_length(landmarks: LandmarkSet) -> float:
    """Distance between the hip midpoint and the shoulder midpoint (x/y)."""
    hip_x, hip_y = _midpoint(
        landmarks[PoseLandmarkIndex.LEFT_HIP], landmarks[PoseLandmarkIndex.RIGHT_HIP]
    )
    shoulder_x, shoulder_y = _midpoint(
        landmarks[PoseLandmarkIndex.LEFT_SHOULDER], landmarks[PoseLandmarkIndex.RIGHT_SHOULDER]
    )
    return float(np.hypot(shoulder_x - hip_x, shoulder_y - hip_y))


def normalize_landmarks(landmarks: LandmarkSet) -> LandmarkSet:
    """
    Normalize a landmark set for position and distance from the camera.

    The hip midpoint becomes the origin and the torso length becomes 1.
    z is divided by the same factor (absent z becomes 0). A zero torso
    length falls back to a scale factor of 1.

    Viewing angle is not normalized: a side-on and a front-on view of the
    same body produce different sets.

    Args:
        landmarks: Raw landmark set.

    Returns:
        LandmarkSet: New normalized set with the same timestamp.
    """
    center_x, center_y = _midpoint(
        landmarks[PoseLandmarkIndex.LEFT_HIP], landmarks[PoseLandmarkIndex.RIGHT_HIP]
    )
    scale = torso_length(landmarks)
    if scale < _EPSILON:
        scale = 1.0

    normalized: List[Landmark] = [
        Landmark(
            x=(lm.x - center_x) / scale,
            y=(lm.y - center_y) / scale,
            z=(lm.z / scale) if lm.z is not None else 0.0,
            visibility=lm.visibility,
            presence=lm.presence,
        )
        for lm in landmarks
    ]
    return LandmarkSet(landmarks=normalized, timestamp_ms=landmarks.timestamp_ms)
