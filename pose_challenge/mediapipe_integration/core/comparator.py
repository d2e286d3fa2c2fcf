"""
Pose Comparator Module for Pose Challenge.

Scores how closely a live pose matches a reference pose by comparing the
angles of eight key joints after normalizing both poses.

    avg_diff   = mean(|angle_live(j) - angle_ref(j)|)   over the 8 joints
    similarity = max(0, 1 - avg_diff / MAX_ANGLE_TOLERANCE)

Author: Pose Challenge Team
Version: 1.0.0
"""

from typing import Dict, Optional

from .data_types import LandmarkSet, JointType, COMPARISON_JOINTS, PoseLandmarkIndex
from .kinematics import calculate_angle_from_landmarks, normalize_landmarks
from ...helpers.exception_handler import LandmarkSchemaError

# Average deviation (degrees) at which similarity reaches 0
MAX_ANGLE_TOLERANCE = 45.0

# Similarity strictly above this counts as a match
MATCH_THRESHOLD = 0.8

# Highest landmark index the comparison reads
_MIN_LANDMARKS = PoseLandmarkIndex.RIGHT_ANKLE + 1


def _check_schema(live: LandmarkSet, reference: LandmarkSet) -> None:
    if len(live) != len(reference):
        raise LandmarkSchemaError(
            message=f"Landmark count mismatch: {len(live)} vs {len(reference)}"
        )
    if len(live) < _MIN_LANDMARKS:
        raise LandmarkSchemaError(
            message=f"Landmark set too short: {len(live)} < {_MIN_LANDMARKS}"
        )


def compare_joint_angles(live: LandmarkSet, reference: LandmarkSet) -> Dict[JointType, float]:
    """
    Absolute angle difference per compared joint, after normalization.

    Args:
        live: Landmarks detected on the current frame.
        reference: Landmarks of the reference pose.

    Returns:
        Dict mapping each joint in COMPARISON_JOINTS to |Δangle| in degrees.

    Raises:
        LandmarkSchemaError: If the sets cannot be compared.
    """
    _check_schema(live, reference)

    live_norm = normalize_landmarks(live)
    ref_norm = normalize_landmarks(reference)

    return {
        joint: abs(
            calculate_angle_from_landmarks(live_norm, joint)
            - calculate_angle_from_landmarks(ref_norm, joint)
        )
        for joint in COMPARISON_JOINTS
    }


def compare_poses(
    live: Optional[LandmarkSet],
    reference: Optional[LandmarkSet],
    max_tolerance: float = MAX_ANGLE_TOLERANCE,
) -> float:
    """
    Similarity between two poses.

    Args:
        live: Landmarks detected on the current frame, None if no body.
        reference: Landmarks of the reference pose, None if not available.
        max_tolerance: Average angle deviation (degrees) mapped to 0.

    Returns:
        float: 1.0 for identical joint angles, down to 0.0 at or beyond
        max_tolerance. 0.0 when either pose is absent.
    """
    if not live or not reference:
        return 0.0

    differences = compare_joint_angles(live, reference)
    avg_diff = sum(differences.values()) / len(differences)

    return max(0.0, 1.0 - avg_diff / max_tolerance)


def is_pose_matched(similarity: float, threshold: float = MATCH_THRESHOLD) -> bool:
    """Threshold a similarity score into a matched flag."""
    return similarity > threshold
