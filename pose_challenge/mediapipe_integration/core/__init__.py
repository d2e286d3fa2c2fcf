"""
Core Module for Pose Challenge MediaPipe Integration.

Contains the pose similarity engine and the hold timer state machine.
The MediaPipe-backed VisionDetector lives in .detector and is imported
explicitly where a real detector is needed.
"""

from .data_types import (
    Landmark, LandmarkSet, PoseLandmarkIndex,
    JointType, JointDefinition, JOINT_DEFINITIONS, COMPARISON_JOINTS,
)
from .kinematics import (
    calculate_joint_angle, calculate_angle_from_landmarks, normalize_landmarks, torso_length,
)
from .comparator import (
    compare_poses, compare_joint_angles, is_pose_matched,
    MATCH_THRESHOLD, MAX_ANGLE_TOLERANCE,
)
from .hold_timer import (
    HoldPhase, HoldTimerState, TimerTransition, apply_match, apply_tick, reset_timer,
)

__all__ = [
    # Data types
    'Landmark', 'LandmarkSet', 'PoseLandmarkIndex',
    'JointType', 'JointDefinition', 'JOINT_DEFINITIONS', 'COMPARISON_JOINTS',

    # Kinematics
    'calculate_joint_angle', 'calculate_angle_from_landmarks', 'normalize_landmarks', 'torso_length',

    # Comparator
    'compare_poses', 'compare_joint_angles', 'is_pose_matched',
    'MATCH_THRESHOLD', 'MAX_ANGLE_TOLERANCE',

    # Hold timer
    'HoldPhase', 'HoldTimerState', 'TimerTransition', 'apply_match', 'apply_tick', 'reset_timer',
]
