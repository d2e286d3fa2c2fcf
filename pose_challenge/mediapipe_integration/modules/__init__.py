"""
Modules Package for Pose Challenge MediaPipe Integration.

Contains scoring/progression, event scheduling and camera capture.
"""

from .progression import (
    PoseDefinition, ChallengeSession, ChallengeEvent, TransitionResult,
    DEFAULT_SEQUENCE, BASE_HOLD_TIME, LEVEL_ESCALATION_FACTOR,
    create_session, calculate_points, on_match, on_tick,
    advance_to_next_pose, go_to_pose, reset_challenge, change_target_time, status_message,
)
from .scheduler import PeriodicTicker, FrameStream
from .camera import CameraSource

__all__ = [
    # Progression
    'PoseDefinition', 'ChallengeSession', 'ChallengeEvent', 'TransitionResult',
    'DEFAULT_SEQUENCE', 'BASE_HOLD_TIME', 'LEVEL_ESCALATION_FACTOR',
    'create_session', 'calculate_points', 'on_match', 'on_tick',
    'advance_to_next_pose', 'go_to_pose', 'reset_challenge', 'change_target_time', 'status_message',

    # Scheduling
    'PeriodicTicker', 'FrameStream',

    # Capture
    'CameraSource',
]
