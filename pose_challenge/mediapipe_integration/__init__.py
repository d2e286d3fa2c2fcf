# Mediapipe Integration Package
# Pose similarity engine and challenge state machine

from .core import LandmarkSet, compare_poses, is_pose_matched
from .modules import ChallengeSession, PoseDefinition, create_session
from .utils import SessionLogger

__all__ = [
    'LandmarkSet',
    'compare_poses',
    'is_pose_matched',
    'ChallengeSession',
    'PoseDefinition',
    'create_session',
    'SessionLogger'
]
