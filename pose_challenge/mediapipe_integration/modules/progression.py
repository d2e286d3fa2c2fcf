"""
Progression Module for Pose Challenge.

Scoring and sequence/level progression on top of the hold timer.

Points for a completed pose:

    points = round(base_points × difficulty_multiplier × (target_time / 5))

Dividing by the default 5 s hold makes longer holds worth proportionally
more. Finishing the last pose of the sequence starts the next level, where
every difficulty multiplier grows by LEVEL_ESCALATION_FACTOR.

Every operation is a pure function (session, event) -> TransitionResult so
the state machine can be driven and tested without any I/O.

Author: Pose Challenge Team
Version: 1.0.0
"""

from dataclasses import dataclass, field, replace
import math
from typing import List, Optional, Sequence, Tuple

from ..core.hold_timer import (
    HoldTimerState, apply_match, apply_tick, reset_timer
)
from ...helpers.enums import EventType, HoldDuration
from ...helpers.exception_handler import InvalidPoseIndexError, InvalidTargetTimeError

# Hold duration the base points are calibrated against (seconds)
BASE_HOLD_TIME = 5.0

LEVEL_ESCALATION_FACTOR = 1.2


@dataclass(frozen=True)
class PoseDefinition:
    """
    One pose of the challenge sequence.

    Attributes:
        id: Stable pose identifier.
        name: Display name.
        image_path: Reference still image.
        points: Base reward for completing the pose.
        difficulty_multiplier: Reward multiplier, escalated per level.
        completed: Display flag; does not block another attempt.
    """
    id: int
    name: str
    image_path: str
    points: int
    difficulty_multiplier: float = 1.0
    completed: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "image_path": self.image_path,
            "points": self.points,
            "difficulty_multiplier": round(self.difficulty_multiplier, 4),
            "completed": self.completed,
        }


DEFAULT_SEQUENCE: Tuple[PoseDefinition, ...] = (
    PoseDefinition(id=1, name="Warrior Pose II", image_path="warrior-pose.jpg",
                   points=100, difficulty_multiplier=1.0),
    PoseDefinition(id=2, name="Upward Dog", image_path="upward-dog.jpg",
                   points=150, difficulty_multiplier=1.2),
    PoseDefinition(id=3, name="Tree Pose", image_path="tree-pose.jpg",
                   points=200, difficulty_multiplier=1.4),
    PoseDefinition(id=4, name="Downward Dog", image_path="downward-dog.jpg",
                   points=250, difficulty_multiplier=1.6),
)


@dataclass(frozen=True)
class ChallengeEvent:
    """Notable transition, surfaced to the operator (alerts, logs)."""
    event_type: EventType
    pose_index: int
    level: int
    points: int = 0


@dataclass(frozen=True)
class ChallengeSession:
    """
    Challenge session state.

    Attributes:
        sequence: Poses of the current level.
        current_pose_index: Active pose, within [0, len(sequence)).
        timer: Hold timer of the active pose.
        score: Session score, only lowered by reset_challenge.
        level: Current level, starting at 1.
        matched: Matched flag of the last processed frame.
        similarity: Similarity of the last processed frame.
        last_points_awarded: Points granted by the last completion.
    """
    sequence: Tuple[PoseDefinition, ...]
    current_pose_index: int = 0
    timer: HoldTimerState = field(default_factory=HoldTimerState)
    score: int = 0
    level: int = 1
    matched: bool = False
    similarity: float = 0.0
    last_points_awarded: int = 0

    @property
    def current_pose(self) -> PoseDefinition:
        return self.sequence[self.current_pose_index]

    @property
    def hold_time(self) -> float:
        return self.timer.hold_time

    @property
    def target_time(self) -> float:
        return self.timer.target_time

    @property
    def timer_running(self) -> bool:
        return self.timer.timer_running

    @property
    def completed(self) -> bool:
        return self.timer.completed


@dataclass(frozen=True)
class TransitionResult:
    session: ChallengeSession
    events: Tuple[ChallengeEvent, ...] = ()


def create_session(
    sequence: Optional[Sequence[PoseDefinition]] = None,
    target_time: int = HoldDuration.DEFAULT,
) -> ChallengeSession:
    """Build a fresh session at level 1 on the first pose."""
    poses = tuple(sequence) if sequence is not None else DEFAULT_SEQUENCE
    if not poses:
        raise ValueError("A challenge sequence needs at least one pose")
    _validate_target_time(target_time)
    return ChallengeSession(sequence=poses, timer=HoldTimerState(target_time=float(target_time)))


def _validate_target_time(target_time: int) -> None:
    if target_time not in HoldDuration.values():
        raise InvalidTargetTimeError(
            message=f"Target time {target_time}s not in {HoldDuration.values()}"
        )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_points(pose: PoseDefinition, target_time: float) -> int:
    """Points awarded for holding pose for target_time seconds."""
    return _round_half_up(pose.points * pose.difficulty_multiplier * (target_time / BASE_HOLD_TIME))


def _clear_completed(sequence: Tuple[PoseDefinition, ...]) -> Tuple[PoseDefinition, ...]:
    return tuple(replace(pose, completed=False) for pose in sequence)


def _award_completion(session: ChallengeSession) -> TransitionResult:
    pose = session.current_pose
    points = calculate_points(pose, session.target_time)

    sequence: List[PoseDefinition] = list(session.sequence)
    sequence[session.current_pose_index] = replace(pose, completed=True)

    new_session = replace(
        session,
        sequence=tuple(sequence),
        score=session.score + points,
        last_points_awarded=points,
    )
    event = ChallengeEvent(
        event_type=EventType.POSE_COMPLETED,
        pose_index=session.current_pose_index,
        level=session.level,
        points=points,
    )
    return TransitionResult(new_session, (event,))


def on_match(session: ChallengeSession, matched: bool, similarity: float = 0.0) -> TransitionResult:
    """Apply the matched signal of one processed frame."""
    transition = apply_match(session.timer, matched)
    return TransitionResult(
        replace(session, timer=transition.state, matched=matched, similarity=similarity)
    )


def on_tick(session: ChallengeSession, dt: float) -> TransitionResult:
    """Advance the hold timer; award points on the HOLDING -> COMPLETED edge."""
    transition = apply_tick(session.timer, dt)
    new_session = replace(session, timer=transition.state)
    if transition.just_completed:
        return _award_completion(new_session)
    return TransitionResult(new_session)


def _reset_pose_state(session: ChallengeSession) -> ChallengeSession:
    return replace(
        session,
        timer=reset_timer(session.timer),
        matched=False,
        similarity=0.0,
    )


def advance_to_next_pose(
    session: ChallengeSession,
    escalation_factor: float = LEVEL_ESCALATION_FACTOR,
) -> TransitionResult:
    """
    Move to the next pose, or start the next level after the last one.

    Starting a new level clears every completed flag, multiplies every
    difficulty multiplier by escalation_factor and returns to pose 0.
    The score is never touched.
    """
    session = _reset_pose_state(session)

    if session.current_pose_index < len(session.sequence) - 1:
        return TransitionResult(replace(session, current_pose_index=session.current_pose_index + 1))

    finished_level = session.level
    escalated = tuple(
        replace(
            pose,
            completed=False,
            difficulty_multiplier=pose.difficulty_multiplier * escalation_factor,
        )
        for pose in session.sequence
    )
    new_session = replace(
        session,
        sequence=escalated,
        current_pose_index=0,
        level=finished_level + 1,
    )
    event = ChallengeEvent(
        event_type=EventType.LEVEL_COMPLETED,
        pose_index=len(session.sequence) - 1,
        level=finished_level,
    )
    return TransitionResult(new_session, (event,))


def go_to_pose(session: ChallengeSession, index: int) -> TransitionResult:
    """Jump to any pose of the current sequence; never escalates the level."""
    if not 0 <= index < len(session.sequence):
        raise InvalidPoseIndexError(
            message=f"Pose index {index} outside [0, {len(session.sequence)})"
        )
    session = _reset_pose_state(session)
    return TransitionResult(replace(session, current_pose_index=index))


def reset_challenge(session: ChallengeSession) -> TransitionResult:
    """
    Manual reset: zero the score, clear completed flags, stop the timer.

    Level, current pose and escalated multipliers are kept.
    """
    return TransitionResult(
        replace(
            session,
            sequence=_clear_completed(session.sequence),
            timer=reset_timer(session.timer),
            score=0,
            last_points_awarded=0,
        )
    )


def change_target_time(session: ChallengeSession, target_time: int) -> TransitionResult:
    """
    Select a new hold duration.

    A different value stops the timer unconditionally (even mid-hold) and
    clears the completed flags. Points already in the score are kept.
    """
    _validate_target_time(target_time)
    if float(target_time) == session.target_time:
        return TransitionResult(session)

    return TransitionResult(
        replace(
            session,
            sequence=_clear_completed(session.sequence),
            timer=reset_timer(session.timer, target_time=float(target_time)),
        )
    )


def status_message(session: ChallengeSession, reference_ready: bool = True) -> str:
    """Status line shown under the progress bar."""
    if session.completed:
        return "Challenge complete!"
    if not reference_ready:
        return "Waiting for reference pose..."
    if session.matched:
        return f"Holding: {session.hold_time:.1f}s / {session.target_time:g}s"
    return "Align your pose with the reference image"
