import pytest

from pose_challenge.helpers.enums import EventType
from pose_challenge.helpers.exception_handler import InvalidPoseIndexError, InvalidTargetTimeError
from pose_challenge.mediapipe_integration.modules import (
    DEFAULT_SEQUENCE, ChallengeSession, PoseDefinition,
    advance_to_next_pose, calculate_points, change_target_time, create_session,
    go_to_pose, on_match, on_tick, reset_challenge, status_message,
)


def _complete_current(session: ChallengeSession):
    """Match and tick until the active pose completes; returns (session, events)."""
    session = on_match(session, True, 0.95).session
    events = []
    while not session.completed:
        result = on_tick(session, 0.1)
        session = result.session
        events.extend(result.events)
    return session, events


def test_new_session_defaults():
    session = create_session()
    assert session.sequence == DEFAULT_SEQUENCE
    assert session.current_pose_index == 0
    assert session.level == 1
    assert session.score == 0
    assert session.target_time == 5.0
    assert not session.timer_running


def test_create_session_validation():
    with pytest.raises(ValueError):
        create_session([])
    with pytest.raises(InvalidTargetTimeError):
        create_session(target_time=4)


def test_points_scale_with_target_time():
    warrior = DEFAULT_SEQUENCE[0]
    assert calculate_points(warrior, 5) == 100
    assert calculate_points(warrior, 10) == 200
    assert calculate_points(warrior, 3) == 60
    assert calculate_points(DEFAULT_SEQUENCE[1], 5) == 180


def test_points_round_half_up():
    pose = PoseDefinition(id=9, name="Test", image_path="test.jpg", points=5, difficulty_multiplier=0.5)
    assert calculate_points(pose, 5) == 3


def test_completion_awards_points_once():
    session, events = _complete_current(create_session())

    assert session.score == 100
    assert session.last_points_awarded == 100
    assert session.sequence[0].completed
    assert [e.event_type for e in events] == [EventType.POSE_COMPLETED]
    assert events[0].points == 100

    # Further ticks after completion award nothing
    result = on_tick(session, 0.1)
    assert result.events == ()
    assert result.session.score == 100


def test_completion_with_longer_target():
    session = create_session(target_time=10)
    session, events = _complete_current(session)
    assert session.score == 200
    assert session.hold_time == 10.0


def test_full_sequence_wraps_to_next_level():
    session = create_session()
    level_events = []

    for _ in DEFAULT_SEQUENCE:
        session, _ = _complete_current(session)
        result = advance_to_next_pose(session)
        session = result.session
        level_events.extend(e for e in result.events if e.event_type == EventType.LEVEL_COMPLETED)

    assert session.score == 100 + 180 + 280 + 400
    assert session.level == 2
    assert session.current_pose_index == 0
    assert not any(pose.completed for pose in session.sequence)
    for escalated, base in zip(session.sequence, DEFAULT_SEQUENCE):
        assert escalated.difficulty_multiplier == pytest.approx(base.difficulty_multiplier * 1.2)

    assert len(level_events) == 1
    assert level_events[0].level == 1

    # Escalated multiplier applies to the next award
    session, _ = _complete_current(session)
    assert session.last_points_awarded == 120


def test_advance_resets_pose_state():
    session = on_match(create_session(), True, 0.9).session
    session = on_tick(session, 0.1).session

    session = advance_to_next_pose(session).session
    assert session.current_pose_index == 1
    assert session.hold_time == 0.0
    assert not session.timer_running
    assert not session.matched
    assert session.similarity == 0.0


def test_go_to_pose_never_escalates():
    session = create_session()
    session = go_to_pose(session, 3).session
    session, _ = _complete_current(session)

    result = go_to_pose(session, 0)
    assert result.events == ()
    assert result.session.level == 1
    assert result.session.current_pose_index == 0
    assert result.session.sequence == session.sequence


@pytest.mark.parametrize("index", [-1, 4, 10])
def test_go_to_pose_rejects_out_of_range(index):
    with pytest.raises(InvalidPoseIndexError):
        go_to_pose(create_session(), index)


def test_manual_reset_keeps_level_and_position():
    session = create_session()
    for _ in DEFAULT_SEQUENCE:
        session, _ = _complete_current(session)
        session = advance_to_next_pose(session).session
    session = go_to_pose(session, 2).session
    session, _ = _complete_current(session)

    reset = reset_challenge(session).session
    assert reset.score == 0
    assert reset.level == 2
    assert reset.current_pose_index == 2
    assert not any(pose.completed for pose in reset.sequence)
    assert reset.sequence[0].difficulty_multiplier == pytest.approx(1.2)
    assert not reset.completed


def test_target_change_mid_hold():
    session, _ = _complete_current(create_session())
    session = advance_to_next_pose(session).session
    session = on_match(session, True, 0.9).session
    for _ in range(20):
        session = on_tick(session, 0.1).session

    changed = change_target_time(session, 10).session
    assert changed.target_time == 10.0
    assert changed.hold_time == 0.0
    assert not changed.timer_running
    assert changed.score == 100
    assert not any(pose.completed for pose in changed.sequence)


def test_same_target_is_a_noop():
    session = on_match(create_session(), True).session
    assert change_target_time(session, 5).session is session


def test_unsupported_target_rejected():
    with pytest.raises(InvalidTargetTimeError):
        change_target_time(create_session(), 7)


def test_status_messages():
    session = create_session()
    assert status_message(session, reference_ready=False) == "Waiting for reference pose..."
    assert status_message(session) == "Align your pose with the reference image"

    session = on_match(session, True, 0.9).session
    for _ in range(23):
        session = on_tick(session, 0.1).session
    assert status_message(session) == "Holding: 2.3s / 5s"

    session, _ = _complete_current(session)
    assert status_message(session) == "Challenge complete!"
    assert status_message(session, reference_ready=False) == "Challenge complete!"


def test_pose_definition_to_dict():
    data = DEFAULT_SEQUENCE[2].to_dict()
    assert data == {
        "id": 3,
        "name": "Tree Pose",
        "image_path": "tree-pose.jpg",
        "points": 200,
        "difficulty_multiplier": 1.4,
        "completed": False,
    }
