import asyncio

import pytest

from pose_challenge.helpers.enums import EventType
from pose_challenge.mediapipe_integration.utils import LogCategory, LogLevel, SessionLogger
from pose_challenge.services.srv_pose_challenge import PoseChallengeService

from conftest import ARMS_RAISED, STANDING, FakeDetector, make_pose


@pytest.fixture
def detector():
    return FakeDetector(
        references={
            "warrior-pose.jpg": make_pose(STANDING),
            "upward-dog.jpg": make_pose(ARMS_RAISED),
        },
        default_reference=make_pose(STANDING),
    )


@pytest.fixture
async def service(detector, tmp_path):
    service = PoseChallengeService(
        detector,
        target_time=3,
        reference_dir=str(tmp_path),
        session_logger=SessionLogger("test", str(tmp_path)),
    )
    yield service
    await service.stop()


async def _started(service):
    await service.start()
    await service.wait_for_reference()
    return service


async def test_frames_ignored_until_reference_ready(service, detector, frame):
    detector.reference_delay = 0.1
    detector.live = make_pose(STANDING)

    assert service.submit_frame(frame, 0) is None

    await service.start()
    assert service.submit_frame(frame, 33) is None
    assert service.snapshot().status_message == "Waiting for reference pose..."

    await service.wait_for_reference()
    task = service.submit_frame(frame, 66)
    assert task is not None
    assert await task
    assert service.session.matched


async def test_missing_reference_body_keeps_gate_closed(tmp_path, frame):
    detector = FakeDetector(default_reference=None, live=make_pose(STANDING))
    service = PoseChallengeService(detector, reference_dir=str(tmp_path),
                                   session_logger=SessionLogger("test", str(tmp_path)))
    await _started(service)

    assert not service.reference_ready
    assert service.submit_frame(frame, 0) is None
    errors = [e for e in service.session_logger.get_entries(LogCategory.POSE) if e.level == LogLevel.ERROR]
    assert errors
    await service.stop()


async def test_matching_frame_starts_hold(service, detector, frame):
    detector.live = make_pose(STANDING)
    await _started(service)

    await service.submit_frame(frame, 0)
    snapshot = service.snapshot()
    assert snapshot.matched
    assert snapshot.similarity == pytest.approx(1.0)
    assert snapshot.timer_running


async def test_different_pose_does_not_match(service, detector, frame):
    detector.live = make_pose(ARMS_RAISED)
    await _started(service)

    await service.submit_frame(frame, 0)
    assert not service.session.matched
    assert not service.session.timer_running
    assert service.snapshot().status_message == "Align your pose with the reference image"


async def test_no_body_breaks_hold(service, detector, frame):
    detector.live = make_pose(STANDING)
    await _started(service)
    await service.submit_frame(frame, 0)
    assert service.session.timer_running

    detector.live = None
    await service.submit_frame(frame, 33)
    assert not service.session.matched
    assert not service.session.timer_running
    assert service.session.hold_time == 0.0


async def test_hold_completes_and_awards_points(service, detector, frame):
    detector.live = make_pose(STANDING)
    completed = asyncio.Event()
    events = []

    def on_event(event):
        events.append(event)
        completed.set()

    service.set_on_event(on_event)
    await _started(service)
    await service.submit_frame(frame, 0)

    await asyncio.wait_for(completed.wait(), timeout=6)

    assert [e.event_type for e in events] == [EventType.POSE_COMPLETED]
    snapshot = service.snapshot()
    assert snapshot.completed
    assert snapshot.score == 60
    assert snapshot.hold_progress == 1.0
    assert snapshot.status_message == "Challenge complete!"
    assert snapshot.last_event.message == "Challenge Complete! +60 Points"
    assert snapshot.poses[0].completed


async def test_stale_detection_is_discarded(service, detector, frame):
    detector.live = make_pose(STANDING)
    await _started(service)

    detector.frame_delays = [0.2]
    task = service.submit_frame(frame, 0)
    await service.go_to_pose(2)

    assert await task is False
    assert not service.session.matched
    assert service.session.current_pose_index == 2


async def test_pending_detections_are_bounded(service, detector, frame):
    detector.live = make_pose(STANDING)
    await _started(service)

    detector.frame_delays = [0.05, 0.05]
    tasks = [service.submit_frame(frame, ts) for ts in (0, 33, 66)]
    assert tasks[0] is not None
    assert tasks[1] is not None
    assert tasks[2] is None

    await service.drain()
    assert detector.detected_frames == [0, 33]


async def test_pose_change_reloads_reference(service, detector):
    detector.reference_delay = 0.2
    await service.start()
    await service.next_pose()
    reference = await service.wait_for_reference()

    assert service.session.current_pose_index == 1
    assert reference is detector.references["upward-dog.jpg"]
    assert detector.loaded[-1] == "upward-dog.jpg"
    assert service.ticker_running


async def test_level_wrap_reports_event(service):
    events = []
    service.set_on_event(events.append)
    await _started(service)

    for _ in range(4):
        await service.next_pose()
    await service.wait_for_reference()

    snapshot = service.snapshot()
    assert snapshot.level == 2
    assert snapshot.current_pose_index == 0
    assert snapshot.reference_ready
    assert [e.event_type for e in events] == [EventType.LEVEL_COMPLETED]
    assert snapshot.last_event.message == "Level 1 Complete! All poses mastered!"
    assert snapshot.poses[0].difficulty_multiplier == pytest.approx(1.2)


async def test_invalid_operator_actions_are_ignored(service):
    await _started(service)

    assert await service.go_to_pose(9) is None
    assert service.session.current_pose_index == 0
    assert service.set_target_time(7) is None
    assert service.session.target_time == 3.0

    warnings = [e for e in service.session_logger.entries if e.level == LogLevel.WARNING]
    assert len(warnings) == 2


async def test_target_time_change(service):
    await _started(service)
    before = service.session

    result = service.set_target_time(3)
    assert result.session is before

    service.set_target_time(15)
    assert service.session.target_time == 15.0
    assert service.snapshot().target_time == 15.0


async def test_reset_zeroes_score(service):
    await _started(service)
    service.reset()
    snapshot = service.snapshot()
    assert snapshot.score == 0
    assert snapshot.level == 1


async def test_snapshot_lists_sequence(service):
    await _started(service)
    snapshot = service.snapshot()

    assert snapshot.session_id == service.session_id
    assert len(snapshot.poses) == 4
    assert [p.is_current for p in snapshot.poses] == [True, False, False, False]
    assert snapshot.current_pose_name == "Warrior Pose II"
    assert snapshot.reference_ready
    assert snapshot.last_event is None


async def test_stop_closes_gate(service, detector, frame):
    detector.live = make_pose(STANDING)
    await _started(service)
    await service.stop()

    assert not service.ticker_running
    assert not service.reference_ready
    assert service.submit_frame(frame, 0) is None


async def test_reference_detection_failure_is_logged(service, detector):
    detector.image_error = RuntimeError("bad channel count")
    await _started(service)

    assert not service.reference_ready
    errors = service.session_logger.get_entries(LogCategory.POSE, min_level=LogLevel.ERROR)
    assert len(errors) == 1
    assert errors[0].data["error"] == "bad channel count"
    assert service.snapshot().status_message == "Waiting for reference pose..."


async def test_frame_detection_failure_is_logged(service, detector, frame):
    detector.live = make_pose(STANDING)
    await _started(service)

    detector.frame_error = OSError("frame buffer corrupted")
    assert await service.submit_frame(frame, 0) is False
    assert not service.session.matched

    errors = service.session_logger.get_entries(LogCategory.MATCH, min_level=LogLevel.ERROR)
    assert [e.message for e in errors] == ["Pose detection failed"]

    # Detection recovers on the next frame
    detector.frame_error = None
    assert await service.submit_frame(frame, 33)
    assert service.session.matched


async def test_stop_survives_failed_camera(service, detector, frame):
    async def failing_camera():
        yield frame, 0
        raise OSError("capture device lost")

    await _started(service)
    stream = service.attach_stream(failing_camera())
    await stream.wait_closed()

    assert isinstance(stream.error, OSError)
    await service.stop()
    assert not service.ticker_running
    assert service.session_logger.get_entries(LogCategory.SYSTEM)[-1].message == "Session stopped"


async def test_restart_after_stop(service, detector, frame):
    detector.live = make_pose(STANDING)
    await _started(service)
    await service.stop()

    await _started(service)
    assert service.reference_ready
    assert service.ticker_running
    assert await service.submit_frame(frame, 0)
