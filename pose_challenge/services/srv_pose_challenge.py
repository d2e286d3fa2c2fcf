"""
Pose Challenge Service - Session Controller.

Owns the reference pose and the challenge session state of one local user
and is the only writer of both. Everything runs on a single asyncio event
loop:

    PeriodicTicker ──► _handle_tick ─────────────┐
                                                 ├──► _apply(TransitionResult)
    FrameStream ──► submit_frame ──► executor ──►┘
                    (detect + compare off-loop)

Detections run in a single-worker thread executor. Their results come back
to the loop tagged with a frame sequence number and the reference
generation they were computed against; anything older than what was already
applied, or computed against a superseded reference, is dropped.

Author: Pose Challenge Team
Version: 1.0.0
"""

import asyncio
import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import AsyncIterator, Callable, List, Optional, Sequence, Set, Tuple

import numpy as np

from pose_challenge.core.config import settings
from pose_challenge.helpers.enums import EventType
from pose_challenge.helpers.exception_handler import CustomException, LandmarkSchemaError
from pose_challenge.mediapipe_integration.core import (
    LandmarkSet, compare_poses, is_pose_matched,
)
from pose_challenge.mediapipe_integration.modules import (
    ChallengeEvent, ChallengeSession, FrameStream, PeriodicTicker, PoseDefinition,
    TransitionResult, advance_to_next_pose, change_target_time, create_session,
    go_to_pose, on_match, on_tick, reset_challenge, status_message,
)
from pose_challenge.mediapipe_integration.utils import LogCategory, SessionLogger
from pose_challenge.schemas.sche_pose_challenge import (
    ChallengeEventResponse, ChallengeSnapshot, PoseStatus,
)

logger = logging.getLogger(__name__)


def event_message(event: ChallengeEvent) -> str:
    """Alert text for a challenge event."""
    if event.event_type == EventType.POSE_COMPLETED:
        return f"Challenge Complete! +{event.points} Points"
    return f"Level {event.level} Complete! All poses mastered!"


class PoseChallengeService:
    """
    Single-user challenge controller.

    The detector is any object exposing
    ``detect_image(image) -> LandmarkSet | None``,
    ``detect_frame(frame, timestamp_ms) -> LandmarkSet | None`` and
    ``load_image(path) -> np.ndarray | None`` (VisionDetector in production).

    Example:
        >>> service = PoseChallengeService(VisionDetector(DetectorConfig()))
        >>> await service.start()
        >>> service.attach_stream(camera.frames())
        >>> service.snapshot().status_message
        'Align your pose with the reference image'
    """

    # Frames allowed in flight before new ones are skipped
    MAX_PENDING_DETECTIONS = 2

    def __init__(
        self,
        detector,
        sequence: Optional[Sequence[PoseDefinition]] = None,
        target_time: int = settings.DEFAULT_TARGET_TIME,
        reference_dir: str = settings.REFERENCE_IMAGE_DIR,
        match_threshold: float = settings.MATCH_THRESHOLD,
        max_tolerance: float = settings.MAX_ANGLE_TOLERANCE,
        tick_interval: float = settings.TICK_INTERVAL_SEC,
        escalation_factor: float = settings.LEVEL_ESCALATION_FACTOR,
        session_logger: Optional[SessionLogger] = None,
    ):
        self.session_id = str(uuid.uuid4())[:8]
        self._detector = detector
        self._reference_dir = Path(reference_dir)
        self._match_threshold = match_threshold
        self._max_tolerance = max_tolerance
        self._escalation_factor = escalation_factor

        self._session: ChallengeSession = create_session(sequence, target_time)
        self._session_logger = session_logger or SessionLogger(self.session_id, settings.SESSION_LOG_DIR)

        # Reference pose of the active pose, None while (re)detecting
        self._reference: Optional[LandmarkSet] = None
        self._reference_generation = 0
        self._reference_task: Optional[asyncio.Task] = None

        # Live frame ordering
        self._frame_seq = 0
        self._last_applied_seq = 0
        self._pending: Set[asyncio.Task] = set()

        # Created on start(), shut down on stop()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._ticker = PeriodicTicker(tick_interval, self._handle_tick)
        self._stream: Optional[FrameStream] = None

        self._event_callbacks: List[Callable[[ChallengeEvent], None]] = []
        self._last_event: Optional[ChallengeEvent] = None
        self._started = False

        logger.info(
            f"[CHALLENGE] Session {self.session_id} created: "
            f"{len(self._session.sequence)} poses, target {self._session.target_time:g}s"
        )

    # ==================== READ ACCESS ====================

    @property
    def session(self) -> ChallengeSession:
        return self._session

    @property
    def reference_ready(self) -> bool:
        return self._reference is not None

    @property
    def session_logger(self) -> SessionLogger:
        return self._session_logger

    @property
    def ticker_running(self) -> bool:
        return self._ticker.running

    def snapshot(self) -> ChallengeSnapshot:
        """Current state for the renderer. Never mutates anything."""
        session = self._session
        last_event = None
        if self._last_event is not None:
            last_event = ChallengeEventResponse(
                event_type=self._last_event.event_type.value,
                pose_index=self._last_event.pose_index,
                level=self._last_event.level,
                points=self._last_event.points,
                message=event_message(self._last_event),
            )

        return ChallengeSnapshot(
            session_id=self.session_id,
            matched=session.matched,
            similarity=session.similarity,
            hold_time=session.hold_time,
            target_time=session.target_time,
            hold_progress=session.timer.progress,
            timer_running=session.timer_running,
            completed=session.completed,
            score=session.score,
            level=session.level,
            current_pose_index=session.current_pose_index,
            current_pose_name=session.current_pose.name,
            reference_ready=self.reference_ready,
            status_message=status_message(session, self.reference_ready),
            poses=[
                PoseStatus(**pose.to_dict(), is_current=index == session.current_pose_index)
                for index, pose in enumerate(session.sequence)
            ],
            last_event=last_event,
        )

    def set_on_event(self, callback: Callable[[ChallengeEvent], None]) -> None:
        """Register a callback for pose/level completion events."""
        self._event_callbacks.append(callback)

    # ==================== LIFECYCLE ====================

    async def start(self) -> None:
        """Start the tick source and detect the first reference pose."""
        if self._started:
            return
        self._started = True
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pose-detect")
        self._load_reference()
        self._ticker.start()
        self._session_logger.info(LogCategory.SYSTEM, "Session started", {"session_id": self.session_id})

    async def stop(self) -> None:
        """Stop every source and discard in-flight work."""
        self._started = False
        self._reference_generation += 1
        self._reference = None

        if self._stream is not None:
            await self._stream.stop()
            self._stream = None
        await self._ticker.stop()
        await self._cancel_reference_task()

        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        self._pending.clear()

        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None
        self._session_logger.info(
            LogCategory.SYSTEM, "Session stopped",
            {"score": self._session.score, "level": self._session.level},
        )

    def attach_stream(self, source: AsyncIterator[Tuple[np.ndarray, int]]) -> FrameStream:
        """Feed live frames from an async source into submit_frame."""
        if self._stream is not None and self._stream.running:
            raise RuntimeError("A frame stream is already attached")
        self._stream = FrameStream(source, self.submit_frame)
        self._stream.start()
        return self._stream

    async def wait_for_reference(self) -> Optional[LandmarkSet]:
        """Wait until the pending reference detection (if any) has finished."""
        task = self._reference_task
        if task is not None:
            await asyncio.wait({task})
        return self._reference

    async def drain(self) -> None:
        """Wait for every live frame detection in flight."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ==================== OPERATOR ACTIONS ====================

    async def next_pose(self) -> TransitionResult:
        """Advance to the next pose, escalating the level after the last one."""
        result = advance_to_next_pose(self._session, self._escalation_factor)
        await self._switch_pose(result)
        return result

    async def go_to_pose(self, index: int) -> Optional[TransitionResult]:
        """Jump to a pose of the current sequence. Invalid indices are ignored."""
        try:
            result = go_to_pose(self._session, index)
        except CustomException as e:
            self._session_logger.warning(LogCategory.POSE, e.message, e.to_dict())
            return None
        await self._switch_pose(result)
        return result

    def reset(self) -> TransitionResult:
        """Manual reset: zero the score and completion flags."""
        result = reset_challenge(self._session)
        self._apply(result)
        self._session_logger.info(LogCategory.SCORE, "Challenge reset", {"level": self._session.level})
        return result

    def set_target_time(self, target_time: int) -> Optional[TransitionResult]:
        """Select a new hold duration. Unsupported values are ignored."""
        try:
            result = change_target_time(self._session, target_time)
        except CustomException as e:
            self._session_logger.warning(LogCategory.TIMER, e.message, e.to_dict())
            return None
        if result.session is not self._session:
            self._apply(result)
            self._session_logger.info(LogCategory.TIMER, "Target time changed", {"target_time": target_time})
        return result

    # ==================== FRAME PROCESSING ====================

    def submit_frame(self, frame: np.ndarray, timestamp_ms: int) -> Optional[asyncio.Task]:
        """
        Queue a live frame for detection and comparison.

        Frames are ignored until a reference pose exists, and skipped while
        too many detections are already in flight.

        Returns:
            The detection task, or None if the frame was not processed.
        """
        if self._reference is None:
            return None
        if len(self._pending) >= self.MAX_PENDING_DETECTIONS:
            return None

        self._frame_seq += 1
        task = asyncio.get_running_loop().create_task(
            self._detect_and_apply(self._frame_seq, self._reference_generation, self._reference, frame, timestamp_ms)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def _evaluate_frame(
        self, frame: np.ndarray, timestamp_ms: int, reference: LandmarkSet
    ) -> Tuple[bool, float]:
        """Runs in the executor: detect the live pose and score it."""
        live = self._detector.detect_frame(frame, timestamp_ms)
        if live is None:
            return False, 0.0
        try:
            return True, compare_poses(live, reference, self._max_tolerance)
        except LandmarkSchemaError as e:
            logger.error(f"[CHALLENGE] {e.message}")
            return True, 0.0

    async def _detect_and_apply(
        self,
        seq: int,
        generation: int,
        reference: LandmarkSet,
        frame: np.ndarray,
        timestamp_ms: int,
    ) -> bool:
        loop = asyncio.get_running_loop()
        try:
            detected, similarity = await loop.run_in_executor(
                self._executor, self._evaluate_frame, frame, timestamp_ms, reference
            )
        except Exception as e:
            self._session_logger.error(
                LogCategory.MATCH, "Pose detection failed", {"frame": seq, "error": str(e)}
            )
            return False

        if generation != self._reference_generation or seq <= self._last_applied_seq:
            logger.debug(f"[CHALLENGE] Discarding stale detection #{seq}")
            return False
        self._last_applied_seq = seq

        matched = is_pose_matched(similarity, self._match_threshold)
        was_matched = self._session.matched
        self._apply(on_match(self._session, matched, similarity))

        if matched != was_matched:
            self._session_logger.debug(
                LogCategory.MATCH,
                "Pose matched" if matched else ("Pose lost" if detected else "No body detected"),
                {"frame": seq, "similarity": round(similarity, 3)},
            )
        return True

    def _handle_tick(self, dt: float) -> None:
        self._apply(on_tick(self._session, dt))

    # ==================== STATE ====================

    def _apply(self, result: TransitionResult) -> None:
        """Single write path for the session state."""
        self._session = result.session
        for event in result.events:
            self._last_event = event
            self._session_logger.info(
                LogCategory.SCORE,
                event_message(event),
                {"pose_index": event.pose_index, "level": event.level, "score": self._session.score},
            )
            for callback in self._event_callbacks:
                callback(event)

    async def _switch_pose(self, result: TransitionResult) -> None:
        # Invalidate before any await so late results of the old pose are dropped
        self._reference = None
        self._reference_generation += 1
        self._apply(result)

        pose = self._session.current_pose
        self._session_logger.info(
            LogCategory.POSE,
            f"Active pose: {pose.name}",
            {"index": self._session.current_pose_index, "level": self._session.level},
        )

        await self._ticker.stop()
        await self._cancel_reference_task()
        if self._started:
            self._load_reference()
            self._ticker.start()

    # ==================== REFERENCE POSE ====================

    def _load_reference(self) -> None:
        generation = self._reference_generation
        pose = self._session.current_pose
        self._reference_task = asyncio.get_running_loop().create_task(
            self._detect_reference(generation, pose)
        )

    async def _cancel_reference_task(self) -> None:
        task, self._reference_task = self._reference_task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def _read_reference(self, image_path: Path) -> Optional[LandmarkSet]:
        """Runs in the executor: load the still image and detect its pose."""
        image = self._detector.load_image(image_path)
        if image is None:
            return None
        return self._detector.detect_image(image)

    async def _detect_reference(self, generation: int, pose: PoseDefinition) -> None:
        image_path = self._reference_dir / pose.image_path
        loop = asyncio.get_running_loop()
        try:
            landmarks = await loop.run_in_executor(self._executor, self._read_reference, image_path)
        except Exception as e:
            self._session_logger.error(
                LogCategory.POSE,
                f"Reference detection failed for {pose.name}",
                {"image_path": str(image_path), "error": str(e)},
            )
            return

        if generation != self._reference_generation:
            logger.debug(f"[CHALLENGE] Dropping reference for superseded pose {pose.name}")
            return

        if landmarks is None:
            self._session_logger.error(
                LogCategory.POSE,
                f"No body detected in reference image for {pose.name}",
                {"image_path": str(image_path)},
            )
            return

        self._reference = landmarks
        self._session_logger.info(
            LogCategory.POSE, f"Reference pose ready: {pose.name}", {"landmarks": len(landmarks)}
        )
