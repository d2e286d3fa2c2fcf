import asyncio
import logging
import logging.config

from pose_challenge.core.config import settings
from pose_challenge.helpers.enums import EventType
from pose_challenge.helpers.exception_handler import DetectorInitError
from pose_challenge.mediapipe_integration.core.detector import DetectorConfig, VisionDetector
from pose_challenge.mediapipe_integration.modules import CameraSource, ChallengeEvent
from pose_challenge.mediapipe_integration.utils import LogCategory
from pose_challenge.services.srv_pose_challenge import PoseChallengeService, event_message

logger = logging.getLogger(__name__)

# Seconds the completion alert stays up before moving to the next pose
ALERT_DURATION_SEC = 3.0
STATUS_INTERVAL_SEC = 1.0


async def run_challenge() -> None:
    try:
        detector = VisionDetector(DetectorConfig(
            pose_model_path=settings.POSE_MODEL_PATH,
            min_pose_detection_confidence=settings.MIN_POSE_DETECTION_CONFIDENCE,
        ))
    except DetectorInitError as e:
        logger.error(f"[MAIN] {e.message}")
        return

    camera = CameraSource(settings.CAMERA_INDEX)
    if not camera.open():
        detector.close()
        return

    service = PoseChallengeService(detector)
    pending_advance = set()

    async def advance_after_alert():
        await asyncio.sleep(ALERT_DURATION_SEC)
        await service.next_pose()

    def on_event(event: ChallengeEvent):
        logger.info(f"[MAIN] {event_message(event)}")
        if event.event_type == EventType.POSE_COMPLETED:
            task = asyncio.get_running_loop().create_task(advance_after_alert())
            pending_advance.add(task)
            task.add_done_callback(pending_advance.discard)

    service.set_on_event(on_event)

    try:
        await service.start()
        stream = service.attach_stream(camera.frames())
        while stream.running:
            await asyncio.sleep(STATUS_INTERVAL_SEC)
            snapshot = service.snapshot()
            logger.info(
                f"[MAIN] L{snapshot.level} pose {snapshot.current_pose_index + 1}/{len(snapshot.poses)} "
                f"score={snapshot.score} sim={snapshot.similarity:.2f} | {snapshot.status_message}"
            )
        service.session_logger.error(
            LogCategory.SYSTEM,
            "Camera capture failed" if stream.error else "Camera stream ended",
            {"frames": stream.frame_count, "error": str(stream.error) if stream.error else None},
        )
    finally:
        for task in list(pending_advance):
            task.cancel()
        await service.stop()
        camera.release()
        detector.close()
        log_file = service.session_logger.save_session_log()
        logger.info(f"[MAIN] Session log saved to {log_file}")


def main() -> None:
    logging.config.fileConfig(settings.LOGGING_CONFIG_FILE, disable_existing_loggers=False)
    logger.info(f"[MAIN] Starting {settings.PROJECT_NAME}")
    try:
        asyncio.run(run_challenge())
    except KeyboardInterrupt:
        logger.info("[MAIN] Interrupted")


if __name__ == '__main__':
    main()
