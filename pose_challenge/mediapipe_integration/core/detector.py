"""
Vision Detector Module for Pose Challenge.

Uses the MediaPipe Tasks API to detect a single body's pose landmarks on
reference still images and on live video frames.

Author: Pose Challenge Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np

try:
    import mediapipe as mp
    from mediapipe.tasks import python as mp_tasks
    from mediapipe.tasks.python import vision as mp_vision
except ImportError as e:
    raise ImportError(
        "MediaPipe not found. Install with: pip install mediapipe"
    ) from e

from .data_types import LandmarkSet
from ...helpers.exception_handler import DetectorInitError

logger = logging.getLogger(__name__)


@dataclass
class DetectorConfig:
    """
    Configuration for VisionDetector.

    Attributes:
        pose_model_path: Path to pose_landmarker*.task.
        min_pose_detection_confidence: Detection confidence threshold.
        min_pose_presence_confidence: Presence confidence threshold.
        min_tracking_confidence: Tracking confidence threshold (video).
    """
    pose_model_path: str = "models/pose_landmarker_lite.task"
    min_pose_detection_confidence: float = 0.5
    min_pose_presence_confidence: float = 0.5
    min_tracking_confidence: float = 0.5


class VisionDetector:
    """
    Wrapper around MediaPipe PoseLandmarker.

    Two landmarkers are kept: one in IMAGE mode for reference stills and one
    in VIDEO mode for the live stream, since a landmarker's running mode is
    fixed when it is created.

    Example:
        >>> detector = VisionDetector(DetectorConfig(pose_model_path="pose_landmarker_lite.task"))
        >>> reference = detector.detect_image(detector.load_image("poses/tree-pose.jpg"))
        >>> live = detector.detect_frame(frame, timestamp_ms=33)
    """

    def __init__(self, config: DetectorConfig):
        """
        Args:
            config: Detector configuration.

        Raises:
            DetectorInitError: If the model is missing or MediaPipe fails to start.
        """
        self._config = config
        self._last_timestamp_ms = -1

        model_path = Path(config.pose_model_path)
        if not model_path.exists():
            raise DetectorInitError(message=f"Pose model not found: {config.pose_model_path}")

        try:
            self._image_landmarker = self._create_landmarker(model_path, mp_vision.RunningMode.IMAGE)
            self._video_landmarker = self._create_landmarker(model_path, mp_vision.RunningMode.VIDEO)
        except (RuntimeError, ValueError) as e:
            raise DetectorInitError(message=f"MediaPipe initialization failed: {e}") from e

        logger.info(f"[DETECTOR] Pose landmarker ready: {model_path.name}")

    def _create_landmarker(self, model_path: Path, running_mode) -> "mp_vision.PoseLandmarker":
        options = mp_vision.PoseLandmarkerOptions(
            base_options=mp_tasks.BaseOptions(model_asset_path=str(model_path)),
            running_mode=running_mode,
            num_poses=1,
            min_pose_detection_confidence=self._config.min_pose_detection_confidence,
            min_pose_presence_confidence=self._config.min_pose_presence_confidence,
            min_tracking_confidence=self._config.min_tracking_confidence,
            output_segmentation_masks=False,
        )
        return mp_vision.PoseLandmarker.create_from_options(options)

    @staticmethod
    def load_image(image_path: Union[str, Path]) -> Optional[np.ndarray]:
        """Read a BGR image from disk, None if it cannot be read."""
        image = cv2.imread(str(image_path))
        if image is None:
            logger.warning(f"[DETECTOR] Cannot read image: {image_path}")
        return image

    @staticmethod
    def _to_mp_image(image: np.ndarray) -> "mp.Image":
        # OpenCV frames are BGR, MediaPipe expects RGB
        image_rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        return mp.Image(image_format=mp.ImageFormat.SRGB, data=image_rgb)

    def detect_image(self, image: Optional[np.ndarray]) -> Optional[LandmarkSet]:
        """
        Detect the pose on a still image (reference pose).

        Returns:
            LandmarkSet of the first detected body, None if no body was found.
        """
        if image is None or image.size == 0:
            return None

        try:
            result = self._image_landmarker.detect(self._to_mp_image(image))
        except (RuntimeError, ValueError) as e:
            logger.error(f"[DETECTOR] Reference image detection error: {e}")
            return None

        if not result.pose_landmarks:
            return None
        return LandmarkSet.from_mediapipe(result.pose_landmarks[0])

    def detect_frame(self, frame: Optional[np.ndarray], timestamp_ms: int) -> Optional[LandmarkSet]:
        """
        Detect the pose on a live video frame.

        Args:
            frame: BGR frame from OpenCV.
            timestamp_ms: Frame timestamp; MediaPipe requires these to increase.

        Returns:
            LandmarkSet of the first detected body, None if no body was found.
        """
        if frame is None or frame.size == 0:
            return None

        if timestamp_ms <= self._last_timestamp_ms:
            timestamp_ms = self._last_timestamp_ms + 1
        self._last_timestamp_ms = timestamp_ms

        try:
            result = self._video_landmarker.detect_for_video(self._to_mp_image(frame), timestamp_ms)
        except (RuntimeError, ValueError) as e:
            logger.error(f"[DETECTOR] Pose detection error: {e}")
            return None

        if not result.pose_landmarks:
            return None
        return LandmarkSet.from_mediapipe(result.pose_landmarks[0], timestamp_ms=timestamp_ms)

    def close(self) -> None:
        """Release MediaPipe resources."""
        for landmarker in (self._image_landmarker, self._video_landmarker):
            if landmarker is not None:
                landmarker.close()
        self._image_landmarker = None
        self._video_landmarker = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
