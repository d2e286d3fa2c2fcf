"""
Camera Module for Pose Challenge.

Thin OpenCV capture adapter producing timestamped BGR frames.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import AsyncIterator, Optional, Tuple, Union

import cv2
import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class CameraSource:
    """
    Capture device or video file read through cv2.VideoCapture.
    """

    source: Union[int, str] = 0
    fps: float = 30.0

    # Internal
    _cap: Optional[cv2.VideoCapture] = None
    _start_time: float = 0.0

    def open(self) -> bool:
        """
        Open the capture device.

        Returns:
            True if opened successfully
        """
        self._cap = cv2.VideoCapture(self.source)
        if not self._cap.isOpened():
            logger.error(f"[CAMERA] Cannot open capture source: {self.source}")
            self._cap = None
            return False

        reported_fps = self._cap.get(cv2.CAP_PROP_FPS)
        if reported_fps and reported_fps > 0:
            self.fps = reported_fps
        self._start_time = time.monotonic()
        logger.info(f"[CAMERA] Capture source {self.source} opened at {self.fps:.1f} fps")
        return True

    def read(self) -> Optional[Tuple[np.ndarray, int]]:
        """Read one frame with its timestamp (ms since open), None on failure."""
        if not self._cap:
            return None

        ret, frame = self._cap.read()
        if not ret:
            return None
        return frame, int((time.monotonic() - self._start_time) * 1000)

    async def frames(self) -> AsyncIterator[Tuple[np.ndarray, int]]:
        """Yield frames until the source fails or is released."""
        loop = asyncio.get_running_loop()
        frame_time = 1.0 / self.fps

        while self._cap is not None:
            start = time.monotonic()
            item = await loop.run_in_executor(None, self.read)
            if item is None:
                logger.warning(f"[CAMERA] Frame capture failed on source {self.source}")
                break
            yield item

            elapsed = time.monotonic() - start
            await asyncio.sleep(max(0.0, frame_time - elapsed))

    def release(self) -> None:
        if self._cap:
            self._cap.release()
            self._cap = None
