"""
Scheduler Module for Pose Challenge.

Cancellable event sources feeding the single-threaded challenge controller:
- PeriodicTicker: fixed-period tick (hold timer clock)
- FrameStream: continuous frames from an async source (camera)

Both run as asyncio tasks on the controller's event loop, so every callback
they invoke is serialized with all other state mutations.
"""

import asyncio
import logging
from typing import AsyncIterator, Callable, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)


class PeriodicTicker:
    """
    Calls callback(interval) every interval seconds until stopped.

    The callback receives the nominal period rather than the measured one, so
    a hold of N ticks always counts as N × interval seconds.
    """

    def __init__(self, interval: float, callback: Callable[[float], None]):
        if interval <= 0:
            raise ValueError("Tick interval must be positive")
        self._interval = interval
        self._callback = callback
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking on the running event loop (no-op if already running)."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        """Cancel the tick task and wait until it has finished."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self._callback(self._interval)
            except Exception as e:
                logger.error(f"[TICKER] Tick callback failed: {e}", exc_info=True)


class FrameStream:
    """
    Pumps (frame, timestamp_ms) pairs from an async source into a handler.

    The stream ends when the source is exhausted, raises, or stop() is called.
    A source failure is logged and kept in `error`; it never propagates out
    of stop() or wait_closed().
    """

    def __init__(
        self,
        source: AsyncIterator[Tuple[np.ndarray, int]],
        handler: Callable[[np.ndarray, int], object],
    ):
        self._source = source
        self._handler = handler
        self._task: Optional[asyncio.Task] = None
        self._frame_count = 0
        self._error: Optional[Exception] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def error(self) -> Optional[Exception]:
        """Exception that ended the source, None if it ended normally or is still running."""
        return self._error

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def wait_closed(self) -> None:
        """Wait for the source to be exhausted."""
        if self._task is not None:
            await self._task

    async def _run(self) -> None:
        try:
            async for frame, timestamp_ms in self._source:
                self._frame_count += 1
                self._handler(frame, timestamp_ms)
        except Exception as e:
            self._error = e
            logger.error(f"[STREAM] Frame source failed after {self._frame_count} frames: {e}")
            return
        logger.info(f"[STREAM] Frame source exhausted after {self._frame_count} frames")
