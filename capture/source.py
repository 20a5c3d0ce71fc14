import asyncio
import itertools
import logging
import os
from typing import Any, Optional, Tuple

import numpy as np
from aiortc.contrib.media import MediaPlayer
from aiortc.mediastreams import MediaStreamError, MediaStreamTrack

from config import constants
from models.detection import CaptureDevice
from preprocessing.frame_decoder import decode_image
from stream.frame_buffer import LatestFrameBuffer

logger = logging.getLogger("vocabary.capture.source")

_handle_ids = itertools.count(1)


class CameraStream:
    """Handle to one live camera stream.

    A pump task copies frames from the aiortc video track into a
    `LatestFrameBuffer`; readers take the newest frame without waiting.
    Once `stop()` returns (or the track ends) `is_active` is False and
    `current_frame()` yields nothing.
    """

    def __init__(self, device: CaptureDevice, track: MediaStreamTrack, player: Any = None):
        self.device = device
        self.handle_id = next(_handle_ids)
        self.paused = False
        self.buffer = LatestFrameBuffer()
        self._track = track
        self._player = player
        self._pump_task: Optional[asyncio.Task] = None
        self._stopped = False
        self._ended = False

    def __repr__(self) -> str:
        return f"CameraStream(id={self.handle_id}, device={self.device.device_id!r})"

    @property
    def is_active(self) -> bool:
        return not self._stopped and not self._ended

    def start(self) -> None:
        if self._pump_task is None:
            self._pump_task = asyncio.create_task(self._pump())

    async def _pump(self) -> None:
        """Read frames from the track into the buffer until it ends."""
        try:
            while not self._stopped:
                frame = await self._track.recv()
                self.buffer.put(frame)
        except MediaStreamError:
            logger.info(f"Camera track ended: {self.device.device_id}")
        except Exception as error:
            logger.error(f"Camera pump failed for {self.device.device_id}: {error}")
        finally:
            self._ended = True

    def current_frame(self) -> Optional[np.ndarray]:
        if not self.is_active or self.paused:
            return None
        frame = self.buffer.peek()
        if frame is None:
            return None
        return decode_image(frame)

    def is_decodable(self) -> bool:
        return self.buffer.ready.is_set()

    async def wait_ready(self, timeout: float) -> bool:
        """Wait for the first decoded frame; False on timeout."""
        try:
            await asyncio.wait_for(self.buffer.ready.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False

    async def stop(self) -> None:
        """Stop the track and the pump. Safe to call more than once."""
        if self._stopped:
            return
        self._stopped = True
        try:
            self._track.stop()
        except Exception as error:
            logger.warning(f"Error stopping camera track: {error}")
        if self._pump_task is not None:
            self._pump_task.cancel()
            try:
                await self._pump_task
            except asyncio.CancelledError:
                pass
        self.buffer.clear()
        logger.info(
            f"Camera stream stopped: {self.device.device_id}",
            extra={"frames": self.buffer.received_count, "dropped": self.buffer.dropped_count},
        )


class MediaPlayerOpener:
    """Opens a capture device through aiortc's `MediaPlayer` (FFmpeg/PyAV)."""

    def __init__(
        self,
        capture_format: Optional[str] = constants.CAPTURE_FORMAT,
        size: Tuple[int, int] = (constants.CAPTURE_WIDTH, constants.CAPTURE_HEIGHT),
        fps: int = constants.CAPTURE_FPS,
    ):
        self._format = capture_format or None
        self._options = {"video_size": f"{size[0]}x{size[1]}", "framerate": str(fps)}

    def _open_player(self, device: CaptureDevice) -> MediaPlayer:
        path = device.device_id
        if os.path.exists(path) and not os.access(path, os.R_OK | os.W_OK):
            raise PermissionError(f"no read/write access to {path}")
        player = MediaPlayer(path, format=self._format, options=dict(self._options))
        if player.video is None:
            raise RuntimeError(f"{device.device_id} exposes no video track")
        return player

    async def __call__(self, device: CaptureDevice) -> CameraStream:
        loop = asyncio.get_running_loop()
        # opening the container blocks on the driver
        player = await loop.run_in_executor(None, self._open_player, device)
        stream = CameraStream(device, player.video, player)
        stream.start()
        return stream
