import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional

from capture.devices import V4L2DeviceCatalog, select_device
from config import constants
from models.detection import CaptureDevice
from utils.errors import AcquisitionFailed, CaptureError, PermissionDenied

logger = logging.getLogger("vocabary.capture.manager")

StreamOpener = Callable[[CaptureDevice], Awaitable[Any]]


class CaptureSourceManager:
    """Owns the single live camera stream of the process.

    Acquiring always tears the previous stream down first and waits a short
    settle delay, because drivers keep reporting the old device as busy for
    a moment after its tracks stop. Acquisitions are serialized so two
    overlapping camera switches cannot both hold a device.
    """

    def __init__(
        self,
        catalog: Any = None,
        opener: Optional[StreamOpener] = None,
        settle_delay: float = constants.DEVICE_SETTLE_DELAY_SEC,
        max_attempts: int = constants.CAPTURE_MAX_ATTEMPTS,
        retry_backoff: float = constants.CAPTURE_RETRY_BACKOFF_SEC,
        default_facing_mode: Optional[str] = constants.DEFAULT_FACING_MODE,
    ):
        if opener is None:
            from capture.source import MediaPlayerOpener

            opener = MediaPlayerOpener()
        self._catalog = catalog or V4L2DeviceCatalog()
        self._opener = opener
        self._settle_delay = settle_delay
        self._max_attempts = max(1, max_attempts)
        self._retry_backoff = retry_backoff
        self._default_facing_mode = default_facing_mode
        self._active: Optional[Any] = None
        self._lock = asyncio.Lock()
        self.acquisitions = 0

    @property
    def active(self) -> Optional[Any]:
        return self._active

    def enumerate_devices(self) -> List[CaptureDevice]:
        try:
            return self._catalog.enumerate()
        except Exception as error:
            logger.error(f"Device enumeration failed: {error}")
            return []

    async def acquire(
        self,
        device_id: Optional[str] = None,
        facing_mode_hint: Optional[str] = None,
    ) -> Any:
        """Open the best matching camera, replacing any current stream.

        Raises `PermissionDenied` when the platform refuses access and
        `AcquisitionFailed` for anything else.
        """
        async with self._lock:
            await self._release_locked(self._active, settle=True)

            hint = facing_mode_hint or (None if device_id else self._default_facing_mode)
            device = select_device(self.enumerate_devices(), device_id, hint)
            if device is None:
                raise AcquisitionFailed("No video input devices found")

            logger.info(f"Acquiring camera {device.device_id} ({device.label})")
            try:
                handle = await self._opener(device)
            except CaptureError:
                raise
            except PermissionError as error:
                logger.error(f"Camera permission denied for {device.device_id}: {error}")
                raise PermissionDenied(f"Camera access denied: {device.device_id}") from error
            except Exception as error:
                raise AcquisitionFailed(f"Could not open {device.device_id}: {error}") from error

            self._active = handle
            self.acquisitions += 1
            return handle

    async def acquire_with_retry(
        self,
        device_id: Optional[str] = None,
        facing_mode_hint: Optional[str] = None,
    ) -> Any:
        """`acquire` with bounded linear backoff; permission errors are not retried."""
        last_error: Optional[Exception] = None
        for attempt in range(1, self._max_attempts + 1):
            try:
                return await self.acquire(device_id, facing_mode_hint)
            except PermissionDenied:
                raise
            except AcquisitionFailed as error:
                last_error = error
                logger.warning(f"Camera acquisition attempt {attempt}/{self._max_attempts} failed: {error}")
                if attempt < self._max_attempts:
                    await asyncio.sleep(self._retry_backoff * attempt)
        raise AcquisitionFailed(
            f"Camera unavailable after {self._max_attempts} attempts: {last_error}",
            attempts=self._max_attempts,
        )

    async def release(self, handle: Optional[Any] = None) -> None:
        """Stop `handle` (default: the active stream)."""
        async with self._lock:
            await self._release_locked(handle or self._active, settle=False)

    async def _release_locked(self, handle: Optional[Any], settle: bool) -> None:
        if handle is None:
            return
        try:
            await handle.stop()
        except Exception as error:
            logger.warning(f"Error while releasing camera: {error}")
        if handle is self._active:
            self._active = None
        logger.info(f"Camera released: {getattr(handle, 'device', handle)}")
        if settle and self._settle_delay > 0:
            await asyncio.sleep(self._settle_delay)
