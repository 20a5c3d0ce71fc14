import asyncio
import logging
from typing import Any, Dict, Optional, Set

from capture.manager import CaptureSourceManager
from capture.preferences import (SELECTED_CAMERA_KEY, SELECTED_LANGUAGE_KEY,
                                 MemorySelectionStore)
from models.learning import MarkLearnedResult
from stream.commands import (Command, CommandChannel, SelectLanguage,
                             StartDetection, StopDetection, SwitchCamera)
from stream.frame_processor import (STATUS_ACQUISITION_FAILED,
                                    STATUS_PERMISSION_DENIED,
                                    STATUS_STREAM_NOT_READY, DetectionSession)
from stream.session import SessionState
from utils.errors import AcquisitionFailed, CaptureError, PermissionDenied

logger = logging.getLogger("vocabary.coordinator")


class DetectionCoordinator:
    """Binds the camera, the detection session and the saved selections.

    Every UI action arrives as a command on `commands` and is applied by
    `handle()` on a single consumer task (`start_command_loop()`).
    """

    def __init__(
        self,
        capture: CaptureSourceManager,
        session: DetectionSession,
        preferences: Any = None,
        commands: Optional[CommandChannel] = None,
    ):
        self.capture = capture
        self.session = session
        self.preferences = preferences if preferences is not None else MemorySelectionStore()
        self.commands = commands or CommandChannel()
        self.learned_words: Set[str] = set()
        self._consumer: Optional[asyncio.Task] = None

        saved_language = self.preferences.get(SELECTED_LANGUAGE_KEY)
        if saved_language:
            self.session.set_language(saved_language)

    @property
    def detection_set(self):
        return self.session.detection_set

    # ------------------------------------------------------------------
    # command loop
    # ------------------------------------------------------------------

    def start_command_loop(self) -> None:
        if self._consumer is None or self._consumer.done():
            self._consumer = asyncio.create_task(self.commands.run(self.handle))

    async def stop_command_loop(self) -> None:
        if self._consumer is None:
            return
        self._consumer.cancel()
        try:
            await self._consumer
        except asyncio.CancelledError:
            pass
        self._consumer = None

    async def handle(self, command: Command) -> Dict[str, Any]:
        logger.info(f"Handling command {command}")
        ok = True
        if isinstance(command, StartDetection):
            ok = await self.start_detection(command.device_id, command.facing_mode)
        elif isinstance(command, StopDetection):
            await self.stop_detection(command.release_camera)
        elif isinstance(command, SwitchCamera):
            ok = await self.switch_camera(command.device_id)
        elif isinstance(command, SelectLanguage):
            self.select_language(command.language_code)
        else:
            raise ValueError(f"Unknown command: {command!r}")
        return {"success": ok, "status": self.status()}

    # ------------------------------------------------------------------
    # operations
    # ------------------------------------------------------------------

    async def start_detection(self, device_id: Optional[str] = None, facing_mode: Optional[str] = None) -> bool:
        """Make sure a camera is live, then start the session.

        Capture failures are reported to status listeners and return False.
        """
        active = self.capture.active
        if active is None or not active.is_active:
            device_id = device_id or self.preferences.get(SELECTED_CAMERA_KEY)
            if not await self._acquire_and_attach(device_id, facing_mode):
                return False
        elif self.session.source is not active:
            self.session.attach_source(active)

        model_manager = self.session.model_manager
        if model_manager.last_error is not None and not model_manager.is_loading:
            logger.info(f"Retrying model load after earlier failure: {model_manager.last_error}")
            model_manager.reset()

        self.session.start()
        return True

    async def stop_detection(self, release_camera: bool = False) -> None:
        await self.session.stop()
        if release_camera:
            self.session.attach_source(None)
            await self.capture.release()

    async def switch_camera(self, device_id: str) -> bool:
        """Swap to another camera without restarting the session.

        The session keeps its state; ticks skip while no source is
        attached and an inference still running on the old camera is
        discarded. Waits (bounded) for the new camera to deliver a frame,
        reporting `stream_not_ready` and resuming anyway on timeout.
        """
        self.session.attach_source(None)
        if not await self._acquire_and_attach(device_id, None):
            return False
        self.preferences.set(SELECTED_CAMERA_KEY, device_id)

        timeout = self.session.stream_ready_timeout
        if not await self.session.source.wait_ready(timeout):
            logger.warning(f"Camera {device_id} not decodable after {timeout:.1f}s, resuming anyway")
            await self.session.emit_status(STATUS_STREAM_NOT_READY, f"Camera {device_id} is not sending frames yet")
        return True

    def select_language(self, language_code: str) -> None:
        self.session.set_language(language_code)
        self.preferences.set(SELECTED_LANGUAGE_KEY, language_code)

    async def mark_learned(self, name: str, user_id: int, language_id: int) -> MarkLearnedResult:
        """Persist the most recent detection called `name` as learned.

        Raises KeyError when no such detection is retained.
        """
        detection = self.detection_set.find(name)
        if detection is None:
            raise KeyError(name)
        result = await self.detection_set.mark_learned(detection, user_id, language_id)
        self.learned_words.add(detection.name)
        return result

    async def shutdown(self) -> None:
        await self.stop_command_loop()
        await self.stop_detection(release_camera=True)

    def status(self) -> Dict[str, Any]:
        active = self.capture.active
        device = getattr(active, "device", None)
        return {
            "state": self.session.state.value,
            "running": self.session.state is SessionState.RUNNING,
            "languageCode": self.session.language_code,
            "cameraActive": bool(active is not None and active.is_active),
            "deviceId": getattr(device, "device_id", None),
            "modelReady": self.session.model_manager.is_ready(),
            "totalDetections": len(self.detection_set),
        }

    async def _acquire_and_attach(self, device_id: Optional[str], facing_mode: Optional[str]) -> bool:
        try:
            handle = await self.capture.acquire_with_retry(device_id, facing_mode)
        except PermissionDenied as error:
            await self.session.emit_status(STATUS_PERMISSION_DENIED, str(error))
            return False
        except AcquisitionFailed as error:
            await self.session.emit_status(
                STATUS_ACQUISITION_FAILED, str(error), metadata={"attempts": error.attempts}
            )
            return False
        except CaptureError as error:
            await self.session.emit_status(STATUS_ACQUISITION_FAILED, str(error))
            return False
        self.session.attach_source(handle)
        return True
