import asyncio
import inspect
import logging
import time
from typing import Any, Callable, List, Optional, Protocol, Tuple

import numpy as np

from config import constants
from enrichment.service import EnrichmentService, display_name
from inference.model_manager import ModelLifecycleManager
from inference.parsing import DetectionParser
from models.detection import EnrichedDetection, NormalizedBoundingBox, RawDetection
from models.events import SessionStatusEvent
from preprocessing.resizer import resize_for_inference
from preprocessing.validator import (get_resolution, has_valid_dimensions,
                                     normalize_bounding_box)
from stream.detection_set import AccumulatedDetectionSet
from stream.session import SessionState, SessionStats
from utils.emitter import ListenerRegistry
from utils.errors import InferenceError

logger = logging.getLogger("vocabary.frame_processor")

# Status values published to observers besides the plain state changes
STATUS_RUNNING = "running"
STATUS_STOPPED = "stopped"
STATUS_MODEL_UNAVAILABLE = "model_unavailable"
STATUS_STREAM_NOT_READY = "stream_not_ready"
STATUS_STOPPED_AFTER_FAILURES = "stopped_after_failures"
STATUS_PERMISSION_DENIED = "permission_denied"
STATUS_ACQUISITION_FAILED = "acquisition_failed"


class FrameSource(Protocol):
    """What the session needs from a capture handle."""

    paused: bool

    @property
    def is_active(self) -> bool: ...

    def current_frame(self) -> Optional[np.ndarray]: ...

    def is_decodable(self) -> bool: ...

    async def wait_ready(self, timeout: float) -> bool: ...


class DetectionSession:
    """Runs the periodic detection loop against the attached frame source.

    `start()` is synchronous and idempotent: it moves the session out of
    IDLE and schedules a task that waits (bounded) for the model and the
    stream, then ticks until `stop()`. Each run gets a generation number;
    a tick whose generation or source changed while inference was in
    flight throws its result away, so nothing is appended after `stop()`
    returns or after a camera switch.
    """

    def __init__(
        self,
        model_manager: ModelLifecycleManager,
        enrichment: EnrichmentService,
        detection_set: AccumulatedDetectionSet,
        language_code: str = constants.DEFAULT_LANGUAGE_CODE,
        confidence_threshold: float = constants.DETECTION_CONFIDENCE_THRESHOLD,
        tick_interval: float = constants.TICK_INTERVAL_SEC,
        max_consecutive_failures: int = constants.MAX_CONSECUTIVE_INFERENCE_FAILURES,
        model_wait_timeout: float = constants.MODEL_WAIT_TIMEOUT_SEC,
        stream_ready_timeout: float = constants.STREAM_READY_TIMEOUT_SEC,
    ):
        self.model_manager = model_manager
        self.enrichment = enrichment
        self.detection_set = detection_set
        self.confidence_threshold = confidence_threshold
        self.tick_interval = tick_interval
        self.max_consecutive_failures = max_consecutive_failures
        self.model_wait_timeout = model_wait_timeout
        self.stream_ready_timeout = stream_ready_timeout
        self.stats = SessionStats()
        self._language_code = language_code
        self._source: Optional[FrameSource] = None
        self._source_attached = asyncio.Event()
        self._running = asyncio.Event()
        self._state = SessionState.IDLE
        self._task: Optional[asyncio.Task] = None
        self._generation = 0
        self._consecutive_failures = 0
        self._status_listeners = ListenerRegistry("session_status")

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def language_code(self) -> str:
        return self._language_code

    @property
    def source(self) -> Optional[FrameSource]:
        return self._source

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    def add_status_listener(self, listener: Callable[[SessionStatusEvent], Any]) -> Callable[[], None]:
        return self._status_listeners.add(listener)

    def set_language(self, language_code: str) -> None:
        """Switch the target language; applies from the next tick."""
        self._language_code = language_code
        logger.info(f"Target language set to {language_code}", extra={"session_id": self.stats.session_id})

    def attach_source(self, source: Optional[FrameSource]) -> None:
        """Point the loop at a new capture handle (or detach with None).

        An inference already in flight for the previous handle is discarded
        when it completes.
        """
        self._source = source
        if source is None:
            self._source_attached.clear()
        else:
            self._source_attached.set()
        logger.info(f"Frame source attached: {source!r}", extra={"session_id": self.stats.session_id})

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._state is not SessionState.IDLE:
            logger.debug(f"start() ignored in state {self._state.value}")
            return
        self._generation += 1
        self._consecutive_failures = 0
        self.stats = SessionStats()
        self._state = SessionState.AWAITING_MODEL
        self._task = asyncio.create_task(self._run(self._generation))
        logger.info("session.start", extra={"session_id": self.stats.session_id})

    async def stop(self) -> None:
        """Stop ticking. Idempotent; no tick publishes after this returns."""
        task = self._task
        if task is None and self._state in (SessionState.IDLE, SessionState.STOPPING):
            return
        self._generation += 1
        self._state = SessionState.STOPPING
        self._task = None
        self._running.clear()
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._state = SessionState.IDLE
        summary = self.stats.close()
        await self.emit_status(STATUS_STOPPED, metadata=summary)

    async def wait_until_running(self, timeout: float) -> bool:
        try:
            await asyncio.wait_for(self._running.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def _run(self, generation: int) -> None:
        try:
            await self._await_prerequisites(generation)
            if not self._is_current(generation):
                return
            self._state = SessionState.RUNNING
            self._running.set()
            await self.emit_status(STATUS_RUNNING)
            while self._is_current(generation):
                await self._tick(generation)
                if not self._is_current(generation):
                    break
                await asyncio.sleep(self.tick_interval)
        except asyncio.CancelledError:
            raise
        except Exception as error:
            logger.exception(f"Detection loop crashed: {error}", extra={"session_id": self.stats.session_id})
            await self._halt(generation, STATUS_STOPPED, str(error))

    async def _await_prerequisites(self, generation: int) -> None:
        """Bounded waits for the model and the stream; proceeds either way."""
        if not self.model_manager.is_ready():
            self._state = SessionState.AWAITING_MODEL
            ready = await self.model_manager.wait_ready(self.model_wait_timeout)
            if not self._is_current(generation):
                return
            if not ready:
                error = self.model_manager.last_error
                await self.emit_status(
                    STATUS_MODEL_UNAVAILABLE,
                    str(error) if error else "Detection model is still loading",
                )

        self._state = SessionState.AWAITING_STREAM
        if not await self._wait_for_stream():
            logger.warning(
                f"Stream not ready after {self.stream_ready_timeout:.1f}s, starting anyway",
                extra={"session_id": self.stats.session_id},
            )
            if self._is_current(generation):
                await self.emit_status(STATUS_STREAM_NOT_READY)

    async def _wait_for_stream(self) -> bool:
        source = self._source
        if source is not None and source.is_decodable():
            return True

        async def _ready() -> bool:
            await self._source_attached.wait()
            return await self._source.wait_ready(self.stream_ready_timeout)

        try:
            return await asyncio.wait_for(_ready(), timeout=self.stream_ready_timeout)
        except asyncio.TimeoutError:
            return False

    async def _halt(self, generation: int, status: str, message: Optional[str] = None) -> None:
        """Stop from inside the loop task itself."""
        if not self._is_current(generation):
            return
        self._generation += 1
        self._task = None
        self._running.clear()
        self._state = SessionState.IDLE
        summary = self.stats.close()
        await self.emit_status(status, message, metadata=summary)

    # ------------------------------------------------------------------
    # ticks
    # ------------------------------------------------------------------

    def _grab_frame(self, source: Optional[FrameSource]) -> Optional[np.ndarray]:
        if source is None or not source.is_active or source.paused:
            return None
        frame = source.current_frame()
        if frame is None:
            return None
        width, height = get_resolution(frame)
        if not has_valid_dimensions(width, height):
            return None
        return resize_for_inference(frame)

    async def _tick(self, generation: int) -> None:
        source = self._source
        model = self.model_manager.get()
        frame = self._grab_frame(source) if model is not None else None
        if frame is None:
            self.stats.record_skipped()
            return

        frame_size = get_resolution(frame)
        self.stats.record_frame()
        try:
            raw = await self._infer(model, frame)
        except InferenceError as error:
            await self._record_failure(generation, error)
            return

        if not self._is_current(generation) or self._source is not source:
            self.stats.record_discarded()
            logger.debug("Discarding stale inference result", extra={"session_id": self.stats.session_id})
            return

        self._consecutive_failures = 0
        batch = self._build_batch(raw, frame_size)
        if batch:
            self.stats.record_detection(len(batch))
            await self.detection_set.publish(batch, frame_size, self.stats.session_id)

    async def _infer(self, model: Any, frame: np.ndarray) -> List[RawDetection]:
        try:
            result = model.detect(frame)
            if inspect.isawaitable(result):
                result = await result
        except asyncio.CancelledError:
            raise
        except Exception as error:
            raise InferenceError(str(error)) from error
        return DetectionParser.parse_many(result)

    async def _record_failure(self, generation: int, error: Exception) -> None:
        self._consecutive_failures += 1
        self.stats.record_failure()
        logger.warning(
            f"Inference failed ({self._consecutive_failures}/{self.max_consecutive_failures}): {error}",
            extra={"session_id": self.stats.session_id},
        )
        if self._consecutive_failures >= self.max_consecutive_failures:
            await self._halt(
                generation,
                STATUS_STOPPED_AFTER_FAILURES,
                f"Detection stopped after {self._consecutive_failures} consecutive failures",
            )

    def _build_batch(self, raw: List[RawDetection], frame_size: Tuple[int, int]) -> List[EnrichedDetection]:
        """Filter, normalize, dedup and enrich one tick's raw detections."""
        width, height = frame_size
        language_code = self._language_code
        accepted: List[Tuple[RawDetection, NormalizedBoundingBox]] = []
        pending: List[Tuple[str, float, float]] = []
        for detection in raw:
            if not detection.confidence > self.confidence_threshold:
                continue
            box = normalize_bounding_box(detection.bounding_box, width, height)
            if box is None:
                self.stats.record_invalid()
                continue
            name = display_name(detection.label)
            x_px, y_px = detection.bounding_box.x, detection.bounding_box.y
            if self.detection_set.is_duplicate(name, x_px, y_px, frame_size, pending):
                self.stats.record_duplicates()
                continue
            pending.append((name, x_px, y_px))
            accepted.append((detection, box))
        return [self.enrichment.build(detection, box, language_code) for detection, box in accepted]

    async def emit_status(
        self,
        status: str,
        message: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> None:
        event = SessionStatusEvent(
            session_id=self.stats.session_id,
            timestamp_ms=int(time.time() * 1000),
            state=self._state.value,
            status=status,
            message=message,
            metadata=metadata,
        )
        logger.info(f"session.status {status}", extra={"session_id": self.stats.session_id})
        await self._status_listeners.emit(event, self.stats.session_id)
