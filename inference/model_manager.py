"""Asynchronous, single-flight loading of the detection model.

`ModelLifecycleManager` owns the detector handle for the whole process.
The first `load()` starts one background load (primary configuration,
then exactly one fallback); every concurrent caller awaits that same
future. A double failure is cached: `is_ready()` stays False and later
`load()` calls re-raise without touching the disk again until a caller
explicitly `reset()`s the manager.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

from utils.errors import ModelLoadFailed

logger = logging.getLogger("vocabary.inference.model_manager")

ModelFactory = Callable[[], Any]


class ModelLifecycleManager:
    def __init__(
        self,
        primary_factory: ModelFactory,
        fallback_factory: Optional[ModelFactory] = None,
        name: str = "detector",
    ):
        self._primary_factory = primary_factory
        self._fallback_factory = fallback_factory
        self._name = name
        self._handle: Optional[Any] = None
        self._inflight: Optional[asyncio.Future] = None
        self._error: Optional[ModelLoadFailed] = None
        self.load_attempts = 0
        self.used_fallback = False

    def is_ready(self) -> bool:
        return self._handle is not None

    def get(self) -> Optional[Any]:
        return self._handle

    @property
    def last_error(self) -> Optional[ModelLoadFailed]:
        return self._error

    @property
    def is_loading(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def load(self) -> Any:
        """Return the model handle, starting the load on first call."""
        if self._handle is not None:
            return self._handle
        if self._error is not None:
            raise self._error
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._load_once())
        # shield: a cancelled waiter must not abort the shared load
        return await asyncio.shield(self._inflight)

    async def wait_ready(self, timeout: float) -> bool:
        """Await the load for at most `timeout` seconds; never raises."""
        try:
            await asyncio.wait_for(self.load(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"{self._name} still loading after {timeout:.1f}s")
        except ModelLoadFailed as e:
            logger.error(f"{self._name} unavailable: {e}")
        return self.is_ready()

    def reset(self) -> None:
        """Forget a cached failure so the next `load()` tries again."""
        if self.is_loading:
            return
        self._error = None
        self._inflight = None

    async def _load_once(self) -> Any:
        loop = asyncio.get_running_loop()
        self.load_attempts += 1
        logger.info(f"Loading {self._name} (primary configuration)")
        try:
            handle = await loop.run_in_executor(None, self._primary_factory)
            if handle is None:
                raise RuntimeError("primary factory returned no model")
        except Exception as primary_error:
            logger.warning(f"Primary {self._name} load failed: {primary_error}")
            handle = await self._load_fallback(loop, primary_error)
        else:
            self.used_fallback = False

        self._handle = handle
        logger.info(f"{self._name} ready (fallback={self.used_fallback})")
        return handle

    async def _load_fallback(self, loop: asyncio.AbstractEventLoop, primary_error: Exception) -> Any:
        if self._fallback_factory is None:
            self._fail(primary_error, None)
        logger.info(f"Loading {self._name} (fallback configuration)")
        try:
            handle = await loop.run_in_executor(None, self._fallback_factory)
            if handle is None:
                raise RuntimeError("fallback factory returned no model")
        except Exception as fallback_error:
            self._fail(primary_error, fallback_error)
        self.used_fallback = True
        return handle

    def _fail(self, primary_error: Exception, fallback_error: Optional[Exception]) -> None:
        self._error = ModelLoadFailed(
            f"{self._name} could not be loaded",
            primary_error=primary_error,
            fallback_error=fallback_error,
        )
        logger.error(f"{self._name} load failed: primary={primary_error} fallback={fallback_error}")
        raise self._error


def default_model_manager() -> ModelLifecycleManager:
    from inference.yolo_detector import (fallback_detector_factory,
                                         primary_detector_factory)

    return ModelLifecycleManager(
        primary_detector_factory, fallback_detector_factory, name="yolo detector"
    )
