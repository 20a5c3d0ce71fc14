"""Shared pytest fixtures for tests.

Provides fake frame sources, fake detector handles and a ready-to-start
`DetectionSession` so no camera or model weights are needed.
"""

import asyncio
from typing import Any, List, Optional
from unittest.mock import AsyncMock

import numpy as np
import pytest

from capture.manager import CaptureSourceManager
from capture.preferences import MemorySelectionStore
from enrichment.service import EnrichmentService
from inference.model_manager import ModelLifecycleManager
from models.detection import CaptureDevice
from stream.coordinator import DetectionCoordinator
from stream.detection_set import AccumulatedDetectionSet
from stream.frame_processor import DetectionSession


class FakeSource:
    """In-memory frame source; returns `frame` on every read."""

    def __init__(self, frame: Optional[np.ndarray] = None, device_id: str = "/dev/video0"):
        self.frame = frame
        self.paused = False
        self.stopped = False
        self.device = CaptureDevice(device_id, f"Camera {device_id}")
        self.reads = 0

    @property
    def is_active(self) -> bool:
        return not self.stopped

    def current_frame(self) -> Optional[np.ndarray]:
        if self.stopped or self.paused:
            return None
        self.reads += 1
        return self.frame

    def is_decodable(self) -> bool:
        return self.frame is not None

    async def wait_ready(self, timeout: float) -> bool:
        return self.is_decodable()

    async def stop(self) -> None:
        self.stopped = True


class ScriptedModel:
    """Detector handle that replays one scripted result per call.

    Items may be lists of detections or exceptions to raise. Once the
    script is exhausted every call returns an empty list.
    """

    def __init__(self, script: List[Any]):
        self.script = list(script)
        self.calls = 0

    async def detect(self, frame: Any) -> List[Any]:
        self.calls += 1
        await asyncio.sleep(0)
        if not self.script:
            return []
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def ready_manager(model: Any) -> ModelLifecycleManager:
    manager = ModelLifecycleManager(lambda: model)
    # already loaded, as after a successful preload
    manager._handle = model
    return manager


def make_session(model: Any, source: Any = None, **kwargs: Any) -> DetectionSession:
    params = dict(
        language_code="es",
        confidence_threshold=0.35,
        tick_interval=0.001,
        model_wait_timeout=0.2,
        stream_ready_timeout=0.2,
    )
    params.update(kwargs)
    session = DetectionSession(
        model_manager=ready_manager(model),
        enrichment=EnrichmentService(),
        detection_set=AccumulatedDetectionSet(capacity=50, threshold_px=50, threshold_fraction=None),
        **params,
    )
    if source is not None:
        session.attach_source(source)
    return session


async def wait_for(predicate, timeout: float = 2.0, interval: float = 0.005) -> bool:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(interval)
    return predicate()


@pytest.fixture
def frame():
    return np.zeros((1000, 1000, 3), dtype="uint8")


@pytest.fixture
def fake_source(frame):
    return FakeSource(frame)


TEST_DEVICES = [
    CaptureDevice("/dev/video0", "Front Camera"),
    CaptureDevice("/dev/video2", "Rear Camera"),
]


class StaticCatalog:
    def __init__(self, devices=None):
        self.devices = list(TEST_DEVICES if devices is None else devices)

    def enumerate(self):
        return list(self.devices)


def make_coordinator(
    frame: Optional[np.ndarray] = None,
    opener: Any = None,
    model: Any = None,
    preferences: Any = None,
):
    """Coordinator over fake cameras; returns (coordinator, opener)."""
    if frame is None:
        frame = np.zeros((1000, 1000, 3), dtype="uint8")
    opener = opener or AsyncMock(side_effect=lambda device: FakeSource(frame, device.device_id))
    capture = CaptureSourceManager(
        catalog=StaticCatalog(),
        opener=opener,
        settle_delay=0,
        max_attempts=2,
        retry_backoff=0,
        default_facing_mode=None,
    )
    session = make_session(model or ScriptedModel([]))
    coordinator = DetectionCoordinator(capture, session, preferences or MemorySelectionStore())
    return coordinator, opener
