import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import numpy as np
import pytest
from aiortc.mediastreams import MediaStreamError

from capture.devices import V4L2DeviceCatalog, select_device
from capture.manager import CaptureSourceManager
from capture.source import CameraStream, MediaPlayerOpener
from conftest import wait_for
from models.detection import CaptureDevice
from utils.errors import AcquisitionFailed, PermissionDenied

FRONT = CaptureDevice("/dev/video0", "Integrated Front Camera")
BACK = CaptureDevice("/dev/video2", "USB Rear Camera")


class StaticCatalog:
    def __init__(self, devices):
        self.devices = list(devices)

    def enumerate(self):
        return list(self.devices)


class FakeHandle:
    def __init__(self, device):
        self.device = device
        self.stopped = False

    @property
    def is_active(self):
        return not self.stopped

    async def stop(self):
        self.stopped = True


def make_manager(devices=(FRONT, BACK), opener=None, **kwargs):
    opener = opener or AsyncMock(side_effect=FakeHandle)
    params = dict(settle_delay=0, max_attempts=3, retry_backoff=0, default_facing_mode=None)
    params.update(kwargs)
    return CaptureSourceManager(catalog=StaticCatalog(devices), opener=opener, **params), opener


def test_select_device_precedence():
    devices = [FRONT, BACK]
    assert select_device(devices, "/dev/video2", "user") is BACK
    assert select_device(devices, None, "environment") is BACK
    assert select_device(devices, "/dev/video9", None) is FRONT
    assert select_device(devices, None, None) is FRONT
    assert select_device([], "/dev/video0", None) is None


def test_v4l2_catalog_reads_sysfs_labels(tmp_path):
    dev = tmp_path / "dev"
    sysfs = tmp_path / "sys"
    dev.mkdir()
    for node, name, index in (("video0", "HD Webcam", "0"), ("video1", "HD Webcam", "1"), ("video10", "Rear Cam", "0")):
        (dev / node).touch()
        (sysfs / node).mkdir(parents=True)
        (sysfs / node / "name").write_text(name + "\n")
        (sysfs / node / "index").write_text(index + "\n")

    devices = V4L2DeviceCatalog(str(dev / "video*"), str(sysfs)).enumerate()

    assert [d.label for d in devices] == ["HD Webcam", "Rear Cam"]
    assert devices[0].device_id == str(dev / "video0")


@pytest.mark.asyncio
async def test_acquire_releases_previous_stream_first():
    manager, opener = make_manager()
    first = await manager.acquire("/dev/video0")
    second = await manager.acquire("/dev/video2")

    assert first.stopped
    assert not second.stopped
    assert manager.active is second
    assert manager.acquisitions == 2


@pytest.mark.asyncio
async def test_acquire_waits_settle_delay_after_release(monkeypatch):
    sleeps = []

    async def fake_sleep(delay):
        sleeps.append(delay)

    manager, _ = make_manager(settle_delay=0.3)
    await manager.acquire()
    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    await manager.acquire()
    assert sleeps == [0.3]


@pytest.mark.asyncio
async def test_default_facing_mode_applies_without_device_id():
    manager, opener = make_manager(default_facing_mode="environment")
    handle = await manager.acquire()
    assert handle.device is BACK


@pytest.mark.asyncio
async def test_no_devices_is_acquisition_failure():
    manager, _ = make_manager(devices=())
    with pytest.raises(AcquisitionFailed):
        await manager.acquire()


@pytest.mark.asyncio
async def test_permission_error_is_not_retried():
    opener = AsyncMock(side_effect=PermissionError("denied"))
    manager, _ = make_manager(opener=opener)

    with pytest.raises(PermissionDenied):
        await manager.acquire_with_retry()
    assert opener.await_count == 1


@pytest.mark.asyncio
async def test_transient_failure_is_retried_then_succeeds():
    opener = AsyncMock(side_effect=[OSError("busy"), OSError("busy"), FakeHandle(FRONT)])
    manager, _ = make_manager(opener=opener)

    handle = await manager.acquire_with_retry()

    assert handle.device is FRONT
    assert opener.await_count == 3


@pytest.mark.asyncio
async def test_retry_gives_up_after_max_attempts():
    opener = AsyncMock(side_effect=OSError("busy"))
    manager, _ = make_manager(opener=opener)

    with pytest.raises(AcquisitionFailed) as info:
        await manager.acquire_with_retry()
    assert info.value.attempts == 3
    assert opener.await_count == 3


@pytest.mark.asyncio
async def test_release_stops_active_handle():
    manager, _ = make_manager()
    handle = await manager.acquire()
    await manager.release()
    assert handle.stopped
    assert manager.active is None


class ScriptedTrack:
    """Video track stand-in: yields `frames`, then ends or idles."""

    kind = "video"

    def __init__(self, frames=(), end=True):
        self.frames = list(frames)
        self.end = end
        self.stopped = False

    async def recv(self):
        await asyncio.sleep(0)
        if self.frames:
            return self.frames.pop(0)
        if self.end:
            raise MediaStreamError
        await asyncio.Event().wait()

    def stop(self):
        self.stopped = True


@pytest.fixture
def image():
    return np.zeros((48, 64, 3), dtype="uint8")


@pytest.mark.asyncio
async def test_camera_stream_ready_on_first_frame(image):
    track = ScriptedTrack([image], end=False)
    stream = CameraStream(FRONT, track)
    assert not stream.is_decodable()

    stream.start()
    assert await stream.wait_ready(1.0)
    assert stream.is_decodable()
    assert stream.current_frame() is image

    stream.paused = True
    assert stream.current_frame() is None
    await stream.stop()


@pytest.mark.asyncio
async def test_camera_stream_stop_stops_track_and_clears_buffer(image):
    track = ScriptedTrack([image], end=False)
    stream = CameraStream(FRONT, track)
    stream.start()
    await stream.wait_ready(1.0)

    await stream.stop()

    assert track.stopped
    assert not stream.is_active
    assert stream.buffer.empty()
    assert not stream.is_decodable()
    assert stream.current_frame() is None
    await stream.stop()


@pytest.mark.asyncio
async def test_camera_stream_goes_inactive_when_track_ends(image):
    stream = CameraStream(FRONT, ScriptedTrack([image], end=True))
    stream.start()

    assert await wait_for(lambda: not stream.is_active)
    assert stream.current_frame() is None
    await stream.stop()


@pytest.mark.asyncio
async def test_camera_stream_wait_ready_times_out_without_frames():
    stream = CameraStream(FRONT, ScriptedTrack(end=False))
    stream.start()
    assert not await stream.wait_ready(0.01)
    assert stream.is_active
    await stream.stop()


@pytest.mark.asyncio
async def test_opener_maps_unreadable_device_to_permission_denied(tmp_path, monkeypatch):
    node = tmp_path / "video0"
    node.touch()
    player = Mock()
    monkeypatch.setattr("capture.source.os.access", lambda path, mode: False)
    monkeypatch.setattr("capture.source.MediaPlayer", player)
    device = CaptureDevice(str(node), "Locked Camera")
    manager, _ = make_manager(devices=[device], opener=MediaPlayerOpener())

    with pytest.raises(PermissionDenied):
        await manager.acquire_with_retry()
    player.assert_not_called()


@pytest.mark.asyncio
async def test_opener_starts_stream_from_player_track(image, monkeypatch):
    track = ScriptedTrack([image], end=False)
    player = Mock(return_value=SimpleNamespace(video=track))
    monkeypatch.setattr("capture.source.MediaPlayer", player)
    opener = MediaPlayerOpener(capture_format="v4l2", size=(640, 480), fps=15)

    stream = await opener(CaptureDevice("/dev/video-test", "Test Camera"))

    assert await stream.wait_ready(1.0)
    player.assert_called_once_with(
        "/dev/video-test", format="v4l2", options={"video_size": "640x480", "framerate": "15"}
    )
    await stream.stop()
    assert track.stopped


@pytest.mark.asyncio
async def test_opener_rejects_player_without_video(monkeypatch):
    monkeypatch.setattr("capture.source.MediaPlayer", Mock(return_value=SimpleNamespace(video=None)))
    manager, _ = make_manager(devices=[CaptureDevice("/dev/video-test", "Mic Only")], opener=MediaPlayerOpener())

    with pytest.raises(AcquisitionFailed):
        await manager.acquire_with_retry()
