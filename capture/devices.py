import glob
import logging
import os
import re
from typing import Iterable, List, Optional

from models.detection import CaptureDevice

logger = logging.getLogger("vocabary.capture.devices")

FACING_KEYWORDS = {
    "environment": ("back", "rear", "environment", "world"),
    "user": ("front", "user", "facetime", "selfie", "integrated"),
}


def _video_index(path: str) -> int:
    match = re.search(r"(\d+)$", path)
    return int(match.group(1)) if match else 1 << 30


class V4L2DeviceCatalog:
    """Enumerates Video4Linux capture nodes (``/dev/videoN``).

    Labels come from sysfs; metadata-only nodes (sysfs ``index`` != 0)
    are skipped so each physical camera is listed once.
    """

    def __init__(self, dev_glob: str = "/dev/video*", sysfs_root: str = "/sys/class/video4linux"):
        self._dev_glob = dev_glob
        self._sysfs_root = sysfs_root

    def _read_sysfs(self, node: str, attribute: str) -> Optional[str]:
        try:
            with open(os.path.join(self._sysfs_root, node, attribute), "r", encoding="utf-8") as f:
                return f.read().strip()
        except OSError:
            return None

    def enumerate(self) -> List[CaptureDevice]:
        devices: List[CaptureDevice] = []
        for path in sorted(glob.glob(self._dev_glob), key=_video_index):
            node = os.path.basename(path)
            index = self._read_sysfs(node, "index")
            if index not in (None, "0"):
                continue
            label = self._read_sysfs(node, "name") or node
            devices.append(CaptureDevice(device_id=path, label=label))
        logger.debug(f"Enumerated {len(devices)} video input(s)")
        return devices


def matches_facing_mode(device: CaptureDevice, facing_mode: str) -> bool:
    keywords = FACING_KEYWORDS.get(facing_mode, ())
    label = device.label.lower()
    return any(keyword in label for keyword in keywords)


def select_device(
    devices: Iterable[CaptureDevice],
    device_id: Optional[str] = None,
    facing_mode_hint: Optional[str] = None,
) -> Optional[CaptureDevice]:
    """Pick the capture device to open.

    Precedence: exact `device_id` match, then the first device whose label
    matches `facing_mode_hint`, then the first enumerated device.
    """
    devices = list(devices)
    if not devices:
        return None
    if device_id:
        for device in devices:
            if device.device_id == device_id:
                return device
        logger.info(f"Requested camera {device_id} not present, falling back")
    if facing_mode_hint:
        for device in devices:
            if matches_facing_mode(device, facing_mode_hint):
                return device
    return devices[0]
