import asyncio
from typing import Any, Optional


class LatestFrameBuffer:
    """Single-slot frame holder with drop-replace behavior.

    The capture pump writes every frame it receives; the detection loop reads
    whatever is newest without waiting. Older, unread frames are discarded
    to prioritize the most recent frame (low-latency policy). `ready` is
    set on the first frame, the equivalent of "metadata loaded".
    """

    def __init__(self) -> None:
        self._frame: Optional[Any] = None
        self._fresh: bool = False
        self.ready: asyncio.Event = asyncio.Event()
        self.received_count: int = 0
        self.dropped_count: int = 0

    def put(self, frame: Any) -> bool:
        """Store `frame`; return True if an unread frame was dropped."""
        dropped = self._fresh
        if dropped:
            self.dropped_count += 1
        self._frame = frame
        self._fresh = True
        self.received_count += 1
        if not self.ready.is_set():
            self.ready.set()
        return dropped

    def peek(self) -> Optional[Any]:
        """Return the newest frame (or None) and mark it as consumed."""
        self._fresh = False
        return self._frame

    def clear(self) -> None:
        self._frame = None
        self._fresh = False
        self.ready.clear()

    def empty(self) -> bool:
        return self._frame is None
