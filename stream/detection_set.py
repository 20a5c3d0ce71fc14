import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Iterator, List, Optional, Sequence, Tuple

from config import constants
from models.detection import EnrichedDetection
from models.learning import MarkLearnedResult
from utils.emitter import ListenerRegistry
from utils.errors import LearningApiError

logger = logging.getLogger("vocabary.detection_set")

FrameSize = Tuple[int, int]


@dataclass(frozen=True)
class _Entry:
    detection: EnrichedDetection
    # top-left corner in the pixel space of the frame it was detected in
    x_px: float
    y_px: float


class AccumulatedDetectionSet:
    """Session output sink: recent enriched detections, oldest evicted first.

    Only the detection session appends (one batch per tick) and every batch
    yields exactly one notification to subscribers. A detection counts as a
    duplicate of a retained one when the names match and both the x and y
    distance of the top-left corners are below the threshold, measured in
    pixels. With `threshold_fraction` set the threshold scales with the
    frame instead (fraction of width for x, of height for y).
    """

    def __init__(
        self,
        capacity: int = constants.DETECTION_SET_CAPACITY,
        threshold_px: float = constants.DEDUP_THRESHOLD_PX,
        threshold_fraction: Optional[float] = constants.DEDUP_THRESHOLD_FRACTION,
        learning_client: Any = None,
    ):
        self._entries: Deque[_Entry] = deque(maxlen=max(1, capacity))
        self._threshold_px = threshold_px
        self._threshold_fraction = threshold_fraction
        self._learning_client = learning_client
        self._listeners = ListenerRegistry("detections")
        self.evicted_count = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[EnrichedDetection]:
        return (entry.detection for entry in list(self._entries))

    @property
    def capacity(self) -> int:
        return self._entries.maxlen

    def thresholds(self, frame_size: FrameSize) -> Tuple[float, float]:
        if self._threshold_fraction is None:
            return self._threshold_px, self._threshold_px
        width, height = frame_size
        return self._threshold_fraction * width, self._threshold_fraction * height

    def is_duplicate(
        self,
        name: str,
        x_px: float,
        y_px: float,
        frame_size: FrameSize,
        pending: Sequence[Tuple[str, float, float]] = (),
    ) -> bool:
        """Check a candidate against retained entries and `pending` ones.

        `pending` holds (name, x_px, y_px) of candidates already accepted
        earlier in the same tick, so the first one of a batch wins too.
        """
        tx, ty = self.thresholds(frame_size)
        for entry in self._entries:
            if entry.detection.name == name and abs(entry.x_px - x_px) < tx and abs(entry.y_px - y_px) < ty:
                return True
        for other_name, other_x, other_y in pending:
            if other_name == name and abs(other_x - x_px) < tx and abs(other_y - y_px) < ty:
                return True
        return False

    def append_batch(self, batch: Sequence[EnrichedDetection], frame_size: FrameSize) -> List[EnrichedDetection]:
        """Append `batch` in order; returns the appended detections."""
        width, height = frame_size
        for detection in batch:
            if len(self._entries) == self._entries.maxlen:
                self.evicted_count += 1
            box = detection.bounding_box
            self._entries.append(_Entry(detection, box.x * width, box.y * height))
        return list(batch)

    async def publish(
        self,
        batch: Sequence[EnrichedDetection],
        frame_size: FrameSize,
        session_id: Optional[str] = None,
    ) -> List[EnrichedDetection]:
        """Append a non-empty batch and notify subscribers once."""
        if not batch:
            return []
        appended = self.append_batch(batch, frame_size)
        await self._listeners.emit(appended, session_id)
        return appended

    def subscribe(self, listener: Callable[[List[EnrichedDetection]], Any]) -> Callable[[], None]:
        return self._listeners.add(listener)

    def latest(self, n: int = constants.DISPLAY_WINDOW) -> List[EnrichedDetection]:
        if n <= 0:
            return []
        return [entry.detection for entry in list(self._entries)[-n:]]

    def snapshot(self) -> List[EnrichedDetection]:
        return list(self)

    def find(self, name: str) -> Optional[EnrichedDetection]:
        """Most recent retained detection called `name` (case-insensitive)."""
        wanted = name.strip().lower()
        for entry in reversed(self._entries):
            if entry.detection.name.lower() == wanted:
                return entry.detection
        return None

    def clear(self) -> None:
        self._entries.clear()

    async def mark_learned(
        self,
        detection: EnrichedDetection,
        user_id: int,
        language_id: int,
    ) -> MarkLearnedResult:
        """Persist `detection` as a learned word and return the new score.

        The detection itself is left untouched; callers keep their own
        record of which names were learned.
        """
        if self._learning_client is None:
            raise LearningApiError("No learning backend configured")
        result = await self._learning_client.mark_learned(
            user_id=user_id,
            word=detection.name,
            translation=detection.translation,
            language_id=language_id,
        )
        logger.info(
            f"Marked {detection.name!r} learned for user {user_id}: score={result.score} level={result.level}"
        )
        return result
