import enum
import logging
import time
import uuid
from typing import Optional

logger = logging.getLogger("vocabary.session")


class SessionState(str, enum.Enum):
    IDLE = "idle"
    AWAITING_MODEL = "awaiting_model"
    AWAITING_STREAM = "awaiting_stream"
    RUNNING = "running"
    STOPPING = "stopping"


class SessionStats:
    """Counters for one detection run, from `start()` to `stop()`.

    The detection loop calls the `record_*` helpers; `close()` returns a
    summary dict and logs it.
    """

    def __init__(self, session_id: Optional[str] = None):
        self.session_id = session_id or str(uuid.uuid4())
        self.start_time = time.time()
        self.end_time: Optional[float] = None
        # Ticks that reached the inference call
        self.frame_count = 0
        # Ticks skipped by the guard (no frame, paused, zero size, no model)
        self.skipped_count = 0
        self.detection_count = 0
        self.duplicate_count = 0
        self.dropped_invalid_count = 0
        self.inference_failures = 0
        self.discarded_results = 0
        self.last_activity = self.start_time
        logger.info("session.created", extra={"session_id": self.session_id})

    def record_frame(self) -> None:
        self.frame_count += 1
        self.last_activity = time.time()

    def record_skipped(self) -> None:
        self.skipped_count += 1

    def record_detection(self, n: int = 1) -> None:
        self.detection_count += n

    def record_duplicates(self, n: int = 1) -> None:
        self.duplicate_count += n

    def record_invalid(self, n: int = 1) -> None:
        self.dropped_invalid_count += n

    def record_failure(self) -> None:
        self.inference_failures += 1

    def record_discarded(self) -> None:
        self.discarded_results += 1

    def close(self) -> dict:
        self.end_time = time.time()
        summary = {
            "session_id": self.session_id,
            "start_time": int(self.start_time * 1000),
            "end_time": int(self.end_time * 1000),
            "duration_sec": round(self.end_time - self.start_time, 2),
            "frame_count": self.frame_count,
            "skipped_count": self.skipped_count,
            "detection_count": self.detection_count,
            "duplicate_count": self.duplicate_count,
            "dropped_invalid_count": self.dropped_invalid_count,
            "inference_failures": self.inference_failures,
            "discarded_results": self.discarded_results,
        }
        logger.info("session.closed", extra=summary)
        return summary
