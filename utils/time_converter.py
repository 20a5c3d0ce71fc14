import time
from datetime import datetime, timezone
from typing import Optional


def epoch_to_iso_utc(epoch_seconds: float) -> str:
    """Millisecond precision ISO-8601 string with a trailing ``Z``."""
    moment = datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def utc_now_iso(now: Optional[float] = None) -> str:
    return epoch_to_iso_utc(time.time() if now is None else now)
