import math
from typing import Any, Optional, Tuple

from models.detection import BoundingBox, NormalizedBoundingBox


def get_resolution(image: Any) -> Tuple[int, int]:
    """Get image resolution as (width, height); (0, 0) when it has no shape."""
    shape = getattr(image, "shape", None)
    if shape is None or len(shape) < 2:
        return 0, 0
    height, width = shape[:2]
    return int(width), int(height)


def has_valid_dimensions(width: float, height: float) -> bool:
    """Return True when both frame dimensions are finite and non-zero."""
    return (
        math.isfinite(width)
        and math.isfinite(height)
        and width > 0
        and height > 0
    )


def _clamp_unit(value: float) -> float:
    return min(1.0, max(0.0, value))


def normalize_bounding_box(
    box: BoundingBox, frame_width: float, frame_height: float
) -> Optional[NormalizedBoundingBox]:
    """Convert a pixel box to frame-relative coordinates.

    Returns None when the frame dimensions are unusable or the box holds
    non-finite values; the detection is then dropped for this frame.
    Detector boxes may overshoot the frame edge by a pixel, so results are
    clamped into [0, 1].
    """
    if not has_valid_dimensions(frame_width, frame_height):
        return None
    values = (box.x, box.y, box.width, box.height)
    if not all(math.isfinite(v) for v in values):
        return None
    return NormalizedBoundingBox(
        x=_clamp_unit(box.x / frame_width),
        y=_clamp_unit(box.y / frame_height),
        width=_clamp_unit(box.width / frame_width),
        height=_clamp_unit(box.height / frame_height),
    )
