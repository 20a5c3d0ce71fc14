import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """Box in source-frame pixel units; (x, y) is the top-left corner."""

    x: float
    y: float
    width: float
    height: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class NormalizedBoundingBox:
    """Box relative to the frame dimensions, every field in [0, 1]."""

    x: float
    y: float
    width: float
    height: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class RawDetection:
    label: str
    confidence: float
    bounding_box: BoundingBox


@dataclass(frozen=True)
class EnrichedDetection:
    name: str
    translation: str
    confidence: float
    bounding_box: NormalizedBoundingBox
    categories: Tuple[str, str]
    pronunciation: Optional[str] = None
    speech_language: Optional[str] = None
    detected_at: float = field(default_factory=time.time, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "translation": self.translation,
            "confidence": round(float(self.confidence), 4),
            "boundingBox": self.bounding_box.to_dict(),
            "categories": list(self.categories),
            "detectedAt": int(self.detected_at * 1000),
        }
        if self.pronunciation:
            payload["pronunciation"] = self.pronunciation
        if self.speech_language:
            payload["speechLanguage"] = self.speech_language
        return payload


@dataclass(frozen=True)
class CaptureDevice:
    device_id: str
    label: str

    def to_dict(self) -> Dict[str, str]:
        return {"deviceId": self.device_id, "label": self.label}
