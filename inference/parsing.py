from typing import Any, Dict, List, Optional, Sequence

from models.detection import BoundingBox, RawDetection


class DetectionParser:
    """Normalizes whatever a model handle returns into `RawDetection`s.

    Accepted shapes per item: a `RawDetection`, or a mapping with a label
    under ``label``/``class``/``cls``, a score under ``confidence``/``score``
    and a box given either as ``bbox``/``boundingBox`` ([x, y, w, h] list or
    {x, y, width, height} mapping) or as flat ``x``/``y``/``width``/``height``
    keys. Unusable items are skipped.
    """

    @staticmethod
    def parse_many(items: Optional[Sequence[Any]]) -> List[RawDetection]:
        detections: List[RawDetection] = []
        for item in items or []:
            parsed = DetectionParser.parse(item)
            if parsed is not None:
                detections.append(parsed)
        return detections

    @staticmethod
    def parse(item: Any) -> Optional[RawDetection]:
        if isinstance(item, RawDetection):
            return item
        if not isinstance(item, dict):
            return None
        try:
            bbox = DetectionParser._extract_bbox(item)
            if bbox is None:
                return None
            return RawDetection(
                label=DetectionParser._extract_class_name(item),
                confidence=float(item.get("confidence", item.get("score", 0.0))),
                bounding_box=bbox,
            )
        except (TypeError, ValueError):
            return None

    @staticmethod
    def _extract_bbox(item: Dict[str, Any]) -> Optional[BoundingBox]:
        bbox = item.get("bbox", item.get("boundingBox"))
        if isinstance(bbox, dict):
            values = [bbox.get("x"), bbox.get("y"), bbox.get("width"), bbox.get("height")]
        elif bbox is not None:
            values = list(bbox)
        else:
            values = [item.get("x"), item.get("y"), item.get("width"), item.get("height")]
        if len(values) != 4 or any(v is None for v in values):
            return None
        x, y, width, height = (float(v) for v in values)
        return BoundingBox(x=x, y=y, width=width, height=height)

    @staticmethod
    def _extract_class_name(item: Dict[str, Any]) -> str:
        for key in ("label", "class", "cls"):
            value = item.get(key)
            if value is not None and value != "":
                return str(value)
        return "unknown"
