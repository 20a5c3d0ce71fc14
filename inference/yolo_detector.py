import asyncio
import logging
import os
from typing import Any, List, Optional

import numpy as np

from config import constants
from models.detection import BoundingBox, RawDetection

logger = logging.getLogger("vocabary.inference.yolo")


def get_torch_device(use_gpu: bool) -> str:
    """Return "cuda" when requested and available, "cpu" otherwise."""
    if not use_gpu:
        return "cpu"
    try:
        import torch

        return "cuda" if torch.cuda.is_available() else "cpu"
    except Exception:
        return "cpu"


class YoloDetector:
    """Ultralytics YOLO model handle.

    `detect` is the coroutine the detection session awaits once per tick;
    the blocking prediction runs in the default executor so the event loop
    keeps serving capture and websocket traffic meanwhile.
    Boxes are returned as top-left (x, y, w, h) in input-frame pixels.
    """

    def __init__(self, model: Any, name: str, device: str = "cpu", min_confidence: float = 0.25):
        self._model = model
        self.name = name
        self.device = device
        self.min_confidence = min_confidence

    @classmethod
    def load(cls, model_path: str, use_gpu: bool = constants.USE_GPU) -> "YoloDetector":
        """Blocking load; meant to be called from an executor thread."""
        from ultralytics import YOLO

        if os.path.exists(model_path):
            logger.info(f"Loading detector weights from local cache: {model_path}")
        else:
            logger.info(f"Detector weights not cached locally, ultralytics will fetch: {model_path}")
        model = YOLO(model_path)
        device = get_torch_device(use_gpu)
        if device == "cuda":
            model.to("cuda")
        logger.info(f"Detector loaded: {model_path} on {device}")
        return cls(model, name=model_path, device=device)

    async def detect(self, frame: np.ndarray) -> List[RawDetection]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.predict, frame)

    def predict(self, frame: np.ndarray) -> List[RawDetection]:
        results = self._model.predict(
            source=frame,
            conf=self.min_confidence,
            imgsz=constants.YOLO_IMAGE_SIZE,
            device=self.device,
            verbose=False,
        )
        return self._parse_yolo_results(results)

    def _parse_yolo_results(self, results) -> List[RawDetection]:
        detections: List[RawDetection] = []
        for r in results:
            boxes = getattr(r, "boxes", None)
            if boxes is None or getattr(boxes, "xyxy", None) is None:
                continue
            names = getattr(r, "names", None) or getattr(self._model, "names", {})
            arr_xyxy = boxes.xyxy.cpu().numpy()
            confs = boxes.conf.cpu().numpy() if boxes.conf is not None else None
            clss = boxes.cls.cpu().numpy() if boxes.cls is not None else None

            for i, b in enumerate(arr_xyxy):
                parsed = self._parse_single_box(b, i, confs, clss, names)
                if parsed:
                    detections.append(parsed)
        return detections

    def _parse_single_box(self, b, i, confs, clss, names) -> Optional[RawDetection]:
        try:
            x1, y1, x2, y2 = [float(v) for v in b]
            conf = float(confs[i]) if confs is not None else 0.0
            cls_idx = int(clss[i]) if clss is not None else 0
            label = names.get(cls_idx, str(cls_idx)) if hasattr(names, "get") else str(cls_idx)
            return RawDetection(
                label=str(label),
                confidence=conf,
                bounding_box=BoundingBox(x=x1, y=y1, width=x2 - x1, height=y2 - y1),
            )
        except Exception as e:
            logger.warning(f"Failed to parse detection box: {e}")
            return None


def primary_detector_factory() -> YoloDetector:
    return YoloDetector.load(constants.PRIMARY_MODEL_PATH)


def fallback_detector_factory() -> YoloDetector:
    return YoloDetector.load(constants.FALLBACK_MODEL_PATH)


__all__ = ["YoloDetector", "primary_detector_factory", "fallback_detector_factory"]
