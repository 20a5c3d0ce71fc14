import cv2
import numpy as np

from config.constants import MAX_INFERENCE_HEIGHT as MAX_HEIGHT
from config.constants import MAX_INFERENCE_WIDTH as MAX_WIDTH
from config.constants import MIN_IMAGE_DIMENSION as MIN_DIMENSION


def fits_inference_bounds(image: np.ndarray) -> bool:
    height, width = image.shape[:2]
    return height <= MAX_HEIGHT and width <= MAX_WIDTH


def resize_for_inference(image: np.ndarray) -> np.ndarray:
    """Downscale to fit within the inference bounds, preserving aspect ratio.

    Frames already inside the bounds are returned untouched, so detector
    boxes stay in capture-resolution pixels for ordinary webcam sizes.
    """
    height, width = image.shape[:2]

    if fits_inference_bounds(image):
        return image

    scale = min(MAX_HEIGHT / height, MAX_WIDTH / width)
    new_width = max(MIN_DIMENSION, int(width * scale))
    new_height = max(MIN_DIMENSION, int(height * scale))

    return cv2.resize(image, (new_width, new_height), interpolation=cv2.INTER_AREA)
