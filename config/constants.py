"""Application-wide constants and configuration values.

This module centralizes all magic numbers and configuration constants
to improve maintainability. Every value can be overridden through the
environment.
"""
import os

# ============================================================================
# SERVER CONFIGURATION
# ============================================================================
DEFAULT_SERVER_HOST = os.getenv("HOST", "0.0.0.0")
SERVER_PORT = int(os.getenv("PORT", "8000"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ============================================================================
# DETECTION MODEL
# ============================================================================
PRIMARY_MODEL_PATH = os.getenv("PRIMARY_MODEL_PATH", "yolov8s.pt")
FALLBACK_MODEL_PATH = os.getenv("FALLBACK_MODEL_PATH", "yolov8n.pt")
USE_GPU = os.getenv("USE_GPU", "false").lower() == "true"
YOLO_IMAGE_SIZE = int(os.getenv("YOLO_IMAGE_SIZE", "640"))

# ============================================================================
# DETECTION LOOP
# ============================================================================
DETECTION_CONFIDENCE_THRESHOLD = float(os.getenv("DETECTION_CONFIDENCE_THRESHOLD", "0.35"))
TICK_INTERVAL_SEC = float(os.getenv("TICK_INTERVAL_SEC", "0.033"))  # ~ one animation frame
MAX_CONSECUTIVE_INFERENCE_FAILURES = int(os.getenv("MAX_CONSECUTIVE_INFERENCE_FAILURES", "5"))
MODEL_WAIT_TIMEOUT_SEC = float(os.getenv("MODEL_WAIT_TIMEOUT_SEC", "10.0"))
STREAM_READY_TIMEOUT_SEC = float(os.getenv("STREAM_READY_TIMEOUT_SEC", "3.0"))

# Frames above this size are downscaled before inference
MAX_INFERENCE_WIDTH = int(os.getenv("MAX_INFERENCE_WIDTH", "1920"))
MAX_INFERENCE_HEIGHT = int(os.getenv("MAX_INFERENCE_HEIGHT", "1080"))
MIN_IMAGE_DIMENSION = 1

# ============================================================================
# ACCUMULATED DETECTIONS
# ============================================================================
DEDUP_THRESHOLD_PX = float(os.getenv("DEDUP_THRESHOLD_PX", "50.0"))
# Optional resolution-relative threshold (fraction of frame width/height)
_dedup_fraction = os.getenv("DEDUP_THRESHOLD_FRACTION", "")
DEDUP_THRESHOLD_FRACTION = float(_dedup_fraction) if _dedup_fraction else None
DETECTION_SET_CAPACITY = int(os.getenv("DETECTION_SET_CAPACITY", "50"))
DISPLAY_WINDOW = int(os.getenv("DISPLAY_WINDOW", "3"))

# ============================================================================
# CAPTURE
# ============================================================================
DEVICE_SETTLE_DELAY_SEC = float(os.getenv("DEVICE_SETTLE_DELAY_SEC", "0.3"))
CAPTURE_MAX_ATTEMPTS = int(os.getenv("CAPTURE_MAX_ATTEMPTS", "5"))
CAPTURE_RETRY_BACKOFF_SEC = float(os.getenv("CAPTURE_RETRY_BACKOFF_SEC", "1.0"))
CAPTURE_WIDTH = int(os.getenv("CAPTURE_WIDTH", "1280"))
CAPTURE_HEIGHT = int(os.getenv("CAPTURE_HEIGHT", "720"))
CAPTURE_FPS = int(os.getenv("CAPTURE_FPS", "30"))
CAPTURE_FORMAT = os.getenv("CAPTURE_FORMAT", "v4l2")
# "environment" on phones / rear-camera rigs, empty on desktop
DEFAULT_FACING_MODE = os.getenv("DEFAULT_FACING_MODE", "") or None
CAMERA_SELECTION_FILE = os.path.expanduser(
    os.getenv("CAMERA_SELECTION_FILE", "~/.vocabary/selection.json")
)

# ============================================================================
# LANGUAGE
# ============================================================================
DEFAULT_LANGUAGE_CODE = os.getenv("DEFAULT_LANGUAGE_CODE", "es")

# ============================================================================
# LEARNING API
# ============================================================================
# When false the server records learned words in its own in-memory store
USE_REMOTE_LEARNING_API = os.getenv("USE_REMOTE_LEARNING_API", "false").lower() == "true"
LEARNING_API_BASE_URL = os.getenv("LEARNING_API_BASE_URL", "http://localhost:8000/api")
HTTP_REQUEST_TIMEOUT_SEC = float(os.getenv("HTTP_REQUEST_TIMEOUT_SEC", "10.0"))
POINTS_NEW_WORD = 10
POINTS_RECAP_WORD = 5
POINTS_PER_LEVEL = 100

# ============================================================================
# PUSH CHANNEL
# ============================================================================
DETECTIONS_WS_PATH = "/ws/detections"
