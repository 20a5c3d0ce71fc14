from av import VideoFrame
import numpy as np


def decode_image(frame: VideoFrame | np.ndarray) -> np.ndarray:
    """Convert a decoded camera frame to a BGR NumPy array."""
    if isinstance(frame, VideoFrame):
        return frame.to_ndarray(format="bgr24")
    if isinstance(frame, np.ndarray):
        return frame
    raise ValueError(f"Unsupported frame type: {type(frame).__name__}")
