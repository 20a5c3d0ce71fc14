import numpy as np
import pytest
from av import VideoFrame

from preprocessing.frame_decoder import decode_image


def test_decode_video_frame_to_bgr():
    img = np.zeros((100, 200, 3), dtype=np.uint8)
    img[:, :, 2] = 255
    frame = VideoFrame.from_ndarray(img, format="bgr24")
    decoded = decode_image(frame)
    assert decoded.shape == (100, 200, 3)
    assert decoded[0, 0, 2] == 255


def test_decode_passes_arrays_through():
    img = np.zeros((10, 20, 3), dtype=np.uint8)
    assert decode_image(img) is img


def test_decode_rejects_bytes():
    with pytest.raises(ValueError):
        decode_image(b"not a frame")
